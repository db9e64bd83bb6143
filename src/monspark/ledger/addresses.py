"""
EVM wallet address normalization.

Ledger keys are lower-cased hex addresses, so lookups are case-insensitive
and checksummed or upper-cased input maps to the same record.
"""

from __future__ import annotations

import re

from monspark.errors import ValidationError

_HEX_ADDRESS = re.compile(r"^0x[0-9a-fA-F]{40}$")


def normalize_address(address: str | None, field: str = "User address") -> str:
    """
    Validate and canonicalize a wallet address.

    Raises:
        ValidationError: If the address is missing or not 20 hex bytes.
    """
    if not address or not isinstance(address, str):
        msg = f"{field} is required"
        raise ValidationError(msg)

    candidate = address.strip()
    if not _HEX_ADDRESS.match(candidate):
        msg = f"Invalid address: {candidate[:12]}..."
        raise ValidationError(msg)
    return candidate.lower()
