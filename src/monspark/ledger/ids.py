"""Ledger record ids.

Ids look like ``1729265812345-k3j9x0a2b``: epoch milliseconds, a dash, and
9 random base36 characters from a cryptographic source. Sorting by the
numeric prefix gives creation order without a separate sequence counter.
"""

from __future__ import annotations

import secrets
import string
import time

ID_CHARSET = string.digits + string.ascii_lowercase  # base36
ID_SUFFIX_LENGTH = 9


def generate_id() -> str:
    """Generate a unique, chronologically informative record id."""
    suffix = "".join(secrets.choice(ID_CHARSET) for _ in range(ID_SUFFIX_LENGTH))
    return f"{time.time_ns() // 1_000_000}-{suffix}"


def id_timestamp_ms(record_id: str) -> int:
    """Return the millisecond timestamp embedded in an id."""
    prefix, _, _ = record_id.partition("-")
    return int(prefix)
