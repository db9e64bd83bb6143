"""
Fixed-point amount codec.

Contracts hold amounts as integers scaled by 10**decimals; the API speaks
decimal strings. Both directions are exact: no floats are involved and the
conversion does not depend on the ambient decimal context precision.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation, localcontext

from monspark.errors import ValidationError

NATIVE_DECIMALS = 18


def parse_units(value: str, decimals: int = NATIVE_DECIMALS) -> int:
    """
    Parse a decimal string into a scaled integer.

    Raises:
        ValidationError: If the value is empty, negative, not a plain decimal,
            or has more fractional digits than ``decimals``.
    """
    if value is None or not str(value).strip():
        msg = "Amount is required"
        raise ValidationError(msg)

    text = str(value).strip()
    try:
        amount = Decimal(text)
    except InvalidOperation as e:
        msg = f"Invalid amount: {text}"
        raise ValidationError(msg) from e

    if not amount.is_finite():
        msg = f"Invalid amount: {text}"
        raise ValidationError(msg)
    if amount < 0:
        msg = "Amount must not be negative"
        raise ValidationError(msg)

    exponent = int(amount.as_tuple().exponent)
    if exponent < -decimals:
        msg = f"Amount has more than {decimals} decimal places: {text}"
        raise ValidationError(msg)

    with localcontext() as ctx:
        ctx.prec = len(amount.as_tuple().digits) + decimals + 2
        return int(amount.scaleb(decimals))


def format_units(value: int, decimals: int = NATIVE_DECIMALS) -> str:
    """
    Format a scaled integer as a decimal string.

    Trailing fractional zeros are dropped but one fractional digit is always
    kept: ``10**18 -> "1.0"``, ``5 * 10**16 -> "0.05"``, ``0 -> "0.0"``.
    """
    value = int(value)
    sign = "-" if value < 0 else ""
    whole, fraction = divmod(abs(value), 10**decimals)
    if decimals == 0:
        return f"{sign}{whole}"
    fraction_text = str(fraction).rjust(decimals, "0").rstrip("0") or "0"
    return f"{sign}{whole}.{fraction_text}"


def format_ether(value: int) -> str:
    return format_units(value, NATIVE_DECIMALS)


def parse_ether(value: str) -> int:
    return parse_units(value, NATIVE_DECIMALS)
