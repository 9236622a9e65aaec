"""
Amount Unit Helpers

Conversion between integer base units and human-readable decimal strings.
All conversions are exact for any uint256 amount; amounts never pass
through float.
"""

from decimal import Decimal, InvalidOperation, localcontext

# Enough significant digits for a uint256 amount with 18 decimals and headroom
_PRECISION = 120


def format_amount(amount: int, decimals: int = 18) -> str:
    """
    Render a base-unit amount as a decimal string.

    Trailing zeros are dropped: format_amount(1_500_000, 6) == "1.5".
    """
    if decimals < 0:
        raise ValueError("Decimals must be non-negative")

    sign = "-" if amount < 0 else ""
    whole, fraction = divmod(abs(amount), 10**decimals)
    if fraction == 0:
        return f"{sign}{whole}"
    digits = str(fraction).rjust(decimals, "0").rstrip("0")
    return f"{sign}{whole}.{digits}"


def parse_amount(text: str, decimals: int = 18) -> int:
    """
    Parse a decimal string into base units.

    Raises:
        ValueError: If the text is not a number, is negative, or has more
            fractional digits than the token supports
    """
    if decimals < 0:
        raise ValueError("Decimals must be non-negative")
    try:
        value = Decimal(text.strip())
    except InvalidOperation:
        raise ValueError(f"Invalid amount: {text!r}") from None

    if not value.is_finite():
        raise ValueError(f"Invalid amount: {text!r}")
    if value < 0:
        raise ValueError("Amount must be non-negative")

    with localcontext() as ctx:
        ctx.prec = _PRECISION
        scaled = value.scaleb(decimals)
        if scaled != scaled.to_integral_value():
            raise ValueError(f"Amount {text!r} has more than {decimals} decimal places")
        return int(scaled)
