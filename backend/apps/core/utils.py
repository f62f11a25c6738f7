"""
Numeric coercion shared by ingestion and search.
"""
import math
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

# Range of a signed 64-bit column
BIGINT_MIN = -(2 ** 63)
BIGINT_MAX = 2 ** 63 - 1

# Widest exponent rendered or converted without scientific notation
PLAIN_DIGITS = 30


def parse_number(value: Any) -> Optional[Decimal]:
    """
    Read a finite number from a cell or query string.

    Returns None for blanks, booleans, NaN/Infinity and anything that is not
    a plain decimal literal.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        return Decimal(repr(value)) if math.isfinite(value) else None

    text = str(value).strip()
    if not text:
        return None
    try:
        number = Decimal(text)
    except InvalidOperation:
        return None
    return number if number.is_finite() else None


def as_integer(number: Optional[Decimal]) -> Optional[int]:
    """Integral value that fits a BIGINT column, else None."""
    if number is None or number != number.to_integral_value():
        return None
    # BIGINT holds at most 19 digits
    if number.adjusted() > 18:
        return None
    integer = int(number)
    if not BIGINT_MIN <= integer <= BIGINT_MAX:
        return None
    return integer


def format_number(value: Any) -> Optional[str]:
    """Render a number the way clients expect it: no exponent, no trailing zeros."""
    if value is None:
        return None
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, int):
        return str(value)
    number = parse_number(value)
    if number is None:
        return str(value)
    if abs(number.adjusted()) > PLAIN_DIGITS:
        return value if isinstance(value, str) else str(number)
    if number == number.to_integral_value():
        return str(int(number))
    return format(number.normalize(), 'f')
