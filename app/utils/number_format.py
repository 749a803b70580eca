"""Number parsing and rounding utilities for JSON payloads."""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

CENTS = Decimal('0.01')
STOCK_PRECISION = Decimal('0.001')


def quantize_money(value) -> Decimal:
    """Round a monetary amount to cents (half up)."""
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def quantize_stock(value) -> Decimal:
    """Round a stock quantity to the column precision."""
    return Decimal(value).quantize(STOCK_PRECISION, rounding=ROUND_HALF_UP)


def parse_decimal(value, field: str, allow_negative: bool = False) -> Decimal:
    """
    Parse a JSON number (or numeric string) into Decimal.

    Floats go through ``str`` so 0.1 becomes Decimal('0.1') and not its
    binary expansion.

    Raises:
        ValueError: if the value is missing, not numeric or negative.
    """
    if value is None or isinstance(value, bool):
        raise ValueError(f'"{field}" must be a number')
    try:
        number = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValueError(f'"{field}" must be a number')

    if not number.is_finite():
        raise ValueError(f'"{field}" must be a finite number')
    if number < 0 and not allow_negative:
        raise ValueError(f'"{field}" cannot be negative')
    return number


def parse_int(value, field: str, allow_negative: bool = False) -> int:
    """
    Parse a JSON integer. Integral floats/strings ("2", 2.0) are accepted.

    Raises:
        ValueError: if the value is not a whole number.
    """
    number = parse_decimal(value, field, allow_negative=allow_negative)
    if number != number.to_integral_value():
        raise ValueError(f'"{field}" must be a whole number')
    return int(number)


def parse_bool(value, field: str) -> bool:
    """
    Accept only JSON booleans. Strings such as "false" are rejected instead
    of being coerced by truthiness.

    Raises:
        ValueError: if the value is not true or false.
    """
    if not isinstance(value, bool):
        raise ValueError(f'"{field}" must be true or false')
    return value
