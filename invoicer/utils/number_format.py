"""Number parsing utilities for request payloads."""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

CENT = Decimal('0.01')


def to_money(value) -> Decimal:
    """Quantize a numeric value to cents, rounding half up."""
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def parse_decimal(value, field: str = 'value', default=None) -> Decimal:
    """
    Parse a monetary or percentage value coming from JSON or a form.

    Accepts int, float, Decimal and strings like "1234.5" or "1,234.50".
    Floats go through str() so 75.2 becomes Decimal('75.2'), not its binary expansion.

    Raises:
        ValueError: if the value is missing (and no default) or not a finite number.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        if default is not None:
            return Decimal(str(default))
        raise ValueError(f'{field} is required')

    if isinstance(value, bool):
        raise ValueError(f'{field} must be a number')

    if isinstance(value, str):
        value = value.strip().replace(',', '')

    try:
        number = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValueError(f'{field} must be a number')

    if not number.is_finite():
        raise ValueError(f'{field} must be a number')

    return number


def parse_quantity(value, field: str = 'quantity', default=None) -> int:
    """Parse a whole-unit quantity. Fractional quantities are rejected."""
    number = parse_decimal(value, field, default)
    if number != number.to_integral_value():
        raise ValueError(f'{field} must be a whole number')
    return int(number)
