"""
Formatting helpers for money and dates.

Used by the JSON serializers (plain "1234.50" strings) and by the bill PDF
(grouped "1,234.50" strings).
"""
from decimal import Decimal, InvalidOperation
from datetime import date, datetime
from typing import Union, Optional

Number = Union[int, float, Decimal, str, None]


def _as_decimal(value: Number) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        return None


def money_str(value: Number) -> Optional[str]:
    """
    Serialize a money value for JSON: two decimals, no grouping.

    Examples:
        money_str(Decimal('81')) -> "81.00"
        money_str(75.2) -> "75.20"
        money_str(None) -> None
    """
    num = _as_decimal(value)
    if num is None:
        return None
    return f"{num:.2f}"


def money(value: Number) -> str:
    """
    Format a money value for documents: thousands separator, two decimals.

    Examples:
        money(1250.5) -> "1,250.50"
        money(-9) -> "-9.00"
        money(None) -> "-"
    """
    num = _as_decimal(value)
    if num is None:
        return "-"
    return f"{num:,.2f}"


def percent(value: Number) -> str:
    """Format a percentage without trailing zeros: 10.00 -> "10", 12.50 -> "12.5"."""
    num = _as_decimal(value)
    if num is None:
        return "0"
    text = f"{num:f}"
    if '.' in text:
        text = text.rstrip('0').rstrip('.')
    return text or "0"


def date_short(value: Union[date, datetime, None]) -> str:
    """Format a date as MM/DD/YYYY."""
    if value is None:
        return "-"
    return value.strftime('%m/%d/%Y')


def iso_datetime(value: Union[date, datetime, None]) -> Optional[str]:
    """Serialize a date/datetime as ISO 8601."""
    if value is None:
        return None
    return value.isoformat()


def month_label(year: int, month: int) -> str:
    """Short month label with two-digit year: (2026, 10) -> "Oct 26"."""
    return date(year, month, 1).strftime('%b %y')
