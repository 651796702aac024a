# app/formatting.py

from datetime import date
from decimal import Decimal


def format_currency(amount) -> str:
    """USD with thousands separators, e.g. ``$1,234.50``."""
    value = Decimal(str(amount or 0))
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def format_date(value: date) -> str:
    return value.isoformat()


def file_safe(text: str) -> str:
    """Collapse whitespace runs to underscores and drop path separators."""
    return "_".join(text.split()).replace("/", "-").replace("\\", "-")
