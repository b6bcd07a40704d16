"""Date and currency normalization shared by extraction and question answering.

All "today" arithmetic runs against the reference date passed in by the caller
(normally ``Settings.reference_date``) rather than the wall clock, so overdue
and aging answers are reproducible between runs.
"""

import re
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Literal

COMPLETED = "Completed"

YearRule = Literal["century", "pivot"]

ISO_DATE = re.compile(r"\d{4}-\d{2}-\d{2}")

_CENTS = Decimal("0.01")


def format_date(value: date) -> str:
    """Format a date as ISO ``YYYY-MM-DD``."""
    return value.isoformat()


def is_iso_date(value: str) -> bool:
    """Check for a real calendar date written exactly as ``YYYY-MM-DD``."""
    if not ISO_DATE.fullmatch(value):
        return False
    try:
        date.fromisoformat(value)
    except ValueError:
        return False
    return True


def parse_date(value: str | None, today: date) -> date:
    """Parse an ISO-like date string.

    Only the leading ``YYYY-MM-DD`` part is considered, so timestamps parse too.
    Empty or unparsable input yields the reference date.

    Args:
        value: Date string such as ``2025-09-05``
        today: Reference date used as the fallback

    Returns:
        Parsed calendar date
    """
    if not value:
        return today
    head = value.strip()[:10]
    if not is_iso_date(head):
        return today
    return date.fromisoformat(head)


def expand_year(year: str, rule: YearRule = "century") -> int:
    """Expand a two-digit year.

    ``century`` always maps to 20xx; ``pivot`` maps values above 50 to 19xx.
    Four-digit years are returned unchanged.
    """
    if len(year) != 2:
        return int(year)
    value = int(year)
    if rule == "pivot" and value > 50:
        return 1900 + value
    return 2000 + value


def normalize_date(raw: str, rule: YearRule = "century") -> str | None:
    """Normalize a ``DD-MM-YYYY``/``DD/MM/YYYY``/``YYYY-MM-DD`` string to ISO.

    The component with four digits decides the ordering. Returns None when the
    string does not split into three parts or is not a real calendar date.
    """
    parts = re.split(r"[-/]", raw.strip())
    if len(parts) != 3 or not all(p.isdigit() for p in parts):
        return None

    if len(parts[0]) == 4:
        year, month, day = parts
    else:
        day, month, year = parts

    try:
        return date(expand_year(year, rule), int(month), int(day)).isoformat()
    except ValueError:
        return None


def days_until_due(due_date: str, today: date) -> int | None:
    """Whole days between the due date and the reference date.

    Returns None for the ``Completed`` sentinel; callers must check before
    doing arithmetic with the result.
    """
    if due_date == COMPLETED:
        return None
    return (parse_date(due_date, today) - today).days


def is_overdue(due_date: str, today: date) -> bool:
    """Check whether a due date lies before the reference date."""
    days = days_until_due(due_date, today)
    return days is not None and days < 0


def to_decimal(amount: Decimal | float | int | str) -> Decimal:
    """Convert a numeric value to Decimal without float artefacts."""
    if isinstance(amount, Decimal):
        return amount
    return Decimal(str(amount))


def format_currency(amount: Decimal | float | int, symbol: str = "$") -> str:
    """Format an amount with two decimals and a currency symbol prefix.

    Example:
        >>> format_currency(Decimal("1500"))
        '$1500.00'
    """
    value = to_decimal(amount)
    # quantize needs room for every integer digit plus the two decimals
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, value.adjusted() + 3)
        return f"{symbol}{value.quantize(_CENTS, rounding=ROUND_HALF_UP)}"
