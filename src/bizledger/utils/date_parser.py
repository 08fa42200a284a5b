"""Date parsing utilities."""

from datetime import date, datetime, time, timedelta
from typing import Optional

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

from bizledger.domain.periods import month_start, previous_month, week_start


def _relative_date(phrase: str, today: date) -> Optional[date]:
    """Resolve a relative phrase, or None when ``phrase`` is not one."""
    shortcuts = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
        "this week": week_start(today),
        "last week": week_start(today) - timedelta(days=7),
        "this month": month_start(today),
        "last month": previous_month(today),
        "this year": today.replace(month=1, day=1),
        "last year": today.replace(month=1, day=1) - relativedelta(years=1),
    }
    return shortcuts.get(phrase)


def parse_date(date_str: str, today: Optional[date] = None) -> date:
    """Parse a date string into a date object.

    Supports various formats including relative dates:
    - Absolute dates: "2024-01-15", "January 15, 2024", etc.
    - Relative dates: "today", "yesterday", "last month", "this year", etc.

    "this"/"last" phrases resolve to the first day of that week, month or
    year. Weeks start on Sunday, matching report windows.

    Args:
        date_str: Date string in various formats
        today: Reference day for relative dates (defaults to date.today())

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    today = today or date.today()
    phrase = " ".join(date_str.strip().lower().split())
    relative = _relative_date(phrase, today)
    if relative is not None:
        return relative

    try:
        return date_parser.parse(phrase, default=datetime.combine(today, time())).date()
    except (ValueError, TypeError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")
