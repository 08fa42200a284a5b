"""Period classification for transaction sets."""

from datetime import date, timedelta
from typing import Iterable

from dateutil.relativedelta import relativedelta

from bizledger.domain.entities import DateWindow, ReportPeriod, Transaction


def week_start(reference_date: date) -> date:
    """Return the most recent Sunday on or before ``reference_date``."""
    # date.weekday() is 0 for Monday, so Sunday sits at 6
    days_since_sunday = (reference_date.weekday() + 1) % 7
    return reference_date - timedelta(days=days_since_sunday)


def month_start(reference_date: date) -> date:
    return reference_date.replace(day=1)


def previous_month(reference_date: date) -> date:
    """Return the first day of the month before ``reference_date``'s month."""
    return month_start(reference_date) - relativedelta(months=1)


def period_window(period: ReportPeriod, reference_date: date) -> DateWindow:
    """Get the inclusive date window of ``period`` around ``reference_date``.

    Args:
        period: Reporting period
        reference_date: Date the window is anchored on

    Returns:
        DateWindow with start and end dates (both inclusive)
    """
    if period == ReportPeriod.DAILY:
        return DateWindow(reference_date, reference_date)

    if period == ReportPeriod.WEEKLY:
        start = week_start(reference_date)
        return DateWindow(start, start + timedelta(days=6))

    if period == ReportPeriod.MONTHLY:
        start = month_start(reference_date)
        return DateWindow(start, start + relativedelta(months=1) - timedelta(days=1))

    if period == ReportPeriod.QUARTERLY:
        quarter = (reference_date.month - 1) // 3
        start = date(reference_date.year, quarter * 3 + 1, 1)
        return DateWindow(start, start + relativedelta(months=3) - timedelta(days=1))

    if period == ReportPeriod.YEARLY:
        return DateWindow(
            date(reference_date.year, 1, 1), date(reference_date.year, 12, 31)
        )

    raise ValueError(f"Unknown period: '{period}'")


def classify(
    transactions: Iterable[Transaction], period: ReportPeriod, reference_date: date
) -> list[Transaction]:
    """Return the transactions dated inside the period window, order preserved."""
    window = period_window(period, reference_date)
    return [txn for txn in transactions if window.contains(txn.date)]


def period_label(period: ReportPeriod, reference_date: date) -> str:
    """Human-readable name of a period and its concrete date range."""
    window = period_window(period, reference_date)

    if period == ReportPeriod.DAILY:
        return f"Daily Report - {window.start.isoformat()}"
    if period == ReportPeriod.WEEKLY:
        return (
            f"Weekly Report - {window.start.isoformat()} to {window.end.isoformat()}"
        )
    if period == ReportPeriod.MONTHLY:
        return f"Monthly Report - {window.start.strftime('%B %Y')}"
    if period == ReportPeriod.QUARTERLY:
        quarter = (window.start.month - 1) // 3 + 1
        return f"Quarterly Report - Q{quarter} {window.start.year}"
    return f"Yearly Report - {window.start.year}"
