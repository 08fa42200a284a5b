"""Report generation and export encodings."""

import csv
import io
from datetime import date, datetime
from decimal import Decimal
from typing import Sequence

from bizledger.domain.entities import (
    CategoryBreakdownEntry,
    ExportFormat,
    Feature,
    Report,
    ReportPeriod,
    ReportTotals,
    Subscription,
    Transaction,
    TransactionKind,
)
from bizledger.domain.entitlements import require_feature, require_period
from bizledger.domain.metrics import sum_kind
from bizledger.domain.periods import classify, period_label, period_window
from bizledger.domain.subscription import require_dashboard_access

CSV_HEADER = ("Date", "Type", "Category", "Description", "Amount")

EXPORT_FEATURES = {
    ExportFormat.CSV: Feature.CSV_EXPORT,
    ExportFormat.TEXT: Feature.TEXT_REPORT_EXPORT,
}

EXPORT_EXTENSIONS = {
    ExportFormat.CSV: "csv",
    ExportFormat.TEXT: "txt",
}


def category_breakdown(
    transactions: Sequence[Transaction],
) -> list[CategoryBreakdownEntry]:
    """Group transactions by (kind, category) in first-occurrence order."""
    amounts: dict[tuple[TransactionKind, str], Decimal] = {}
    counts: dict[tuple[TransactionKind, str], int] = {}
    for txn in transactions:
        key = (txn.kind, txn.category)
        amounts[key] = amounts.get(key, Decimal("0")) + txn.amount
        counts[key] = counts.get(key, 0) + 1

    return [
        CategoryBreakdownEntry(
            kind=kind, category=category, amount=amount, count=counts[(kind, category)]
        )
        for (kind, category), amount in amounts.items()
    ]


def generate_report(
    transactions: Sequence[Transaction], period: ReportPeriod, reference_date: date
) -> Report:
    """Build a report for the period window around ``reference_date``.

    Args:
        transactions: All recorded transactions
        period: Reporting period
        reference_date: Date the period is anchored on

    Returns:
        Report with totals, category breakdown and the classified transactions
    """
    classified = classify(transactions, period, reference_date)
    income = sum_kind(classified, TransactionKind.INCOME)
    expense = sum_kind(classified, TransactionKind.EXPENSE)

    return Report(
        period=period,
        label=period_label(period, reference_date),
        window=period_window(period, reference_date),
        totals=ReportTotals(income=income, expense=expense, net=income - expense),
        category_breakdown=tuple(category_breakdown(classified)),
        transactions=tuple(classified),
    )


def format_amount(amount: Decimal) -> str:
    return f"{amount:.2f}"


def quote_field(value: str) -> str:
    """Wrap a CSV field in quotes, doubling any quotes inside it."""
    return '"' + value.replace('"', '""') + '"'


def _csv_text(value: str) -> str:
    if any(char in value for char in ',"\n'):
        return quote_field(value)
    return value


def report_to_csv(report: Report) -> str:
    """Encode a report's transactions as CSV.

    Description is always quoted; category only when it holds a delimiter.
    """
    lines = [",".join(CSV_HEADER)]
    for txn in report.transactions:
        lines.append(
            ",".join(
                [
                    txn.date.isoformat(),
                    txn.kind.value,
                    _csv_text(txn.category),
                    quote_field(txn.description),
                    format_amount(txn.amount),
                ]
            )
        )
    return "\n".join(lines)


def parse_csv_rows(content: str) -> list[dict[str, str]]:
    """Read exported CSV content back into row dictionaries."""
    reader = csv.DictReader(io.StringIO(content))
    return [dict(row) for row in reader]


def report_to_text(report: Report, generated_on: date) -> str:
    """Render a report as a plain-text document with fixed section headers."""
    breakdown = "\n".join(
        f"{entry.category} ({entry.kind.value}): ${format_amount(entry.amount)} "
        f"({entry.count} transactions)"
        for entry in report.category_breakdown
    )
    details = "\n".join(
        f"{txn.date.isoformat()} | {txn.kind.value.upper()} | {txn.category} | "
        f"${format_amount(txn.amount)} | {txn.description}"
        for txn in report.transactions
    )

    sections = [
        "BUSINESS FINANCIAL REPORT",
        report.label,
        f"Generated on: {generated_on.isoformat()}",
        "",
        "SUMMARY",
        "=======",
        f"Total Income: ${format_amount(report.totals.income)}",
        f"Total Expenses: ${format_amount(report.totals.expense)}",
        f"Net Profit: ${format_amount(report.totals.net)}",
        "",
        "CATEGORY BREAKDOWN",
        "==================",
        breakdown,
        "",
        "DETAILED TRANSACTIONS",
        "=====================",
        details,
    ]
    return "\n".join(sections) + "\n"


def export_filename(period: ReportPeriod, fmt: ExportFormat, today: date) -> str:
    """Default file name of an exported report."""
    return f"{period.value}-report-{today.isoformat()}.{EXPORT_EXTENSIONS[fmt]}"


def export_report(
    report: Report, fmt: ExportFormat, subscription: Subscription, now: datetime
) -> str:
    """Render a report in ``fmt`` after checking the subscription allows it.

    Raises:
        SubscriptionRequiredError: If the user has no tier
        SubscriptionExpiredError: If a non-premium tier has expired
        EntitlementDeniedError: If the tier does not unlock the period or format
    """
    require_dashboard_access(subscription, now)
    require_period(subscription.tier, report.period)
    require_feature(subscription.tier, EXPORT_FEATURES[fmt])

    if fmt == ExportFormat.CSV:
        return report_to_csv(report)
    return report_to_text(report, now.date())
