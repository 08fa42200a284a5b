"""Analytics metrics computed from classified transactions.

Everything here is pure arithmetic over Decimal amounts. The health score is
a heuristic and its formula is reproduced exactly:

    50 + min(margin * 0.4, 40) + min(income_change * 0.2, 20)
       - min(max(expense_change, 0) * 0.2, 20)

rounded half up and clamped to [0, 100].
"""

from collections import defaultdict
from datetime import date
from decimal import ROUND_FLOOR, Decimal
from typing import Sequence

from bizledger.domain.entities import (
    AnalyticsSnapshot,
    Averages,
    CategoryTotal,
    MonthSummary,
    PeriodChanges,
    ReportPeriod,
    Suggestion,
    Transaction,
    TransactionKind,
)
from bizledger.domain.periods import classify, previous_month

TOP_CATEGORY_COUNT = 5
SUGGESTION_CATEGORY_COUNT = 2
CATEGORY_SHARE_REVIEW_THRESHOLD = Decimal("0.25")
EXPENSE_GROWTH_ALERT_THRESHOLD = Decimal("10")

ZERO = Decimal("0")
HUNDRED = Decimal("100")

HEALTH_LABELS = (
    (80, "Excellent"),
    (60, "Good"),
    (40, "Fair"),
    (0, "Needs Attention"),
)


def sum_kind(transactions: Sequence[Transaction], kind: TransactionKind) -> Decimal:
    """Sum amounts of one transaction kind."""
    return sum((txn.amount for txn in transactions if txn.kind == kind), ZERO)


def profit_margin(income: Decimal, expense: Decimal) -> Decimal:
    """Profit as a percentage of income, 0 when there is no income."""
    if income == 0:
        return ZERO
    return (income - expense) / income * HUNDRED


def percent_change(current: Decimal, previous: Decimal) -> Decimal:
    """Percentage change from ``previous`` to ``current``.

    Only a positive ``previous`` is used as the base. Otherwise the change is
    100 when current is positive and 0 when it is not.
    """
    if previous <= 0:
        return HUNDRED if current > 0 else ZERO
    return (current - previous) / previous * HUNDRED


def health_score(
    profit_margin: Decimal, income_change: Decimal, expense_change: Decimal
) -> int:
    """Composite financial health score in [0, 100]."""
    score = Decimal(50)
    score += min(Decimal(profit_margin) * Decimal("0.4"), Decimal(40))
    score += min(Decimal(income_change) * Decimal("0.2"), Decimal(20))
    score -= min(max(Decimal(expense_change), ZERO) * Decimal("0.2"), Decimal(20))
    rounded = int((score + Decimal("0.5")).to_integral_value(rounding=ROUND_FLOOR))
    return max(0, min(rounded, 100))


def health_label(score: int) -> str:
    """Map a health score onto its status label."""
    for threshold, label in HEALTH_LABELS:
        if score >= threshold:
            return label
    return HEALTH_LABELS[-1][1]


def summarize_month(transactions: Sequence[Transaction], month: date) -> MonthSummary:
    """Build a MonthSummary from transactions already classified into ``month``."""
    income = sum_kind(transactions, TransactionKind.INCOME)
    expense = sum_kind(transactions, TransactionKind.EXPENSE)
    return MonthSummary(
        name=month.strftime("%B"),
        income=income,
        expense=expense,
        profit=income - expense,
        profit_margin=profit_margin(income, expense),
        transaction_count=len(transactions),
    )


def top_expense_categories(
    transactions: Sequence[Transaction], limit: int = TOP_CATEGORY_COUNT
) -> list[CategoryTotal]:
    """Rank expense categories by summed amount, highest first.

    Ties keep the order in which categories were first encountered.
    """
    totals: dict[str, Decimal] = defaultdict(lambda: ZERO)
    for txn in transactions:
        if txn.kind == TransactionKind.EXPENSE:
            totals[txn.category] += txn.amount

    # sorted() is stable and dicts keep insertion order
    ranked = sorted(totals.items(), key=lambda item: item[1], reverse=True)
    return [CategoryTotal(category=name, amount=amount) for name, amount in ranked[:limit]]


def average_amount(transactions: Sequence[Transaction], kind: TransactionKind) -> Decimal:
    matching = [txn.amount for txn in transactions if txn.kind == kind]
    if not matching:
        return ZERO
    return sum(matching, ZERO) / len(matching)


def compute_metrics(
    transactions: Sequence[Transaction], reference_date: date
) -> AnalyticsSnapshot:
    """Compute the analytics snapshot for the month containing ``reference_date``.

    Args:
        transactions: All recorded transactions
        reference_date: Any day of the month to analyse

    Returns:
        AnalyticsSnapshot comparing the month with the one before it
    """
    prior = previous_month(reference_date)
    current_txns = classify(transactions, ReportPeriod.MONTHLY, reference_date)
    previous_txns = classify(transactions, ReportPeriod.MONTHLY, prior)

    current = summarize_month(current_txns, reference_date)
    previous = summarize_month(previous_txns, prior)

    changes = PeriodChanges(
        income=percent_change(current.income, previous.income),
        expense=percent_change(current.expense, previous.expense),
        profit=percent_change(current.profit, previous.profit),
    )
    score = health_score(current.profit_margin, changes.income, changes.expense)

    return AnalyticsSnapshot(
        current_month=current,
        previous_month=previous,
        changes=changes,
        top_categories=tuple(top_expense_categories(current_txns)),
        averages=Averages(
            income=average_amount(current_txns, TransactionKind.INCOME),
            expense=average_amount(current_txns, TransactionKind.EXPENSE),
        ),
        health_score=score,
        health_label=health_label(score),
    )


def optimization_suggestions(snapshot: AnalyticsSnapshot) -> list[Suggestion]:
    """Derive expense optimization hints from an analytics snapshot."""
    suggestions: list[Suggestion] = []
    monthly_expense = snapshot.current_month.expense

    for category in snapshot.top_categories[:SUGGESTION_CATEGORY_COUNT]:
        if monthly_expense == 0:
            continue
        share = category.amount / monthly_expense
        message = (
            f"This category represents {share * HUNDRED:.1f}% of your monthly expenses."
        )
        if share > CATEGORY_SHARE_REVIEW_THRESHOLD:
            message += " Consider reviewing these expenses for potential savings."
        suggestions.append(Suggestion(title=category.category, message=message))

    if snapshot.changes.expense > EXPENSE_GROWTH_ALERT_THRESHOLD:
        suggestions.append(
            Suggestion(
                title="Expense Growth Alert",
                message=(
                    f"Your expenses increased by {snapshot.changes.expense:.1f}% "
                    "compared to last month. This may impact your profit margin "
                    "if income doesn't grow proportionally."
                ),
            )
        )

    return suggestions
