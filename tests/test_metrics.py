"""Tests for the analytics metrics engine."""

from datetime import date
from decimal import Decimal

import pytest

from bizledger.domain.entities import CategoryTotal, TransactionKind
from bizledger.domain.metrics import (
    compute_metrics,
    health_label,
    health_score,
    optimization_suggestions,
    percent_change,
    profit_margin,
    top_expense_categories,
)
from conftest import make_txn

REFERENCE = date(2024, 1, 15)
INCOME = TransactionKind.INCOME
EXPENSE = TransactionKind.EXPENSE


class TestProfitMargin:
    def test_zero_income_gives_zero_margin(self):
        assert profit_margin(Decimal("0"), Decimal("0")) == 0
        assert profit_margin(Decimal("0"), Decimal("250")) == 0

    def test_margin_is_percentage_of_income(self):
        assert profit_margin(Decimal("200"), Decimal("50")) == Decimal("75")


class TestPercentChange:
    def test_from_zero_to_positive_is_exactly_100(self):
        assert percent_change(Decimal("50"), Decimal("0")) == Decimal("100")

    def test_both_zero_is_zero(self):
        assert percent_change(Decimal("0"), Decimal("0")) == Decimal("0")

    def test_regular_change(self):
        assert percent_change(Decimal("150"), Decimal("100")) == Decimal("50")
        assert percent_change(Decimal("50"), Decimal("100")) == Decimal("-50")

    def test_loss_to_profit_is_100(self):
        assert percent_change(Decimal("50"), Decimal("-100")) == Decimal("100")

    def test_loss_to_loss_is_zero(self):
        assert percent_change(Decimal("-20"), Decimal("-100")) == Decimal("0")

    def test_from_zero_to_negative_is_zero(self):
        assert percent_change(Decimal("-10"), Decimal("0")) == Decimal("0")


class TestHealthScore:
    def test_baseline_is_fifty(self):
        assert health_score(Decimal(0), Decimal(0), Decimal(0)) == 50

    def test_formula(self):
        # 50 + 25*0.4 + 10*0.2 - 20*0.2 = 58
        assert health_score(Decimal(25), Decimal(10), Decimal(20)) == 58

    def test_components_are_capped(self):
        assert health_score(Decimal(10000), Decimal(10000), Decimal(-500)) == 100
        assert health_score(Decimal(0), Decimal(0), Decimal(10000)) == 30

    def test_rounds_half_up(self):
        # 50 + 1.25*0.4 = 50.5
        assert health_score(Decimal("1.25"), Decimal(0), Decimal(0)) == 51

    @pytest.mark.parametrize(
        "margin,income_change,expense_change",
        [
            (10000, 0, 0),
            (-10000, -10000, 10000),
            (-1e12, 1e12, 1e12),
            (33.333, -12.5, 7.77),
            (0.0, 0.0, 0.0),
        ],
    )
    def test_always_integer_in_range(self, margin, income_change, expense_change):
        score = health_score(margin, income_change, expense_change)
        assert isinstance(score, int)
        assert 0 <= score <= 100

    @pytest.mark.parametrize(
        "score,label",
        [
            (100, "Excellent"),
            (80, "Excellent"),
            (79, "Good"),
            (60, "Good"),
            (59, "Fair"),
            (40, "Fair"),
            (39, "Needs Attention"),
            (0, "Needs Attention"),
        ],
    )
    def test_labels(self, score, label):
        assert health_label(score) == label


def test_top_categories_rank_by_sum():
    transactions = [
        make_txn(100, "Rent"),
        make_txn(50, "Rent"),
        make_txn(30, "Travel"),
    ]
    assert top_expense_categories(transactions) == [
        CategoryTotal("Rent", Decimal("150")),
        CategoryTotal("Travel", Decimal("30")),
    ]


def test_top_categories_ties_keep_first_seen_order_and_limit_to_five():
    transactions = [make_txn(10, name) for name in ("A", "B", "C", "D", "E", "F")]
    transactions.append(make_txn(5, "G", kind=INCOME))

    top = top_expense_categories(transactions)

    assert [c.category for c in top] == ["A", "B", "C", "D", "E"]


def test_empty_input_yields_zero_snapshot():
    snapshot = compute_metrics([], REFERENCE)

    assert snapshot.current_month.income == 0
    assert snapshot.current_month.expense == 0
    assert snapshot.current_month.profit_margin == 0
    assert snapshot.previous_month.transaction_count == 0
    assert snapshot.changes.income == 0
    assert snapshot.changes.expense == 0
    assert snapshot.changes.profit == 0
    assert snapshot.top_categories == ()
    assert snapshot.averages.income == 0
    assert snapshot.averages.expense == 0
    assert snapshot.health_score == 50
    assert snapshot.health_label == "Fair"


def test_compute_metrics_compares_with_previous_month():
    transactions = [
        make_txn(1000, "Sales", INCOME, date(2024, 1, 3)),
        make_txn(500, "Consulting", INCOME, date(2024, 1, 20)),
        make_txn(300, "Rent", EXPENSE, date(2024, 1, 1)),
        make_txn(100, "Meals", EXPENSE, date(2024, 1, 31)),
        make_txn(1000, "Sales", INCOME, date(2023, 12, 15)),
        make_txn(200, "Rent", EXPENSE, date(2023, 12, 1)),
        make_txn(999, "Sales", INCOME, date(2023, 11, 30)),
    ]

    snapshot = compute_metrics(transactions, REFERENCE)

    assert snapshot.current_month.name == "January"
    assert snapshot.previous_month.name == "December"
    assert snapshot.current_month.income == Decimal("1500")
    assert snapshot.current_month.expense == Decimal("400")
    assert snapshot.current_month.profit == Decimal("1100")
    assert snapshot.current_month.transaction_count == 4
    assert snapshot.previous_month.profit == Decimal("800")
    assert snapshot.changes.income == Decimal("50")
    assert snapshot.changes.expense == Decimal("100")
    assert snapshot.changes.profit == Decimal("37.5")
    assert snapshot.averages.income == Decimal("750")
    assert snapshot.averages.expense == Decimal("200")
    # margin 73.33 -> +29.33, income +10, expense -20 => 69.33
    assert snapshot.health_score == 69
    assert snapshot.health_label == "Good"


def test_net_profit_matches_raw_sums():
    transactions = [
        make_txn("19.99", "Software", EXPENSE),
        make_txn("250.10", "Sales", INCOME),
        make_txn("0.01", "Other", EXPENSE),
        make_txn("1200", "Consulting", INCOME),
    ]
    snapshot = compute_metrics(transactions, REFERENCE)

    income = sum(t.amount for t in transactions if t.kind == INCOME)
    expense = sum(t.amount for t in transactions if t.kind == EXPENSE)
    assert snapshot.current_month.profit == income - expense


def test_income_change_is_100_when_previous_month_empty():
    snapshot = compute_metrics([make_txn(50, "Sales", INCOME)], REFERENCE)
    assert snapshot.changes.income == Decimal("100")


def test_profit_change_after_loss_month():
    transactions = [
        make_txn(150, "Sales", INCOME, date(2024, 1, 5)),
        make_txn(100, "Rent", EXPENSE, date(2024, 1, 6)),
        make_txn(100, "Rent", EXPENSE, date(2023, 12, 6)),
    ]

    snapshot = compute_metrics(transactions, REFERENCE)

    assert snapshot.previous_month.profit == Decimal("-100")
    assert snapshot.current_month.profit == Decimal("50")
    assert snapshot.changes.profit == Decimal("100")


def test_suggestions_flag_large_categories_and_expense_growth():
    transactions = [
        make_txn(600, "Rent", EXPENSE),
        make_txn(300, "Marketing", EXPENSE),
        make_txn(100, "Meals", EXPENSE),
        make_txn(500, "Rent", EXPENSE, date(2023, 12, 5)),
    ]
    suggestions = optimization_suggestions(compute_metrics(transactions, REFERENCE))

    assert [s.title for s in suggestions] == ["Rent", "Marketing", "Expense Growth Alert"]
    assert "60.0% of your monthly expenses" in suggestions[0].message
    assert "Consider reviewing" in suggestions[0].message
    assert "30.0%" in suggestions[1].message
    assert "increased by 100.0%" in suggestions[2].message


def test_suggestions_without_expenses_are_empty():
    snapshot = compute_metrics([make_txn(100, "Sales", INCOME)], REFERENCE)
    assert optimization_suggestions(snapshot) == []
