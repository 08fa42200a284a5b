"""Application state and the commands that transform it.

Commands never mutate their input; each returns a new AppState. The session
layer persists whatever state a command returns.
"""

from dataclasses import dataclass, replace
from datetime import date
from decimal import Decimal
from typing import Optional

from bizledger.domain.entities import (
    ReportPeriod,
    Subscription,
    Transaction,
    TransactionKind,
    User,
)
from bizledger.domain.entitlements import check_quota
from bizledger.domain.errors import (
    NotFoundError,
    QuotaExceededError,
    ValidationError,
    transaction_not_found,
)
from bizledger.domain.periods import classify


@dataclass(frozen=True)
class AppState:
    """Current user and their transactions, newest first."""

    user: Optional[User] = None
    transactions: tuple[Transaction, ...] = ()


def next_transaction_id(state: AppState, now_ms: int) -> str:
    """Time-derived ID that stays unique when two arrive in the same millisecond."""
    existing = [int(txn.id) for txn in state.transactions if txn.id.isdigit()]
    if existing and now_ms <= max(existing):
        now_ms = max(existing) + 1
    return str(now_ms)


def validate_transaction(
    amount: Optional[Decimal],
    category: Optional[str],
    txn_date: Optional[date],
    kind: Optional[TransactionKind],
) -> None:
    """Raise ValidationError for missing or malformed transaction fields."""
    if amount is None:
        raise ValidationError("Amount is required")
    if not amount.is_finite():
        raise ValidationError(f"Amount must be a finite number, got {amount}")
    if amount < 0:
        raise ValidationError(f"Amount must not be negative, got {amount}")
    if category is None or not category.strip():
        raise ValidationError("Category is required")
    if txn_date is None:
        raise ValidationError("Date is required")
    if not isinstance(kind, TransactionKind):
        raise ValidationError(f"Type must be one of: expense, income (got {kind!r})")


def current_month_count(state: AppState, today: date) -> int:
    """Number of transactions dated in the month of ``today``."""
    return len(classify(state.transactions, ReportPeriod.MONTHLY, today))


def add_transaction(
    state: AppState,
    *,
    transaction_id: str,
    amount: Optional[Decimal],
    category: Optional[str],
    txn_date: Optional[date],
    kind: Optional[TransactionKind],
    description: Optional[str],
    today: date,
) -> AppState:
    """Record a new transaction at the front of the collection.

    Raises:
        ValidationError: If a required field is missing or malformed
        QuotaExceededError: If the tier's monthly quota is used up
    """
    validate_transaction(amount, category, txn_date, kind)

    tier = state.user.subscription.tier if state.user is not None else None
    decision = check_quota(tier, current_month_count(state, today))
    if not decision.allowed:
        raise QuotaExceededError(tier.value if tier else "none", decision.limit)

    txn = Transaction(
        id=transaction_id,
        amount=amount,
        category=category.strip(),
        description=(description or "").strip(),
        date=txn_date,
        kind=kind,
    )
    return replace(state, transactions=(txn,) + state.transactions)


def remove_transaction(state: AppState, transaction_id: str) -> AppState:
    """Drop one transaction by ID.

    Raises:
        NotFoundError: If no transaction has that ID
    """
    remaining = tuple(txn for txn in state.transactions if txn.id != transaction_id)
    if len(remaining) == len(state.transactions):
        raise NotFoundError(transaction_not_found(transaction_id))
    return replace(state, transactions=remaining)


def apply_subscription(state: AppState, subscription: Subscription) -> AppState:
    """Replace the signed-in user's subscription."""
    if state.user is None:
        raise ValidationError("No user is signed in")
    return replace(state, user=replace(state.user, subscription=subscription))


def sign_in(state: AppState, user: User) -> AppState:
    return replace(state, user=user)


def sign_out(state: AppState) -> AppState:
    return replace(state, user=None)
