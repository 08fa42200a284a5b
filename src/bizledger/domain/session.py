"""Store-backed user session.

The session reads both records into memory when it opens and treats the
in-memory AppState as the source of truth. Every mutation re-serializes the
complete collection back into the store.
"""

import logging
import time
from datetime import date, datetime, UTC
from decimal import Decimal
from typing import Callable, Optional

from bizledger.database import mappers
from bizledger.database.base import KeyValueStore
from bizledger.domain import directory as user_directory
from bizledger.domain import state as commands
from bizledger.domain.entities import (
    AnalyticsSnapshot,
    DirectoryEntry,
    ExportFormat,
    Feature,
    Notification,
    QuotaDecision,
    Report,
    ReportPeriod,
    Suggestion,
    Tier,
    Transaction,
    TransactionKind,
    TrialStatus,
    User,
)
from bizledger.domain.entitlements import check_quota, require_feature, require_period
from bizledger.domain.errors import PersistenceError, ValidationError
from bizledger.domain.metrics import compute_metrics, optimization_suggestions
from bizledger.domain.reports import export_report, generate_report
from bizledger.domain.single_flight import SingleFlight
from bizledger.domain.state import AppState
from bizledger.domain.subscription import activate, require_dashboard_access, trial_status

logger = logging.getLogger(__name__)

DEFAULT_LATENCY = 1.0


def utc_now() -> datetime:
    return datetime.now(UTC)


class Session:
    """Owns the current user and transaction set for one session."""

    def __init__(
        self,
        store: KeyValueStore,
        latency: float = DEFAULT_LATENCY,
        clock: Callable[[], datetime] = utc_now,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize session and load persisted state.

        Args:
            store: Key-value store holding the serialized records
            latency: Seconds of simulated API / payment latency
            clock: Returns the current timezone-aware time
            sleep: Blocks for the simulated latency
        """
        self.store = store
        self.latency = latency
        self.clock = clock
        self.sleep = sleep
        self.notifications: list[Notification] = []
        self.auth_operation = SingleFlight("authentication")
        self.payment_operation = SingleFlight("subscription update")
        self.state = self._load()

    # Persistence

    def _load(self) -> AppState:
        try:
            user = mappers.load_user(self.store.get(mappers.USER_KEY))
            transactions = mappers.load_transactions(
                self.store.get(mappers.TRANSACTIONS_KEY)
            )
        except PersistenceError as e:
            logger.error("Error loading data: %s", e)
            self.notify(
                "error",
                "Error Loading Data",
                "There was a problem loading your data. Starting with an empty data set.",
            )
            return AppState()
        logger.debug("Loaded %d transactions", len(transactions))
        return AppState(user=user, transactions=tuple(transactions))

    def _save_user(self) -> None:
        self._write(mappers.USER_KEY, mappers.dump_user(self.state.user))

    def _save_transactions(self) -> None:
        self._write(
            mappers.TRANSACTIONS_KEY, mappers.dump_transactions(self.state.transactions)
        )

    def _write(self, key: str, blob: str) -> None:
        try:
            self.store.set(key, blob)
        except PersistenceError as e:
            logger.error("Error saving '%s': %s", key, e)
            self.notify(
                "error",
                "Error Saving Data",
                "Your changes are kept for this session but could not be saved.",
            )

    def _load_directory(self) -> list[DirectoryEntry]:
        try:
            return mappers.load_directory(self.store.get(mappers.DIRECTORY_KEY))
        except PersistenceError as e:
            logger.error("Error loading user directory: %s", e)
            self.notify(
                "error",
                "Error Loading Users",
                "The user directory could not be read and was treated as empty.",
            )
            return []

    def notify(self, level: str, title: str, message: str) -> None:
        self.notifications.append(Notification(level=level, title=title, message=message))

    def drain_notifications(self) -> list[Notification]:
        """Return and clear pending notifications."""
        pending, self.notifications = self.notifications, []
        return pending

    def _simulate_latency(self) -> None:
        if self.latency > 0:
            self.sleep(self.latency)

    # Identity

    @property
    def user(self) -> Optional[User]:
        return self.state.user

    @property
    def transactions(self) -> tuple[Transaction, ...]:
        return self.state.transactions

    def today(self) -> date:
        return self.clock().date()

    def require_user(self) -> User:
        if self.state.user is None:
            raise ValidationError("Not logged in. Run 'bizledger auth login' first.")
        return self.state.user

    def signup(self, name: str, email: str, password: str, business_name: str) -> User:
        """Register a new user and sign them in.

        Raises:
            ValidationError: If a required field is empty
            ConflictError: If the email is already registered
            OperationInFlightError: If another sign-in is pending
        """

        def operation() -> User:
            self._simulate_latency()
            directory = self._load_directory()
            user_id = str(int(self.clock().timestamp() * 1000))
            updated, user = user_directory.register_user(
                directory,
                user_id=user_id,
                name=name,
                email=email,
                password=password,
                business_name=business_name,
            )
            self._write(mappers.DIRECTORY_KEY, mappers.dump_directory(updated))
            self.state = commands.sign_in(self.state, user)
            self._save_user()
            logger.info("Signed up user %s", user.id)
            return user

        return self.auth_operation.run(operation)

    def login(self, email: str, password: str) -> User:
        """Sign in with an email/password pair.

        Raises:
            CredentialError: If the pair does not match a directory entry
            OperationInFlightError: If another sign-in is pending
        """

        def operation() -> User:
            self._simulate_latency()
            user = user_directory.authenticate(self._load_directory(), email, password)
            self.state = commands.sign_in(self.state, user)
            self._save_user()
            logger.info("Logged in user %s", user.id)
            return user

        return self.auth_operation.run(operation)

    def logout(self) -> None:
        self.state = commands.sign_out(self.state)
        try:
            self.store.delete(mappers.USER_KEY)
        except PersistenceError as e:
            logger.error("Error clearing session: %s", e)
            self.notify("error", "Error Logging Out", "The saved session could not be cleared.")

    # Subscription

    def require_access(self) -> User:
        """Return the user if their subscription opens the dashboard.

        Raises:
            ValidationError: If nobody is logged in
            SubscriptionRequiredError: If the user has no tier
            SubscriptionExpiredError: If a non-premium tier has expired
        """
        user = self.require_user()
        require_dashboard_access(user.subscription, self.clock())
        return user

    def activate_plan(self, tier: Tier) -> User:
        """Activate a tier for the current user.

        Paid tiers go through simulated payment latency; the trial does not.

        Raises:
            ValidationError: If nobody is logged in or tier is NONE
            OperationInFlightError: If another subscription update is pending
        """
        user = self.require_user()

        def operation() -> User:
            if tier != Tier.TRIAL:
                self._simulate_latency()
            subscription = activate(user.subscription, tier, self.clock())
            self.state = commands.apply_subscription(self.state, subscription)
            self._save_user()
            directory = user_directory.update_subscription(
                self._load_directory(), user.id, subscription
            )
            self._write(mappers.DIRECTORY_KEY, mappers.dump_directory(directory))
            logger.info("Activated %s plan for user %s", tier.value, user.id)
            return self.state.user

        return self.payment_operation.run(operation)

    def trial_status(self) -> Optional[TrialStatus]:
        user = self.require_user()
        return trial_status(user.subscription, self.clock())

    # Transactions

    def transaction_usage(self) -> tuple[int, QuotaDecision]:
        """Return this month's transaction count and the quota decision for it."""
        user = self.require_user()
        count = commands.current_month_count(self.state, self.today())
        return count, check_quota(user.subscription.tier, count)

    def add_transaction(
        self,
        amount: Optional[Decimal],
        category: Optional[str],
        kind: Optional[TransactionKind],
        txn_date: Optional[date] = None,
        description: Optional[str] = None,
    ) -> Transaction:
        """Record a transaction for the current user.

        Raises:
            SubscriptionRequiredError / SubscriptionExpiredError: If access is blocked
            ValidationError: If a required field is missing or malformed
            QuotaExceededError: If the monthly quota is used up
        """
        self.require_access()
        today = self.today()
        transaction_id = commands.next_transaction_id(
            self.state, int(self.clock().timestamp() * 1000)
        )
        self.state = commands.add_transaction(
            self.state,
            transaction_id=transaction_id,
            amount=amount,
            category=category,
            txn_date=txn_date if txn_date is not None else today,
            kind=kind,
            description=description,
            today=today,
        )
        self._save_transactions()
        logger.info("Added transaction %s", transaction_id)
        return self.state.transactions[0]

    def delete_transaction(self, transaction_id: str) -> None:
        """Remove a transaction.

        Raises:
            NotFoundError: If no transaction has that ID
        """
        self.require_access()
        self.state = commands.remove_transaction(self.state, transaction_id)
        self._save_transactions()
        logger.info("Deleted transaction %s", transaction_id)

    # Analytics and reports

    def analytics(self, reference_date: Optional[date] = None) -> AnalyticsSnapshot:
        self.require_access()
        return compute_metrics(self.state.transactions, reference_date or self.today())

    def suggestions(self, reference_date: Optional[date] = None) -> list[Suggestion]:
        """Expense optimization suggestions (premium only).

        Raises:
            EntitlementDeniedError: If the tier does not include suggestions
        """
        user = self.require_access()
        require_feature(user.subscription.tier, Feature.OPTIMIZATION_SUGGESTIONS)
        return optimization_suggestions(self.analytics(reference_date))

    def report(
        self, period: ReportPeriod, reference_date: Optional[date] = None
    ) -> Report:
        """Build a report for a period the current tier may view.

        Raises:
            EntitlementDeniedError: If the tier does not include the period
        """
        user = self.require_access()
        require_period(user.subscription.tier, period)
        return generate_report(
            self.state.transactions, period, reference_date or self.today()
        )

    def export_report(
        self,
        period: ReportPeriod,
        fmt: ExportFormat,
        reference_date: Optional[date] = None,
    ) -> str:
        """Render a report as CSV or text after the entitlement checks.

        Raises:
            SubscriptionRequiredError / SubscriptionExpiredError: If access is blocked
            EntitlementDeniedError: If the tier does not unlock the period or format
        """
        user = self.require_user()
        report = generate_report(
            self.state.transactions, period, reference_date or self.today()
        )
        return export_report(report, fmt, user.subscription, self.clock())
