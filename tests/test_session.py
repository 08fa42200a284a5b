"""Tests for the store-backed session."""

from datetime import date
from decimal import Decimal

import pytest

from bizledger.database import mappers
from bizledger.domain.entities import ExportFormat, ReportPeriod, Tier, TransactionKind
from bizledger.domain.errors import (
    ConflictError,
    CredentialError,
    EntitlementDeniedError,
    NotFoundError,
    OperationInFlightError,
    PersistenceError,
    QuotaExceededError,
    SubscriptionExpiredError,
    SubscriptionRequiredError,
    ValidationError,
)
from bizledger.domain.session import Session

EXPENSE = TransactionKind.EXPENSE
INCOME = TransactionKind.INCOME


class FailingWrites:
    """Store wrapper whose writes always fail."""

    def __init__(self, store):
        self.store = store

    def get(self, key):
        return self.store.get(key)

    def set(self, key, value):
        raise PersistenceError("disk full")

    def delete(self, key):
        raise PersistenceError("disk full")


class TestAuthentication:
    def test_signup_signs_in_and_persists(self, session, temp_store):
        assert session.user.email == "ada@example.com"
        assert session.user.subscription.tier == Tier.NONE
        assert mappers.load_user(temp_store.get(mappers.USER_KEY)) == session.user
        directory = mappers.load_directory(temp_store.get(mappers.DIRECTORY_KEY))
        assert [entry.email for entry in directory] == ["ada@example.com"]

    def test_user_id_is_clock_milliseconds(self, session, clock):
        assert session.user.id == str(int(clock().timestamp() * 1000))

    def test_duplicate_signup(self, session):
        with pytest.raises(ConflictError):
            session.signup("Other", "ADA@example.com", "pw", "")

    def test_session_restored_on_reopen(self, session, open_session):
        reopened = open_session()
        assert reopened.user == session.user

    def test_logout_then_login(self, session, open_session):
        session.logout()
        assert session.user is None
        assert open_session().user is None

        user = session.login("ada@example.com", "s3cret")
        assert user.name == "Ada Lovelace"

    def test_wrong_password(self, session):
        session.logout()
        with pytest.raises(CredentialError):
            session.login("ada@example.com", "nope")
        assert session.user is None

    def test_latency_is_simulated(self, temp_store, clock):
        waits = []
        session = Session(temp_store, latency=1.5, clock=clock, sleep=waits.append)

        session.signup("Ada", "ada@example.com", "pw", "")
        session.activate_plan(Tier.TRIAL)
        session.activate_plan(Tier.BASIC)

        # The trial skips the payment delay
        assert waits == [1.5, 1.5]

    def test_reentrant_login_rejected(self, temp_store, clock):
        attempts = []

        def sleep(_seconds):
            with pytest.raises(OperationInFlightError):
                session.login("ada@example.com", "pw")
            attempts.append(True)

        session = Session(temp_store, latency=1, clock=clock, sleep=sleep)
        session.signup("Ada", "ada@example.com", "pw", "")

        assert attempts == [True]
        assert session.user.email == "ada@example.com"


class TestSubscription:
    def test_dashboard_requires_plan(self, session):
        with pytest.raises(SubscriptionRequiredError):
            session.require_access()
        with pytest.raises(SubscriptionRequiredError):
            session.add_transaction(Decimal("5"), "Meals", EXPENSE)

    def test_activation_updates_user_and_directory(self, subscribed_session, temp_store):
        session = subscribed_session(Tier.STANDARD)

        assert session.user.subscription.tier == Tier.STANDARD
        directory = mappers.load_directory(temp_store.get(mappers.DIRECTORY_KEY))
        assert directory[0].subscription == session.user.subscription

    def test_plan_survives_logout(self, subscribed_session):
        session = subscribed_session(Tier.PREMIUM)
        session.logout()
        assert session.login("ada@example.com", "s3cret").subscription.tier == Tier.PREMIUM

    def test_trial_status(self, subscribed_session, clock):
        session = subscribed_session(Tier.TRIAL)
        clock.advance(days=25)
        status = session.trial_status()
        assert status.days_left == 5
        assert status.expiring_soon

    def test_expired_plan_blocks_dashboard(self, subscribed_session, clock):
        session = subscribed_session(Tier.BASIC)
        clock.advance(days=40)

        with pytest.raises(SubscriptionExpiredError):
            session.analytics()
        assert session.user.subscription.tier == Tier.BASIC

    def test_expired_premium_still_has_access(self, subscribed_session, clock):
        session = subscribed_session(Tier.PREMIUM)
        clock.advance(days=400)
        session.require_access()

    def test_activation_without_user(self, open_session):
        with pytest.raises(ValidationError, match="Not logged in"):
            open_session().activate_plan(Tier.BASIC)


class TestTransactions:
    def test_add_defaults_to_today_and_persists(self, subscribed_session, open_session):
        session = subscribed_session(Tier.BASIC)

        txn = session.add_transaction(Decimal("12.50"), "Meals", EXPENSE, description="Lunch")

        assert txn.date == date(2024, 1, 15)
        assert session.transactions[0] == txn
        assert open_session().transactions == (txn,)

    def test_ids_are_unique_within_same_millisecond(self, subscribed_session):
        session = subscribed_session(Tier.BASIC)
        first = session.add_transaction(Decimal("1"), "Meals", EXPENSE)
        second = session.add_transaction(Decimal("1"), "Meals", EXPENSE)
        assert int(second.id) > int(first.id)

    def test_quota_denial_leaves_store_unchanged(self, subscribed_session, temp_store):
        session = subscribed_session(Tier.BASIC)
        for _ in range(100):
            session.add_transaction(Decimal("1"), "Meals", EXPENSE)
        stored = temp_store.get(mappers.TRANSACTIONS_KEY)

        with pytest.raises(QuotaExceededError):
            session.add_transaction(Decimal("1"), "Meals", EXPENSE)

        assert temp_store.get(mappers.TRANSACTIONS_KEY) == stored
        count, decision = session.transaction_usage()
        assert count == 100
        assert not decision.allowed

    def test_previous_month_does_not_count(self, subscribed_session):
        session = subscribed_session(Tier.BASIC)
        for _ in range(100):
            session.add_transaction(Decimal("1"), "Meals", EXPENSE, txn_date=date(2023, 12, 20))
        session.add_transaction(Decimal("1"), "Meals", EXPENSE)
        assert session.transaction_usage()[0] == 1

    def test_invalid_amount_rejected(self, subscribed_session):
        session = subscribed_session(Tier.BASIC)
        with pytest.raises(ValidationError):
            session.add_transaction(None, "Meals", EXPENSE)
        assert session.transactions == ()

    def test_delete(self, subscribed_session, open_session):
        session = subscribed_session(Tier.BASIC)
        txn = session.add_transaction(Decimal("3"), "Meals", EXPENSE)

        session.delete_transaction(txn.id)

        assert open_session().transactions == ()
        with pytest.raises(NotFoundError):
            session.delete_transaction(txn.id)


class TestAnalyticsAndReports:
    def test_analytics(self, subscribed_session):
        session = subscribed_session(Tier.BASIC)
        session.add_transaction(Decimal("1000"), "Sales", INCOME)
        session.add_transaction(Decimal("250"), "Rent", EXPENSE)

        snapshot = session.analytics()

        assert snapshot.current_month.profit == Decimal("750")
        assert snapshot.top_categories[0].category == "Rent"

    def test_suggestions_need_premium(self, subscribed_session):
        session = subscribed_session(Tier.STANDARD)
        with pytest.raises(EntitlementDeniedError):
            session.suggestions()

        session.activate_plan(Tier.PREMIUM)
        session.add_transaction(Decimal("100"), "Rent", EXPENSE)
        assert session.suggestions()[0].title == "Rent"

    def test_report_period_gate(self, subscribed_session):
        session = subscribed_session(Tier.BASIC)
        assert session.report(ReportPeriod.MONTHLY).label == "Monthly Report - January 2024"
        with pytest.raises(EntitlementDeniedError):
            session.report(ReportPeriod.WEEKLY)

    def test_trial_exports_csv(self, subscribed_session):
        session = subscribed_session(Tier.TRIAL)
        session.add_transaction(Decimal("9.99"), "Software", EXPENSE, description="Editor")

        content = session.export_report(ReportPeriod.WEEKLY, ExportFormat.CSV)

        assert content.splitlines()[1] == '2024-01-15,expense,Software,"Editor",9.99'

    def test_export_checks_access_and_period_once(self, subscribed_session, monkeypatch):
        from bizledger.domain import reports

        calls = []
        original_access = reports.require_dashboard_access
        original_period = reports.require_period

        def counting_access(subscription, now):
            calls.append("access")
            return original_access(subscription, now)

        def counting_period(tier, period):
            calls.append("period")
            return original_period(tier, period)

        monkeypatch.setattr(reports, "require_dashboard_access", counting_access)
        monkeypatch.setattr(reports, "require_period", counting_period)
        session = subscribed_session(Tier.STANDARD)

        session.export_report(ReportPeriod.MONTHLY, ExportFormat.CSV)

        assert calls == ["access", "period"]

    def test_expired_plan_cannot_export(self, subscribed_session, clock):
        session = subscribed_session(Tier.STANDARD)
        clock.advance(days=40)
        with pytest.raises(SubscriptionExpiredError):
            session.export_report(ReportPeriod.MONTHLY, ExportFormat.CSV)

    def test_export_period_gate(self, subscribed_session):
        session = subscribed_session(Tier.STANDARD)
        with pytest.raises(EntitlementDeniedError) as exc_info:
            session.export_report(ReportPeriod.YEARLY, ExportFormat.CSV)
        assert exc_info.value.required_tier == "premium"

    def test_text_export_needs_premium(self, subscribed_session):
        session = subscribed_session(Tier.TRIAL)
        with pytest.raises(EntitlementDeniedError) as exc_info:
            session.export_report(ReportPeriod.MONTHLY, ExportFormat.TEXT)
        assert exc_info.value.required_tier == "premium"


class TestPersistenceFailures:
    def test_corrupt_transactions_fall_back_to_empty(self, session, temp_store, open_session):
        temp_store.set(mappers.TRANSACTIONS_KEY, "{broken")

        reopened = open_session()

        assert reopened.user is None
        assert reopened.transactions == ()
        notes = reopened.drain_notifications()
        assert [note.title for note in notes] == ["Error Loading Data"]
        assert reopened.drain_notifications() == []

    def test_failed_write_keeps_state_and_notifies(self, subscribed_session):
        session = subscribed_session(Tier.BASIC)
        session.store = FailingWrites(session.store)

        txn = session.add_transaction(Decimal("5"), "Meals", EXPENSE)

        assert session.transactions == (txn,)
        assert [note.title for note in session.drain_notifications()] == ["Error Saving Data"]

    def test_failed_logout_notifies(self, session):
        session.store = FailingWrites(session.store)
        session.logout()
        assert session.user is None
        assert session.drain_notifications()[0].title == "Error Logging Out"
