"""Shared pytest fixtures for bizledger tests."""

import os
import tempfile
from datetime import date, datetime, timedelta, UTC
from decimal import Decimal

import pytest

from bizledger.database.factories import create_sqlite_store
from bizledger.domain.entities import Transaction, TransactionKind
from bizledger.domain.session import Session


class FakeClock:
    """Settable clock for deterministic sessions."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


def make_txn(
    amount,
    category="Other",
    kind=TransactionKind.EXPENSE,
    txn_date=date(2024, 1, 15),
    description="",
    txn_id=None,
):
    """Build a Transaction with sensible defaults."""
    make_txn.counter += 1
    return Transaction(
        id=txn_id or str(1700000000000 + make_txn.counter),
        amount=Decimal(str(amount)),
        category=category,
        description=description,
        date=txn_date,
        kind=kind,
    )


make_txn.counter = 0


@pytest.fixture
def temp_store():
    """Create a temporary store for testing."""
    # Create a temporary file for the database
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    store = create_sqlite_store(database_path=db_path)
    # Store the path for tests that need it
    store.database_path = db_path
    store.connect()
    store.initialize_schema()

    yield store

    # Cleanup
    store.disconnect()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def clock():
    """Clock fixed at 2024-01-15 12:00 UTC (a Monday)."""
    return FakeClock(datetime(2024, 1, 15, 12, 0, tzinfo=UTC))


@pytest.fixture
def open_session(temp_store, clock):
    """Factory that opens a new session on the shared store."""

    def factory():
        return Session(temp_store, latency=0, clock=clock)

    return factory


@pytest.fixture
def session(open_session):
    """Session with a signed-up user and no plan."""
    session = open_session()
    session.signup(
        name="Ada Lovelace",
        email="ada@example.com",
        password="s3cret",
        business_name="Ada's Bakery",
    )
    return session


@pytest.fixture
def subscribed_session(session):
    """Factory returning the signed-up session with a plan activated."""

    def factory(tier):
        session.activate_plan(tier)
        return session

    return factory


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()
