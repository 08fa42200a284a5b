"""Mapper functions to convert between domain entities and stored records.

Records are the JSON shapes written to the key-value store. Field names
follow the stored format (camelCase, ISO-8601 timestamps) so existing data
stays readable.
"""

import json
from datetime import date, datetime, UTC
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from bizledger.domain.entities import (
    DirectoryEntry,
    Subscription,
    Tier,
    Transaction,
    TransactionKind,
    User,
)
from bizledger.domain.errors import PersistenceError

USER_KEY = "finance-app-user"
DIRECTORY_KEY = "finance-app-users"
TRANSACTIONS_KEY = "business-expenses"


def datetime_to_record(value: Optional[datetime]) -> Optional[str]:
    """Format a timestamp as ISO-8601 UTC with millisecond precision."""
    if value is None:
        return None
    value = value.astimezone(UTC)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def datetime_from_record(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC."""
    if not value:
        return None
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def subscription_from_record(record: dict[str, Any]) -> Subscription:
    tier = record.get("subscription")
    return Subscription(
        tier=Tier(tier) if tier else Tier.NONE,
        expiry=datetime_from_record(record.get("subscriptionExpiry")),
        trial_started_at=datetime_from_record(record.get("trialStarted")),
    )


def subscription_to_record(subscription: Subscription) -> dict[str, Any]:
    return {
        "subscription": (
            None if subscription.tier == Tier.NONE else subscription.tier.value
        ),
        "subscriptionExpiry": datetime_to_record(subscription.expiry),
        "trialStarted": datetime_to_record(subscription.trial_started_at),
    }


def user_to_record(user: User) -> dict[str, Any]:
    """Convert domain User to the stored user record."""
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "businessName": user.business_name,
        **subscription_to_record(user.subscription),
    }


def user_from_record(record: dict[str, Any]) -> User:
    """Convert a stored user record to a domain User."""
    return User(
        id=str(record["id"]),
        name=record.get("name", ""),
        email=record["email"],
        business_name=record.get("businessName", ""),
        subscription=subscription_from_record(record),
    )


def directory_entry_to_record(entry: DirectoryEntry) -> dict[str, Any]:
    return {
        "id": entry.id,
        "name": entry.name,
        "email": entry.email,
        "password": entry.password,
        "businessName": entry.business_name,
        **subscription_to_record(entry.subscription),
    }


def directory_entry_from_record(record: dict[str, Any]) -> DirectoryEntry:
    return DirectoryEntry(
        id=str(record["id"]),
        name=record.get("name", ""),
        email=record["email"],
        password=record.get("password", ""),
        business_name=record.get("businessName", ""),
        subscription=subscription_from_record(record),
    )


def transaction_to_record(txn: Transaction) -> dict[str, Any]:
    """Convert domain Transaction to the stored transaction record."""
    return {
        "id": txn.id,
        "amount": float(txn.amount),
        "category": txn.category,
        "description": txn.description,
        "date": txn.date.isoformat(),
        "type": txn.kind.value,
    }


def transaction_from_record(record: dict[str, Any]) -> Transaction:
    """Convert a stored transaction record to a domain Transaction."""
    return Transaction(
        id=str(record["id"]),
        # str() keeps the decimal digits the JSON number was written with
        amount=Decimal(str(record["amount"])),
        category=record["category"],
        description=record.get("description") or "",
        date=date.fromisoformat(record["date"]),
        kind=TransactionKind(record["type"]),
    )


def _decode(key: str, blob: str) -> Any:
    try:
        return json.loads(blob)
    except json.JSONDecodeError as e:
        raise PersistenceError(f"Stored value under '{key}' is not valid JSON: {e}") from e


def _convert(key: str, convert, record):
    try:
        return convert(record)
    except (KeyError, TypeError, ValueError, InvalidOperation) as e:
        raise PersistenceError(f"Malformed record under '{key}': {e}") from e


def dump_user(user: Optional[User]) -> str:
    return json.dumps(user_to_record(user) if user is not None else None)


def load_user(blob: Optional[str]) -> Optional[User]:
    """Decode the stored user record.

    Raises:
        PersistenceError: If the blob is not a valid user record
    """
    if blob is None:
        return None
    record = _decode(USER_KEY, blob)
    if record is None:
        return None
    return _convert(USER_KEY, user_from_record, record)


def dump_transactions(transactions) -> str:
    return json.dumps([transaction_to_record(txn) for txn in transactions])


def load_transactions(blob: Optional[str]) -> list[Transaction]:
    """Decode the stored transactions collection, order preserved.

    Raises:
        PersistenceError: If the blob is not a list of transaction records
    """
    if blob is None:
        return []
    records = _decode(TRANSACTIONS_KEY, blob)
    if not isinstance(records, list):
        raise PersistenceError(f"Stored value under '{TRANSACTIONS_KEY}' is not a list")
    return [_convert(TRANSACTIONS_KEY, transaction_from_record, r) for r in records]


def dump_directory(directory) -> str:
    return json.dumps([directory_entry_to_record(entry) for entry in directory])


def load_directory(blob: Optional[str]) -> list[DirectoryEntry]:
    """Decode the stored all-users directory.

    Raises:
        PersistenceError: If the blob is not a list of directory records
    """
    if blob is None:
        return []
    records = _decode(DIRECTORY_KEY, blob)
    if not isinstance(records, list):
        raise PersistenceError(f"Stored value under '{DIRECTORY_KEY}' is not a list")
    return [_convert(DIRECTORY_KEY, directory_entry_from_record, r) for r in records]
