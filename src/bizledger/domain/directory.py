"""Demo-mode identity directory.

Credentials live in the key-value store next to the rest of the data; this
module only implements the lookup rules over the loaded directory.
"""

import hmac
from dataclasses import replace
from typing import Sequence

from bizledger.domain.entities import DirectoryEntry, Subscription, User
from bizledger.domain.errors import (
    ConflictError,
    CredentialError,
    ValidationError,
    user_already_exists,
)


def _normalize_email(email: str) -> str:
    return email.strip().lower()


def find_by_email(directory: Sequence[DirectoryEntry], email: str) -> DirectoryEntry | None:
    wanted = _normalize_email(email)
    for entry in directory:
        if _normalize_email(entry.email) == wanted:
            return entry
    return None


def register_user(
    directory: Sequence[DirectoryEntry],
    *,
    user_id: str,
    name: str,
    email: str,
    password: str,
    business_name: str,
) -> tuple[list[DirectoryEntry], User]:
    """Add a new user to the directory.

    Returns:
        Tuple of (updated directory, signed-in user)

    Raises:
        ValidationError: If a required field is empty
        ConflictError: If the email is already registered
    """
    for label, value in (("Name", name), ("Email", email), ("Password", password)):
        if not value or not value.strip():
            raise ValidationError(f"{label} is required")

    if find_by_email(directory, email) is not None:
        raise ConflictError(user_already_exists(email))

    entry = DirectoryEntry(
        id=user_id,
        name=name.strip(),
        email=email.strip(),
        password=password,
        business_name=(business_name or "").strip(),
    )
    return [*directory, entry], entry_to_user(entry)


def authenticate(
    directory: Sequence[DirectoryEntry], email: str, password: str
) -> User:
    """Return the user for a matching email/password pair.

    Raises:
        CredentialError: For an unknown email or a wrong password alike
    """
    entry = find_by_email(directory, email or "")
    # Unknown emails still go through the compare
    stored = entry.password if entry is not None else ""
    matches = hmac.compare_digest(stored.encode(), (password or "").encode())
    if entry is None or not matches:
        raise CredentialError()
    return entry_to_user(entry)


def update_subscription(
    directory: Sequence[DirectoryEntry], user_id: str, subscription: Subscription
) -> list[DirectoryEntry]:
    """Return the directory with the user's subscription replaced."""
    return [
        replace(entry, subscription=subscription) if entry.id == user_id else entry
        for entry in directory
    ]


def entry_to_user(entry: DirectoryEntry) -> User:
    return User(
        id=entry.id,
        name=entry.name,
        email=entry.email,
        business_name=entry.business_name,
        subscription=entry.subscription,
    )
