"""Shared domain error messages and error types."""

from typing import Optional


class DomainError(ValueError):
    """Base class for domain-level errors.

    Subclasses provide semantic categories while preserving ValueError
    compatibility for existing error handling.
    """


class ValidationError(DomainError):
    """Invalid input or failed validation in domain logic."""


class NotFoundError(DomainError):
    """Requested domain entity does not exist."""


class ConflictError(DomainError):
    """Domain conflict, such as uniqueness violations."""


class QuotaExceededError(DomainError):
    """Monthly transaction quota of the current tier is used up."""

    def __init__(self, tier: str, limit: int):
        super().__init__(quota_exceeded(tier, limit))
        self.tier = tier
        self.limit = limit


class EntitlementDeniedError(DomainError):
    """Feature or view requires a higher tier."""

    def __init__(self, feature: str, required_tier: str, current_tier: Optional[str]):
        super().__init__(upgrade_required(feature, required_tier, current_tier))
        self.feature = feature
        self.required_tier = required_tier
        self.current_tier = current_tier


class SubscriptionRequiredError(DomainError):
    """No active tier at all."""

    def __init__(self):
        super().__init__(
            "Subscription required: select a subscription plan to access the "
            "financial dashboard."
        )


class SubscriptionExpiredError(DomainError):
    """Non-premium tier past its expiry."""

    def __init__(self, tier: str):
        super().__init__(
            f"Subscription expired: your {tier} subscription has expired. "
            "Please renew or choose a new plan to continue."
        )
        self.tier = tier


class PersistenceError(DomainError):
    """Underlying key-value storage could not be read or written."""


class CredentialError(DomainError):
    """Login failed. Unknown email and wrong password look the same."""

    def __init__(self):
        super().__init__("Invalid credentials")


class OperationInFlightError(DomainError):
    """A single-flight operation was invoked while already pending."""


def quota_exceeded(tier: str, limit: int) -> str:
    """Return message for an exhausted monthly quota."""
    return (
        f"Monthly transaction limit reached: the {tier} plan allows "
        f"{limit} transactions per month. Upgrade to record more."
    )


def upgrade_required(feature: str, required_tier: str, current_tier: Optional[str]) -> str:
    """Return message for a feature gated behind a higher tier."""
    current = current_tier or "none"
    return (
        f"Upgrade required: {feature} requires a {required_tier} plan or higher "
        f"(current: {current})"
    )


def transaction_not_found(transaction_id: str) -> str:
    """Return message for missing transaction."""
    return f"Transaction {transaction_id} not found"


def user_already_exists(email: str) -> str:
    """Return message for duplicate signup."""
    return f"User with email '{email}' already exists"
