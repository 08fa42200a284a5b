"""Subscription lifecycle rules.

Expiry is a read-time state: an expired subscription keeps its tier and only
an explicit ``activate`` changes it.
"""

import math
from datetime import datetime, timedelta
from typing import Optional

from dateutil.relativedelta import relativedelta

from bizledger.domain.entities import Subscription, Tier, TrialStatus
from bizledger.domain.errors import (
    SubscriptionExpiredError,
    SubscriptionRequiredError,
    ValidationError,
)

TRIAL_LENGTH = timedelta(days=30)
BILLING_PERIOD = relativedelta(months=1)
TRIAL_EXPIRING_SOON_DAYS = 7

PLAN_PRICES = {
    Tier.TRIAL: "0.00",
    Tier.BASIC: "5.50",
    Tier.STANDARD: "10.00",
    Tier.PREMIUM: "17.00",
}


def activate(subscription: Subscription, tier: Tier, now: datetime) -> Subscription:
    """Return the subscription after activating ``tier`` at ``now``.

    Args:
        subscription: Current subscription state
        tier: Tier to activate
        now: Activation timestamp (timezone-aware)

    Returns:
        New Subscription with a fresh expiry

    Raises:
        ValidationError: If tier is NONE
    """
    if tier == Tier.NONE:
        raise ValidationError("Cannot activate the 'none' tier")

    if tier == Tier.TRIAL:
        trial_started_at = subscription.trial_started_at or now
        return Subscription(
            tier=tier, expiry=now + TRIAL_LENGTH, trial_started_at=trial_started_at
        )

    return Subscription(
        tier=tier,
        expiry=now + BILLING_PERIOD,
        trial_started_at=subscription.trial_started_at,
    )


def is_expired(subscription: Subscription, now: datetime) -> bool:
    """True iff a non-premium subscription has reached its expiry."""
    if subscription.tier == Tier.PREMIUM or subscription.expiry is None:
        return False
    return subscription.expiry <= now


def require_dashboard_access(subscription: Optional[Subscription], now: datetime) -> None:
    """Raise if the subscription blocks the dashboard entirely."""
    if subscription is None or subscription.tier == Tier.NONE:
        raise SubscriptionRequiredError()
    if is_expired(subscription, now):
        raise SubscriptionExpiredError(subscription.tier.value)


def trial_status(subscription: Subscription, now: datetime) -> Optional[TrialStatus]:
    """Describe the remaining trial time, or None for non-trial tiers."""
    if subscription.tier != Tier.TRIAL or subscription.expiry is None:
        return None

    remaining = subscription.expiry - now
    days_left = math.ceil(remaining / timedelta(days=1))
    return TrialStatus(
        expiry=subscription.expiry,
        days_left=days_left,
        expiring_soon=days_left <= TRIAL_EXPIRING_SOON_DAYS,
        expired=days_left <= 0,
    )
