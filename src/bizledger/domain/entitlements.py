"""Entitlement table and guard.

The table maps each tier to its quota, report periods and features. Trial has
no row of its own: it resolves to the standard rule so the two cannot drift
apart.
"""

from typing import Optional

from bizledger.domain.entities import (
    Entitlement,
    Feature,
    FeatureDecision,
    QuotaDecision,
    ReportPeriod,
    Tier,
)
from bizledger.domain.errors import EntitlementDeniedError

_ENTITLEMENTS: dict[Tier, Entitlement] = {
    Tier.NONE: Entitlement(
        monthly_transaction_quota=0,
        report_periods=frozenset(),
        features=frozenset(),
    ),
    Tier.BASIC: Entitlement(
        monthly_transaction_quota=100,
        report_periods=frozenset({ReportPeriod.MONTHLY}),
        features=frozenset(),
    ),
    Tier.STANDARD: Entitlement(
        monthly_transaction_quota=500,
        report_periods=frozenset(
            {ReportPeriod.WEEKLY, ReportPeriod.MONTHLY, ReportPeriod.QUARTERLY}
        ),
        features=frozenset({Feature.CSV_EXPORT}),
    ),
    Tier.PREMIUM: Entitlement(
        monthly_transaction_quota=None,
        report_periods=frozenset(ReportPeriod),
        features=frozenset(Feature),
    ),
}

# Tiers that share another tier's rule instead of carrying their own row.
_ENTITLEMENT_ALIASES: dict[Tier, Tier] = {Tier.TRIAL: Tier.STANDARD}

_TIER_RANK: dict[Tier, int] = {
    Tier.NONE: 0,
    Tier.BASIC: 1,
    Tier.STANDARD: 2,
    Tier.TRIAL: 2,
    Tier.PREMIUM: 3,
}

# Paid tiers in ascending order, used to find the cheapest tier that unlocks something.
_UPGRADE_PATH = (Tier.BASIC, Tier.STANDARD, Tier.PREMIUM)

FEATURE_LABELS: dict[Feature, str] = {
    Feature.CSV_EXPORT: "CSV Export",
    Feature.TEXT_REPORT_EXPORT: "Advanced Reports",
    Feature.OPTIMIZATION_SUGGESTIONS: "Expense Optimization Suggestions",
}


def _resolve(tier: Optional[Tier]) -> Tier:
    if tier is None:
        return Tier.NONE
    return _ENTITLEMENT_ALIASES.get(tier, tier)


def tier_rank(tier: Optional[Tier]) -> int:
    """Return the position of a tier in the gating order."""
    if tier is None:
        return 0
    return _TIER_RANK[tier]


def entitlement_for(tier: Optional[Tier]) -> Entitlement:
    """Look up the entitlement rule for a tier (None behaves as NONE)."""
    return _ENTITLEMENTS[_resolve(tier)]


def check_quota(tier: Optional[Tier], current_month_count: int) -> QuotaDecision:
    """Decide whether one more transaction fits into the monthly quota.

    Args:
        tier: Subscription tier of the user
        current_month_count: Transactions already recorded this month

    Returns:
        QuotaDecision with the tier's limit (None when unlimited)
    """
    limit = entitlement_for(tier).monthly_transaction_quota
    if limit is None:
        return QuotaDecision(allowed=True, limit=None)
    return QuotaDecision(allowed=current_month_count < limit, limit=limit)


def check_feature(tier: Optional[Tier], required_tier: Tier) -> FeatureDecision:
    """Decide whether ``tier`` reaches ``required_tier`` in the gating order.

    A missing or NONE tier is always denied.
    """
    if tier is None or tier == Tier.NONE:
        return FeatureDecision(allowed=False, required_tier=required_tier)
    return FeatureDecision(
        allowed=tier_rank(tier) >= tier_rank(required_tier),
        required_tier=required_tier,
    )


def minimum_tier_for_feature(feature: Feature) -> Tier:
    """Return the cheapest tier whose entitlement includes ``feature``."""
    for tier in _UPGRADE_PATH:
        if feature in entitlement_for(tier).features:
            return tier
    raise ValueError(f"No tier provides feature '{feature.value}'")


def minimum_tier_for_period(period: ReportPeriod) -> Tier:
    """Return the cheapest tier whose entitlement includes ``period``."""
    for tier in _UPGRADE_PATH:
        if period in entitlement_for(tier).report_periods:
            return tier
    raise ValueError(f"No tier provides period '{period.value}'")


def check_capability(tier: Optional[Tier], feature: Feature) -> FeatureDecision:
    """Gate a named feature through the tier ordering."""
    return check_feature(tier, minimum_tier_for_feature(feature))


def check_period(tier: Optional[Tier], period: ReportPeriod) -> FeatureDecision:
    """Gate a report period by the tier's available periods."""
    required = minimum_tier_for_period(period)
    if tier is None or tier == Tier.NONE:
        return FeatureDecision(allowed=False, required_tier=required)
    allowed = period in entitlement_for(tier).report_periods
    return FeatureDecision(allowed=allowed, required_tier=required)


def available_periods(tier: Optional[Tier]) -> list[ReportPeriod]:
    """Return the tier's report periods in display order."""
    periods = entitlement_for(tier).report_periods
    return [period for period in ReportPeriod if period in periods]


def require_feature(tier: Optional[Tier], feature: Feature) -> None:
    """Raise EntitlementDeniedError unless ``tier`` unlocks ``feature``."""
    decision = check_capability(tier, feature)
    if not decision.allowed:
        raise EntitlementDeniedError(
            FEATURE_LABELS[feature],
            decision.required_tier.value,
            tier.value if tier is not None else None,
        )


def require_period(tier: Optional[Tier], period: ReportPeriod) -> None:
    """Raise EntitlementDeniedError unless ``tier`` may view ``period`` reports."""
    decision = check_period(tier, period)
    if not decision.allowed:
        raise EntitlementDeniedError(
            f"{period.value.capitalize()} reports",
            decision.required_tier.value,
            tier.value if tier is not None else None,
        )
