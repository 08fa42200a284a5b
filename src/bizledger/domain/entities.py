"""Domain model entities for bizledger.

These are pure data classes representing business concepts, independent of
how they are serialized into the key-value store. Tiers, periods and features
are closed enumerations so lookups over them stay exhaustive.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional


class TransactionKind(str, Enum):
    """Direction of a transaction."""

    EXPENSE = "expense"
    INCOME = "income"


class Tier(str, Enum):
    """Subscription tier."""

    NONE = "none"
    TRIAL = "trial"
    BASIC = "basic"
    STANDARD = "standard"
    PREMIUM = "premium"


class ReportPeriod(str, Enum):
    """Reporting window relative to a reference date."""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


class Feature(str, Enum):
    """Features unlocked on top of the base dashboard."""

    CSV_EXPORT = "csv_export"
    TEXT_REPORT_EXPORT = "text_report_export"
    OPTIMIZATION_SUGGESTIONS = "optimization_suggestions"


class ExportFormat(str, Enum):
    """Report export encodings."""

    CSV = "csv"
    TEXT = "text"


DEFAULT_CATEGORIES = (
    "Office Supplies",
    "Marketing",
    "Travel",
    "Meals",
    "Software",
    "Equipment",
    "Rent",
    "Utilities",
    "Insurance",
    "Professional Services",
    "Sales",
    "Consulting",
    "Products",
    "Services",
    "Other",
)


@dataclass(frozen=True)
class Transaction:
    """Transaction domain entity."""

    id: str
    amount: Decimal
    category: str
    description: str
    date: date
    kind: TransactionKind


@dataclass(frozen=True)
class Subscription:
    """Subscription state of a user.

    ``expiry`` and ``trial_started_at`` are timezone-aware UTC datetimes.
    """

    tier: Tier = Tier.NONE
    expiry: Optional[datetime] = None
    trial_started_at: Optional[datetime] = None


@dataclass(frozen=True)
class User:
    """Signed-in user."""

    id: str
    name: str
    email: str
    business_name: str
    subscription: Subscription = field(default_factory=Subscription)


@dataclass(frozen=True)
class DirectoryEntry:
    """Entry of the demo-mode identity directory."""

    id: str
    name: str
    email: str
    password: str
    business_name: str
    subscription: Subscription = field(default_factory=Subscription)


@dataclass(frozen=True)
class Entitlement:
    """Resolved permissions for a tier.

    A ``monthly_transaction_quota`` of None means unlimited.
    """

    monthly_transaction_quota: Optional[int]
    report_periods: frozenset[ReportPeriod]
    features: frozenset[Feature]


@dataclass(frozen=True)
class QuotaDecision:
    allowed: bool
    limit: Optional[int]


@dataclass(frozen=True)
class FeatureDecision:
    allowed: bool
    required_tier: Tier


@dataclass(frozen=True)
class DateWindow:
    """Inclusive date range."""

    start: date
    end: date

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end


@dataclass(frozen=True)
class MonthSummary:
    """Income and expense totals for one calendar month."""

    name: str
    income: Decimal
    expense: Decimal
    profit: Decimal
    profit_margin: Decimal
    transaction_count: int


@dataclass(frozen=True)
class PeriodChanges:
    """Month-over-month percentage changes."""

    income: Decimal
    expense: Decimal
    profit: Decimal


@dataclass(frozen=True)
class CategoryTotal:
    category: str
    amount: Decimal


@dataclass(frozen=True)
class Averages:
    income: Decimal
    expense: Decimal


@dataclass(frozen=True)
class AnalyticsSnapshot:
    """Aggregated analytics for the month of a reference date."""

    current_month: MonthSummary
    previous_month: MonthSummary
    changes: PeriodChanges
    top_categories: tuple[CategoryTotal, ...]
    averages: Averages
    health_score: int
    health_label: str


@dataclass(frozen=True)
class Suggestion:
    """Expense optimization hint."""

    title: str
    message: str


@dataclass(frozen=True)
class ReportTotals:
    income: Decimal
    expense: Decimal
    net: Decimal


@dataclass(frozen=True)
class CategoryBreakdownEntry:
    """Summed amount and count for one (kind, category) pair."""

    kind: TransactionKind
    category: str
    amount: Decimal
    count: int


@dataclass(frozen=True)
class Report:
    """Classified transactions and totals for one reporting period."""

    period: ReportPeriod
    label: str
    window: DateWindow
    totals: ReportTotals
    category_breakdown: tuple[CategoryBreakdownEntry, ...]
    transactions: tuple[Transaction, ...]


@dataclass(frozen=True)
class TrialStatus:
    """Remaining time on a trial subscription."""

    expiry: datetime
    days_left: int
    expiring_soon: bool
    expired: bool


@dataclass(frozen=True)
class Notification:
    """Non-fatal message for the UI layer to present."""

    level: str
    title: str
    message: str
