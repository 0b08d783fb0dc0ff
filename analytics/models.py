"""
Domain models for the campaign analytics engine.

Provides type-safe dataclasses for goal events, ad spend, follower snapshots,
campaign mappings and the derived daily series. Row parsers (`from_row`)
coerce malformed values to safe defaults and log them instead of raising,
so a single bad row never aborts a computation.
"""
import math
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from analytics.civil_dates import (
    DATE_FORMAT,
    SENTINEL_DATE,
    parse_civil_date,
    parse_timestamp,
)
from analytics.observability import get_logger, log_recovered

logger = get_logger(__name__)


# ═══════════════════════════════════════════════════════════════════════════════
# ENUMS
# ═══════════════════════════════════════════════════════════════════════════════

class GoalKind(str, Enum):
    """Trackable acquisition outcomes."""
    FOLLOWERS = "followers"
    SMS = "sms"
    USERS = "users"
    ORDERS = "orders"

    @property
    def label(self) -> str:
        """Human-readable goal name."""
        labels = {
            GoalKind.FOLLOWERS: "Followers",
            GoalKind.SMS: "SMS Signups",
            GoalKind.USERS: "Users",
            GoalKind.ORDERS: "Orders",
        }
        return labels[self]

    @property
    def color(self) -> str:
        """Chart color for this goal."""
        colors = {
            GoalKind.FOLLOWERS: "#8B5CF6",  # Purple
            GoalKind.SMS: "#10B981",        # Green
            GoalKind.USERS: "#3B82F6",      # Blue
            GoalKind.ORDERS: "#F59E0B",     # Amber
        }
        return colors[self]

    @classmethod
    def parse(cls, value: Any) -> Optional["GoalKind"]:
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return None


class RecordType(str, Enum):
    """Kinds of goal event rows returned by the event store."""
    ORDER = "order"
    USER = "user"
    SMS = "sms"

    @property
    def goal(self) -> GoalKind:
        goals = {
            RecordType.ORDER: GoalKind.ORDERS,
            RecordType.USER: GoalKind.USERS,
            RecordType.SMS: GoalKind.SMS,
        }
        return goals[self]


class ViewMode(str, Enum):
    """Presentation shapes of the daily series."""
    COUNT = "count"
    COST = "cost"
    DRILL = "drill"


class RangePreset(str, Enum):
    """Operator date-range shortcuts."""
    TODAY = "today"
    LAST_7_DAYS = "7d"
    LAST_14_DAYS = "14d"
    LAST_30_DAYS = "30d"
    LAST_90_DAYS = "90d"
    CUSTOM = "custom"

    @property
    def days_back(self) -> int:
        """Days subtracted from today to get the range start."""
        days = {
            RangePreset.TODAY: 0,
            RangePreset.LAST_7_DAYS: 7,
            RangePreset.LAST_14_DAYS: 14,
            RangePreset.LAST_30_DAYS: 30,
            RangePreset.LAST_90_DAYS: 90,
            RangePreset.CUSTOM: 30,  # fallback when custom dates are missing
        }
        return days[self]

    @property
    def label(self) -> str:
        labels = {
            RangePreset.TODAY: "Today",
            RangePreset.LAST_7_DAYS: "Last 7 days",
            RangePreset.LAST_14_DAYS: "Last 14 days",
            RangePreset.LAST_30_DAYS: "Last 30 days",
            RangePreset.LAST_90_DAYS: "Last 90 days",
            RangePreset.CUSTOM: "Custom",
        }
        return labels[self]


# ═══════════════════════════════════════════════════════════════════════════════
# COERCION HELPERS
# ═══════════════════════════════════════════════════════════════════════════════

def coerce_spend(value: Any) -> float:
    """Convert a spend value to float; non-numeric or non-finite becomes 0."""
    if value is None or value == "":
        return 0.0
    try:
        amount = float(value)
    except (TypeError, ValueError):
        log_recovered(logger, "spend", "Non-numeric spend coerced to 0", value=repr(value))
        return 0.0
    if not math.isfinite(amount):
        log_recovered(logger, "spend", "Non-finite spend coerced to 0", value=repr(value))
        return 0.0
    return amount


def coerce_civil_date(value: Any, field_name: str = "date") -> date:
    """Parse a YYYY-MM-DD value; unparsable values become the sentinel date."""
    try:
        return parse_civil_date(value)
    except (TypeError, ValueError):
        log_recovered(
            logger, "date",
            f"Unparsable {field_name}, using {SENTINEL_DATE.isoformat()}",
            value=repr(value),
        )
        return SENTINEL_DATE


def _clean_source(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


# ═══════════════════════════════════════════════════════════════════════════════
# INPUT ROWS
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class GoalEvent:
    """One order, user or SMS signup, already tagged with its civil date."""
    record_type: RecordType
    civil_date: date
    source: Optional[str] = None

    @property
    def goal(self) -> GoalKind:
        return self.record_type.goal

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> Optional["GoalEvent"]:
        """Create GoalEvent from a store row; rows with an unknown record_type are skipped."""
        try:
            record_type = RecordType(str(row.get("record_type", "")).strip().lower())
        except ValueError:
            log_recovered(
                logger, "record_type", "Unknown record_type, row skipped",
                value=repr(row.get("record_type")),
            )
            return None

        return cls(
            record_type=record_type,
            civil_date=coerce_civil_date(row.get("cst_date"), "cst_date"),
            source=_clean_source(row.get("promo_source")),
        )


@dataclass(frozen=True)
class AdSpendRecord:
    """Spend for one campaign on one platform and civil date."""
    civil_date: date
    platform: str
    campaign_id: str
    campaign_name: str = ""
    spend: float = 0.0

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "AdSpendRecord":
        return cls(
            civil_date=coerce_civil_date(row.get("date")),
            platform=str(row.get("platform") or "unknown").lower(),
            campaign_id=str(row.get("campaign_id") or ""),
            campaign_name=str(row.get("campaign_name") or ""),
            spend=coerce_spend(row.get("spend")),
        )


@dataclass(frozen=True)
class FollowerSnapshot:
    """Cumulative follower count at end of a civil day."""
    platform: str
    civil_date: date
    count: int

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> Optional["FollowerSnapshot"]:
        """
        Create FollowerSnapshot from a store row.

        A snapshot with an unusable date or count is dropped rather than
        defaulted, since a fake zero would read as a huge follower swing.
        """
        try:
            civil_date = parse_civil_date(row.get("date"))
            count = int(row.get("count"))
        except (TypeError, ValueError):
            log_recovered(
                logger, "follower_snapshot", "Malformed follower snapshot skipped",
                value=repr(row),
            )
            return None

        return cls(
            platform=str(row.get("platform") or "").lower(),
            civil_date=civil_date,
            count=count,
        )


@dataclass(frozen=True)
class CampaignGoalMapping:
    """Goals a campaign is meant to drive."""
    campaign_id: str
    campaign_name: str = ""
    platform: str = ""
    goals: Tuple[GoalKind, ...] = ()

    @property
    def unique_goals(self) -> Tuple[GoalKind, ...]:
        """Goals with duplicates removed, first occurrence order kept."""
        return tuple(dict.fromkeys(self.goals))

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "CampaignGoalMapping":
        goals = []
        for raw in row.get("goals") or []:
            goal = GoalKind.parse(raw)
            if goal is None:
                log_recovered(logger, "goal", "Unknown goal in campaign mapping ignored", value=repr(raw))
                continue
            goals.append(goal)

        return cls(
            campaign_id=str(row.get("campaign_id") or ""),
            campaign_name=str(row.get("campaign_name") or ""),
            platform=str(row.get("platform") or "").lower(),
            goals=tuple(goals),
        )


@dataclass(frozen=True)
class Signup:
    """SMS signup row used by the lifetime cohort split."""
    subscribed_at: Optional[datetime]
    source: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Signup":
        return cls(
            subscribed_at=parse_timestamp(row.get("subscribed_at")),
            source=_clean_source(row.get("utm_source")),
        )


@dataclass(frozen=True)
class CredentialStatus:
    """Connection status of an ad platform account."""
    platform: str
    connected: bool = False
    last_sync_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, platform: str, row: Optional[Dict[str, Any]]) -> "CredentialStatus":
        if not row:
            return cls(platform=platform)
        return cls(
            platform=platform,
            connected=bool(row.get("is_connected")),
            last_sync_at=parse_timestamp(row.get("last_sync_at")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "platform": self.platform,
            "connected": self.connected,
            "lastSyncAt": self.last_sync_at.isoformat() if self.last_sync_at else None,
        }


# ═══════════════════════════════════════════════════════════════════════════════
# DERIVED SERIES
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class DailyBucket:
    """Goal counts and spend for one civil date (followers is a daily delta)."""
    date: date
    followers: int = 0
    sms: int = 0
    users: int = 0
    orders: int = 0
    total_spend: float = 0.0
    per_platform_spend: Mapping[str, float] = field(default_factory=dict)

    def count(self, goal: GoalKind) -> int:
        return getattr(self, goal.value)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date.strftime(DATE_FORMAT),
            "followers": self.followers,
            "sms": self.sms,
            "users": self.users,
            "orders": self.orders,
            "totalSpend": round(self.total_spend, 2),
            "perPlatformSpend": {k: round(v, 2) for k, v in self.per_platform_spend.items()},
        }


@dataclass(frozen=True)
class DailyCost:
    """Cost per acquisition for each goal on one civil date."""
    date: date
    followers: float = 0.0
    sms: float = 0.0
    users: float = 0.0
    orders: float = 0.0
    total_spend: float = 0.0
    per_platform_spend: Mapping[str, float] = field(default_factory=dict)
    goal_spend: Optional[Mapping[str, float]] = None

    def cost(self, goal: GoalKind) -> float:
        return getattr(self, goal.value)

    def to_dict(self) -> Dict[str, Any]:
        result = {
            "date": self.date.strftime(DATE_FORMAT),
            "followers": round(self.followers, 2),
            "sms": round(self.sms, 2),
            "users": round(self.users, 2),
            "orders": round(self.orders, 2),
            "totalSpend": round(self.total_spend, 2),
            "perPlatformSpend": {k: round(v, 2) for k, v in self.per_platform_spend.items()},
        }
        if self.goal_spend is not None:
            result["goalSpend"] = {k: round(v, 2) for k, v in self.goal_spend.items()}
        return result


@dataclass(frozen=True)
class SourceBreakdownEntry:
    """Share of events attributed to one normalized source."""
    source: str
    count: int
    percentage: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "count": self.count,
            "percentage": round(self.percentage, 1),
        }


@dataclass(frozen=True)
class LifetimeCostSummary:
    """Headline cost figures for an explicit window."""
    cost_per_follower: float = 0.0
    cost_per_paid_signup: float = 0.0
    cost_per_social_signup: float = 0.0
    total_followers: int = 0
    total_signups: int = 0
    paid_signups: int = 0
    social_signups: int = 0
    social_spend: float = 0.0
    paid_spend: float = 0.0
    label: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "costPerFollower": round(self.cost_per_follower, 2),
            "costPerPaidSignup": round(self.cost_per_paid_signup, 2),
            "costPerSocialSignup": round(self.cost_per_social_signup, 2),
            "totalFollowers": self.total_followers,
            "totalSignups": self.total_signups,
            "paidSignups": self.paid_signups,
            "socialSignups": self.social_signups,
            "socialSpend": round(self.social_spend, 2),
            "paidSpend": round(self.paid_spend, 2),
            "label": self.label,
        }


# ═══════════════════════════════════════════════════════════════════════════════
# REQUESTS
# ═══════════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class DateRange:
    """Inclusive range of civil dates."""
    start: date
    end: date
    label: str = ""

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1

    @property
    def baseline_date(self) -> date:
        """Day before start, whose follower snapshot anchors the first day's growth."""
        return self.start - timedelta(days=1)

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    @classmethod
    def from_preset(
        cls,
        preset: RangePreset,
        today: date,
        custom_start: Optional[date] = None,
        custom_end: Optional[date] = None,
    ) -> "DateRange":
        """Resolve an operator shortcut against today's civil date."""
        if preset == RangePreset.CUSTOM and custom_start and custom_end:
            return cls(
                start=custom_start,
                end=custom_end,
                label=f"{custom_start.strftime(DATE_FORMAT)} to {custom_end.strftime(DATE_FORMAT)}",
            )
        start = today - timedelta(days=preset.days_back)
        label = preset.label if preset != RangePreset.CUSTOM else RangePreset.LAST_30_DAYS.label
        return cls(start=start, end=today, label=label)


@dataclass(frozen=True)
class AnalyticsRequest:
    """One operator request: which dates, which presentation."""
    range: DateRange
    mode: ViewMode = ViewMode.COUNT


def goal_metadata() -> List[Dict[str, str]]:
    """Label and chart color per goal, in display order."""
    return [{"key": g.value, "label": g.label, "color": g.color} for g in GoalKind]
