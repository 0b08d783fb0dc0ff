"""
Campaign attribution and cost-analytics engine.

This package contains the shared logic behind the advanced analytics view:
- civil_dates: timezone-aware civil dates and UTC day boundaries
- buckets / followers: the daily series and follower growth interpolation
- views: count, cost and drill presentations
- sources / lifetime: source breakdowns and headline cost figures
- store / engine: event store reads and request orchestration
"""

from analytics.exceptions import (
    EventStoreError,
    EventStoreConnectionError,
    EventStoreAPIError,
    EventStoreDataError,
    AnalyticsFetchError,
    StaleRequestError,
    ValidationError,
)

from analytics.config import config

from analytics.models import (
    GoalKind,
    RecordType,
    ViewMode,
    RangePreset,
    DateRange,
    AnalyticsRequest,
)

from analytics.engine import AnalyticsEngine, AnalyticsResult
from analytics.concurrency import CancellationToken, RequestGate

__all__ = [
    # Exceptions
    "EventStoreError",
    "EventStoreConnectionError",
    "EventStoreAPIError",
    "EventStoreDataError",
    "AnalyticsFetchError",
    "StaleRequestError",
    "ValidationError",
    # Config
    "config",
    # Models
    "GoalKind",
    "RecordType",
    "ViewMode",
    "RangePreset",
    "DateRange",
    "AnalyticsRequest",
    # Engine
    "AnalyticsEngine",
    "AnalyticsResult",
    "CancellationToken",
    "RequestGate",
]
