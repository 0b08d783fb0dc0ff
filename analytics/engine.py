"""
Orchestration of one analytics request.

Flow:
    request range -> concurrent reads (goal events, spend, follower
    snapshots, campaign mappings) -> join -> buckets -> follower growth
    -> source breakdowns. View modes are derived on demand from the result.

Usage:
    engine = AnalyticsEngine(store)
    token = gate.begin()
    result = await engine.run(AnalyticsRequest(date_range, ViewMode.COST), token)
    days = result.view()
"""
import asyncio
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from analytics.buckets import build_buckets, range_totals
from analytics.concurrency import CancellationToken, gather_reads
from analytics.config import AnalyticsConfig, config
from analytics.exceptions import ValidationError
from analytics.followers import interpolate_follower_growth
from analytics.lifetime import summarize
from analytics.models import (
    AdSpendRecord,
    AnalyticsRequest,
    CampaignGoalMapping,
    CredentialStatus,
    DailyBucket,
    DateRange,
    GoalEvent,
    LifetimeCostSummary,
    RecordType,
    SourceBreakdownEntry,
    ViewMode,
    goal_metadata,
)
from analytics.observability import Timer, correlation_context, get_logger
from analytics.sources import breakdown_by_kind
from analytics.views import DailyView, transform

logger = get_logger(__name__)


@dataclass(frozen=True)
class AnalyticsResult:
    """Canonical daily series plus the raw inputs the views are derived from."""
    request: AnalyticsRequest
    buckets: Tuple[DailyBucket, ...]
    goal_events: Tuple[GoalEvent, ...] = ()
    spend_records: Tuple[AdSpendRecord, ...] = ()
    mappings: Tuple[CampaignGoalMapping, ...] = ()
    breakdowns: Mapping[RecordType, List[SourceBreakdownEntry]] = field(default_factory=dict)
    credentials: Tuple[CredentialStatus, ...] = ()
    request_id: Optional[str] = None

    def view(self, mode: Optional[ViewMode] = None) -> List[DailyView]:
        """Daily series in the given (or requested) view mode."""
        return transform(
            self.buckets,
            mode or self.request.mode,
            spend_records=self.spend_records,
            mappings=self.mappings,
        )

    @property
    def totals(self) -> Dict[str, float]:
        return range_totals(self.buckets)

    def to_dict(self, mode: Optional[ViewMode] = None) -> Dict[str, Any]:
        mode = ViewMode(mode or self.request.mode)
        date_range = self.request.range
        return {
            "startDate": date_range.start.isoformat(),
            "endDate": date_range.end.isoformat(),
            "label": date_range.label,
            "mode": mode.value,
            "days": [day.to_dict() for day in self.view(mode)],
            "totals": self.totals,
            "goals": goal_metadata(),
            "sources": {
                kind.value: [entry.to_dict() for entry in entries]
                for kind, entries in self.breakdowns.items()
            },
            "campaignMappings": [
                {
                    "campaignId": m.campaign_id,
                    "campaignName": m.campaign_name,
                    "platform": m.platform,
                    "goals": [g.value for g in m.unique_goals],
                }
                for m in self.mappings
            ],
            "credentials": [status.to_dict() for status in self.credentials],
        }


class AnalyticsEngine:
    """Runs analytics requests against an event store."""

    def __init__(self, store, settings: AnalyticsConfig = None):
        self.store = store
        self.settings = settings or config.analytics

    async def run(self, request: AnalyticsRequest, token: Optional[CancellationToken] = None) -> AnalyticsResult:
        """
        Fetch inputs for the request's range and build the daily series.

        Raises:
            ValidationError: If the range is inverted
            AnalyticsFetchError: If any of the four reads failed
            StaleRequestError: If a newer request superseded this one
        """
        date_range = request.range
        if date_range.start > date_range.end:
            raise ValidationError(
                "date_range", "Start date must be before or equal to end date",
                f"{date_range.start} to {date_range.end}",
            )

        token = token or CancellationToken()
        with correlation_context(token.request_id):
            token.raise_if_cancelled()
            logger.info(
                "Analytics request started",
                extra={"start": date_range.start.isoformat(), "end": date_range.end.isoformat(), "mode": request.mode.value},
            )

            with Timer("analytics_fetch", logger):
                results = await gather_reads({
                    "goal_events": self.store.query_goal_events(date_range.start, date_range.end),
                    "ad_spend": self.store.query_ad_spend(date_range.start, date_range.end),
                    "follower_snapshots": self.store.query_follower_snapshots(
                        date_range.baseline_date, date_range.end, platform=self.settings.follower_platform,
                    ),
                    "campaign_mappings": self.store.query_campaign_goal_mappings(),
                })
            token.raise_if_cancelled()

            goal_events = tuple(results["goal_events"])
            spend_records = tuple(results["ad_spend"])

            buckets = build_buckets(date_range, goal_events, spend_records)
            buckets = interpolate_follower_growth(buckets, results["follower_snapshots"])
            breakdowns = breakdown_by_kind(goal_events)
            credentials = await self.credential_statuses()

            token.raise_if_cancelled()
            logger.info(
                "Analytics request completed",
                extra={"days": len(buckets), "events": len(goal_events), "spend_records": len(spend_records)},
            )

            return AnalyticsResult(
                request=request,
                buckets=tuple(buckets),
                goal_events=goal_events,
                spend_records=spend_records,
                mappings=tuple(results["campaign_mappings"]),
                breakdowns=breakdowns,
                credentials=credentials,
                request_id=token.request_id,
            )

    async def credential_statuses(self) -> Tuple[CredentialStatus, ...]:
        """Connection status per spend platform; a failed lookup reads as disconnected."""
        platforms = self.settings.spend_platforms
        outcomes = await asyncio.gather(
            *(self.store.query_credential_status(platform) for platform in platforms),
            return_exceptions=True,
        )

        statuses = []
        for platform, outcome in zip(platforms, outcomes):
            if isinstance(outcome, Exception):
                logger.warning(f"Credential status for {platform} unavailable: {outcome}")
                statuses.append(CredentialStatus(platform=platform))
            else:
                statuses.append(outcome)
        return tuple(statuses)

    async def lifetime_summary(self, date_range: DateRange) -> LifetimeCostSummary:
        """Cost per follower / paid signup / social signup for the range."""
        with Timer("lifetime_summary", logger):
            return await summarize(self.store, date_range, self.settings)
