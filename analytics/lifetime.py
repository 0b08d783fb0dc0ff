"""
Lifetime cost summary for an explicit window.

Signups are split into two disjoint cohorts by source: the "social" cohort
(DM tag codes, funded by the social spend platform) and everything else
(funded by the paid spend platform). Followers gained are the end-of-window
snapshot minus the snapshot for the day before the window.
"""
from typing import Iterable, Optional, Tuple

from analytics.civil_dates import civil_range_bounds
from analytics.concurrency import gather_reads
from analytics.config import AnalyticsConfig, config
from analytics.models import AdSpendRecord, DateRange, LifetimeCostSummary, Signup
from analytics.observability import get_logger
from analytics.views import safe_divide

logger = get_logger(__name__)


def follower_delta(end_count: Optional[int], baseline_count: Optional[int]) -> int:
    """Followers gained over the window; 0 when either snapshot is missing or not positive."""
    if not end_count or not baseline_count or end_count < 0 or baseline_count < 0:
        return 0
    return end_count - baseline_count


def split_signup_cohorts(
    signups: Iterable[Signup],
    social_sources: Iterable[str],
) -> Tuple[int, int]:
    """Return (social_count, paid_count)."""
    social_codes = {code.lower() for code in social_sources}
    social = paid = 0
    for signup in signups:
        if (signup.source or "").lower() in social_codes:
            social += 1
        else:
            paid += 1
    return social, paid


def platform_spend(records: Iterable[AdSpendRecord], platform: str, date_range: DateRange) -> float:
    return sum(
        record.spend for record in records
        if record.platform == platform and date_range.contains(record.civil_date)
    )


def compute_lifetime_summary(
    date_range: DateRange,
    end_count: Optional[int],
    baseline_count: Optional[int],
    signups: Iterable[Signup],
    spend_records: Iterable[AdSpendRecord],
    settings: AnalyticsConfig = config.analytics,
) -> LifetimeCostSummary:
    """Headline cost-per-follower and cost-per-signup figures (0 on any zero denominator)."""
    spend_records = list(spend_records)
    signups = list(signups)

    followers = follower_delta(end_count, baseline_count)
    social_signups, paid_signups = split_signup_cohorts(signups, settings.social_sources)
    social_spend = platform_spend(spend_records, settings.social_spend_platform, date_range)
    paid_spend = platform_spend(spend_records, settings.paid_spend_platform, date_range)

    return LifetimeCostSummary(
        cost_per_follower=safe_divide(social_spend, followers),
        cost_per_paid_signup=safe_divide(paid_spend, paid_signups),
        cost_per_social_signup=safe_divide(social_spend, social_signups),
        total_followers=followers,
        total_signups=len(signups),
        paid_signups=paid_signups,
        social_signups=social_signups,
        social_spend=social_spend,
        paid_spend=paid_spend,
        label=date_range.label,
    )


async def summarize(store, date_range: DateRange, settings: AnalyticsConfig = config.analytics) -> LifetimeCostSummary:
    """
    Fetch the window's inputs concurrently and compute the summary.

    Raises:
        AnalyticsFetchError: If any of the reads failed
    """
    start_instant, end_instant = civil_range_bounds(date_range.start, date_range.end, settings.timezone)

    results = await gather_reads({
        "end_followers": store.query_follower_count(settings.follower_platform, date_range.end),
        "baseline_followers": store.query_follower_count(settings.follower_platform, date_range.baseline_date),
        "signups": store.query_signups(start_instant, end_instant),
        "ad_spend": store.query_ad_spend(date_range.start, date_range.end),
    })

    end_snapshot = results["end_followers"]
    baseline_snapshot = results["baseline_followers"]
    if baseline_snapshot is None:
        logger.info("No baseline follower snapshot", extra={"date": date_range.baseline_date.isoformat()})

    return compute_lifetime_summary(
        date_range,
        end_count=end_snapshot.count if end_snapshot else None,
        baseline_count=baseline_snapshot.count if baseline_snapshot else None,
        signups=results["signups"],
        spend_records=results["ad_spend"],
        settings=settings,
    )
