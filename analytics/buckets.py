"""
Daily bucket construction.

The bucket sequence is built in three pure steps: a zero-filled skeleton
with one bucket per civil date, a tally of goal events and spend per date,
and a merge of the tallies into new bucket objects. Rows dated outside the
range are dropped; the range never grows.
"""
from collections import Counter, defaultdict
from dataclasses import replace
from datetime import date
from typing import Dict, Iterable, List, Mapping

from analytics.civil_dates import iter_dates
from analytics.models import AdSpendRecord, DailyBucket, DateRange, GoalEvent, GoalKind
from analytics.observability import get_logger

logger = get_logger(__name__)


def empty_buckets(date_range: DateRange) -> List[DailyBucket]:
    """One zero-valued bucket per date in the range, ascending."""
    return [DailyBucket(date=day) for day in iter_dates(date_range.start, date_range.end)]


def tally_goal_events(date_range: DateRange, events: Iterable[GoalEvent]) -> Dict[date, Counter]:
    """Count events per (date, goal), ignoring events outside the range."""
    tallies: Dict[date, Counter] = defaultdict(Counter)
    dropped = 0
    for event in events:
        if not date_range.contains(event.civil_date):
            dropped += 1
            continue
        tallies[event.civil_date][event.goal] += 1

    if dropped:
        logger.debug("Goal events outside range dropped", extra={"dropped": dropped})
    return dict(tallies)


def tally_spend(date_range: DateRange, records: Iterable[AdSpendRecord]) -> Dict[date, Dict[str, float]]:
    """Sum spend per (date, platform), ignoring records outside the range."""
    tallies: Dict[date, Dict[str, float]] = defaultdict(lambda: defaultdict(float))
    dropped = 0
    for record in records:
        if not date_range.contains(record.civil_date):
            dropped += 1
            continue
        tallies[record.civil_date][record.platform] += record.spend

    if dropped:
        logger.debug("Spend records outside range dropped", extra={"dropped": dropped})
    return {day: dict(platforms) for day, platforms in tallies.items()}


def merge_goal_counts(buckets: Iterable[DailyBucket], tallies: Mapping[date, Counter]) -> List[DailyBucket]:
    merged = []
    for bucket in buckets:
        counts = tallies.get(bucket.date)
        if not counts:
            merged.append(bucket)
            continue
        merged.append(replace(
            bucket,
            sms=bucket.sms + counts[GoalKind.SMS],
            users=bucket.users + counts[GoalKind.USERS],
            orders=bucket.orders + counts[GoalKind.ORDERS],
        ))
    return merged


def merge_spend(buckets: Iterable[DailyBucket], tallies: Mapping[date, Mapping[str, float]]) -> List[DailyBucket]:
    merged = []
    for bucket in buckets:
        platforms = tallies.get(bucket.date)
        if not platforms:
            merged.append(bucket)
            continue
        per_platform = dict(bucket.per_platform_spend)
        for platform, amount in platforms.items():
            per_platform[platform] = per_platform.get(platform, 0.0) + amount
        merged.append(replace(
            bucket,
            total_spend=bucket.total_spend + sum(platforms.values()),
            per_platform_spend=per_platform,
        ))
    return merged


def build_buckets(
    date_range: DateRange,
    goal_events: Iterable[GoalEvent],
    spend_records: Iterable[AdSpendRecord],
) -> List[DailyBucket]:
    """
    Build the canonical daily series for a range.

    Args:
        date_range: Inclusive civil date range
        goal_events: Order/user/SMS events tagged with their civil date
        spend_records: Ad spend rows tagged with their civil date

    Returns:
        Exactly date_range.days buckets, ascending, followers left at 0
    """
    buckets = empty_buckets(date_range)
    buckets = merge_goal_counts(buckets, tally_goal_events(date_range, goal_events))
    return merge_spend(buckets, tally_spend(date_range, spend_records))


def range_totals(buckets: Iterable[DailyBucket]) -> Dict[str, float]:
    """Per-goal totals and total spend across a bucket sequence."""
    totals: Dict[str, float] = {goal.value: 0 for goal in GoalKind}
    total_spend = 0.0
    for bucket in buckets:
        for goal in GoalKind:
            totals[goal.value] += bucket.count(goal)
        total_spend += bucket.total_spend
    totals["totalSpend"] = round(total_spend, 2)
    return totals
