"""
Follower growth interpolation.

Snapshots are cumulative counts taken at the end of a civil day and may be
sparse. Growth between two consecutive snapshots is spread flat across every
day after the earlier one up to and including the later one, rounded to a
whole follower. The rounded days need not add back up to the exact delta.
"""
import math
from dataclasses import replace
from datetime import date, timedelta
from typing import Dict, Iterable, List

from analytics.models import DailyBucket, FollowerSnapshot
from analytics.observability import get_logger

logger = get_logger(__name__)


def round_half_up(value: float) -> int:
    """Round to nearest integer, halves toward positive infinity."""
    return int(math.floor(value + 0.5))


def snapshots_by_date(snapshots: Iterable[FollowerSnapshot]) -> Dict[date, int]:
    """Latest count per date (later rows win), sorted ascending by date."""
    by_date: Dict[date, int] = {}
    for snapshot in snapshots:
        by_date[snapshot.civil_date] = snapshot.count
    return dict(sorted(by_date.items()))


def daily_growth(snapshots: Iterable[FollowerSnapshot]) -> Dict[date, int]:
    """
    Interpolated per-day growth for every date covered by a snapshot gap.

    Returns an empty mapping when fewer than two distinct snapshot dates exist.
    """
    counts = snapshots_by_date(snapshots)
    dates = list(counts)
    growth: Dict[date, int] = {}

    for prev_date, curr_date in zip(dates, dates[1:]):
        days_between = (curr_date - prev_date).days
        if days_between < 1:
            continue

        total_growth = counts[curr_date] - counts[prev_date]
        per_day = round_half_up(total_growth / days_between)

        logger.debug(
            f"Followers {prev_date} to {curr_date}: {total_growth} over {days_between} days",
            extra={"growth_per_day": per_day},
        )

        for offset in range(1, days_between + 1):
            growth[prev_date + timedelta(days=offset)] = per_day

    return growth


def interpolate_follower_growth(
    buckets: Iterable[DailyBucket],
    snapshots: Iterable[FollowerSnapshot],
) -> List[DailyBucket]:
    """
    Populate the followers field of each bucket from sparse snapshots.

    The snapshot for the day before the first bucket must be included to get
    growth on the first day. Days with no interpolated value get 0.

    Returns:
        New bucket list, same dates and order as the input
    """
    growth = daily_growth(snapshots)
    return [replace(bucket, followers=growth.get(bucket.date, 0)) for bucket in buckets]
