"""
View-mode transforms over the daily bucket sequence.

- count: goal counts as-is
- cost:  combined spend of the day divided by each goal's count
- drill: spend attributed to goals through campaign mappings, a campaign
         mapped to k goals giving 1/k of each record to every goal

Transforms never mutate their inputs and always return new lists.
"""
import math
from collections import defaultdict
from dataclasses import replace
from datetime import date
from typing import Dict, Iterable, List, Mapping, Sequence, Tuple, Union

from analytics.models import (
    AdSpendRecord,
    CampaignGoalMapping,
    DailyBucket,
    DailyCost,
    GoalKind,
    ViewMode,
)

DailyView = Union[DailyBucket, DailyCost]


def safe_divide(numerator: float, denominator: float) -> float:
    """numerator / denominator, or 0.0 when the denominator is not positive."""
    if denominator <= 0:
        return 0.0
    result = numerator / denominator
    return result if math.isfinite(result) else 0.0


def count_view(buckets: Iterable[DailyBucket]) -> List[DailyBucket]:
    return [replace(bucket, per_platform_spend=dict(bucket.per_platform_spend)) for bucket in buckets]


def cost_view(buckets: Iterable[DailyBucket]) -> List[DailyCost]:
    """Cost per acquisition using the day's combined spend for every goal."""
    return [
        DailyCost(
            date=bucket.date,
            total_spend=bucket.total_spend,
            per_platform_spend=dict(bucket.per_platform_spend),
            **{goal.value: safe_divide(bucket.total_spend, bucket.count(goal)) for goal in GoalKind},
        )
        for bucket in buckets
    ]


def campaign_goal_map(mappings: Iterable[CampaignGoalMapping]) -> Dict[str, Tuple[GoalKind, ...]]:
    """campaign_id -> deduplicated goals; a later mapping for the same campaign wins."""
    return {mapping.campaign_id: mapping.unique_goals for mapping in mappings}


def spend_records_by_date(records: Iterable[AdSpendRecord]) -> Dict[date, List[AdSpendRecord]]:
    grouped: Dict[date, List[AdSpendRecord]] = defaultdict(list)
    for record in records:
        grouped[record.civil_date].append(record)
    return dict(grouped)


def goal_spend_for_day(
    records: Iterable[AdSpendRecord],
    goals_by_campaign: Mapping[str, Sequence[GoalKind]],
) -> Dict[GoalKind, float]:
    """
    Split each record's spend evenly across its campaign's goals.

    Records whose campaign has no mapping, or maps to no goals, add nothing.
    """
    goal_spend = {goal: 0.0 for goal in GoalKind}
    for record in records:
        goals = goals_by_campaign.get(record.campaign_id)
        if not goals:
            continue
        share = record.spend / len(goals)
        for goal in goals:
            goal_spend[goal] += share
    return goal_spend


def drill_view(
    buckets: Iterable[DailyBucket],
    spend_records: Iterable[AdSpendRecord],
    mappings: Iterable[CampaignGoalMapping],
) -> List[DailyCost]:
    """Cost per acquisition using campaign-to-goal attributed spend."""
    goals_by_campaign = campaign_goal_map(mappings)
    records_by_date = spend_records_by_date(spend_records)

    days = []
    for bucket in buckets:
        goal_spend = goal_spend_for_day(records_by_date.get(bucket.date, ()), goals_by_campaign)
        costs = {
            goal.value: (
                goal_spend[goal] / bucket.count(goal)
                if goal_spend[goal] > 0 and bucket.count(goal) > 0 else 0.0
            )
            for goal in GoalKind
        }
        days.append(DailyCost(
            date=bucket.date,
            total_spend=bucket.total_spend,
            per_platform_spend=dict(bucket.per_platform_spend),
            goal_spend={goal.value: amount for goal, amount in goal_spend.items()},
            **costs,
        ))
    return days


def transform(
    buckets: Sequence[DailyBucket],
    mode: ViewMode,
    spend_records: Iterable[AdSpendRecord] = (),
    mappings: Iterable[CampaignGoalMapping] = (),
) -> List[DailyView]:
    """Derive the presentation for the selected view mode."""
    mode = ViewMode(mode)
    if mode == ViewMode.COST:
        return cost_view(buckets)
    if mode == ViewMode.DRILL:
        return drill_view(buckets, spend_records, mappings)
    return count_view(buckets)
