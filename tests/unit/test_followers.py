"""
Tests for analytics.followers module.
"""
import pytest
from datetime import date, timedelta

from analytics.buckets import empty_buckets
from analytics.followers import (
    daily_growth,
    interpolate_follower_growth,
    round_half_up,
    snapshots_by_date,
)
from analytics.models import DailyBucket, DateRange, FollowerSnapshot

DAY0 = date(2026, 3, 1)


def snap(offset: int, count: int) -> FollowerSnapshot:
    return FollowerSnapshot(platform="instagram", civil_date=DAY0 + timedelta(days=offset), count=count)


class TestRoundHalfUp:
    """Tests for round_half_up."""

    @pytest.mark.parametrize("value,expected", [
        (2.5, 3),
        (3.5, 4),
        (2.4, 2),
        (-2.5, -2),
        (-2.6, -3),
        (0.0, 0),
    ])
    def test_rounding(self, value, expected):
        assert round_half_up(value) == expected


class TestDailyGrowth:
    """Tests for spreading growth between snapshots."""

    def test_worked_example(self):
        """100 on day 0, 150 on day 5: days 1-5 each gain 10."""
        growth = daily_growth([snap(0, 100), snap(5, 150)])
        assert growth == {DAY0 + timedelta(days=i): 10 for i in range(1, 6)}

    def test_consecutive_days(self):
        growth = daily_growth([snap(0, 100), snap(1, 104), snap(2, 101)])
        assert growth[DAY0 + timedelta(days=1)] == 4
        assert growth[DAY0 + timedelta(days=2)] == -3

    def test_rounded_days_need_not_sum_to_delta(self):
        """10 followers over 4 days is 2.5/day, rounded to 3 each day."""
        growth = daily_growth([snap(0, 0), snap(4, 10)])
        assert set(growth.values()) == {3}
        assert sum(growth.values()) == 12

    def test_unsorted_input(self):
        growth = daily_growth([snap(5, 150), snap(0, 100)])
        assert growth[DAY0 + timedelta(days=3)] == 10

    def test_duplicate_dates_later_row_wins(self):
        assert snapshots_by_date([snap(0, 100), snap(0, 120)]) == {DAY0: 120}
        growth = daily_growth([snap(0, 100), snap(0, 120), snap(1, 125)])
        assert growth == {DAY0 + timedelta(days=1): 5}

    @pytest.mark.parametrize("snapshots", [[], [snap(0, 100)]])
    def test_fewer_than_two_snapshots(self, snapshots):
        assert daily_growth(snapshots) == {}


class TestInterpolateFollowerGrowth:
    """Tests for populating bucket follower counts."""

    def test_fills_buckets(self):
        date_range = DateRange(start=DAY0 + timedelta(days=1), end=DAY0 + timedelta(days=5))
        buckets = interpolate_follower_growth(empty_buckets(date_range), [snap(0, 100), snap(5, 150)])
        assert [b.followers for b in buckets] == [10, 10, 10, 10, 10]

    def test_days_without_coverage_are_zero(self):
        date_range = DateRange(start=DAY0, end=DAY0 + timedelta(days=6))
        buckets = interpolate_follower_growth(empty_buckets(date_range), [snap(1, 100), snap(3, 110)])
        assert [b.followers for b in buckets] == [0, 0, 5, 5, 0, 0, 0]

    def test_missing_baseline_leaves_first_day_zero(self):
        date_range = DateRange(start=DAY0, end=DAY0 + timedelta(days=2))
        buckets = interpolate_follower_growth(empty_buckets(date_range), [snap(0, 100), snap(2, 120)])
        assert [b.followers for b in buckets] == [0, 10, 10]

    def test_does_not_mutate_input(self):
        original = [DailyBucket(date=DAY0 + timedelta(days=1), orders=3)]
        result = interpolate_follower_growth(original, [snap(0, 100), snap(1, 107)])
        assert original[0].followers == 0
        assert result[0].followers == 7
        assert result[0].orders == 3

    def test_no_snapshots(self):
        date_range = DateRange(start=DAY0, end=DAY0 + timedelta(days=2))
        buckets = interpolate_follower_growth(empty_buckets(date_range), [])
        assert [b.followers for b in buckets] == [0, 0, 0]
