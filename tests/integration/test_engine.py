"""
Integration tests for analytics/engine.py and analytics/concurrency.py

Runs full requests against an in-memory event store double.
"""
import asyncio
import pytest
from datetime import date
from unittest.mock import AsyncMock

from analytics.concurrency import CancellationToken, RequestGate, gather_reads
from analytics.engine import AnalyticsEngine
from analytics.exceptions import (
    AnalyticsFetchError,
    EventStoreAPIError,
    EventStoreConnectionError,
    StaleRequestError,
    ValidationError,
)
from analytics.models import (
    AnalyticsRequest,
    DateRange,
    FollowerSnapshot,
    RecordType,
    Signup,
    ViewMode,
)


class TestGatherReads:
    """Tests for fan-out/fan-in reads."""

    @pytest.mark.asyncio
    async def test_returns_results_by_name(self):
        async def value(v):
            return v

        results = await gather_reads({"a": value(1), "b": value([2])})
        assert results == {"a": 1, "b": [2]}

    @pytest.mark.asyncio
    async def test_reads_run_concurrently(self):
        started = []

        async def read(name):
            started.append(name)
            await asyncio.sleep(0.05)
            return name

        await asyncio.wait_for(
            gather_reads({"a": read("a"), "b": read("b"), "c": read("c")}),
            timeout=0.12,
        )
        assert sorted(started) == ["a", "b", "c"]

    @pytest.mark.asyncio
    async def test_one_error_names_all_failures(self):
        finished = []

        async def ok():
            await asyncio.sleep(0.01)
            finished.append("ok")
            return 1

        async def fail(exc):
            raise exc

        with pytest.raises(AnalyticsFetchError) as exc_info:
            await gather_reads({
                "ok": ok(),
                "spend": fail(EventStoreAPIError("boom")),
                "mappings": fail(EventStoreConnectionError("timeout")),
            })

        assert set(exc_info.value.failures) == {"spend", "mappings"}
        # Sibling reads still ran to completion
        assert finished == ["ok"]


class TestRequestGate:
    """Tests for latest-request-wins tokens."""

    def test_new_request_cancels_previous(self):
        gate = RequestGate()
        first = gate.begin()
        second = gate.begin()

        assert first.cancelled
        assert not second.cancelled
        assert gate.is_current(second)
        assert not gate.is_current(first)

    def test_raise_if_cancelled(self):
        token = CancellationToken("req-1")
        token.raise_if_cancelled()
        token.cancel()
        with pytest.raises(StaleRequestError):
            token.raise_if_cancelled()


class TestAnalyticsEngine:
    """Tests for AnalyticsEngine.run."""

    @pytest.mark.asyncio
    async def test_worked_example(self, mock_store, three_day_range):
        engine = AnalyticsEngine(mock_store)
        result = await engine.run(AnalyticsRequest(three_day_range, ViewMode.COUNT))

        assert [b.orders for b in result.buckets] == [2, 0, 1]
        assert result.view(ViewMode.COST)[0].orders == 15.0
        drill = result.view(ViewMode.DRILL)[0]
        assert drill.orders == 7.5
        assert drill.goal_spend["followers"] == 15.0

    @pytest.mark.asyncio
    async def test_follower_growth_uses_baseline(self, mock_store, three_day_range):
        """1000 on the day before D1, 1030 on D3: 10 per day."""
        engine = AnalyticsEngine(mock_store)
        result = await engine.run(AnalyticsRequest(three_day_range))

        assert [b.followers for b in result.buckets] == [10, 10, 10]
        mock_store.query_follower_snapshots.assert_awaited_once_with(
            date(2026, 3, 1), date(2026, 3, 4), platform="instagram",
        )

    @pytest.mark.asyncio
    async def test_reads_requested_range(self, mock_store, three_day_range):
        engine = AnalyticsEngine(mock_store)
        await engine.run(AnalyticsRequest(three_day_range))

        mock_store.query_goal_events.assert_awaited_once_with(three_day_range.start, three_day_range.end)
        mock_store.query_ad_spend.assert_awaited_once_with(three_day_range.start, three_day_range.end)

    @pytest.mark.asyncio
    async def test_breakdowns_and_credentials(self, mock_store, three_day_range):
        engine = AnalyticsEngine(mock_store)
        result = await engine.run(AnalyticsRequest(three_day_range))

        orders = result.breakdowns[RecordType.ORDER]
        assert sum(e.count for e in orders) == 3
        assert [c.platform for c in result.credentials] == ["facebook", "rumble"]
        assert all(c.connected for c in result.credentials)

    @pytest.mark.asyncio
    async def test_failed_read_raises_single_error(self, mock_store, three_day_range):
        mock_store.query_ad_spend = AsyncMock(side_effect=EventStoreConnectionError("timeout"))
        engine = AnalyticsEngine(mock_store)

        with pytest.raises(AnalyticsFetchError) as exc_info:
            await engine.run(AnalyticsRequest(three_day_range))

        assert list(exc_info.value.failures) == ["ad_spend"]
        assert exc_info.value.retryable

    @pytest.mark.asyncio
    async def test_credential_failure_reads_as_disconnected(self, mock_store, three_day_range):
        mock_store.query_credential_status = AsyncMock(side_effect=EventStoreAPIError("403"))
        engine = AnalyticsEngine(mock_store)
        result = await engine.run(AnalyticsRequest(three_day_range))

        assert [c.connected for c in result.credentials] == [False, False]

    @pytest.mark.asyncio
    async def test_inverted_range_rejected_before_reads(self, mock_store):
        engine = AnalyticsEngine(mock_store)
        with pytest.raises(ValidationError):
            await engine.run(AnalyticsRequest(DateRange(date(2026, 3, 5), date(2026, 3, 1))))
        mock_store.query_goal_events.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_superseded_request_is_discarded(self, mock_store, three_day_range):
        gate = RequestGate()
        release = asyncio.Event()
        events = mock_store.query_goal_events.return_value

        async def slow_events(start, end):
            await release.wait()
            return events

        mock_store.query_goal_events = AsyncMock(side_effect=slow_events)
        engine = AnalyticsEngine(mock_store)

        first_token = gate.begin()
        first = asyncio.create_task(engine.run(AnalyticsRequest(three_day_range), first_token))
        await asyncio.sleep(0)

        second_token = gate.begin()
        release.set()
        second = await engine.run(AnalyticsRequest(three_day_range, ViewMode.COST), second_token)

        with pytest.raises(StaleRequestError):
            await first
        assert second.request_id == second_token.request_id
        assert gate.is_current(second_token)

    @pytest.mark.asyncio
    async def test_to_dict(self, mock_store, three_day_range):
        engine = AnalyticsEngine(mock_store)
        result = await engine.run(AnalyticsRequest(three_day_range, ViewMode.DRILL))
        payload = result.to_dict()

        assert payload["mode"] == "drill"
        assert payload["startDate"] == "2026-03-02"
        assert len(payload["days"]) == 3
        assert payload["days"][0]["goalSpend"]["orders"] == 15.0
        assert payload["totals"]["orders"] == 3
        assert set(payload["sources"]) == {"order", "user", "sms"}
        assert payload["campaignMappings"][0]["goals"] == ["orders", "followers"]


class TestLifetimeSummary:
    """Tests for AnalyticsEngine.lifetime_summary."""

    @pytest.mark.asyncio
    async def test_summary(self, mock_store, sample_spend):
        window = DateRange(date(2026, 3, 2), date(2026, 3, 4), label="Custom")

        async def follower_count(platform, day):
            counts = {date(2026, 3, 1): 1000, date(2026, 3, 4): 1015}
            return FollowerSnapshot(platform, day, counts[day])

        mock_store.query_follower_count = AsyncMock(side_effect=follower_count)
        mock_store.query_signups = AsyncMock(return_value=[
            Signup(subscribed_at=None, source="dm"),
            Signup(subscribed_at=None, source="rumble"),
        ])

        summary = await AnalyticsEngine(mock_store).lifetime_summary(window)

        assert summary.total_followers == 15
        assert summary.cost_per_follower == 2.0
        assert summary.cost_per_social_signup == 30.0
        assert summary.cost_per_paid_signup == 10.0

    @pytest.mark.asyncio
    async def test_missing_baseline(self, mock_store):
        window = DateRange(date(2026, 3, 2), date(2026, 3, 4))
        mock_store.query_follower_count = AsyncMock(
            side_effect=lambda platform, day: None if day == date(2026, 3, 1) else FollowerSnapshot(platform, day, 500)
        )

        summary = await AnalyticsEngine(mock_store).lifetime_summary(window)
        assert summary.total_followers == 0
        assert summary.cost_per_follower == 0.0

    @pytest.mark.asyncio
    async def test_failed_read(self, mock_store):
        mock_store.query_signups = AsyncMock(side_effect=EventStoreAPIError("500"))
        with pytest.raises(AnalyticsFetchError) as exc_info:
            await AnalyticsEngine(mock_store).lifetime_summary(DateRange(date(2026, 3, 2), date(2026, 3, 4)))
        assert "signups" in exc_info.value.failures
