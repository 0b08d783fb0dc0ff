"""
Pytest configuration and shared fixtures.
"""
import pytest
from datetime import date
from typing import Any, Dict, List
from unittest.mock import AsyncMock, MagicMock

from analytics.models import (
    AdSpendRecord,
    CampaignGoalMapping,
    CredentialStatus,
    DateRange,
    FollowerSnapshot,
    GoalEvent,
    GoalKind,
    RecordType,
)
from analytics.observability import data_quality

D1 = date(2026, 3, 2)
D2 = date(2026, 3, 3)
D3 = date(2026, 3, 4)


@pytest.fixture(autouse=True)
def reset_data_quality():
    """Each test starts with an empty recovered-row counter."""
    data_quality.reset()
    yield
    data_quality.reset()


@pytest.fixture
def three_day_range() -> DateRange:
    """Range [D1, D3] used by the worked example."""
    return DateRange(start=D1, end=D3, label="Worked example")


@pytest.fixture
def sample_events() -> List[GoalEvent]:
    """2 orders on D1, 1 order on D3."""
    return [
        GoalEvent(RecordType.ORDER, D1, "ig"),
        GoalEvent(RecordType.ORDER, D1, None),
        GoalEvent(RecordType.ORDER, D3, "dm"),
    ]


@pytest.fixture
def sample_spend() -> List[AdSpendRecord]:
    """$30 on D1 for mapped campaign X, $10 on D2 for an unmapped campaign."""
    return [
        AdSpendRecord(civil_date=D1, platform="facebook", campaign_id="X", campaign_name="Spring push", spend=30.0),
        AdSpendRecord(civil_date=D2, platform="rumble", campaign_id="Y", campaign_name="Unmapped", spend=10.0),
    ]


@pytest.fixture
def sample_mappings() -> List[CampaignGoalMapping]:
    """Campaign X drives orders and followers."""
    return [
        CampaignGoalMapping(
            campaign_id="X",
            campaign_name="Spring push",
            platform="facebook",
            goals=(GoalKind.ORDERS, GoalKind.FOLLOWERS),
        ),
    ]


@pytest.fixture
def sample_snapshots() -> List[FollowerSnapshot]:
    """Baseline on the day before D1 and one snapshot on D3."""
    return [
        FollowerSnapshot(platform="instagram", civil_date=date(2026, 3, 1), count=1000),
        FollowerSnapshot(platform="instagram", civil_date=D3, count=1030),
    ]


@pytest.fixture
def goal_event_rows() -> List[Dict[str, Any]]:
    """Rows as returned by the goal events RPC."""
    return [
        {"record_type": "order", "cst_date": "2026-03-02", "promo_source": "ig"},
        {"record_type": "user", "cst_date": "2026-03-02", "promo_source": "Facebook"},
        {"record_type": "sms", "cst_date": "2026-03-03", "promo_source": "dm"},
        {"record_type": "refund", "cst_date": "2026-03-03", "promo_source": None},
    ]


@pytest.fixture
def mock_store(sample_events, sample_spend, sample_mappings, sample_snapshots):
    """Event store double that answers every query from the sample fixtures."""
    store = MagicMock()
    store.query_goal_events = AsyncMock(return_value=sample_events)
    store.query_ad_spend = AsyncMock(return_value=sample_spend)
    store.query_follower_snapshots = AsyncMock(return_value=sample_snapshots)
    store.query_campaign_goal_mappings = AsyncMock(return_value=sample_mappings)
    store.query_credential_status = AsyncMock(
        side_effect=lambda platform: CredentialStatus(platform=platform, connected=True)
    )
    store.query_follower_count = AsyncMock(return_value=None)
    store.query_signups = AsyncMock(return_value=[])
    store.close = AsyncMock()
    return store
