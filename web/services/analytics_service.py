"""
Analytics service for the dashboard API.

Owns the shared event store client and one RequestGate per operator and
view, so an operator changing the date range while a request is in flight
only ever sees the newest result for that view. A gate lives only while a
request holds it.
"""
import asyncio
from datetime import date
from typing import Any, Dict, Optional, Tuple

from analytics.civil_dates import today_in
from analytics.concurrency import CancellationToken, RequestGate
from analytics.config import config
from analytics.engine import AnalyticsEngine, AnalyticsResult
from analytics.models import AnalyticsRequest, DateRange, LifetimeCostSummary, ViewMode
from analytics.observability import get_logger
from analytics.store import EventStoreClient
from analytics.validators import resolve_date_range, validate_view_mode

logger = get_logger(__name__)

_engine: Optional[AnalyticsEngine] = None
_engine_lock = asyncio.Lock()

# (operator, view) -> gate of the in-flight request
_gates: Dict[Tuple[str, str], RequestGate] = {}

DASHBOARD_VIEW = "dashboard"
SOURCES_VIEW = "sources"


async def get_engine() -> AnalyticsEngine:
    """Get the shared engine, creating the store client on first use."""
    global _engine
    async with _engine_lock:
        if _engine is None:
            store = EventStoreClient()
            await store.connect()
            _engine = AnalyticsEngine(store)
            logger.info("Analytics engine initialized", extra={"timezone": config.analytics.timezone})
    return _engine


async def close_engine() -> None:
    global _engine
    async with _engine_lock:
        if _engine is not None:
            await _engine.store.close()
            _engine = None
            logger.info("Analytics engine closed")


def set_engine(engine: Optional[AnalyticsEngine]) -> None:
    """Install a specific engine (used by tests and embedding applications)."""
    global _engine
    _engine = engine


def get_gate(operator: str, view: str = DASHBOARD_VIEW) -> RequestGate:
    key = (operator, view)
    if key not in _gates:
        _gates[key] = RequestGate()
    return _gates[key]


def _release_gate(operator: str, view: str, gate: RequestGate, token: CancellationToken) -> None:
    """Drop the gate once its latest request is done; a newer request keeps it."""
    key = (operator, view)
    if gate.is_current(token) and _gates.get(key) is gate:
        del _gates[key]


def resolve_range(
    period: Optional[str],
    start_date: Optional[str],
    end_date: Optional[str],
    today: Optional[date] = None,
) -> DateRange:
    """Request parameters -> DateRange, anchored on today's civil date."""
    today = today or today_in(config.analytics.timezone)
    return resolve_date_range(period, start_date, end_date, today)


async def run_analytics(
    operator: str,
    period: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    mode: Optional[str] = None,
    view: str = DASHBOARD_VIEW,
) -> AnalyticsResult:
    """
    Run one analytics request for an operator (latest request per view wins).

    Raises:
        ValidationError: Bad period/date/mode parameters
        AnalyticsFetchError: A read against the event store failed
        StaleRequestError: The operator issued a newer request meanwhile
    """
    request = AnalyticsRequest(
        range=resolve_range(period, start_date, end_date),
        mode=validate_view_mode(mode),
    )
    gate = get_gate(operator, view)
    token = gate.begin()
    try:
        engine = await get_engine()
        return await engine.run(request, token)
    finally:
        _release_gate(operator, view, gate, token)


async def get_dashboard(operator: str, **params: Any) -> Dict[str, Any]:
    result = await run_analytics(operator, **params)
    return result.to_dict()


async def get_source_breakdowns(operator: str, **params: Any) -> Dict[str, Any]:
    result = await run_analytics(operator, mode=ViewMode.COUNT.value, view=SOURCES_VIEW, **params)
    payload = result.to_dict()
    return {
        "startDate": payload["startDate"],
        "endDate": payload["endDate"],
        "label": payload["label"],
        "sources": payload["sources"],
    }


async def get_lifetime_summary(
    period: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
) -> LifetimeCostSummary:
    date_range = resolve_range(period, start_date, end_date)
    engine = await get_engine()
    return await engine.lifetime_summary(date_range)
