"""Advanced analytics endpoints: daily series, source breakdowns, lifetime costs."""
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Request

from web.config import ANALYTICS_RATE_LIMIT
from web.schemas import AnalyticsResponse, LifetimeSummaryResponse, SourcesResponse
from web.services import analytics_service
from ._deps import ValidationError, get_logger, get_operator, limiter

router = APIRouter()
logger = get_logger(__name__)

PERIOD_DESCRIPTION = "Shortcut: today, 7d, 14d, 30d, 90d or custom"


@router.get("/analytics", response_model=AnalyticsResponse)
@limiter.limit(ANALYTICS_RATE_LIMIT)
async def get_analytics(
    request: Request,
    period: Optional[str] = Query(None, description=PERIOD_DESCRIPTION),
    start_date: Optional[str] = Query(None, description="Custom start (YYYY-MM-DD)"),
    end_date: Optional[str] = Query(None, description="Custom end (YYYY-MM-DD)"),
    mode: Optional[str] = Query("count", description="View mode: count, cost or drill"),
):
    """Daily goal counts or costs with totals and source breakdowns."""
    try:
        return await analytics_service.get_dashboard(
            get_operator(request),
            period=period, start_date=start_date, end_date=end_date, mode=mode,
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/analytics/sources", response_model=SourcesResponse)
@limiter.limit(ANALYTICS_RATE_LIMIT)
async def get_analytics_sources(
    request: Request,
    period: Optional[str] = Query(None, description=PERIOD_DESCRIPTION),
    start_date: Optional[str] = Query(None),
    end_date: Optional[str] = Query(None),
):
    """Source breakdown per event kind (sms, user, order)."""
    try:
        return await analytics_service.get_source_breakdowns(
            get_operator(request),
            period=period, start_date=start_date, end_date=end_date,
        )
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/analytics/lifetime", response_model=LifetimeSummaryResponse)
@limiter.limit(ANALYTICS_RATE_LIMIT)
async def get_lifetime_summary(
    request: Request,
    period: Optional[str] = Query(None, description=PERIOD_DESCRIPTION),
    start_date: Optional[str] = Query(None),
    end_date: Optional[str] = Query(None),
):
    """Average cost per follower, per paid signup and per social signup."""
    try:
        summary = await analytics_service.get_lifetime_summary(period, start_date, end_date)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return summary.to_dict()
