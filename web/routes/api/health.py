"""Health check endpoint."""
import time

from fastapi import APIRouter, Request

from analytics.observability import data_quality, get_correlation_id
from web.config import HEALTH_RATE_LIMIT, VERSION
from web.schemas import HealthResponse
from web.services import analytics_service
from ._deps import START_TIME, get_logger, limiter

router = APIRouter()
logger = get_logger(__name__)


@router.get("/health", response_model=HealthResponse)
@limiter.limit(HEALTH_RATE_LIMIT)
async def health_check(request: Request):
    """Health check endpoint for load balancer monitoring."""
    engine = await analytics_service.get_engine()
    breaker = getattr(engine.store, "circuit_breaker", None)
    circuit_state = breaker.state.value if breaker else "unknown"

    return {
        "status": "degraded" if circuit_state == "open" else "healthy",
        "version": VERSION,
        "uptime_seconds": int(time.time() - START_TIME),
        "correlation_id": get_correlation_id(),
        "circuit_breaker": circuit_state,
        "data_quality": data_quality.snapshot(),
    }
