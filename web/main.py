"""
FastAPI application serving the advanced analytics view.
"""
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, ORJSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.middleware.gzip import GZipMiddleware

from analytics.config import ConfigurationError, validate_config
from analytics.exceptions import AnalyticsFetchError, StaleRequestError
from analytics.observability import get_correlation_id, get_logger, setup_logging
from web.config import LOG_FORMAT, LOG_LEVEL, VERSION, WEB_HOST, WEB_PORT
from web.middleware import RequestLoggingMiddleware
from web.schemas import ErrorResponse
from web.routes import api
from web.routes.api._deps import limiter
from web.services.analytics_service import close_engine, get_engine

# Use JSON format in production (LOG_FORMAT=json), human-readable otherwise
setup_logging(level=LOG_LEVEL, json_format=(LOG_FORMAT == "json"))
logger = get_logger(__name__)

app = FastAPI(
    title="Marketing Analytics",
    description="Campaign attribution and cost analytics",
    version=VERSION,
    default_response_class=ORJSONResponse,
)

app.state.limiter = limiter


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    logger.warning(f"Rate limit exceeded for {get_remote_address(request)}")
    return JSONResponse(
        status_code=429,
        content=ErrorResponse(
            error="Rate limit exceeded",
            detail="Too many requests. Please try again later.",
            retryable=True,
        ).model_dump(),
    )


@app.exception_handler(AnalyticsFetchError)
async def fetch_error_handler(request: Request, exc: AnalyticsFetchError):
    """One aggregate error for the view; it offers a retry."""
    logger.error(
        "Analytics data fetch failed",
        extra={"failed_reads": sorted(exc.failures), "correlation_id": get_correlation_id()},
    )
    return JSONResponse(
        status_code=502,
        content=ErrorResponse(error="Failed to load analytics data", detail=str(exc), retryable=True).model_dump(),
    )


@app.exception_handler(StaleRequestError)
async def stale_request_handler(request: Request, exc: StaleRequestError):
    return JSONResponse(
        status_code=409,
        content=ErrorResponse(error="Superseded", detail=str(exc)).model_dump(),
    )


app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(GZipMiddleware, minimum_size=500)

app.include_router(api.router, prefix="/api")


@app.on_event("startup")
async def startup_event():
    logger.info("Marketing analytics API starting...")

    # Fail fast with clear errors
    try:
        validate_config(require_store=True)
        logger.info("Configuration validated")
    except ConfigurationError as e:
        logger.critical(f"Configuration error: {e}")
        raise SystemExit(1)

    await get_engine()


@app.on_event("shutdown")
async def shutdown_event():
    await close_engine()
    logger.info("Marketing analytics API stopped")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("web.main:app", host=WEB_HOST, port=WEB_PORT)
