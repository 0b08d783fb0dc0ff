"""
FastAPI middleware for observability.

Provides:
- Request correlation ID injection
- Request/response logging with timing
"""
import time
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from analytics.observability import (
    generate_correlation_id,
    get_logger,
    set_correlation_id,
)

logger = get_logger(__name__)

QUIET_PATHS = ("/api/health", "/health")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware that:
    1. Assigns correlation ID to each request (X-Request-ID in and out)
    2. Logs request start/end with timing
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        correlation_id = request.headers.get("X-Request-ID") or generate_correlation_id()
        set_correlation_id(correlation_id)

        start_time = time.perf_counter()
        method = request.method
        path = request.url.path
        quiet = path in QUIET_PATHS

        if not quiet:
            logger.info(
                f"Request started: {method} {path}",
                extra={"method": method, "path": path},
            )

        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.error(
                f"Request failed: {method} {path}",
                extra={"method": method, "path": path, "duration_ms": round(duration_ms, 2), "error": str(e)},
            )
            raise

        duration_ms = (time.perf_counter() - start_time) * 1000
        response.headers["X-Request-ID"] = correlation_id
        response.headers["X-Response-Time"] = f"{duration_ms:.2f}ms"

        if not quiet:
            level_name = "info" if response.status_code < 400 else "warning"
            getattr(logger, level_name)(
                f"Request completed: {method} {path}",
                extra={
                    "method": method,
                    "path": path,
                    "status_code": response.status_code,
                    "duration_ms": round(duration_ms, 2),
                },
            )

        return response
