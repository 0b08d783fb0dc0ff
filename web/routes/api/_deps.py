"""Shared dependencies for API route modules."""
import time

from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from analytics.exceptions import ValidationError
from analytics.observability import get_logger
from web.config import OPERATOR_HEADER

# Shared limiter instance
limiter = Limiter(key_func=get_remote_address)

# Track startup time for uptime calculation
START_TIME = time.time()


def get_operator(request: Request) -> str:
    """Operator key for latest-request-wins: explicit header, else client address."""
    operator = request.headers.get(OPERATOR_HEADER)
    if operator:
        return operator.strip()
    return get_remote_address(request)


__all__ = ["limiter", "START_TIME", "get_operator", "get_logger", "ValidationError"]
