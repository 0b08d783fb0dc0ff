"""
Web dashboard configuration.
"""
import os

from analytics.config import config, VERSION, DEFAULT_TIMEZONE

WEB_HOST = config.web.host
WEB_PORT = config.web.port

# Per-minute limits for the analytics endpoints
ANALYTICS_RATE_LIMIT = f"{config.web.rate_limit_per_minute}/minute"
HEALTH_RATE_LIMIT = "60/minute"

LOG_FORMAT = os.getenv("LOG_FORMAT", "text")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Header identifying the operator for latest-request-wins
OPERATOR_HEADER = "X-Operator-ID"

__all__ = [
    "WEB_HOST",
    "WEB_PORT",
    "ANALYTICS_RATE_LIMIT",
    "HEALTH_RATE_LIMIT",
    "LOG_FORMAT",
    "LOG_LEVEL",
    "OPERATOR_HEADER",
    "VERSION",
    "DEFAULT_TIMEZONE",
]
