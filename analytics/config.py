"""
Centralized configuration for the campaign analytics engine.

Configuration is loaded from environment variables with sensible defaults.

Usage:
    from analytics.config import config

    tz_name = config.analytics.timezone
    social = config.analytics.social_sources
"""

import os
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Tuple
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


@dataclass(frozen=True)
class StoreConfig:
    """Hosted event store (PostgREST) configuration."""

    base_url: str = field(default_factory=lambda: os.getenv("EVENT_STORE_URL", ""))
    api_key: str = field(default_factory=lambda: os.getenv("EVENT_STORE_KEY", ""))
    request_timeout: float = 30.0
    page_limit: int = 1000

    # Tables / RPC functions
    goal_events_rpc: str = "get_analytics_data_cst"
    ad_spend_table: str = "ad_spend_daily"
    follower_table: str = "follower_counts"
    mappings_table: str = "campaign_goal_mappings"
    credentials_table: str = "ad_platform_credentials"
    signups_table: str = "beta_signups"

    @property
    def rest_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/rest/v1"


@dataclass(frozen=True)
class AnalyticsConfig:
    """Attribution and cost computation settings."""

    timezone: str = field(
        default_factory=lambda: os.getenv("ANALYTICS_TIMEZONE", "America/Chicago")
    )

    # Platform whose snapshots feed follower growth
    follower_platform: str = "instagram"

    # Platform A funds followers and DM-sourced (social) signups
    social_spend_platform: str = "facebook"

    # Platform B funds every other signup
    paid_spend_platform: str = "rumble"

    # DM tag source codes, compared lowercase
    social_sources: FrozenSet[str] = frozenset({"dm", "dma", "dmb", "dmc", "dmf"})

    max_range_days: int = 365
    default_preset: str = "7d"

    @property
    def spend_platforms(self) -> Tuple[str, str]:
        return (self.social_spend_platform, self.paid_spend_platform)


@dataclass(frozen=True)
class SourceConfig:
    """Raw source tag normalization."""

    # Lowercase raw tag -> display label
    synonyms: Dict[str, str] = field(default_factory=lambda: {
        "1": "Self Promo",
        "self_promo": "Self Promo",
        "fb": "Facebook",
        "facebook": "Facebook",
        "meta": "Facebook",
        "ig": "Instagram",
        "instagram": "Instagram",
        "rumble": "Rumble",
        "rgiveaway": "Rumble",
        "sms": "SMS",
        "email": "Email",
        "giveaway": "Giveaway",
        "direct": "Direct",
    })

    default_label: str = "Direct"

    def get_label(self, raw: str) -> str:
        """Look up the display label for a lowercase tag, or return raw unchanged."""
        return self.synonyms.get(raw.lower(), raw)


@dataclass(frozen=True)
class WebConfig:
    """Dashboard API configuration."""

    host: str = field(default_factory=lambda: os.getenv("WEB_HOST", "0.0.0.0"))
    port: int = field(default_factory=lambda: int(os.getenv("WEB_PORT", "8080")))
    rate_limit_per_minute: int = 30


@dataclass(frozen=True)
class AppConfig:
    """Main application configuration."""

    version: str = "1.0.0"
    store: StoreConfig = field(default_factory=StoreConfig)
    analytics: AnalyticsConfig = field(default_factory=AnalyticsConfig)
    sources: SourceConfig = field(default_factory=SourceConfig)
    web: WebConfig = field(default_factory=WebConfig)


# Global config instance
config = AppConfig()

VERSION = config.version
DEFAULT_TIMEZONE = config.analytics.timezone


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""
    pass


def validate_config(require_store: bool = True) -> None:
    """
    Validate that all required configuration is present.

    Call this on application startup to fail fast with clear error messages.

    Args:
        require_store: If True, validate the event store URL and key

    Raises:
        ConfigurationError: If required configuration is missing
    """
    errors = []

    if require_store:
        if not config.store.base_url:
            errors.append("EVENT_STORE_URL is required but not set")
        if not config.store.api_key:
            errors.append("EVENT_STORE_KEY is required but not set")

    if config.store.base_url and not config.store.base_url.startswith(("http://", "https://")):
        errors.append("EVENT_STORE_URL must start with http:// or https://")

    try:
        ZoneInfo(config.analytics.timezone)
    except (KeyError, ValueError):
        errors.append(f"ANALYTICS_TIMEZONE '{config.analytics.timezone}' is not a known IANA timezone")

    if errors:
        error_msg = "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
        raise ConfigurationError(error_msg)
