"""
Pydantic response models for API endpoints.

Field names are camelCase to match what the dashboard front end renders.
"""
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


# ═══════════════════════════════════════════════════════════════════════════════
# HEALTH CHECK
# ═══════════════════════════════════════════════════════════════════════════════

class HealthResponse(BaseModel):
    """Health check response."""
    status: str = Field(description="Service status: healthy or degraded")
    version: str = Field(description="Application version")
    uptime_seconds: int = Field(description="Uptime in seconds")
    correlation_id: Optional[str] = Field(None, description="Request correlation ID")
    circuit_breaker: str = Field(description="Event store circuit state")
    data_quality: Dict[str, int] = Field(default_factory=dict, description="Recovered malformed rows by kind")


# ═══════════════════════════════════════════════════════════════════════════════
# DAILY SERIES
# ═══════════════════════════════════════════════════════════════════════════════

class DayResponse(BaseModel):
    """One day of the series; goal fields are counts or costs depending on mode."""
    date: str
    followers: float
    sms: float
    users: float
    orders: float
    totalSpend: float
    perPlatformSpend: Dict[str, float] = {}
    goalSpend: Optional[Dict[str, float]] = Field(None, description="Attributed spend per goal (drill mode)")


class GoalMeta(BaseModel):
    key: str
    label: str
    color: str


class SourceBreakdownResponse(BaseModel):
    source: str
    count: int
    percentage: float = Field(description="Share of events, 0-100")


class CampaignMappingResponse(BaseModel):
    campaignId: str
    campaignName: str
    platform: str
    goals: List[str]


class CredentialStatusResponse(BaseModel):
    platform: str
    connected: bool
    lastSyncAt: Optional[str] = None


class AnalyticsResponse(BaseModel):
    """Daily series with totals, source breakdowns and supporting data."""
    startDate: str
    endDate: str
    label: str
    mode: str = Field(description="count, cost or drill")
    days: List[DayResponse]
    totals: Dict[str, float]
    goals: List[GoalMeta]
    sources: Dict[str, List[SourceBreakdownResponse]]
    campaignMappings: List[CampaignMappingResponse] = []
    credentials: List[CredentialStatusResponse] = []


class SourcesResponse(BaseModel):
    startDate: str
    endDate: str
    label: str
    sources: Dict[str, List[SourceBreakdownResponse]]


# ═══════════════════════════════════════════════════════════════════════════════
# LIFETIME SUMMARY
# ═══════════════════════════════════════════════════════════════════════════════

class LifetimeSummaryResponse(BaseModel):
    """Headline cost figures for the selected window."""
    costPerFollower: float
    costPerPaidSignup: float
    costPerSocialSignup: float
    totalFollowers: int
    totalSignups: int
    paidSignups: int
    socialSignups: int
    socialSpend: float
    paidSpend: float
    label: str


class ErrorResponse(BaseModel):
    error: str
    detail: str
    retryable: bool = False
