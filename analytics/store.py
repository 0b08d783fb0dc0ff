"""
Async read client for the hosted event store (PostgREST interface).

Features:
- Connection pooling with httpx
- Exponential backoff retry on connection errors (3 attempts)
- Circuit breaker (opens after 5 consecutive failures)
- Range-header pagination
- Request correlation IDs for tracing

All query methods return parsed model objects; malformed rows are coerced
or skipped by the model parsers and never raise.
"""
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

import httpx

from analytics.civil_dates import DATE_FORMAT
from analytics.config import StoreConfig, config
from analytics.exceptions import EventStoreAPIError, EventStoreConnectionError, EventStoreDataError
from analytics.models import (
    AdSpendRecord,
    CampaignGoalMapping,
    CredentialStatus,
    FollowerSnapshot,
    GoalEvent,
    Signup,
)
from analytics.observability import Timer, get_correlation_id, get_logger
from analytics.resilience import (
    CircuitBreaker,
    CircuitBreakerConfig,
    CircuitOpenError,
    RetryConfig,
    retry_with_backoff,
)

logger = get_logger(__name__)

RETRY_CONFIG = RetryConfig(max_attempts=3, base_delay=1.0, max_delay=30.0, exponential_base=2.0)

CIRCUIT_BREAKER_CONFIG = CircuitBreakerConfig(failure_threshold=5, recovery_timeout=60.0)

Params = Sequence[Tuple[str, str]]


def _iso_date(value: date) -> str:
    return value.strftime(DATE_FORMAT)


class EventStoreClient:
    """
    Read-only client for analytics rows.

    Usage:
        async with EventStoreClient() as store:
            spend = await store.query_ad_spend(start, end)
    """

    def __init__(
        self,
        settings: StoreConfig = None,
        retry_config: RetryConfig = None,
        circuit_breaker: CircuitBreaker = None,
        transport: httpx.AsyncBaseTransport = None,
    ):
        self.settings = settings or config.store
        self.retry_config = retry_config or RETRY_CONFIG
        self.circuit_breaker = circuit_breaker or CircuitBreaker(config=CIRCUIT_BREAKER_CONFIG)
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

        if not self.settings.base_url:
            raise ValueError("EVENT_STORE_URL is required")

    @property
    def headers(self) -> Dict[str, str]:
        return {
            "apikey": self.settings.api_key,
            "Authorization": f"Bearer {self.settings.api_key}",
            "Accept": "application/json",
            "Content-Type": "application/json",
        }

    async def connect(self) -> None:
        """Create HTTP client with connection pooling."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.settings.rest_url,
                headers=self.headers,
                timeout=self.settings.request_timeout,
                limits=httpx.Limits(max_keepalive_connections=10, max_connections=20),
                transport=self._transport,
            )

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "EventStoreClient":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    # ═══════════════════════════════════════════════════════════════════════════
    # TRANSPORT
    # ═══════════════════════════════════════════════════════════════════════════

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[Params] = None,
        json: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> httpx.Response:
        """
        Make a request with retry and circuit breaker.

        Raises:
            EventStoreConnectionError: Network/timeout errors
            EventStoreAPIError: Store returned error response
            CircuitOpenError: Circuit breaker is open
        """
        if not await self.circuit_breaker.can_execute():
            raise CircuitOpenError(f"Circuit breaker is open, request to {path} rejected")

        try:
            response = await retry_with_backoff(
                self._do_request,
                method, path, params, json, headers,
                config=self.retry_config,
                retryable_exceptions=(EventStoreConnectionError,),
            )
        except (EventStoreAPIError, EventStoreConnectionError):
            await self.circuit_breaker.record_failure()
            raise

        await self.circuit_breaker.record_success()
        return response

    async def _do_request(
        self,
        method: str,
        path: str,
        params: Optional[Params],
        json: Optional[Dict[str, Any]],
        headers: Optional[Dict[str, str]],
    ) -> httpx.Response:
        """Execute a single HTTP request (called by retry wrapper)."""
        await self.connect()

        request_headers = dict(headers or {})
        correlation_id = get_correlation_id()
        if correlation_id:
            request_headers["X-Request-ID"] = correlation_id

        try:
            with Timer(f"event_store {path}", logger):
                response = await self._client.request(
                    method, path, params=params, json=json, headers=request_headers or None,
                )
        except httpx.TimeoutException as e:
            logger.error(f"Request timeout: {method} {path}", extra={"path": path})
            raise EventStoreConnectionError(
                f"Request timeout after {self.settings.request_timeout}s", retry_after=5
            ) from e
        except httpx.RequestError as e:
            logger.error(f"Request failed: {method} {path} - {e}", extra={"path": path})
            raise EventStoreConnectionError(str(e)) from e

        if response.status_code >= 400:
            error_text = response.text[:500]
            logger.error(
                f"Event store error {response.status_code}: {error_text}",
                extra={"path": path, "status_code": response.status_code},
            )
            error_code = None
            try:
                error_code = response.json().get("code")
            except (ValueError, AttributeError):
                pass
            raise EventStoreAPIError(
                f"Event store returned {response.status_code}",
                details=error_text,
                status_code=response.status_code,
                error_code=error_code,
            )

        return response

    @staticmethod
    def _rows(response: httpx.Response, path: str) -> List[Dict[str, Any]]:
        try:
            payload = response.json() if response.content else []
        except ValueError as e:
            raise EventStoreDataError(f"Invalid JSON from {path}", details=str(e)) from e

        if not isinstance(payload, list):
            raise EventStoreDataError(
                f"Unexpected response from {path}", expected="list", got=type(payload).__name__,
            )
        return [row for row in payload if isinstance(row, dict)]

    async def _select(self, table: str, params: Params) -> List[Dict[str, Any]]:
        """Fetch every row of a filtered table, one Range page at a time."""
        limit = self.settings.page_limit
        rows: List[Dict[str, Any]] = []
        offset = 0

        while True:
            response = await self._request(
                "GET", f"/{table}",
                params=list(params),
                headers={"Range-Unit": "items", "Range": f"{offset}-{offset + limit - 1}"},
            )
            page = self._rows(response, table)
            rows.extend(page)
            if len(page) < limit:
                return rows
            offset += limit

    async def _rpc(self, function: str, body: Dict[str, Any]) -> List[Dict[str, Any]]:
        response = await self._request("POST", f"/rpc/{function}", json=body)
        return self._rows(response, function)

    # ═══════════════════════════════════════════════════════════════════════════
    # QUERIES
    # ═══════════════════════════════════════════════════════════════════════════

    async def query_goal_events(self, start: date, end: date) -> List[GoalEvent]:
        """Orders, users and SMS signups tagged with their civil date."""
        rows = await self._rpc(
            self.settings.goal_events_rpc,
            {"start_date": _iso_date(start), "end_date": _iso_date(end)},
        )
        events = [GoalEvent.from_row(row) for row in rows]
        return [event for event in events if event is not None]

    async def query_ad_spend(self, start: date, end: date) -> List[AdSpendRecord]:
        rows = await self._select(self.settings.ad_spend_table, [
            ("select", "*"),
            ("date", f"gte.{_iso_date(start)}"),
            ("date", f"lte.{_iso_date(end)}"),
        ])
        return [AdSpendRecord.from_row(row) for row in rows]

    async def query_follower_snapshots(
        self,
        from_date: date,
        to_date: date,
        platform: Optional[str] = None,
    ) -> List[FollowerSnapshot]:
        """
        Follower snapshots between two dates, ascending.

        Callers wanting growth on from_date's next day should pass the day
        before the visible range as from_date.
        """
        params = [
            ("select", "*"),
            ("date", f"gte.{_iso_date(from_date)}"),
            ("date", f"lte.{_iso_date(to_date)}"),
            ("order", "date.asc"),
        ]
        if platform:
            params.append(("platform", f"eq.{platform}"))
        rows = await self._select(self.settings.follower_table, params)
        snapshots = [FollowerSnapshot.from_row(row) for row in rows]
        return [snapshot for snapshot in snapshots if snapshot is not None]

    async def query_follower_count(self, platform: str, day: date) -> Optional[FollowerSnapshot]:
        response = await self._request("GET", f"/{self.settings.follower_table}", params=[
            ("select", "*"),
            ("platform", f"eq.{platform}"),
            ("date", f"eq.{_iso_date(day)}"),
            ("limit", "1"),
        ])
        rows = self._rows(response, self.settings.follower_table)
        return FollowerSnapshot.from_row(rows[0]) if rows else None

    async def query_signups(self, start_instant: datetime, end_instant: datetime) -> List[Signup]:
        """SMS signups with subscribed_at in [start_instant, end_instant)."""
        rows = await self._select(self.settings.signups_table, [
            ("select", "id,subscribed_at,utm_source"),
            ("subscribed_at", f"gte.{start_instant.isoformat()}"),
            ("subscribed_at", f"lt.{end_instant.isoformat()}"),
        ])
        return [Signup.from_row(row) for row in rows]

    async def query_campaign_goal_mappings(self) -> List[CampaignGoalMapping]:
        rows = await self._select(self.settings.mappings_table, [("select", "*")])
        return [CampaignGoalMapping.from_row(row) for row in rows]

    async def query_credential_status(self, platform: str) -> CredentialStatus:
        response = await self._request("GET", f"/{self.settings.credentials_table}", params=[
            ("select", "platform,is_connected,last_sync_at"),
            ("platform", f"eq.{platform}"),
            ("limit", "1"),
        ])
        rows = self._rows(response, self.settings.credentials_table)
        return CredentialStatus.from_row(platform, rows[0] if rows else None)
