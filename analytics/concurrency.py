"""
Fan-out/fan-in reads and latest-request-wins cancellation.

Usage:
    gate = RequestGate()
    token = gate.begin()
    results = await gather_reads({
        "goal_events": store.query_goal_events(start, end),
        "ad_spend": store.query_ad_spend(start, end),
    })
    token.raise_if_cancelled()
"""
import asyncio
from typing import Any, Awaitable, Dict, Optional

from analytics.exceptions import AnalyticsFetchError, StaleRequestError
from analytics.observability import generate_correlation_id, get_logger

logger = get_logger(__name__)


class CancellationToken:
    """Marks one request; cancelled once a newer request starts."""

    def __init__(self, request_id: Optional[str] = None):
        self.request_id = request_id or generate_correlation_id()
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise StaleRequestError(self.request_id)

    def __repr__(self) -> str:
        state = "cancelled" if self._cancelled else "active"
        return f"CancellationToken({self.request_id}, {state})"


class RequestGate:
    """
    Hands out one token per request and cancels the previous one.

    Only the token from the latest begin() is current, so a slow earlier
    response can never overwrite a newer result.
    """

    def __init__(self):
        self._current: Optional[CancellationToken] = None

    def begin(self, request_id: Optional[str] = None) -> CancellationToken:
        if self._current is not None and not self._current.cancelled:
            logger.debug("Superseding in-flight analytics request", extra={"stale": self._current.request_id})
            self._current.cancel()
        self._current = CancellationToken(request_id)
        return self._current

    def is_current(self, token: CancellationToken) -> bool:
        return token is self._current and not token.cancelled


async def gather_reads(reads: Dict[str, Awaitable[Any]]) -> Dict[str, Any]:
    """
    Await independent reads concurrently and return results by name.

    Every read runs to completion; if any failed, one AnalyticsFetchError
    naming all failures is raised and no partial results are returned.
    """
    names = list(reads)
    outcomes = await asyncio.gather(*reads.values(), return_exceptions=True)

    failures = {}
    for name, outcome in zip(names, outcomes):
        if isinstance(outcome, asyncio.CancelledError):
            raise outcome
        if isinstance(outcome, Exception):
            logger.error(f"Read '{name}' failed: {outcome}", extra={"read": name})
            failures[name] = outcome

    if failures:
        raise AnalyticsFetchError(failures)
    return dict(zip(names, outcomes))
