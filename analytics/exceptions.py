"""
Custom exception hierarchy for the analytics engine.

Exception Hierarchy:
    EventStoreError (base)
    ├── EventStoreConnectionError  - Network/timeout issues (recoverable)
    ├── EventStoreAPIError         - Store returned error response
    └── EventStoreDataError        - Invalid response structure

    AnalyticsFetchError            - One or more fan-out reads failed
    StaleRequestError              - Request superseded by a newer one
    ValidationError                - Input validation failed
"""
from typing import Any, Dict, Optional


class EventStoreError(Exception):
    """Base exception for all event store errors."""

    def __init__(self, message: str, details: str = None):
        self.message = message
        self.details = details
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


class EventStoreConnectionError(EventStoreError):
    """
    Network-related errors (timeout, connection refused, etc.).

    These are typically recoverable with retry.
    """

    def __init__(self, message: str, details: str = None, retry_after: int = None):
        super().__init__(message, details)
        self.retry_after = retry_after


class EventStoreAPIError(EventStoreError):
    """
    Store returned an error response.

    Check status_code and error_code for specifics.
    """

    def __init__(
        self,
        message: str,
        details: str = None,
        status_code: int = None,
        error_code: str = None,
    ):
        super().__init__(message, details)
        self.status_code = status_code
        self.error_code = error_code


class EventStoreDataError(EventStoreError):
    """Store response has a shape we don't understand."""

    def __init__(self, message: str, details: str = None, expected: str = None, got: str = None):
        super().__init__(message, details)
        self.expected = expected
        self.got = got


class AnalyticsFetchError(Exception):
    """
    Aggregate failure of the concurrent analytics reads.

    Raised once per request, naming every read that failed, so the caller
    never sees buckets built from a partial set of inputs.
    """

    def __init__(self, failures: Dict[str, BaseException]):
        self.failures = dict(failures)
        names = ", ".join(sorted(self.failures))
        super().__init__(f"Failed to load analytics data ({names})")

    @property
    def retryable(self) -> bool:
        """True when every failure was a connection-level problem."""
        return all(
            isinstance(exc, EventStoreConnectionError)
            for exc in self.failures.values()
        )


class StaleRequestError(Exception):
    """A newer analytics request superseded this one."""

    def __init__(self, request_id: Optional[str] = None):
        self.request_id = request_id
        message = "Analytics request superseded by a newer request"
        if request_id:
            message = f"{message} ({request_id})"
        super().__init__(message)


class ValidationError(Exception):
    """
    Input validation failed.

    Used for validating operator input before any reads are issued.
    """

    def __init__(self, field: str, message: str, value: Any = None):
        self.field = field
        self.message = message
        self.value = value
        super().__init__(f"{field}: {message}")

    def __str__(self) -> str:
        if self.value is not None:
            return f"{self.field}: {self.message} (got: {self.value!r})"
        return f"{self.field}: {self.message}"
