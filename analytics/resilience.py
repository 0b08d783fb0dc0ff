"""
Resilience patterns for the event store client.

Provides:
- Exponential backoff retry
- Circuit breaker
"""
import asyncio
import random
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Tuple, Type

from analytics.observability import get_logger

logger = get_logger(__name__)


class CircuitState(Enum):
    """Circuit breaker states."""
    CLOSED = "closed"        # Normal operation
    OPEN = "open"            # Failing, reject requests
    HALF_OPEN = "half_open"  # Testing recovery


@dataclass
class RetryConfig:
    """Configuration for retry behavior."""
    max_attempts: int = 3
    base_delay: float = 1.0  # seconds
    max_delay: float = 30.0  # seconds
    exponential_base: float = 2.0
    jitter: float = 0.1  # random jitter factor

    def delay_for(self, attempt: int) -> float:
        """Backoff delay after the given (1-based) failed attempt."""
        delay = min(self.base_delay * (self.exponential_base ** (attempt - 1)), self.max_delay)
        return delay + delay * self.jitter * random.random()


@dataclass
class CircuitBreakerConfig:
    """Configuration for circuit breaker."""
    failure_threshold: int = 5      # consecutive failures before opening
    recovery_timeout: float = 60.0  # seconds before trying again


class CircuitOpenError(Exception):
    """Raised when circuit breaker is open."""
    pass


@dataclass
class CircuitBreaker:
    """
    Circuit breaker shared by every call to one upstream.

    CLOSED passes requests through, OPEN rejects them until the recovery
    timeout elapses, then a single HALF_OPEN probe decides which way to go.
    """
    config: CircuitBreakerConfig = field(default_factory=CircuitBreakerConfig)
    state: CircuitState = CircuitState.CLOSED
    failure_count: int = 0
    last_failure_time: float = 0
    _probe_in_flight: bool = field(default=False, init=False, repr=False)

    def __post_init__(self):
        self._lock = asyncio.Lock()

    async def can_execute(self) -> bool:
        """Check if request can proceed."""
        async with self._lock:
            if self.state == CircuitState.CLOSED:
                return True

            if self.state == CircuitState.OPEN:
                if time.time() - self.last_failure_time < self.config.recovery_timeout:
                    return False
                logger.info("Circuit breaker entering half-open state")
                self.state = CircuitState.HALF_OPEN
                self._probe_in_flight = False

            if self._probe_in_flight:
                return False
            self._probe_in_flight = True
            return True

    async def record_success(self) -> None:
        """Record successful request."""
        async with self._lock:
            if self.state == CircuitState.HALF_OPEN:
                logger.info("Circuit breaker closing after successful probe")
            self.state = CircuitState.CLOSED
            self.failure_count = 0
            self._probe_in_flight = False

    async def record_failure(self) -> None:
        """Record failed request."""
        async with self._lock:
            self.failure_count += 1
            self.last_failure_time = time.time()
            self._probe_in_flight = False

            if self.state == CircuitState.HALF_OPEN:
                logger.warning("Circuit breaker re-opening after failed probe")
                self.state = CircuitState.OPEN
            elif self.failure_count >= self.config.failure_threshold:
                if self.state != CircuitState.OPEN:
                    logger.warning(f"Circuit breaker opening after {self.failure_count} failures")
                self.state = CircuitState.OPEN

    @property
    def is_open(self) -> bool:
        return self.state == CircuitState.OPEN


async def retry_with_backoff(
    func: Callable[..., Awaitable[Any]],
    *args,
    config: Optional[RetryConfig] = None,
    retryable_exceptions: Tuple[Type[BaseException], ...] = (Exception,),
    **kwargs
) -> Any:
    """
    Execute an async function with exponential backoff retry.

    Raises:
        The last exception if all attempts fail
    """
    config = config or RetryConfig()

    for attempt in range(1, config.max_attempts + 1):
        try:
            return await func(*args, **kwargs)
        except retryable_exceptions as e:
            if attempt == config.max_attempts:
                logger.error(
                    f"All {config.max_attempts} retry attempts failed",
                    extra={"error": str(e)}
                )
                raise

            delay = config.delay_for(attempt)
            logger.warning(
                f"Attempt {attempt} failed, retrying in {delay:.2f}s",
                extra={"attempt": attempt, "delay": delay, "error": str(e)}
            )
            await asyncio.sleep(delay)
