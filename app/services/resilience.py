"""
Resilience patterns for external calls.

Provides retry logic for language-model calls and a circuit breaker that
stops hammering the search API once it is clearly down.
"""

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from functools import wraps
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


# -----------------------------------------------------------------------------
# Circuit Breaker
# -----------------------------------------------------------------------------


class CircuitState(str, Enum):
    """Circuit breaker states."""

    CLOSED = "closed"  # Normal operation, requests pass through
    OPEN = "open"  # Failing, requests are blocked
    HALF_OPEN = "half_open"  # Testing if service recovered


class CircuitOpenError(Exception):
    """Raised when circuit breaker is open."""

    pass


@dataclass
class CircuitBreaker:
    """
    Circuit breaker to prevent cascade failures.

    When a service fails repeatedly, the circuit opens and blocks further
    requests for a cooldown period. After the cooldown, it enters half-open
    state and allows a single request to test if the service recovered.

    Usage:
        breaker = CircuitBreaker(name="brave", failure_threshold=5)
        results = await breaker.call(self._request, query)
    """

    name: str
    failure_threshold: int = 5
    reset_timeout_seconds: int = 60
    half_open_max_calls: int = 1

    _state: CircuitState = field(default=CircuitState.CLOSED, init=False)
    _failure_count: int = field(default=0, init=False)
    _last_failure_time: float = field(default=0, init=False)
    _half_open_calls: int = field(default=0, init=False)

    @property
    def state(self) -> CircuitState:
        """Get current circuit state, checking for timeout."""
        if self._state == CircuitState.OPEN:
            if time.time() - self._last_failure_time >= self.reset_timeout_seconds:
                return CircuitState.HALF_OPEN
        return self._state

    async def call(self, func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """
        Await ``func(*args, **kwargs)`` through the circuit breaker.

        State changes happen between awaits on a single event loop, so no lock
        is needed.

        Raises:
            CircuitOpenError: If circuit is open
            Exception: Any exception from the wrapped function
        """
        current_state = self.state

        if current_state == CircuitState.OPEN:
            raise CircuitOpenError(
                f"Circuit '{self.name}' is open. Will retry after {self.reset_timeout_seconds}s cooldown."
            )

        if current_state == CircuitState.HALF_OPEN:
            if self._half_open_calls >= self.half_open_max_calls:
                raise CircuitOpenError(f"Circuit '{self.name}' is half-open with max test calls reached.")
            self._half_open_calls += 1

        try:
            result = await func(*args, **kwargs)
        except Exception:
            self._failure_count += 1
            self._last_failure_time = time.time()

            if current_state == CircuitState.HALF_OPEN:
                self._state = CircuitState.OPEN
                self._half_open_calls = 0
                logger.warning(f"Circuit '{self.name}' reopened after half-open failure")
            elif self._failure_count >= self.failure_threshold:
                self._state = CircuitState.OPEN
                logger.warning(
                    f"Circuit '{self.name}' opened after {self._failure_count} failures. "
                    f"Cooldown: {self.reset_timeout_seconds}s"
                )
            raise

        self._failure_count = 0
        self._half_open_calls = 0
        if self._state != CircuitState.CLOSED:
            logger.info(f"Circuit '{self.name}' closed after successful call")
        self._state = CircuitState.CLOSED
        return result

    def reset(self) -> None:
        """Manually reset the circuit breaker."""
        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._half_open_calls = 0
        logger.info(f"Circuit '{self.name}' manually reset")


# -----------------------------------------------------------------------------
# Retry Decorator
# -----------------------------------------------------------------------------


def with_retry(
    max_attempts: int = 3,
    min_wait: float = 1.0,
    max_wait: float = 30.0,
    retry_exceptions: tuple[type[Exception], ...] = (Exception,),
) -> Callable:
    """
    Decorator for async functions with exponential backoff retry.

    Args:
        max_attempts: Maximum number of attempts
        min_wait: Minimum wait time between retries (seconds)
        max_wait: Maximum wait time between retries (seconds)
        retry_exceptions: Tuple of exception types to retry on

    Usage:
        @with_retry(max_attempts=3, retry_exceptions=(LLMTimeoutError, LLMRateLimitError))
        async def complete(prompt: str) -> str:
            ...
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            for attempt in range(1, max_attempts + 1):
                try:
                    return await func(*args, **kwargs)
                except retry_exceptions as e:
                    if attempt == max_attempts:
                        logger.error(f"{func.__name__} failed after {max_attempts} attempts: {e}")
                        raise

                    wait_time = min(min_wait * (2 ** (attempt - 1)), max_wait)
                    logger.warning(f"{func.__name__} attempt {attempt} failed: {e}. Retrying in {wait_time:.1f}s...")
                    await asyncio.sleep(wait_time)

            raise RuntimeError(f"{func.__name__} failed without exception")

        return wrapper

    return decorator


# -----------------------------------------------------------------------------
# LLM-Specific Errors
# -----------------------------------------------------------------------------


class LLMRateLimitError(Exception):
    """Raised when LLM API returns rate limit error."""

    pass


class LLMTimeoutError(Exception):
    """Raised when LLM API call times out."""

    pass


class LLMServiceError(Exception):
    """Raised when LLM API returns service error (5xx)."""

    pass


LLM_RETRY_EXCEPTIONS = (LLMRateLimitError, LLMTimeoutError, LLMServiceError)


def llm_retry(func: Callable[..., T]) -> Callable[..., T]:
    """
    Decorator with LLM-optimized retry settings.

    Uses:
    - 3 attempts
    - Exponential backoff: 2s, 4s (capped at 30s)
    - Retries on rate limit, timeout, and service errors
    """
    return with_retry(
        max_attempts=3,
        min_wait=2.0,
        max_wait=30.0,
        retry_exceptions=LLM_RETRY_EXCEPTIONS,
    )(func)
