"""Circuit breaker guarding the semantic tiers.

A tier whose index keeps failing is opened so reads skip it immediately
instead of waiting out the per-tier timeout on every turn.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, TypeVar

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CircuitState(Enum):
    """Circuit breaker states."""

    CLOSED = "closed"  # Normal operation
    OPEN = "open"  # Blocking calls
    HALF_OPEN = "half_open"  # Probing recovery


@dataclass
class CircuitBreakerConfig:
    """Configuration for circuit breaker."""

    failure_threshold: int = 5  # Failures before opening
    success_threshold: int = 1  # Successes before closing
    reset_timeout: float = 30.0  # Seconds to wait before half-open


@dataclass
class CircuitBreakerStats:
    """Statistics for circuit breaker."""

    total_calls: int = 0
    successful_calls: int = 0
    failed_calls: int = 0
    rejected_calls: int = 0
    consecutive_failures: int = 0
    consecutive_successes: int = 0
    opened_at: float | None = None


class CircuitBreakerError(Exception):
    """Raised when circuit breaker is open and blocks a call."""

    def __init__(self, message: str, state: CircuitState) -> None:
        super().__init__(message)
        self.state = state


class CircuitBreaker:
    """Circuit breaker for one protected service.

    States:
        - CLOSED: calls pass through
        - OPEN: calls are rejected with ``CircuitBreakerError``
        - HALF_OPEN: after ``reset_timeout`` a single probe call is let through
    """

    def __init__(
        self,
        service_name: str,
        config: CircuitBreakerConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize circuit breaker.

        Args:
            service_name: Name of the protected service
            config: Circuit breaker configuration
            clock: Monotonic seconds source
        """
        self.service_name = service_name
        self.config = config or CircuitBreakerConfig()
        self._clock = clock
        self._state = CircuitState.CLOSED
        self._stats = CircuitBreakerStats()
        self._probe_in_flight = False
        self._lock = asyncio.Lock()

    @property
    def state(self) -> CircuitState:
        return self._state

    @property
    def stats(self) -> CircuitBreakerStats:
        return self._stats

    async def call(self, func: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> T:
        """Execute ``func`` with circuit breaker protection.

        While HALF_OPEN only one probe call is in flight; concurrent calls
        are rejected until it resolves.

        Raises:
            CircuitBreakerError: If circuit is open or a probe is in flight
            Exception: Whatever ``func`` raises (counted as a failure)
        """
        async with self._lock:
            if self._state == CircuitState.OPEN:
                opened_at = self._stats.opened_at or 0.0
                if self._clock() - opened_at >= self.config.reset_timeout:
                    logger.info(f"Circuit '{self.service_name}' entering HALF_OPEN state")
                    self._state = CircuitState.HALF_OPEN
                    self._stats.consecutive_successes = 0
                else:
                    self._reject()
            is_probe = self._state == CircuitState.HALF_OPEN
            if is_probe:
                if self._probe_in_flight:
                    self._reject()
                self._probe_in_flight = True

        try:
            result = await func(*args, **kwargs)
        except Exception:
            async with self._lock:
                self._record_failure()
            raise
        else:
            async with self._lock:
                self._record_success()
            return result
        finally:
            if is_probe:
                self._probe_in_flight = False

    def _reject(self) -> None:
        self._stats.rejected_calls += 1
        raise CircuitBreakerError(
            f"Circuit '{self.service_name}' is {self._state.value.upper()} - rejecting call",
            self._state,
        )

    def _record_success(self) -> None:
        self._stats.total_calls += 1
        self._stats.successful_calls += 1
        self._stats.consecutive_failures = 0
        self._stats.consecutive_successes += 1

        if (
            self._state == CircuitState.HALF_OPEN
            and self._stats.consecutive_successes >= self.config.success_threshold
        ):
            logger.info(f"Circuit '{self.service_name}' CLOSED (service recovered)")
            self._state = CircuitState.CLOSED
            self._stats.opened_at = None

    def _record_failure(self) -> None:
        self._stats.total_calls += 1
        self._stats.failed_calls += 1
        self._stats.consecutive_failures += 1
        self._stats.consecutive_successes = 0

        if self._state == CircuitState.HALF_OPEN:
            logger.warning(f"Circuit '{self.service_name}' HALF_OPEN probe failed - back to OPEN")
            self._open()
        elif (
            self._state == CircuitState.CLOSED
            and self._stats.consecutive_failures >= self.config.failure_threshold
        ):
            logger.error(
                f"Circuit '{self.service_name}' OPEN "
                f"({self._stats.consecutive_failures} consecutive failures)"
            )
            self._open()

    def _open(self) -> None:
        self._state = CircuitState.OPEN
        self._stats.opened_at = self._clock()

    def get_stats_summary(self) -> dict[str, Any]:
        """Get summary of circuit statistics."""
        return {
            "service_name": self.service_name,
            "state": self._state.value,
            "total_calls": self._stats.total_calls,
            "successful_calls": self._stats.successful_calls,
            "failed_calls": self._stats.failed_calls,
            "rejected_calls": self._stats.rejected_calls,
            "consecutive_failures": self._stats.consecutive_failures,
        }
