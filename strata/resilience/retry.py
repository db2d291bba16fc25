"""Bounded retry with exponential backoff."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, TypeVar

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """How many times to try an operation and how long to wait in between.

    ``max_attempts`` counts the first try, so ``max_attempts=1`` means no
    retry. The delay before attempt ``n + 1`` is
    ``min(base_delay * multiplier ** (n - 1), max_delay)``.
    """

    max_attempts: int = 3
    base_delay: float = 0.5
    multiplier: float = 2.0
    max_delay: float = 10.0

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.base_delay < 0 or self.max_delay < 0:
            raise ValueError("delays must be non-negative")

    def delay_for(self, attempt: int) -> float:
        """Backoff delay after the given (1-based) failed attempt."""
        return min(self.base_delay * self.multiplier ** (attempt - 1), self.max_delay)


class RetryExhaustedError(Exception):
    """Raised when every attempt allowed by a policy has failed."""

    def __init__(self, operation: str, attempts: int, last_error: BaseException) -> None:
        super().__init__(f"{operation} failed after {attempts} attempt(s): {last_error}")
        self.operation = operation
        self.attempts = attempts
        self.last_error = last_error


async def retry_async(
    func: Callable[..., Awaitable[T]],
    *args: Any,
    policy: RetryPolicy,
    operation: str = "operation",
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    **kwargs: Any,
) -> T:
    """Run ``func`` until it succeeds or the policy is exhausted.

    Args:
        func: Coroutine function to call
        policy: Attempt budget and backoff
        operation: Name used in logs and in the exhaustion error
        sleep: Awaitable sleep (injectable for tests)

    Raises:
        RetryExhaustedError: Chained from the last failure
    """
    for attempt in range(1, policy.max_attempts + 1):
        try:
            return await func(*args, **kwargs)
        except Exception as e:
            if attempt >= policy.max_attempts:
                raise RetryExhaustedError(operation, attempt, e) from e
            delay = policy.delay_for(attempt)
            logger.warning(
                f"{operation} attempt {attempt}/{policy.max_attempts} failed: {e}; "
                f"retrying in {delay:.2f}s"
            )
            await sleep(delay)

    raise AssertionError("unreachable")
