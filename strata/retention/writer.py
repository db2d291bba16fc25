"""Background archival writes.

Writes to the warm and cold tiers never block a turn. Each write runs as a
tracked ``asyncio.Task`` under a per-tier ``RetryPolicy``; a write that
exhausts its attempts is logged, counted and dropped.
"""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from typing import TYPE_CHECKING, Any

from strata.observability.metrics import record_archival_drop, record_archival_write
from strata.resilience.retry import RetryExhaustedError, RetryPolicy, retry_async
from strata.storage.models import Tier

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

DEFAULT_POLICIES: dict[Tier, RetryPolicy] = {
    Tier.WARM: RetryPolicy(max_attempts=1),
    Tier.COLD: RetryPolicy(max_attempts=3, base_delay=0.5),
}


class BackgroundWriter:
    """Fire-and-track writer with bounded retry per tier."""

    def __init__(
        self,
        policies: dict[Tier, RetryPolicy] | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        """Initialize background writer.

        Args:
            policies: Retry policy per tier (defaults: warm 1 attempt, cold 3)
            sleep: Backoff sleep (injectable for tests)
        """
        self.policies = {**DEFAULT_POLICIES, **(policies or {})}
        self._sleep = sleep
        self._tasks: set[asyncio.Task[str | None]] = set()
        self.written: Counter[str] = Counter()
        self.dropped: Counter[str] = Counter()

    def schedule(
        self,
        tier: Tier,
        write: Callable[..., Awaitable[str]],
        *args: Any,
        **kwargs: Any,
    ) -> asyncio.Task[str | None]:
        """Start a write in the background and return its task handle.

        The task resolves to the stored entry id, or ``None`` if the write
        was dropped.
        """
        task = asyncio.create_task(
            self._run(tier, write, *args, **kwargs),
            name=f"strata-{tier.value}-write",
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _run(
        self,
        tier: Tier,
        write: Callable[..., Awaitable[str]],
        *args: Any,
        **kwargs: Any,
    ) -> str | None:
        policy = self.policies.get(tier, RetryPolicy(max_attempts=1))
        try:
            entry_id = await retry_async(
                write,
                *args,
                policy=policy,
                operation=f"{tier.value} write",
                sleep=self._sleep,
                **kwargs,
            )
        except RetryExhaustedError as e:
            logger.error(f"Dropping {tier.value} archival write: {e}")
            record_archival_write(tier.value, "error")
            record_archival_drop(tier.value)
            self.dropped[tier.value] += 1
            return None

        record_archival_write(tier.value, "success")
        self.written[tier.value] += 1
        return entry_id

    @property
    def pending(self) -> int:
        """Writes scheduled but not yet finished."""
        return sum(1 for task in self._tasks if not task.done())

    async def drain(self) -> None:
        """Wait for every scheduled write, including ones scheduled while draining."""
        while True:
            pending = [task for task in self._tasks if not task.done()]
            if not pending:
                return
            await asyncio.gather(*pending, return_exceptions=True)

    def stats(self) -> dict[str, Any]:
        return {
            "pending": self.pending,
            "written": dict(self.written),
            "dropped": dict(self.dropped),
        }
