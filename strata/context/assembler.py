"""Context assembly across the three memory tiers."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from strata.models.schemas import ContextBundle
from strata.observability.metrics import record_tier_read_failure
from strata.observability.tracing import add_span_attributes, trace_operation
from strata.storage.models import Tier

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from strata.storage.tiered import TieredStore

logger = logging.getLogger(__name__)


class ContextAssembler:
    """Build a ``ContextBundle`` for one query.

    The hot, warm and cold reads are independent: they run concurrently,
    and a tier that fails contributes an empty section without affecting
    the others. The semantic tiers enforce ``tier_timeout`` inside their
    circuit breakers, so a hung index is counted as a failure there.
    """

    def __init__(
        self,
        store: TieredStore,
        history_window: int = 20,
        warm_k: int = 3,
        cold_k: int = 2,
        tier_timeout: float = 5.0,
    ) -> None:
        """Initialize context assembler.

        Args:
            store: Tiered store to read from
            history_window: Hot exchanges included (last N)
            warm_k: Warm entries retrieved by similarity to the query
            cold_k: Cold entries retrieved by similarity to the query
            tier_timeout: Per-tier read timeout in seconds
        """
        self.store = store
        self.history_window = history_window
        self.warm_k = warm_k
        self.cold_k = cold_k
        self.tier_timeout = tier_timeout

    async def assemble(self, query: str, session_id: str = "default") -> ContextBundle:
        tiers = (Tier.HOT, Tier.WARM, Tier.COLD)
        readers: dict[Tier, Callable[[], Awaitable[list[Any]]]] = {
            Tier.HOT: lambda: self.store.get(Tier.HOT, k=self.history_window, session_id=session_id),
            Tier.WARM: lambda: self.store.get(Tier.WARM, query, k=self.warm_k, timeout=self.tier_timeout),
            Tier.COLD: lambda: self.store.get(Tier.COLD, query, k=self.cold_k, timeout=self.tier_timeout),
        }

        with trace_operation("context.assemble", {"session_id": session_id}):
            results = await asyncio.gather(
                *(self._read(tier, readers[tier]) for tier in tiers),
                return_exceptions=True,
            )

            sections: dict[Tier, str] = {}
            for tier, result in zip(tiers, results, strict=True):
                if isinstance(result, BaseException):
                    if isinstance(result, asyncio.CancelledError):
                        raise result
                    logger.warning(
                        f"{tier.value} tier unavailable, continuing without it: "
                        f"{type(result).__name__}: {result}"
                    )
                    record_tier_read_failure(tier.value)
                    sections[tier] = ""
                else:
                    sections[tier] = _render_items(tier, result)

            bundle = ContextBundle(
                hot=sections[Tier.HOT],
                warm=sections[Tier.WARM],
                cold=sections[Tier.COLD],
            )
            add_span_attributes({"context.token_count": bundle.token_count})

        logger.debug(f"Assembled context for session {session_id}: ~{bundle.token_count} tokens")
        return bundle

    async def _read(self, tier: Tier, reader: Callable[[], Awaitable[list[Any]]]) -> list[Any]:
        with trace_operation("tier.read", {"tier": tier.value}):
            return await reader()


def _render_items(tier: Tier, items: list[Any]) -> str:
    if tier is Tier.HOT:
        return "\n\n".join(exchange.as_text() for exchange in items)
    return "\n".join(entry.content for entry in items)
