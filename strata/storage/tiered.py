"""Uniform get/put facade over the three memory tiers."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from strata.storage.models import Exchange, Tier

if TYPE_CHECKING:
    from strata.storage.cold_store import ColdStore
    from strata.storage.hot_store import HotStore
    from strata.storage.models import TierEntry
    from strata.storage.warm_store import WarmStore

logger = logging.getLogger(__name__)


class TieredStore:
    """Hot, warm and cold tiers behind one interface.

    - ``Tier.HOT`` reads return the session's chronological exchanges.
    - ``Tier.WARM`` / ``Tier.COLD`` reads return up to ``k`` entries, most
      relevant first, and degrade to ``[]`` on failure.
    """

    def __init__(self, hot: HotStore, warm: WarmStore, cold: ColdStore) -> None:
        self.hot = hot
        self.warm = warm
        self.cold = cold

    async def initialize(self) -> None:
        await self.warm.initialize()
        await self.cold.initialize()

    async def get(
        self,
        tier: Tier,
        query: str = "",
        k: int | None = None,
        session_id: str = "default",
        timeout: float | None = None,
    ) -> list[Exchange] | list[TierEntry]:
        """Read from a tier.

        Args:
            tier: Tier to read
            query: Query text (semantic tiers only)
            k: Result limit (history window for hot, top-k for warm/cold)
            session_id: Session whose hot buffer is read
            timeout: Read timeout in seconds (semantic tiers only; hot reads do no I/O)
        """
        if tier is Tier.HOT:
            return self.hot.read(session_id, k)
        if tier is Tier.WARM:
            return await self.warm.search(query, k, timeout)
        if tier is Tier.COLD:
            return await self.cold.search(query, k, timeout)
        raise ValueError(f"Unknown tier: {tier}")

    async def put(
        self,
        tier: Tier,
        item: Exchange | str,
        metadata: dict[str, Any] | None = None,
        session_id: str = "default",
    ) -> str:
        """Write to a tier.

        Hot writes take an ``Exchange``; semantic writes take text, which is
        embedded before it is stored.

        Returns:
            Id of the stored entry (the session id for hot writes)
        """
        if tier is Tier.HOT:
            if not isinstance(item, Exchange):
                raise TypeError("Hot tier stores Exchange objects")
            self.hot.append(session_id, item)
            return session_id

        content = item.as_text() if isinstance(item, Exchange) else item
        store = self.warm if tier is Tier.WARM else self.cold
        return await store.add(content, metadata)

    async def close(self) -> None:
        await self.warm.close()
        await self.cold.close()
        logger.info("Tiered store closed")
