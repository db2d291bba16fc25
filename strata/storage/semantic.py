"""Semantic tier shared by the warm and cold stores.

A semantic store pairs an ``Embedder`` with a ``VectorIndex``. Reads are
fail-open: any failure (embedding, index, open circuit) is logged, counted
and turned into an empty result so a degraded tier never blocks a turn.
Writes raise, leaving retry policy to the background writer.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from strata.observability.metrics import record_tier_read_failure
from strata.resilience.circuit_breaker import CircuitBreaker, CircuitBreakerConfig
from strata.storage.models import Tier, TierEntry

if TYPE_CHECKING:
    from strata.processing.embeddings import Embedder
    from strata.storage.vector_index import VectorIndex

logger = logging.getLogger(__name__)


class SemanticStore:
    """Embedding-backed tier over a vector index."""

    tier: Tier = Tier.WARM
    default_k: int = 3

    def __init__(
        self,
        index: VectorIndex,
        embedder: Embedder,
        breaker: CircuitBreaker | None = None,
    ) -> None:
        """Initialize semantic store.

        Args:
            index: Vector index holding the tier's entries
            embedder: Embedder used for both writes and queries
            breaker: Circuit breaker guarding reads (one per tier by default)
        """
        if index.dimension != embedder.dimension:
            raise ValueError(
                f"{self.tier.value} index dimension {index.dimension} does not match "
                f"embedder dimension {embedder.dimension}"
            )
        self.index = index
        self.embedder = embedder
        self.breaker = breaker or CircuitBreaker(
            f"{self.tier.value}_store", CircuitBreakerConfig()
        )

    async def initialize(self) -> None:
        await self.embedder.initialize()
        await self.index.initialize()
        logger.info(f"{self.tier.value.capitalize()} store initialized")

    async def add(self, content: str, metadata: dict[str, Any] | None = None) -> str:
        """Embed ``content`` and append it to the index.

        Returns:
            Id of the new entry

        Raises:
            EmbeddingError: If the embedding cannot be produced
            ValueError: If the embedding dimension does not match the index
        """
        embedding = await self.embedder.embed(content)
        entry = TierEntry(content=content, embedding=embedding, metadata=dict(metadata or {}))
        return await self.index.upsert(entry)

    async def search(
        self, query: str, k: int | None = None, timeout: float | None = None
    ) -> list[TierEntry]:
        """Up to ``k`` entries most relevant to ``query``; ``[]`` on any failure.

        ``timeout`` bounds the embed-and-search inside the circuit breaker, so
        a hung index counts as a failure and eventually opens the circuit.
        """
        k = self.default_k if k is None else k
        if k <= 0:
            return []
        try:
            results = await self.breaker.call(self._search, query, k, timeout)
        except Exception as e:
            logger.warning(
                f"{self.tier.value} tier read failed, continuing without it: "
                f"{type(e).__name__}: {e}"
            )
            record_tier_read_failure(self.tier.value)
            return []
        return [entry for entry, _score in results]

    async def _search(
        self, query: str, k: int, timeout: float | None
    ) -> list[tuple[TierEntry, float]]:
        async with asyncio.timeout(timeout):
            embedding = await self.embedder.embed(query)
            return await self.index.similarity_search(embedding, k)

    async def session_entries(self, session_id: str, limit: int = 50) -> list[TierEntry]:
        """A session's entries in chronological order."""
        return await self.index.session_entries(session_id, limit)

    async def count(self) -> int:
        return await self.index.count()

    async def close(self) -> None:
        await self.index.close()
