"""Lite mode: in-memory tiers, no model downloads."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from strata.modes.base import BaseMode, ModeConfig
from strata.storage.vector_index import InMemoryVectorIndex

if TYPE_CHECKING:
    from strata.storage.vector_index import VectorIndex

logger = logging.getLogger(__name__)


class LiteMode(BaseMode):
    """Lite mode.

    - Warm and cold tiers held in process memory (lost on restart)
    - Feature-hashing embedder unless another one is configured
    - Ideal for development and testing
    """

    def get_mode_config(self) -> ModeConfig:
        return ModeConfig(
            name="lite",
            description="Lite mode: in-memory tiers, hashing embedder",
            persistent=False,
            index_backend="memory",
            embedding_backend="hashing",
        )

    def create_indexes(self) -> tuple[VectorIndex, VectorIndex]:
        dimension = self.config.embedding.dimension
        logger.info("Lite mode: warm and cold tiers in memory (not persisted)")
        return InMemoryVectorIndex(dimension), InMemoryVectorIndex(dimension)
