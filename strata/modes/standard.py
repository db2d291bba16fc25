"""Standard mode: DuckDB-backed tiers with sentence-transformers embeddings."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from strata.modes.base import BaseMode, ModeConfig
from strata.storage.vector_index import DuckDBVectorIndex

if TYPE_CHECKING:
    from strata.storage.vector_index import VectorIndex

logger = logging.getLogger(__name__)


class StandardMode(BaseMode):
    """Standard mode.

    - Warm and cold tiers in separate DuckDB files
    - sentence-transformers embeddings (install the ``standard`` extra)
    """

    def get_mode_config(self) -> ModeConfig:
        return ModeConfig(
            name="standard",
            description="Standard mode: DuckDB tiers, sentence-transformers embeddings",
            persistent=True,
            index_backend="duckdb",
            embedding_backend="sentence-transformers",
        )

    def create_indexes(self) -> tuple[VectorIndex, VectorIndex]:
        dimension = self.config.embedding.dimension
        warm_path = self.config.warm.path
        cold_path = self.config.cold.path
        logger.info(f"Standard mode: warm tier at {warm_path}, cold tier at {cold_path}")
        return (
            DuckDBVectorIndex(warm_path, table="warm_entries", dimension=dimension),
            DuckDBVectorIndex(cold_path, table="cold_entries", dimension=dimension),
        )
