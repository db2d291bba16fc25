"""Base mode interface for Strata operational modes."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

from pydantic import BaseModel

from strata.backends.openai_compat import OpenAICompatibleBackend
from strata.processing.embeddings import create_embedder
from strata.storage.cold_store import ColdStore
from strata.storage.hot_store import HotStore
from strata.storage.warm_store import WarmStore

if TYPE_CHECKING:
    from strata.backends.base import ChatBackend
    from strata.config import StrataConfig
    from strata.processing.embeddings import Embedder
    from strata.storage.vector_index import VectorIndex


class ModeConfig(BaseModel):
    """Configuration for a specific operational mode.

    Attributes:
        name: Mode name (lite, standard)
        description: Human-readable description
        persistent: Whether warm/cold tiers survive a restart
        index_backend: Vector index implementation (memory, duckdb)
        embedding_backend: Default embedder (hashing, sentence-transformers)
    """

    name: str
    description: str
    persistent: bool
    index_backend: str
    embedding_backend: str


class BaseMode(ABC):
    """Base class for operational modes.

    Each mode decides how the semantic tiers are stored and embedded; the
    hot tier and the chat backend are the same everywhere.

    Attributes:
        config: Strata configuration
        mode_config: Typed mode configuration
    """

    def __init__(self, config: StrataConfig) -> None:
        self.config = config
        self.mode_config = self.get_mode_config()

    @abstractmethod
    def get_mode_config(self) -> ModeConfig:
        """Get mode-specific configuration."""

    @abstractmethod
    def create_indexes(self) -> tuple[VectorIndex, VectorIndex]:
        """Create the (warm, cold) vector indexes."""

    def create_embedder(self) -> Embedder:
        """Embedder from config, falling back to the mode's default backend."""
        embedding = self.config.embedding
        return create_embedder(
            embedding.backend or self.mode_config.embedding_backend,
            embedding.model,
            embedding.dimension,
        )

    def create_stores(self) -> tuple[HotStore, WarmStore, ColdStore]:
        """Build the hot, warm and cold stores (not yet initialized)."""
        embedder = self.create_embedder()
        warm_index, cold_index = self.create_indexes()
        hot = HotStore(
            token_ceiling=self.config.hot.token_ceiling,
            history_window=self.config.hot.history_window,
        )
        return hot, WarmStore(warm_index, embedder), ColdStore(cold_index, embedder)

    def create_backend(self) -> ChatBackend:
        backend = self.config.backend
        return OpenAICompatibleBackend(
            base_url=backend.base_url,
            api_key=backend.api_key,
            timeout=backend.timeout_seconds,
        )

    @property
    def requires_external_services(self) -> bool:
        """Whether the mode needs anything beyond the chat backend."""
        return self.mode_config.embedding_backend != "hashing"

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(persistent={self.mode_config.persistent}, "
            f"index={self.mode_config.index_backend}, "
            f"embedding={self.config.embedding.backend or self.mode_config.embedding_backend})"
        )
