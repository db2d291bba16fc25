"""Embedding services for the semantic tiers.

Two embedders share one small interface:

- ``SentenceTransformerEmbedder`` runs a sentence-transformers model locally
  (loaded lazily, inference in an executor thread so the event loop is not
  blocked).
- ``HashingEmbedder`` builds a feature-hashed bag-of-words vector. It is
  lexical rather than semantic, needs no model download, and is selected
  explicitly for lite mode and offline development.

Every embedder produces vectors of one fixed dimensionality; anything else is
rejected with ``EmbeddingError`` so the warm and cold indexes never receive a
mismatched vector.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
import re
from typing import Any, Protocol, runtime_checkable

import numpy as np

logger = logging.getLogger(__name__)

_TOKEN_RE = re.compile(r"[a-z0-9]+")


class EmbeddingError(Exception):
    """Raised when an embedding cannot be produced."""


@runtime_checkable
class Embedder(Protocol):
    """Text to fixed-size vector."""

    dimension: int

    async def initialize(self) -> None: ...

    async def embed(self, text: str) -> list[float]: ...


class SentenceTransformerEmbedder:
    """Local embedding generation with sentence-transformers.

    Attributes:
        model_name: HuggingFace model name
        dimension: Expected output dimensionality
    """

    def __init__(self, model_name: str = "all-mpnet-base-v2", dimension: int = 768) -> None:
        """Initialize embedding service.

        Args:
            model_name: HuggingFace model name (default: all-mpnet-base-v2, 768 dims)
            dimension: Expected embedding dimensionality
        """
        self.model_name = model_name
        self.dimension = dimension
        self._model: Any = None
        self._lock = asyncio.Lock()

        logger.info(f"Embedding service created with model: {model_name}")

    async def initialize(self) -> None:
        """Load the model once.

        Raises:
            EmbeddingError: If sentence-transformers is missing or the model fails to load
        """
        async with self._lock:
            if self._model is not None:
                return

            try:
                from sentence_transformers import SentenceTransformer
            except ImportError as e:
                raise EmbeddingError(
                    "sentence-transformers is not installed. "
                    "Install with: pip install 'strata[standard]'"
                ) from e

            logger.info(f"Loading embedding model: {self.model_name}")
            loop = asyncio.get_running_loop()
            try:
                self._model = await loop.run_in_executor(None, SentenceTransformer, self.model_name)
            except Exception as e:
                raise EmbeddingError(f"Failed to load embedding model {self.model_name}: {e}") from e

            logger.info(f"Embedding model loaded: {self.model_name} (dim={self.dimension})")

    async def embed(self, text: str) -> list[float]:
        """Generate embedding for a single text.

        Raises:
            EmbeddingError: On model failure or dimensionality mismatch
        """
        if self._model is None:
            await self.initialize()

        loop = asyncio.get_running_loop()
        try:
            vector = await loop.run_in_executor(None, self._model.encode, text)
        except Exception as e:
            raise EmbeddingError(f"Embedding failed: {e}") from e

        return _checked(np.asarray(vector, dtype=np.float32), self.dimension)


class HashingEmbedder:
    """Feature-hashed bag-of-words embedder.

    Each lowercase alphanumeric token is hashed (SHA-256, stable across
    processes) into one of ``dimension`` buckets with a +/-1 sign; the
    result is L2-normalised. Texts sharing words land close together under
    cosine similarity.
    """

    def __init__(self, dimension: int = 768) -> None:
        self.dimension = dimension

    async def initialize(self) -> None:
        return None

    async def embed(self, text: str) -> list[float]:
        vector = np.zeros(self.dimension, dtype=np.float32)
        for token in _TOKEN_RE.findall(text.lower()):
            digest = hashlib.sha256(token.encode("utf-8")).digest()
            bucket = int.from_bytes(digest[:4], "little") % self.dimension
            sign = 1.0 if digest[4] & 1 else -1.0
            vector[bucket] += sign

        norm = float(np.linalg.norm(vector))
        if norm > 0:
            vector /= norm
        else:
            # Empty or punctuation-only text still needs a non-zero vector
            vector[0] = 1.0

        return _checked(vector, self.dimension)


def _checked(vector: np.ndarray, dimension: int) -> list[float]:
    """Validate dimensionality and convert to a plain list."""
    if vector.ndim != 1 or vector.shape[0] != dimension:
        raise EmbeddingError(
            f"Embedding dimension mismatch: expected {dimension}, got {tuple(vector.shape)}"
        )
    return vector.tolist()


def create_embedder(backend: str, model_name: str, dimension: int) -> Embedder:
    """Create the embedder configured for a deployment.

    Args:
        backend: ``sentence-transformers`` or ``hashing``
        model_name: Model name for sentence-transformers
        dimension: Output dimensionality

    Raises:
        ValueError: If backend is not recognized
    """
    if backend == "sentence-transformers":
        return SentenceTransformerEmbedder(model_name=model_name, dimension=dimension)
    if backend == "hashing":
        return HashingEmbedder(dimension=dimension)
    raise ValueError(f"Unknown embedding backend: {backend}. Valid backends: sentence-transformers, hashing")
