"""Text processing helpers: embeddings and token estimation."""

from strata.processing.embeddings import (
    Embedder,
    EmbeddingError,
    HashingEmbedder,
    SentenceTransformerEmbedder,
    create_embedder,
)
from strata.processing.tokens import estimate_tokens

__all__ = [
    "Embedder",
    "EmbeddingError",
    "HashingEmbedder",
    "SentenceTransformerEmbedder",
    "create_embedder",
    "estimate_tokens",
]
