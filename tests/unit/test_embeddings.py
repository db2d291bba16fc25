"""Tests for embedding services and token estimation."""

from __future__ import annotations

import sys

import numpy as np
import pytest

from strata.processing.embeddings import (
    Embedder,
    EmbeddingError,
    HashingEmbedder,
    SentenceTransformerEmbedder,
    create_embedder,
)
from strata.processing.tokens import estimate_tokens


class TestHashingEmbedder:
    """Test suite for HashingEmbedder."""

    @pytest.mark.asyncio
    async def test_dimension_and_norm(self) -> None:
        """Test vectors have the configured size and unit length."""
        embedder = HashingEmbedder(dimension=32)

        vector = await embedder.embed("The quick brown fox")

        assert len(vector) == 32
        assert np.linalg.norm(vector) == pytest.approx(1.0, abs=1e-6)

    @pytest.mark.asyncio
    async def test_deterministic(self) -> None:
        """Test the same text always embeds the same way."""
        a = await HashingEmbedder(64).embed("favorite color is blue")
        b = await HashingEmbedder(64).embed("favorite color is blue")

        assert a == b

    @pytest.mark.asyncio
    async def test_shared_words_score_higher(self) -> None:
        """Test lexical overlap shows up as cosine similarity."""
        embedder = HashingEmbedder(256)
        query = np.array(await embedder.embed("what is my favorite color"))
        related = np.array(await embedder.embed("my favorite color is blue"))
        unrelated = np.array(await embedder.embed("quantum entanglement mathematics"))

        assert float(query @ related) > float(query @ unrelated)

    @pytest.mark.asyncio
    async def test_empty_text_is_nonzero(self) -> None:
        """Test text without tokens still yields a usable vector."""
        vector = await HashingEmbedder(8).embed("?!")

        assert vector[0] == 1.0
        assert sum(abs(v) for v in vector) == 1.0

    def test_satisfies_protocol(self) -> None:
        """Test the hashing embedder is an Embedder."""
        assert isinstance(HashingEmbedder(8), Embedder)


class TestSentenceTransformerEmbedder:
    """Test suite for SentenceTransformerEmbedder without loading a model."""

    @pytest.mark.asyncio
    async def test_missing_dependency_raises(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Test a missing sentence-transformers install is reported, not hidden."""
        monkeypatch.setitem(sys.modules, "sentence_transformers", None)
        embedder = SentenceTransformerEmbedder(dimension=8)

        with pytest.raises(EmbeddingError, match="not installed"):
            await embedder.initialize()

    @pytest.mark.asyncio
    async def test_dimension_mismatch_raises(self) -> None:
        """Test a model producing the wrong size is rejected."""

        class FakeModel:
            def encode(self, text: str) -> np.ndarray:
                return np.zeros(4, dtype=np.float32)

        embedder = SentenceTransformerEmbedder(dimension=8)
        embedder._model = FakeModel()

        with pytest.raises(EmbeddingError, match="dimension mismatch"):
            await embedder.embed("hello")

    @pytest.mark.asyncio
    async def test_encode_failure_raises(self) -> None:
        """Test model errors surface as EmbeddingError."""

        class BrokenModel:
            def encode(self, text: str) -> np.ndarray:
                raise RuntimeError("CUDA out of memory")

        embedder = SentenceTransformerEmbedder(dimension=8)
        embedder._model = BrokenModel()

        with pytest.raises(EmbeddingError, match="Embedding failed"):
            await embedder.embed("hello")


class TestCreateEmbedder:
    """Test suite for create_embedder."""

    def test_hashing(self) -> None:
        embedder = create_embedder("hashing", "unused", 16)

        assert isinstance(embedder, HashingEmbedder)
        assert embedder.dimension == 16

    def test_sentence_transformers(self) -> None:
        embedder = create_embedder("sentence-transformers", "all-MiniLM-L6-v2", 384)

        assert isinstance(embedder, SentenceTransformerEmbedder)
        assert embedder.model_name == "all-MiniLM-L6-v2"

    def test_unknown_backend(self) -> None:
        """Test unknown backends are rejected."""
        with pytest.raises(ValueError, match="Unknown embedding backend"):
            create_embedder("word2vec", "x", 16)


class TestEstimateTokens:
    """Test suite for estimate_tokens."""

    @pytest.mark.parametrize(
        ("text", "expected"),
        [("", 0), ("a", 1), ("abcd", 1), ("abcde", 2), ("x" * 400, 100)],
    )
    def test_ceiling_of_quarter_length(self, text: str, expected: int) -> None:
        """Test tokens are estimated as ceil(len / 4)."""
        assert estimate_tokens(text) == expected
