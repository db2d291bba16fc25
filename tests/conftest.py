"""Pytest configuration and fixtures for Strata tests."""

from __future__ import annotations

import json
import re
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from strata.backends.base import BackendError, BackendResponse, ModelSpec
from strata.config import EmbeddingConfig, StrataConfig
from strata.orchestrator import ConversationEngine
from strata.plugins.registry import HookRegistry
from strata.processing.embeddings import HashingEmbedder
from strata.resilience.retry import RetryPolicy
from strata.retention.writer import BackgroundWriter
from strata.storage.cold_store import ColdStore
from strata.storage.hot_store import HotStore
from strata.storage.models import Tier
from strata.storage.vector_index import InMemoryVectorIndex
from strata.storage.warm_store import WarmStore

TEST_DIMENSION = 64

_QUERY_RE = re.compile(r"\nQuery: (?P<query>.*)\Z", re.DOTALL)
_USER_QUERY_RE = re.compile(r"USER QUERY: (?P<query>.*)\Z", re.DOTALL)


def analysis_json(
    complexity: str = "medium",
    type: str = "dialogue",
    requires_memory: bool = True,
    estimated_tokens: int = 500,
) -> str:
    return json.dumps({
        "complexity": complexity,
        "type": type,
        "requiresMemory": requires_memory,
        "estimatedTokens": estimated_tokens,
    })


def default_responder(prompt: str, model: ModelSpec) -> str:
    """Answer from the prompt's context the way a model would.

    Recalls a stated favorite color when the context contains one,
    otherwise echoes the query.
    """
    match = re.search(r"favorite color is (\w+)", prompt, re.IGNORECASE)
    user_query = _USER_QUERY_RE.search(prompt)
    query = user_query.group("query") if user_query else prompt
    if match and "what is my favorite color" in query.lower():
        return f"Your favorite color is {match.group(1)}."
    return f"Answer to: {query}"


class ScriptedBackend:
    """In-process chat backend.

    - classification prompts are answered from ``classifications`` (exact
      query -> JSON text), or ``default_analysis``;
    - summarization prompts return ``summary_text``;
    - everything else goes to ``responder``.

    ``fail_on`` makes calls whose prompt contains the given text raise
    ``BackendError``.
    """

    def __init__(
        self,
        classifications: dict[str, str] | None = None,
        default_analysis: str | None = None,
        responder: Callable[[str, ModelSpec], str] = default_responder,
        summary_text: str = "Earlier the user shared several facts.",
    ) -> None:
        self.classifications = dict(classifications or {})
        self.default_analysis = default_analysis or analysis_json()
        self.responder = responder
        self.summary_text = summary_text
        self.fail_on: list[str] = []
        self.calls: list[tuple[str, ModelSpec]] = []
        self.closed = False

    async def invoke(self, prompt: str, model: ModelSpec) -> BackendResponse:
        self.calls.append((prompt, model))
        for marker in self.fail_on:
            if marker in prompt:
                raise BackendError(f"scripted failure for {marker!r}", status_code=503)

        if prompt.startswith("Analyze this query"):
            match = _QUERY_RE.search(prompt)
            query = match.group("query") if match else ""
            return BackendResponse(content=self.classifications.get(query, self.default_analysis))
        if prompt.startswith(("Summarize the following conversation", "Create a concise summary")):
            return BackendResponse(content=self.summary_text)
        return BackendResponse(content=self.responder(prompt, model))

    async def close(self) -> None:
        self.closed = True

    def routed_calls(self) -> list[tuple[str, ModelSpec]]:
        """Calls that were neither classification nor summarization."""
        return [
            (prompt, model)
            for prompt, model in self.calls
            if not prompt.startswith(("Analyze this query", "Summarize the following", "Create a concise"))
        ]


class FailingIndex(InMemoryVectorIndex):
    """Vector index whose reads and writes always fail."""

    async def similarity_search(self, query_embedding, k):  # type: ignore[override]
        raise ConnectionError("index unavailable")

    async def upsert(self, entry):  # type: ignore[override]
        raise ConnectionError("index unavailable")

    async def session_entries(self, session_id, limit):  # type: ignore[override]
        raise ConnectionError("index unavailable")


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 1, 1, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: Any) -> None:
        self.now += timedelta(**kwargs)


async def no_sleep(_delay: float) -> None:
    return None


@pytest.fixture
def config() -> StrataConfig:
    return StrataConfig(
        mode="lite",
        embedding=EmbeddingConfig(backend="hashing", dimension=TEST_DIMENSION),
    )


@pytest.fixture
def backend() -> ScriptedBackend:
    return ScriptedBackend()


@pytest.fixture
def embedder() -> HashingEmbedder:
    return HashingEmbedder(TEST_DIMENSION)


@pytest.fixture
def hot_store(config: StrataConfig) -> HotStore:
    return HotStore(token_ceiling=config.hot.token_ceiling, history_window=config.hot.history_window)


@pytest.fixture
def warm_store(embedder: HashingEmbedder) -> WarmStore:
    return WarmStore(InMemoryVectorIndex(TEST_DIMENSION), embedder)


@pytest.fixture
def cold_store(embedder: HashingEmbedder) -> ColdStore:
    return ColdStore(InMemoryVectorIndex(TEST_DIMENSION), embedder)


@pytest.fixture
def writer() -> BackgroundWriter:
    return BackgroundWriter(
        policies={Tier.WARM: RetryPolicy(max_attempts=1), Tier.COLD: RetryPolicy(max_attempts=3)},
        sleep=no_sleep,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
async def engine(
    config: StrataConfig,
    backend: ScriptedBackend,
    hot_store: HotStore,
    warm_store: WarmStore,
    cold_store: ColdStore,
    writer: BackgroundWriter,
    clock: FakeClock,
) -> ConversationEngine:
    """Uninitialized engine over in-memory tiers and the scripted backend."""
    engine = ConversationEngine(
        config,
        backend,
        hot_store,
        warm_store,
        cold_store,
        HookRegistry(),
        clock=clock,
        writer=writer,
    )
    yield engine
    await engine.shutdown()


@pytest.fixture
def dimension() -> int:
    return TEST_DIMENSION


@pytest.fixture
def make_analysis() -> Callable[..., str]:
    """Build classifier JSON replies."""
    return analysis_json


@pytest.fixture
def make_backend() -> type[ScriptedBackend]:
    return ScriptedBackend


@pytest.fixture
def failing_index() -> Callable[[], FailingIndex]:
    return lambda: FailingIndex(TEST_DIMENSION)
