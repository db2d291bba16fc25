"""Conversation engine: runs one chat turn end to end.

Turn pipeline:
    beforeQuery -> context assembly -> onModelRoute -> classify + route
    -> afterQuery -> onMemorySave -> retention
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from strata.cache.world_cache import CacheManager
from strata.context.assembler import ContextAssembler
from strata.models.schemas import ChatMetadata, ChatResult, QueryPayload, RoutePayload
from strata.observability.metrics import record_turn_latency
from strata.observability.tracing import add_span_attributes, trace_operation
from strata.plugins.base import HookKind
from strata.resilience.retry import RetryPolicy
from strata.retention.manager import RetentionManager, conversation_text
from strata.retention.writer import BackgroundWriter
from strata.routing.classifier import ComplexityClassifier
from strata.routing.router import ModelRouter
from strata.storage.models import Exchange, Tier
from strata.storage.tiered import TieredStore

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from strata.backends.base import ChatBackend
    from strata.config import StrataConfig
    from strata.plugins.registry import HookRegistry
    from strata.storage.cold_store import ColdStore
    from strata.storage.hot_store import HotStore
    from strata.storage.warm_store import WarmStore

logger = logging.getLogger(__name__)

SESSION_HISTORY_LIMIT = 50


class EngineNotInitializedError(RuntimeError):
    """Raised when ``chat`` is called before ``initialize``."""


class ConversationEngine:
    """Memory-aware, model-routing chat engine."""

    def __init__(
        self,
        config: StrataConfig,
        backend: ChatBackend,
        hot_store: HotStore,
        warm_store: WarmStore,
        cold_store: ColdStore,
        registry: HookRegistry,
        cache: CacheManager | None = None,
        clock: Callable[[], datetime] | None = None,
        writer: BackgroundWriter | None = None,
    ) -> None:
        """Initialize conversation engine.

        Args:
            config: Strata configuration
            backend: Chat backend shared by classifier, router and summarizer
            hot_store: Per-session hot buffers
            warm_store: Warm semantic tier
            cold_store: Cold semantic tier
            registry: Hook registry (frozen by ``initialize``)
            cache: World cache (created with ``clock`` when omitted)
            clock: UTC clock for the world cache
            writer: Background archival writer (built from config when omitted)
        """
        self.config = config
        self.backend = backend
        self.registry = registry
        self.store = TieredStore(hot_store, warm_store, cold_store)
        if cache is None:
            cache = CacheManager(clock=clock) if clock else CacheManager()
        self.cache = cache

        self.assembler = ContextAssembler(
            self.store,
            history_window=config.hot.history_window,
            warm_k=config.warm.top_k,
            cold_k=config.cold.top_k,
            tier_timeout=config.context.tier_timeout_seconds,
        )
        classifier = ComplexityClassifier(backend, config.models.fast)
        self.router = ModelRouter(backend, classifier, config.models)
        self.writer = writer or BackgroundWriter(
            policies={
                Tier.WARM: RetryPolicy(max_attempts=1),
                Tier.COLD: RetryPolicy(max_attempts=config.cold.write_attempts),
            }
        )
        self.retention = RetentionManager(
            self.store,
            self.writer,
            backend,
            config.models.summary_model,
            keep_recent=config.hot.keep_recent,
        )

        self._initialized = False
        self._init_lock = asyncio.Lock()

    @property
    def initialized(self) -> bool:
        return self._initialized

    async def initialize(self, world_data: Mapping[str, Any] | None = None) -> None:
        """Set up stores, the world cache and the hook registry.

        Idempotent. Missing or empty ``world_data`` skips the world cache; a
        failure to build it is logged and the engine runs without it.
        """
        async with self._init_lock:
            if self._initialized:
                return

            await self.store.initialize()

            if self.config.cache.enabled and isinstance(world_data, Mapping) and world_data:
                try:
                    self.cache.create_world_cache(world_data, ttl=self.config.cache.ttl_seconds)
                except (TypeError, ValueError) as e:
                    logger.warning(f"Could not create world cache, continuing without it: {e}")
            else:
                logger.info("No world data provided, skipping cache creation")

            self.registry.freeze()
            self._initialized = True
            logger.info(f"Conversation engine initialized (plugins: {self.registry.names() or 'none'})")

    async def chat(self, message: str, session_id: str = "default") -> ChatResult:
        """Run one turn.

        Turns for the same session are serialized; different sessions run
        concurrently.

        Raises:
            EngineNotInitializedError: If ``initialize`` has not completed
            BackendError: If the routed model call fails
            HookExecutionError: If a plugin hook fails
        """
        if not self._initialized:
            raise EngineNotInitializedError("Engine not initialized. Call initialize() first.")

        async with self.store.hot.session_lock(session_id):
            with trace_operation("chat.turn", {"session_id": session_id}):
                return await self._turn(message, session_id)

    async def _turn(self, message: str, session_id: str) -> ChatResult:
        started = time.perf_counter()

        query = await self.registry.execute(
            HookKind.BEFORE_QUERY, QueryPayload(message=message, session_id=session_id)
        )

        bundle = await self.assembler.assemble(query.message, session_id)
        context = bundle.render()

        cached = False
        record = self.cache.get() if self.config.cache.enabled else None
        if record is not None:
            context = f"WORLD KNOWLEDGE:\n{record.content}\n\n{context}"
            cached = True

        # beforeQuery rewrites only feed context assembly
        route = await self.registry.execute(
            HookKind.ON_MODEL_ROUTE, RoutePayload(query=message, context=context)
        )
        routed = await self.router.route(route.query or message, route.context)

        result = ChatResult(
            response=routed.response,
            model_name=routed.model_name,
            tier=routed.tier,
            analysis=routed.analysis,
            metadata=ChatMetadata(
                complexity=routed.analysis.complexity,
                memory_tokens=bundle.token_count,
                tokens=routed.analysis.estimated_tokens,
                cached=cached,
            ),
        )
        result = await self.registry.execute(HookKind.AFTER_QUERY, result)

        exchange = Exchange(input=message, output=routed.response, session_id=session_id)
        archive_text = await self.registry.execute(HookKind.ON_MEMORY_SAVE, conversation_text(exchange))
        await self.retention.retain(exchange, routed.analysis, archive_text)

        elapsed = time.perf_counter() - started
        record_turn_latency(routed.tier.value, elapsed)
        add_span_attributes({"model.tier": routed.tier.value, "context.token_count": bundle.token_count})
        logger.info(
            f"Session {session_id}: {routed.model_name} ({routed.tier.value}) answered in "
            f"{elapsed:.2f}s, ~{bundle.token_count} context tokens"
        )
        return result

    async def clear_session(self, session_id: str) -> None:
        """Wipe the session's hot buffer; warm and cold archives are kept."""
        async with self.store.hot.session_lock(session_id):
            self.store.hot.clear(session_id)
        logger.info(f"Session {session_id} cleared from hot memory")

    async def get_session_history(self, session_id: str) -> list[str]:
        """Warm-tier entries for a session, oldest first; ``[]`` on failure."""
        try:
            entries = await self.store.warm.session_entries(session_id, SESSION_HISTORY_LIMIT)
        except Exception as e:
            logger.warning(f"Could not retrieve history for session {session_id}: {e}")
            return []
        return [entry.content for entry in entries]

    async def shutdown(self) -> None:
        """Finish pending archival writes and close the stores."""
        await self.writer.drain()
        if self._initialized:
            await self.store.close()
        logger.info("Conversation engine shut down")
