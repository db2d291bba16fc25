"""Strata application wiring."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from strata.config import StrataConfig
from strata.modes import get_mode
from strata.observability.tracing import setup_telemetry, shutdown_telemetry
from strata.orchestrator import ConversationEngine
from strata.plugins import AnalyticsPlugin, AutoSummarizerPlugin, CostTrackerPlugin, HookRegistry

if TYPE_CHECKING:
    from strata.backends.base import ChatBackend
    from strata.models.schemas import ChatResult
    from strata.plugins.base import Plugin

logger = logging.getLogger(__name__)

BUILTIN_PLUGINS = ("cost-tracker", "auto-summarizer", "analytics")


class StrataApplication:
    """Strata application with lifecycle management.

    Builds the engine for the configured mode and registers the configured
    built-in plugins.

    Attributes:
        config: Strata configuration
        mode_instance: Mode that built the stores and backend
        engine: Conversation engine
    """

    def __init__(self, config: StrataConfig | None = None, backend: ChatBackend | None = None) -> None:
        """Initialize application.

        Args:
            config: Strata configuration (environment/defaults when omitted)
            backend: Chat backend override (the mode's httpx backend by default)
        """
        self.config = config or StrataConfig()
        self.mode_instance = get_mode(self.config.mode, self.config)
        logger.info(f"Initialized {self.config.mode} mode: {self.mode_instance.mode_config.description}")

        self.backend = backend or self.mode_instance.create_backend()
        self._owns_backend = backend is None

        hot, warm, cold = self.mode_instance.create_stores()
        self.registry = HookRegistry()
        for name in self.config.plugins.enabled:
            self.registry.register(name, self._create_plugin(name))

        self.engine = ConversationEngine(self.config, self.backend, hot, warm, cold, self.registry)

    def _create_plugin(self, name: str) -> Plugin:
        if name == "cost-tracker":
            return CostTrackerPlugin()
        if name == "auto-summarizer":
            return AutoSummarizerPlugin(
                self.backend,
                self.config.models.summary_model,
                interval=self.config.plugins.summarize_interval,
            )
        if name == "analytics":
            return AnalyticsPlugin()
        raise ValueError(f"Unknown plugin: {name}. Built-in plugins: {', '.join(BUILTIN_PLUGINS)}")

    async def start(self, world_data: Mapping[str, Any] | None = None) -> None:
        """Set up telemetry (when an OTLP endpoint is configured) and the engine."""
        if self.config.otlp_endpoint:
            setup_telemetry(environment=self.config.environment, otlp_endpoint=self.config.otlp_endpoint)
        await self.engine.initialize(world_data)
        logger.info(f"Strata application started (mode={self.config.mode})")

    async def chat(self, message: str, session_id: str = "default") -> ChatResult:
        return await self.engine.chat(message, session_id)

    def stats(self) -> dict[str, Any]:
        """Stats from built-in plugins that report them, plus archival counts."""
        result: dict[str, Any] = {"archival": self.engine.writer.stats()}
        for name in self.registry.names():
            plugin = self.registry.get(name)
            if isinstance(plugin, (CostTrackerPlugin, AnalyticsPlugin)):
                result[name] = plugin.stats()
        return result

    async def stop(self) -> None:
        """Drain archival writes and release resources."""
        await self.engine.shutdown()
        if self._owns_backend:
            await self.backend.close()
        if self.config.otlp_endpoint:
            shutdown_telemetry()
        logger.info("Strata application shutdown complete")
