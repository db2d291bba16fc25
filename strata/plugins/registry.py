"""Hook registry: ordered, write-once plugin registration and hook dispatch.

Usage:
    registry = HookRegistry()
    registry.register("cost-tracker", CostTrackerPlugin())
    registry.freeze()

    payload = await registry.execute(HookKind.BEFORE_QUERY, QueryPayload(message="hi"))
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from strata.plugins.base import HookKind, Plugin

logger = logging.getLogger(__name__)

HookHandler = Callable[[Any], Awaitable[Any]]


class PluginError(Exception):
    """Raised for invalid plugin registration."""


class HookExecutionError(Exception):
    """A hook raised or returned the wrong payload type; the turn is aborted."""

    def __init__(self, kind: HookKind, plugin_name: str, message: str) -> None:
        super().__init__(f"{kind.value} hook of plugin '{plugin_name}' failed: {message}")
        self.kind = kind
        self.plugin_name = plugin_name


@dataclass
class HookRegistry:
    """Plugins by name and, per hook kind, handlers in registration order.

    Registration happens at startup; ``freeze()`` makes the registry
    read-only so dispatch needs no locking.
    """

    _plugins: dict[str, Plugin] = field(default_factory=dict)
    _handlers: dict[HookKind, list[tuple[str, HookHandler]]] = field(
        default_factory=lambda: {kind: [] for kind in HookKind}
    )
    _frozen: bool = False

    def register(self, name: str, plugin: Plugin) -> frozenset[HookKind]:
        """Register a plugin under a unique name.

        Returns:
            The hook kinds the plugin was registered for

        Raises:
            PluginError: If the registry is frozen, the name is taken or the
                object is not a ``Plugin``
        """
        if self._frozen:
            raise PluginError(f"Cannot register plugin '{name}': registry is frozen")
        if name in self._plugins:
            raise PluginError(f"Plugin '{name}' is already registered")
        if not isinstance(plugin, Plugin):
            raise PluginError(f"Plugin '{name}' must subclass strata.plugins.Plugin")

        capabilities = plugin.capabilities()
        self._plugins[name] = plugin
        for kind in HookKind:
            if kind in capabilities:
                self._handlers[kind].append((name, getattr(plugin, kind.method_name)))

        logger.info(
            f"Plugin registered: {name} "
            f"(hooks: {', '.join(sorted(k.value for k in capabilities)) or 'none'})"
        )
        return capabilities

    def freeze(self) -> None:
        if not self._frozen:
            self._frozen = True
            logger.debug(f"Hook registry frozen with {len(self._plugins)} plugin(s)")

    @property
    def frozen(self) -> bool:
        return self._frozen

    async def execute(self, kind: HookKind, payload: Any) -> Any:
        """Fold ``payload`` through every handler for ``kind`` in registration order.

        Raises:
            HookExecutionError: If a handler raises (chained from the cause) or
                returns something other than the hook's payload type
        """
        expected = kind.payload_type
        result = payload
        for plugin_name, handler in self._handlers[kind]:
            try:
                result = await handler(result)
            except Exception as e:
                logger.error(f"{kind.value} hook of plugin '{plugin_name}' raised: {e}")
                raise HookExecutionError(kind, plugin_name, f"{type(e).__name__}: {e}") from e

            if not isinstance(result, expected):
                raise HookExecutionError(
                    kind,
                    plugin_name,
                    f"returned {type(result).__name__}, expected {expected.__name__}",
                )
        return result

    def get(self, name: str) -> Plugin | None:
        return self._plugins.get(name)

    def names(self) -> list[str]:
        """Plugin names in registration order."""
        return list(self._plugins)

    def handlers(self, kind: HookKind) -> list[str]:
        """Names of plugins handling ``kind``, in execution order."""
        return [name for name, _ in self._handlers[kind]]
