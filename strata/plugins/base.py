"""Plugin interface and hook kinds.

A plugin subclasses ``Plugin`` and overrides the hooks it cares about. Its
capability set (the hooks it overrides) is resolved once, when it is
registered, rather than probed on every call.
"""

from __future__ import annotations

from enum import Enum

from strata.models.schemas import ChatResult, QueryPayload, RoutePayload


class HookKind(Enum):
    """Extension points in a chat turn, in the order they run."""

    BEFORE_QUERY = "beforeQuery"
    ON_MODEL_ROUTE = "onModelRoute"
    AFTER_QUERY = "afterQuery"
    ON_MEMORY_SAVE = "onMemorySave"

    @property
    def method_name(self) -> str:
        return _METHOD_NAMES[self]

    @property
    def payload_type(self) -> type:
        return _PAYLOAD_TYPES[self]


_METHOD_NAMES: dict[HookKind, str] = {
    HookKind.BEFORE_QUERY: "before_query",
    HookKind.ON_MODEL_ROUTE: "on_model_route",
    HookKind.AFTER_QUERY: "after_query",
    HookKind.ON_MEMORY_SAVE: "on_memory_save",
}

_PAYLOAD_TYPES: dict[HookKind, type] = {
    HookKind.BEFORE_QUERY: QueryPayload,
    HookKind.ON_MODEL_ROUTE: RoutePayload,
    HookKind.AFTER_QUERY: ChatResult,
    HookKind.ON_MEMORY_SAVE: str,
}


class Plugin:
    """Base class for plugins.

    Every hook receives the previous hook's output and must return a value
    of the same type. The defaults pass the payload through unchanged.
    """

    name: str = "plugin"

    async def before_query(self, payload: QueryPayload) -> QueryPayload:
        """Rewrite the message or attach fields before context assembly."""
        return payload

    async def on_model_route(self, payload: RoutePayload) -> RoutePayload:
        """Override what the router sees."""
        return payload

    async def after_query(self, result: ChatResult) -> ChatResult:
        """Annotate or transform the result returned to the caller."""
        return result

    async def on_memory_save(self, text: str) -> str:
        """Rewrite the text archived to long-term memory."""
        return text

    def capabilities(self) -> frozenset[HookKind]:
        """Hooks this plugin overrides."""
        cls = type(self)
        return frozenset(
            kind
            for kind in HookKind
            if getattr(cls, kind.method_name) is not getattr(Plugin, kind.method_name)
        )
