"""Tests for plugin registration and hook dispatch."""

from __future__ import annotations

import pytest

from strata.models.schemas import QueryPayload, RoutePayload
from strata.plugins.base import HookKind, Plugin
from strata.plugins.registry import HookExecutionError, HookRegistry, PluginError


class SuffixPlugin(Plugin):
    """Appends a marker to the message and to archived text."""

    def __init__(self, suffix: str) -> None:
        self.suffix = suffix

    async def before_query(self, payload: QueryPayload) -> QueryPayload:
        return payload.model_copy(update={"message": payload.message + self.suffix})

    async def on_memory_save(self, text: str) -> str:
        return text + self.suffix


class RouteOnlyPlugin(Plugin):
    async def on_model_route(self, payload: RoutePayload) -> RoutePayload:
        return RoutePayload(query=payload.query.upper(), context="")


class ExplodingPlugin(Plugin):
    async def before_query(self, payload: QueryPayload) -> QueryPayload:
        raise RuntimeError("boom")


class WrongTypePlugin(Plugin):
    async def on_memory_save(self, text: str) -> str:
        return None  # type: ignore[return-value]


class TestPluginCapabilities:
    """Test suite for Plugin.capabilities."""

    def test_base_plugin_has_no_capabilities(self) -> None:
        assert Plugin().capabilities() == frozenset()

    def test_only_overridden_hooks(self) -> None:
        assert SuffixPlugin("!").capabilities() == {HookKind.BEFORE_QUERY, HookKind.ON_MEMORY_SAVE}
        assert RouteOnlyPlugin().capabilities() == {HookKind.ON_MODEL_ROUTE}

    def test_hook_kind_names(self) -> None:
        """Test hook kinds keep their public names."""
        assert [k.value for k in HookKind] == ["beforeQuery", "onModelRoute", "afterQuery", "onMemorySave"]


class TestHookRegistry:
    """Test suite for HookRegistry."""

    @pytest.fixture
    def registry(self) -> HookRegistry:
        return HookRegistry()

    @pytest.mark.asyncio
    async def test_no_handlers_returns_payload(self, registry: HookRegistry) -> None:
        """Test dispatch with no plugins is the identity."""
        assert await registry.execute(HookKind.ON_MEMORY_SAVE, "text") == "text"

    @pytest.mark.asyncio
    async def test_fold_in_registration_order(self, registry: HookRegistry) -> None:
        """Test each handler receives the previous handler's output."""
        registry.register("a", SuffixPlugin("-a"))
        registry.register("b", SuffixPlugin("-b"))

        payload = await registry.execute(HookKind.BEFORE_QUERY, QueryPayload(message="hi"))
        text = await registry.execute(HookKind.ON_MEMORY_SAVE, "t")

        assert payload.message == "hi-a-b"
        assert text == "t-a-b"

    def test_register_returns_capabilities(self, registry: HookRegistry) -> None:
        """Test registration reports and indexes only the overridden hooks."""
        capabilities = registry.register("router", RouteOnlyPlugin())

        assert capabilities == {HookKind.ON_MODEL_ROUTE}
        assert registry.handlers(HookKind.ON_MODEL_ROUTE) == ["router"]
        assert registry.handlers(HookKind.BEFORE_QUERY) == []

    @pytest.mark.asyncio
    async def test_non_capable_plugins_are_skipped(self, registry: HookRegistry) -> None:
        registry.register("router", RouteOnlyPlugin())

        payload = QueryPayload(message="hi")

        assert await registry.execute(HookKind.BEFORE_QUERY, payload) is payload

    def test_duplicate_name_rejected(self, registry: HookRegistry) -> None:
        registry.register("dup", SuffixPlugin("!"))

        with pytest.raises(PluginError, match="already registered"):
            registry.register("dup", SuffixPlugin("?"))

    def test_frozen_registry_rejects_registration(self, registry: HookRegistry) -> None:
        """Test registration is closed after freeze."""
        registry.register("a", SuffixPlugin("!"))
        registry.freeze()

        assert registry.frozen
        with pytest.raises(PluginError, match="frozen"):
            registry.register("b", SuffixPlugin("?"))
        assert registry.names() == ["a"]

    def test_non_plugin_rejected(self, registry: HookRegistry) -> None:
        with pytest.raises(PluginError, match="must subclass"):
            registry.register("bad", object())  # type: ignore[arg-type]

    @pytest.mark.asyncio
    async def test_raising_handler_aborts(self, registry: HookRegistry) -> None:
        """Test a failing hook stops the chain with the plugin named."""
        registry.register("boom", ExplodingPlugin())
        registry.register("after", SuffixPlugin("-after"))

        with pytest.raises(HookExecutionError) as exc_info:
            await registry.execute(HookKind.BEFORE_QUERY, QueryPayload(message="hi"))

        error = exc_info.value
        assert error.kind is HookKind.BEFORE_QUERY
        assert error.plugin_name == "boom"
        assert isinstance(error.__cause__, RuntimeError)
        assert "boom" in str(error)

    @pytest.mark.asyncio
    async def test_wrong_return_type_aborts(self, registry: HookRegistry) -> None:
        registry.register("wrong", WrongTypePlugin())

        with pytest.raises(HookExecutionError, match="returned NoneType, expected str"):
            await registry.execute(HookKind.ON_MEMORY_SAVE, "text")

    def test_get_and_names(self, registry: HookRegistry) -> None:
        plugin = SuffixPlugin("!")
        registry.register("first", plugin)
        registry.register("second", RouteOnlyPlugin())

        assert registry.get("first") is plugin
        assert registry.get("missing") is None
        assert registry.names() == ["first", "second"]
