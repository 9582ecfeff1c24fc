"""Tests for built-in providers and gateway assembly."""

import asyncio
import json
from typing import Any, Dict, List

import pytest

from gateway.mcp.bootstrap import PROVIDER_CATALOG, Gateway, build_registry
from gateway.mcp.dispatcher import Dispatcher
from gateway.mcp.errors import (
    DuplicateToolError,
    HandlerFailureError,
    InvalidArgumentsError,
    ToolNotFoundError,
    UnknownProviderError,
)
from gateway.mcp.providers import CoreProvider, MemoryProvider, Provider
from gateway.mcp.registry import ToolRegistry


class SlowProvider(Provider):
    """Provider whose only tool waits on an event the test controls."""

    name = "slow"

    def __init__(self, release: asyncio.Event) -> None:
        self._release = release

    def get_tools(self) -> List[tuple]:
        return [("wait", "Wait for release", {"type": "object", "properties": {}})]

    def get_handler(self, tool_name: str):
        async def wait(arguments: Dict[str, Any]) -> str:
            await self._release.wait()
            return "released"

        return wait


def payload(result) -> Any:
    return json.loads(result.content[0].text)


@pytest.fixture
def memory_dispatcher():
    registry = ToolRegistry()
    registry.register_provider(MemoryProvider())
    return Dispatcher(registry.freeze())


class TestCoreProvider:
    """Test suite for the core provider."""

    @pytest.mark.asyncio
    async def test_echo_and_server_info(self, settings):
        dispatcher = Dispatcher(build_registry(settings))

        echo = await dispatcher.call("echo", {"message": "hi"})
        info = payload(await dispatcher.call("server_info", {}))

        assert echo.content[0].text == "Echo: hi"
        assert info["name"] == "mcp-gateway"
        assert info["providers"] == ["core", "memory"]

    def test_annotations_are_read_only(self, settings):
        provider = CoreProvider(settings)

        assert provider.get_annotations("server_info").read_only is True


class TestMemoryProvider:
    """Test suite for the memory provider."""

    @pytest.mark.asyncio
    async def test_create_get_search(self, memory_dispatcher):
        created = payload(
            await memory_dispatcher.call(
                "create_memory",
                {"memory_type": "todo", "title": "Rotate keys", "content": "Rotate API keys", "tags": ["ops"]},
            )
        )
        payload(
            await memory_dispatcher.call(
                "create_memory",
                {"memory_type": "project", "title": "Gateway", "content": "Build the gateway"},
            )
        )

        fetched = payload(await memory_dispatcher.call("get_memory", {"id": created["id"]}))
        by_type = payload(await memory_dispatcher.call("search_memories", {"memory_type": "todo"}))
        by_keyword = payload(await memory_dispatcher.call("search_memories", {"keyword": "GATEWAY"}))
        by_tag = payload(await memory_dispatcher.call("search_memories", {"tag": "ops"}))

        assert fetched["title"] == "Rotate keys"
        assert fetched["tags"] == ["ops"]
        assert [memory["id"] for memory in by_type["memories"]] == [created["id"]]
        assert by_keyword["total"] == 1
        assert by_tag["memories"][0]["id"] == created["id"]

    @pytest.mark.asyncio
    async def test_search_limit(self, memory_dispatcher):
        for index in range(3):
            await memory_dispatcher.call(
                "create_memory",
                {"memory_type": "knowledge", "title": f"Note {index}", "content": "fact"},
            )

        limited = payload(await memory_dispatcher.call("search_memories", {"limit": 2}))

        assert len(limited["memories"]) == 2
        assert limited["total"] == 3

    @pytest.mark.asyncio
    async def test_integral_float_limit_reaches_handler_as_int(self, memory_dispatcher):
        for index in range(4):
            await memory_dispatcher.call(
                "create_memory",
                {"memory_type": "knowledge", "title": f"Note {index}", "content": "fact"},
            )

        limited = payload(await memory_dispatcher.call("search_memories", {"limit": 3.0}))

        assert len(limited["memories"]) == 3
        assert limited["total"] == 4

    @pytest.mark.asyncio
    async def test_invalid_memory_type(self, memory_dispatcher):
        with pytest.raises(InvalidArgumentsError) as exc_info:
            await memory_dispatcher.call(
                "create_memory", {"memory_type": "gossip", "title": "t", "content": "c"}
            )

        assert exc_info.value.field == "memory_type"

    @pytest.mark.asyncio
    async def test_relationships_and_delete(self, memory_dispatcher):
        first = payload(
            await memory_dispatcher.call(
                "create_memory", {"memory_type": "issue", "title": "Bug", "content": "Crash"}
            )
        )
        second = payload(
            await memory_dispatcher.call(
                "create_memory", {"memory_type": "project", "title": "Fix", "content": "Patch"}
            )
        )

        await memory_dispatcher.call(
            "create_relationship",
            {"from_id": second["id"], "to_id": first["id"], "relation_type": "DEPENDS_ON"},
        )
        related = payload(await memory_dispatcher.call("get_related_memories", {"memory_id": first["id"]}))
        deleted = payload(await memory_dispatcher.call("delete_memory", {"id": second["id"]}))
        after = payload(await memory_dispatcher.call("get_related_memories", {"memory_id": first["id"]}))

        assert [memory["id"] for memory in related["memories"]] == [second["id"]]
        assert deleted == {"deleted": second["id"]}
        assert after["memories"] == []

    @pytest.mark.asyncio
    async def test_missing_memory_is_handler_failure(self, memory_dispatcher):
        with pytest.raises(HandlerFailureError, match="Memory not found: nope") as exc_info:
            await memory_dispatcher.call("get_memory", {"id": "nope"})

        assert exc_info.value.details["tool"] == "get_memory"

    def test_delete_is_destructive(self):
        annotation = MemoryProvider().get_annotations("delete_memory")

        assert annotation.destructive is True
        assert annotation.requires_confirmation is True


class TestBuildRegistry:
    """Test suite for registry assembly from settings."""

    def test_registry_is_frozen(self, settings):
        registry = build_registry(settings)

        assert registry.frozen is True
        assert registry.providers() == ["core", "memory"]
        assert "create_memory" in registry

    def test_only_enabled_providers(self, make_settings):
        registry = build_registry(make_settings(providers="memory"))

        assert "echo" not in registry
        assert registry.providers() == ["memory"]

    def test_unknown_provider(self, make_settings):
        with pytest.raises(UnknownProviderError) as exc_info:
            build_registry(make_settings(providers="core,weather"))

        assert exc_info.value.provider_name == "weather"
        assert exc_info.value.available == sorted(PROVIDER_CATALOG)

    def test_duplicate_tool_across_providers(self, make_settings):
        catalog = {"core": CoreProvider, "mirror": CoreProvider}

        with pytest.raises(DuplicateToolError) as exc_info:
            build_registry(make_settings(providers="core,mirror"), catalog)

        assert exc_info.value.tool_name == "echo"


class TestGatewayReload:
    """Test suite for build-and-swap reconfiguration."""

    @pytest.mark.asyncio
    async def test_reload_swaps_registry(self, make_settings):
        gateway = Gateway(make_settings(providers="core"))
        old_registry = gateway.registry

        new_registry = gateway.reload(make_settings(providers="memory"))

        assert gateway.registry is new_registry
        assert "echo" in old_registry
        assert "echo" not in new_registry
        with pytest.raises(ToolNotFoundError):
            await gateway.dispatcher.call("echo", {"message": "hi"})

    def test_failed_reload_keeps_current_registry(self, make_settings):
        gateway = Gateway(make_settings(providers="core"))
        current = gateway.registry

        with pytest.raises(UnknownProviderError):
            gateway.reload(make_settings(providers="weather"))

        assert gateway.registry is current
        assert gateway.settings.enabled_providers == ["core"]

    @pytest.mark.asyncio
    async def test_in_flight_call_survives_reload(self, make_settings):
        release = asyncio.Event()
        catalog = {"slow": lambda settings: SlowProvider(release), "core": CoreProvider}
        gateway = Gateway(make_settings(providers="slow"), catalog=catalog)

        in_flight = asyncio.ensure_future(gateway.dispatcher.call("wait", {}))
        await asyncio.sleep(0)
        gateway.reload(make_settings(providers="core"))
        release.set()

        result = await in_flight
        assert result.content[0].text == "released"
        assert "wait" not in gateway.registry

    def test_from_registry(self, settings, registry):
        gateway = Gateway.from_registry(registry, settings)

        assert gateway.registry is registry
        assert registry.frozen is True
        assert gateway.providers == ["local"]
