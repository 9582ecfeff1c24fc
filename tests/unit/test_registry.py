"""Unit tests for ToolRegistry."""

from typing import Any, Dict, List

import pytest

from gateway.mcp.errors import DuplicateToolError, RegistryFrozenError, ToolNotFoundError
from gateway.mcp.providers.base import Provider, ToolListing
from gateway.mcp.registry import ToolRegistry
from gateway.mcp.tool import ToolAnnotation, ToolDefinition


async def other_handler(arguments: Dict[str, Any]) -> str:
    return "other"


class StubProvider(Provider):
    """Provider exposing two fixed tools."""

    name = "stub"
    timeout_ms = 250

    def get_tools(self) -> List[ToolListing]:
        return [
            ("alpha", "First", {"type": "object", "properties": {}}),
            ("beta", "Second", {"type": "object", "properties": {"n": {"type": "integer"}}}),
        ]

    def get_handler(self, tool_name: str):
        return other_handler

    def get_annotations(self, tool_name: str):
        if tool_name == "alpha":
            return ToolAnnotation.read_only_tool()
        return None


class TestToolRegistry:
    """Test suite for ToolRegistry."""

    def test_register_and_get(self, registry):
        entry = registry.get("echo")

        assert entry.name == "echo"
        assert entry.provider == "local"
        assert "echo" in registry
        assert len(registry) == 1

    def test_get_missing_raises(self, registry):
        with pytest.raises(ToolNotFoundError) as exc_info:
            registry.get("nonexistent")

        assert exc_info.value.tool_name == "nonexistent"

    def test_duplicate_registration_keeps_original(self, registry, echo_definition):
        original = registry.get("echo")

        with pytest.raises(DuplicateToolError, match="already registered"):
            registry.register(echo_definition.model_copy(), other_handler)

        assert len(registry) == 1
        assert registry.get("echo") is original

    def test_register_after_freeze_rejected(self, registry):
        registry.freeze()

        with pytest.raises(RegistryFrozenError):
            registry.register(ToolDefinition(name="late", description="Too late"), other_handler)

        assert registry.frozen is True
        assert "late" not in registry

    def test_list_tools_is_ordered_and_repeatable(self, registry):
        registry.register(ToolDefinition(name="zeta", description="Last letter"), other_handler)
        registry.register(ToolDefinition(name="alpha", description="First letter"), other_handler)

        first = [definition.name for definition in registry.list_tools()]
        second = [definition.name for definition in registry.list_tools()]

        assert first == ["echo", "zeta", "alpha"]
        assert first == second
        assert registry.names() == first

    def test_register_provider(self):
        registry = ToolRegistry()

        entries = registry.register_provider(StubProvider())

        assert [entry.name for entry in entries] == ["alpha", "beta"]
        assert registry.get("alpha").definition.annotations.read_only is True
        assert registry.get("beta").definition.annotations == ToolAnnotation()
        assert registry.get("beta").definition.timeout_ms == 250
        assert registry.get("beta").provider == "stub"
        assert registry.providers() == ["stub"]

    def test_iteration_yields_entries(self, registry):
        registry.register_provider(StubProvider())

        assert [entry.name for entry in registry] == ["echo", "alpha", "beta"]
        assert registry.providers() == ["local", "stub"]
