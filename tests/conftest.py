"""Shared fixtures for the gateway test suite."""

from typing import Any, Dict

import pytest

from gateway.core.config import Settings
from gateway.mcp.registry import ToolRegistry
from gateway.mcp.tool import ToolDefinition

ECHO_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "properties": {"message": {"type": "string", "description": "Message to echo"}},
    "required": ["message"],
}


async def echo_handler(arguments: Dict[str, Any]) -> str:
    return f"Echo: {arguments['message']}"


@pytest.fixture
def make_settings():
    """Settings factory that ignores any local .env file."""

    def _make(**overrides: Any) -> Settings:
        return Settings(_env_file=None, **overrides)

    return _make


@pytest.fixture
def settings(make_settings):
    return make_settings()


@pytest.fixture
def echo_definition():
    return ToolDefinition.from_json_schema("echo", "Echo a message back", ECHO_SCHEMA)


@pytest.fixture
def registry(echo_definition):
    """Registry holding only ``echo``."""
    registry = ToolRegistry()
    registry.register(echo_definition, echo_handler)
    return registry
