"""Built-in tools that are always useful when probing a gateway."""

from typing import Any, Dict, List

from ...core.config import Settings
from ..registry import ToolHandler
from ..tool import ToolAnnotation
from .base import Provider, ToolListing


class CoreProvider(Provider):
    """Diagnostic tools: ``echo`` and ``server_info``."""

    name = "core"

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._handlers: Dict[str, ToolHandler] = {
            "echo": self.echo,
            "server_info": self.server_info,
        }

    def get_tools(self) -> List[ToolListing]:
        return [
            (
                "echo",
                "Echo a message back to the caller",
                {
                    "type": "object",
                    "properties": {
                        "message": {"type": "string", "description": "Message to echo"},
                    },
                    "required": ["message"],
                },
            ),
            (
                "server_info",
                "Describe this gateway and the providers it serves",
                {"type": "object", "properties": {}},
            ),
        ]

    def get_handler(self, tool_name: str) -> ToolHandler:
        return self._handlers[tool_name]

    def get_annotations(self, tool_name: str) -> ToolAnnotation:
        return ToolAnnotation.read_only_tool(resource_types=["server"])

    async def echo(self, arguments: Dict[str, Any]) -> str:
        return f"Echo: {arguments['message']}"

    async def server_info(self, arguments: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "name": self._settings.server_name,
            "version": self._settings.server_version,
            "protocol_version": self._settings.protocol_version,
            "providers": list(self._settings.enabled_providers),
        }
