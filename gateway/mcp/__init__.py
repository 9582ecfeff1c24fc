"""
MCP (Model Context Protocol) Package.

Provides the tool layer behind the JSON-RPC front-end:
- Schema model and argument validation
- Tool definitions and the name-keyed registry
- Dispatch with validation, deadlines and error mapping

Usage:
    from gateway.mcp import Dispatcher, ToolDefinition, ToolRegistry

    registry = ToolRegistry()
    registry.register(
        ToolDefinition.from_json_schema("echo", "Echo a message", schema),
        echo_handler,
    )

    result = await Dispatcher(registry.freeze()).call("echo", {"message": "hi"})
"""

from .dispatcher import Dispatcher
from .errors import (
    GatewayError,
    HandlerFailureError,
    InvalidArgumentsError,
    NotInitializedError,
    ToolNotFoundError,
    ToolTimeoutError,
)
from .protocol import ErrorCode, TextContent, ToolCallResult
from .registry import RegisteredTool, ToolRegistry
from .schema import ParameterSchema, validate_arguments
from .tool import ToolAnnotation, ToolDefinition

__all__ = [
    "Dispatcher",
    "ErrorCode",
    "GatewayError",
    "HandlerFailureError",
    "InvalidArgumentsError",
    "NotInitializedError",
    "ParameterSchema",
    "RegisteredTool",
    "TextContent",
    "ToolAnnotation",
    "ToolCallResult",
    "ToolDefinition",
    "ToolNotFoundError",
    "ToolRegistry",
    "ToolTimeoutError",
    "validate_arguments",
]
