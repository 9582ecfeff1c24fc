"""Error taxonomy for the registry, dispatcher and protocol front-end."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from .protocol import ErrorCode, JSONRPC_ERROR_CODES, JsonRpcError


class GatewayError(Exception):
    """Base class for errors that surface as a JSON-RPC error object."""

    error_code: ErrorCode = ErrorCode.INTERNAL_ERROR

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    @property
    def jsonrpc_code(self) -> int:
        return JSONRPC_ERROR_CODES[self.error_code]

    def to_jsonrpc_error(self) -> JsonRpcError:
        return JsonRpcError(
            code=self.jsonrpc_code,
            message=self.message,
            data={"error_code": self.error_code.value, **self.details},
        )


class ParseError(GatewayError):
    """Raised when a request body is not valid JSON."""

    error_code = ErrorCode.PARSE_ERROR


class ProtocolError(GatewayError):
    """Raised for a malformed JSON-RPC envelope."""

    error_code = ErrorCode.INVALID_REQUEST


class MethodNotFoundError(GatewayError):
    """Raised when the JSON-RPC method is not served."""

    error_code = ErrorCode.METHOD_NOT_FOUND

    def __init__(self, method: str) -> None:
        super().__init__(f"Method not found: {method}", details={"method": method})
        self.method = method


class InvalidParamsError(GatewayError):
    """Raised when method params do not have the expected shape."""

    error_code = ErrorCode.INVALID_PARAMS


class InternalError(GatewayError):
    """Raised for unexpected failures inside the gateway."""

    error_code = ErrorCode.INTERNAL_ERROR


class NotInitializedError(GatewayError):
    """Raised when a session calls a method before initialize."""

    error_code = ErrorCode.NOT_INITIALIZED

    def __init__(self, message: str = "Session is not initialized; call initialize first") -> None:
        super().__init__(message)


class ToolNotFoundError(GatewayError, LookupError):
    """Raised when the requested tool is missing."""

    error_code = ErrorCode.TOOL_NOT_FOUND

    def __init__(self, tool_name: str) -> None:
        super().__init__(f"Tool '{tool_name}' is not registered", details={"tool": tool_name})
        self.tool_name = tool_name


class InvalidArgumentsError(GatewayError):
    """Raised when tool arguments fail schema validation."""

    error_code = ErrorCode.INVALID_ARGUMENTS

    def __init__(self, reason: str, *, tool_name: str, field: Optional[str] = None) -> None:
        details: Dict[str, Any] = {"tool": tool_name}
        if field is not None:
            details["field"] = field
        super().__init__(f"Invalid arguments for '{tool_name}': {reason}", details=details)
        self.reason = reason
        self.tool_name = tool_name
        self.field = field


class ToolTimeoutError(GatewayError):
    """Raised when a handler exceeds its deadline."""

    error_code = ErrorCode.TIMEOUT

    def __init__(self, tool_name: str, timeout_seconds: float) -> None:
        super().__init__(
            f"Tool '{tool_name}' timed out after {timeout_seconds:g}s",
            details={"tool": tool_name, "timeout_seconds": timeout_seconds},
        )
        self.tool_name = tool_name
        self.timeout_seconds = timeout_seconds


class HandlerFailureError(GatewayError):
    """
    Wraps an error raised by a tool handler.

    Providers may raise it directly to pick the message callers see; any other
    exception escaping a handler is wrapped into one by the dispatcher.
    """

    error_code = ErrorCode.HANDLER_FAILURE

    def __init__(
        self,
        message: str,
        *,
        tool_name: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        merged = dict(details or {})
        if tool_name is not None:
            merged.setdefault("tool", tool_name)
        super().__init__(message, details=merged)
        self.tool_name = tool_name


# Configuration errors: raised while assembling the registry, never on the wire.

class ConfigurationError(Exception):
    """Raised when the gateway cannot be assembled from its settings."""


class DuplicateToolError(ConfigurationError, ValueError):
    """Raised when a tool name is registered twice."""

    def __init__(self, tool_name: str) -> None:
        super().__init__(f"Tool '{tool_name}' is already registered")
        self.tool_name = tool_name


class RegistryFrozenError(ConfigurationError, RuntimeError):
    """Raised when registering into a registry that has been published."""

    def __init__(self, tool_name: str) -> None:
        super().__init__(f"Cannot register '{tool_name}': registry is frozen")
        self.tool_name = tool_name


class UnknownProviderError(ConfigurationError, LookupError):
    """Raised when settings enable a provider the catalog does not know."""

    def __init__(self, provider_name: str, available: List[str]) -> None:
        super().__init__(
            f"Unknown provider '{provider_name}' (available: {', '.join(available)})"
        )
        self.provider_name = provider_name
        self.available = available


# Schema violations: raised by the validator, surfaced as InvalidArgumentsError.

class SchemaViolation(ValueError):
    """A value does not satisfy its ParameterSchema."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"{path}: {reason}" if path else reason)
        self.path = path
        self.reason = reason


class MissingRequiredParameter(SchemaViolation):
    def __init__(self, path: str) -> None:
        super().__init__(path, "missing required parameter")


class TypeMismatch(SchemaViolation):
    def __init__(self, path: str, expected: str, actual: str) -> None:
        super().__init__(path, f"expected {expected}, got {actual}")
        self.expected = expected
        self.actual = actual


class EnumViolation(SchemaViolation):
    def __init__(self, path: str, allowed: List[Any]) -> None:
        super().__init__(path, f"value must be one of {allowed!r}")
        self.allowed = allowed


class UnknownParameter(SchemaViolation):
    def __init__(self, path: str) -> None:
        super().__init__(path, "unknown parameter")
