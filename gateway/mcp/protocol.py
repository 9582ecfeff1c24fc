"""
MCP Protocol - Type definitions and contracts.

Defines the message shapes exchanged with MCP clients:
- ErrorCode: Standardized error taxonomy and its JSON-RPC codes
- TextContent / ToolCallResult: Result envelope of tools/call
- InitializeResult: Handshake payload of initialize
- JsonRpcError: Error object of a JSON-RPC response
"""

from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

JSONRPC_VERSION = "2.0"

LATEST_PROTOCOL_VERSION = "2025-06-18"

# Versions a client may request; anything else is answered with the server's own.
SUPPORTED_PROTOCOL_VERSIONS = (LATEST_PROTOCOL_VERSION, "2025-03-26", "2024-11-05")


class ErrorCode(str, Enum):
    """
    Standardized error codes for the gateway.

    Taxonomy:
    - PARSE_ERROR: Body is not valid JSON
    - INVALID_REQUEST: Malformed JSON-RPC envelope
    - METHOD_NOT_FOUND: Unknown JSON-RPC method
    - INVALID_PARAMS: Method params have the wrong shape
    - INTERNAL_ERROR: Unexpected gateway failure
    - TOOL_NOT_FOUND: Requested tool is not registered
    - INVALID_ARGUMENTS: Tool arguments failed schema validation
    - TIMEOUT: Tool handler exceeded its deadline
    - NOT_INITIALIZED: Session has not completed initialize
    - HANDLER_FAILURE: Tool handler raised an error
    """
    PARSE_ERROR = "PARSE_ERROR"
    INVALID_REQUEST = "INVALID_REQUEST"
    METHOD_NOT_FOUND = "METHOD_NOT_FOUND"
    INVALID_PARAMS = "INVALID_PARAMS"
    INTERNAL_ERROR = "INTERNAL_ERROR"
    TOOL_NOT_FOUND = "TOOL_NOT_FOUND"
    INVALID_ARGUMENTS = "INVALID_ARGUMENTS"
    TIMEOUT = "TIMEOUT"
    NOT_INITIALIZED = "NOT_INITIALIZED"
    HANDLER_FAILURE = "HANDLER_FAILURE"


# Wire codes. The -320xx range below -32000 is reserved for the gateway's
# own errors; these values are part of the public contract.
JSONRPC_ERROR_CODES: Dict[ErrorCode, int] = {
    ErrorCode.PARSE_ERROR: -32700,
    ErrorCode.INVALID_REQUEST: -32600,
    ErrorCode.METHOD_NOT_FOUND: -32601,
    ErrorCode.INVALID_PARAMS: -32602,
    ErrorCode.INTERNAL_ERROR: -32603,
    ErrorCode.TOOL_NOT_FOUND: -32001,
    ErrorCode.INVALID_ARGUMENTS: -32002,
    ErrorCode.TIMEOUT: -32003,
    ErrorCode.NOT_INITIALIZED: -32004,
    ErrorCode.HANDLER_FAILURE: -32005,
}


class TextContent(BaseModel):
    """Text content block."""
    type: Literal["text"] = "text"
    text: str


# Only text blocks are produced today; new kinds join this alias as a Union
# discriminated on ``type``.
ContentBlock = TextContent


class ToolCallResult(BaseModel):
    """Successful result of tools/call."""
    content: List[ContentBlock] = Field(default_factory=list)

    def to_wire(self) -> Dict[str, Any]:
        return {"content": [block.model_dump() for block in self.content]}


class ServerInfo(BaseModel):
    """Name and version advertised during initialize."""
    name: str
    version: str


class InitializeResult(BaseModel):
    """Result of initialize."""
    model_config = ConfigDict(populate_by_name=True)

    protocol_version: str = Field(..., alias="protocolVersion")
    capabilities: Dict[str, Any] = Field(default_factory=dict)
    server_info: ServerInfo = Field(..., alias="serverInfo")
    instructions: Optional[str] = None

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class JsonRpcError(BaseModel):
    """Error object of a JSON-RPC response."""
    code: int = Field(..., description="JSON-RPC error code")
    message: str = Field(..., description="Human readable message")
    data: Optional[Any] = Field(None, description="Structured diagnostic context")

    def to_wire(self) -> Dict[str, Any]:
        error: Dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            error["data"] = self.data
        return error
