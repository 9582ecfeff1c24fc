"""JSON-RPC 2.0 envelope decoding and encoding."""

from __future__ import annotations

import json
from typing import Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, StrictInt, StrictStr, ValidationError, model_validator

from .errors import ParseError, ProtocolError
from .protocol import JSONRPC_VERSION, JsonRpcError

RequestId = Union[StrictStr, StrictInt]


class JsonRpcRequest(BaseModel):
    """Request or notification envelope."""

    model_config = ConfigDict(extra="ignore")

    jsonrpc: Literal["2.0"]
    id: Optional[RequestId] = None
    method: StrictStr
    params: Optional[Dict[str, Any]] = None

    @property
    def is_notification(self) -> bool:
        """A request without an ``id`` member expects no response."""
        return "id" not in self.model_fields_set


class JsonRpcResponse(BaseModel):
    """Response envelope carrying exactly one of result or error."""

    jsonrpc: Literal["2.0"] = JSONRPC_VERSION
    id: Optional[RequestId] = None
    result: Optional[Dict[str, Any]] = None
    error: Optional[JsonRpcError] = None

    @model_validator(mode="after")
    def _result_xor_error(self) -> "JsonRpcResponse":
        if (self.result is None) == (self.error is None):
            raise ValueError("response must carry exactly one of result or error")
        return self

    @classmethod
    def success(cls, request_id: Optional[Union[str, int]], result: Dict[str, Any]) -> "JsonRpcResponse":
        return cls(id=request_id, result=result)

    @classmethod
    def failure(cls, request_id: Optional[Union[str, int]], error: JsonRpcError) -> "JsonRpcResponse":
        return cls(id=request_id, error=error)

    def to_wire(self) -> Dict[str, Any]:
        message: Dict[str, Any] = {"jsonrpc": self.jsonrpc, "id": self.id}
        if self.error is not None:
            message["error"] = self.error.to_wire()
        else:
            message["result"] = self.result
        return message


def decode_body(body: Union[bytes, str]) -> Any:
    """Decode a request body, raising ParseError on invalid JSON."""
    try:
        return json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError, RecursionError) as exc:
        raise ParseError("Parse error: body is not valid JSON", details={"reason": str(exc)}) from exc


def parse_request(message: Any) -> JsonRpcRequest:
    """
    Validate one decoded message as a JSON-RPC request.

    Raises:
        ProtocolError: Not an object, wrong ``jsonrpc``, missing or non-string
            ``method``, bad ``id`` type or non-object ``params``
    """
    if not isinstance(message, dict):
        raise ProtocolError("Invalid Request: message must be a JSON object")
    try:
        return JsonRpcRequest.model_validate(message)
    except ValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ())) or "request"
        raise ProtocolError(
            f"Invalid Request: {field}: {first.get('msg', 'invalid value')}",
            details={"field": field},
        ) from exc


def recover_id(message: Any) -> Optional[Union[str, int]]:
    """Best-effort id of a message that failed validation (None when unusable)."""
    if isinstance(message, dict):
        request_id = message.get("id")
        if isinstance(request_id, str) or (
            isinstance(request_id, int) and not isinstance(request_id, bool)
        ):
            return request_id
    return None
