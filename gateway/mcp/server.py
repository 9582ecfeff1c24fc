"""
MCP Server - Protocol front-end.

Maps JSON-RPC methods onto the gateway:
- initialize: handshake, moves the session to INITIALIZED
- notifications/initialized: acknowledged, no response
- ping: liveness check
- tools/list: registry enumeration in wire shape
- tools/call: delegated to the Dispatcher

Every request yields exactly one response (notifications yield none) and
every failure becomes a JSON-RPC error object; nothing raised while serving
one message escapes to the transport.
"""

from collections import OrderedDict
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union
from uuid import uuid4

import structlog

from .bootstrap import Gateway
from .errors import (
    GatewayError,
    InternalError,
    InvalidParamsError,
    MethodNotFoundError,
    NotInitializedError,
    ParseError,
    ProtocolError,
)
from .jsonrpc import JsonRpcRequest, JsonRpcResponse, decode_body, parse_request, recover_id
from .metrics import metrics_collector
from .protocol import SUPPORTED_PROTOCOL_VERSIONS, InitializeResult, ServerInfo

logger = structlog.get_logger(__name__)

WireMessage = Dict[str, Any]
WireReply = Optional[Union[WireMessage, List[WireMessage]]]


class SessionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"
    SHUTDOWN = "shutdown"


class McpSession:
    """
    One client's protocol state machine.

    UNINITIALIZED -> INITIALIZED -> SHUTDOWN. Tool methods require
    INITIALIZED; SHUTDOWN is terminal.
    """

    def __init__(self, gateway: Gateway, session_id: Optional[str] = None) -> None:
        self.gateway = gateway
        self.session_id = session_id or uuid4().hex
        self.state = SessionState.UNINITIALIZED
        self.protocol_version: Optional[str] = None
        self.client_info: Dict[str, Any] = {}
        self._methods: Dict[str, Callable[[JsonRpcRequest], Awaitable[Dict[str, Any]]]] = {
            "initialize": self._initialize,
            "notifications/initialized": self._initialized,
            "ping": self._ping,
            "tools/list": self._tools_list,
            "tools/call": self._tools_call,
        }

    @property
    def initialized(self) -> bool:
        return self.state is SessionState.INITIALIZED

    def shutdown(self) -> None:
        self.state = SessionState.SHUTDOWN
        logger.info("MCP session shut down", session_id=self.session_id)

    async def handle_raw(self, body: Union[bytes, str]) -> WireReply:
        """Decode a transport body and handle it."""
        try:
            payload = decode_body(body)
        except ParseError as exc:
            metrics_collector.record_request("invalid", exc.error_code.value)
            return JsonRpcResponse.failure(None, exc.to_jsonrpc_error()).to_wire()
        return await self.handle_payload(payload)

    async def handle_payload(self, payload: Any) -> WireReply:
        """Handle one decoded message or a batch of them."""
        if isinstance(payload, list):
            if not payload:
                error = ProtocolError("Invalid Request: empty batch")
                metrics_collector.record_request("invalid", error.error_code.value)
                return JsonRpcResponse.failure(None, error.to_jsonrpc_error()).to_wire()
            replies = []
            for message in payload:
                reply = await self.handle_message(message)
                if reply is not None:
                    replies.append(reply)
            return replies or None
        return await self.handle_message(payload)

    async def handle_message(self, message: Any) -> Optional[WireMessage]:
        """Handle one message; returns None for notifications."""
        try:
            request = parse_request(message)
        except ProtocolError as exc:
            logger.warning("Malformed JSON-RPC request", error=exc.message, session_id=self.session_id)
            metrics_collector.record_request("invalid", exc.error_code.value)
            return JsonRpcResponse.failure(recover_id(message), exc.to_jsonrpc_error()).to_wire()

        method_label = request.method if request.method in self._methods else "unknown"
        try:
            result = await self._dispatch(request)
            response = JsonRpcResponse.success(request.id, result)
            metrics_collector.record_request(method_label, "ok")
        except GatewayError as exc:
            response = JsonRpcResponse.failure(request.id, exc.to_jsonrpc_error())
            metrics_collector.record_request(method_label, exc.error_code.value)
        except Exception as exc:
            logger.error(
                "Unhandled error serving MCP request",
                method=request.method,
                session_id=self.session_id,
                error=str(exc),
                exc_info=True,
            )
            internal = InternalError("Internal error", details={"exc_type": type(exc).__name__})
            response = JsonRpcResponse.failure(request.id, internal.to_jsonrpc_error())
            metrics_collector.record_request(method_label, internal.error_code.value)

        if request.is_notification:
            return None
        return response.to_wire()

    async def _dispatch(self, request: JsonRpcRequest) -> Dict[str, Any]:
        handler = self._methods.get(request.method)
        if handler is None:
            raise MethodNotFoundError(request.method)
        if self.state is SessionState.SHUTDOWN:
            raise NotInitializedError("Session has been shut down; initialize a new session")
        return await handler(request)

    async def _initialize(self, request: JsonRpcRequest) -> Dict[str, Any]:
        params = request.params or {}
        settings = self.gateway.settings

        requested = params.get("protocolVersion")
        if isinstance(requested, str) and requested in SUPPORTED_PROTOCOL_VERSIONS:
            self.protocol_version = requested
        else:
            self.protocol_version = settings.protocol_version

        client_info = params.get("clientInfo")
        self.client_info = client_info if isinstance(client_info, dict) else {}

        if self.initialized:
            logger.warning("MCP session re-initialized", session_id=self.session_id)
        self.state = SessionState.INITIALIZED

        logger.info(
            "MCP session initialized",
            session_id=self.session_id,
            protocol_version=self.protocol_version,
            client=self.client_info.get("name"),
        )
        return InitializeResult(
            protocol_version=self.protocol_version,
            capabilities={"tools": {"listChanged": False}},
            server_info=ServerInfo(name=settings.server_name, version=settings.server_version),
            instructions=settings.instructions or None,
        ).to_wire()

    async def _initialized(self, request: JsonRpcRequest) -> Dict[str, Any]:
        return {}

    async def _ping(self, request: JsonRpcRequest) -> Dict[str, Any]:
        return {}

    async def _tools_list(self, request: JsonRpcRequest) -> Dict[str, Any]:
        self._require_initialized()
        return {"tools": [definition.to_wire() for definition in self.gateway.registry.list_tools()]}

    async def _tools_call(self, request: JsonRpcRequest) -> Dict[str, Any]:
        self._require_initialized()
        params = request.params or {}

        name = params.get("name")
        if not isinstance(name, str) or not name:
            raise InvalidParamsError("tools/call requires a non-empty string 'name'")

        result = await self.gateway.dispatcher.call(name, params.get("arguments"))
        return result.to_wire()

    def _require_initialized(self) -> None:
        if not self.initialized:
            raise NotInitializedError()


class SessionManager:
    """Open sessions keyed by id; the oldest is evicted past ``max_sessions``."""

    def __init__(self, gateway: Gateway, max_sessions: int = 1000) -> None:
        self.gateway = gateway
        self.max_sessions = max_sessions
        self._sessions: "OrderedDict[str, McpSession]" = OrderedDict()

    def get(self, session_id: Optional[str]) -> Optional[McpSession]:
        if session_id is None:
            return None
        return self._sessions.get(session_id)

    def create(self) -> McpSession:
        return McpSession(self.gateway)

    def open(self, session: McpSession) -> None:
        """Track a session that completed initialize."""
        self._sessions[session.session_id] = session
        while len(self._sessions) > self.max_sessions:
            _, evicted = self._sessions.popitem(last=False)
            evicted.shutdown()
            logger.info("MCP session evicted", session_id=evicted.session_id)

    def close(self, session_id: str) -> bool:
        session = self._sessions.pop(session_id, None)
        if session is None:
            return False
        session.shutdown()
        return True

    def __len__(self) -> int:
        return len(self._sessions)
