"""FastAPI router exposing the JSON-RPC endpoint, health and metrics."""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, HTTPException, Request, Response, status
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

import structlog

from .bootstrap import Gateway
from .errors import ProtocolError
from .jsonrpc import JsonRpcResponse
from .server import SessionManager

logger = structlog.get_logger(__name__)

SESSION_HEADER = "Mcp-Session-Id"


def create_mcp_router(
    gateway: Gateway,
    sessions: Optional[SessionManager] = None,
) -> APIRouter:
    """Create the MCP router bound to ``gateway``."""

    if gateway is None:
        raise ValueError("gateway is required")

    sessions = sessions or SessionManager(gateway, max_sessions=gateway.settings.max_sessions)

    router = APIRouter(tags=["mcp"])

    @router.post("/mcp")
    async def handle_rpc(request: Request) -> Response:
        body = await request.body()

        limit_kb = gateway.settings.max_payload_kb
        if len(body) > limit_kb * 1024:
            logger.warning(
                "JSON-RPC payload too large",
                size_kb=len(body) // 1024,
                limit_kb=limit_kb,
            )
            error = ProtocolError(
                f"Invalid Request: payload exceeds {limit_kb}KB limit",
                details={"limit_kb": limit_kb},
            )
            return JSONResponse(content=JsonRpcResponse.failure(None, error.to_jsonrpc_error()).to_wire())

        session = sessions.get(request.headers.get(SESSION_HEADER)) or sessions.create()
        reply = await session.handle_raw(body)

        headers: Dict[str, str] = {}
        if session.initialized:
            if sessions.get(session.session_id) is None:
                sessions.open(session)
            headers[SESSION_HEADER] = session.session_id

        if reply is None:
            return Response(status_code=status.HTTP_202_ACCEPTED, headers=headers)
        return JSONResponse(content=reply, headers=headers)

    @router.delete("/mcp", status_code=status.HTTP_204_NO_CONTENT)
    async def close_session(request: Request) -> Response:
        session_id = request.headers.get(SESSION_HEADER)
        if not session_id or not sessions.close(session_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Unknown MCP session")
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    @router.get("/health")
    async def health() -> Dict[str, Any]:
        tool_count = len(gateway.registry)
        return {
            "status": "healthy" if tool_count else "degraded",
            "tools": tool_count,
            "providers": gateway.settings.enabled_providers,
            "sessions": len(sessions),
            "protocol_version": gateway.settings.protocol_version,
        }

    @router.get("/metrics")
    async def metrics() -> Response:
        return Response(
            content=generate_latest(),
            media_type=CONTENT_TYPE_LATEST,
            headers={"Cache-Control": "no-cache, no-store, must-revalidate"},
        )

    return router
