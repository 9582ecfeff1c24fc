"""
Exception handlers for the HTTP binding.

Errors raised while serving a JSON-RPC message are turned into error objects
by the session itself; this handler is the last resort for anything that
escapes the router.
"""

import traceback

import structlog
from fastapi import Request, status
from fastapi.responses import JSONResponse

from ..mcp.errors import InternalError
from ..mcp.jsonrpc import JsonRpcResponse

logger = structlog.get_logger(__name__)


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions as a JSON-RPC internal error."""
    gateway = getattr(request.app.state, "gateway", None)
    debug = bool(gateway and gateway.settings.debug)

    logger.error(
        "Unhandled exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        error_type=type(exc).__name__,
        traceback=traceback.format_exc() if debug else None,
    )

    details = {"exc_type": type(exc).__name__}
    if debug:
        details["error"] = str(exc)
    error = InternalError("Internal error", details=details)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=JsonRpcResponse.failure(None, error.to_jsonrpc_error()).to_wire(),
    )
