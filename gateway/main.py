"""
Main application module for the MCP gateway.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

import structlog
import uvicorn
from fastapi import FastAPI

from . import __version__
from .core.config import Settings, get_settings
from .core.exceptions import general_exception_handler
from .core.logging import setup_logging
from .mcp.bootstrap import Gateway
from .mcp.routes import create_mcp_router


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    gateway: Gateway = app.state.gateway
    logger = structlog.get_logger()

    logger.info(
        "Starting MCP gateway",
        version=app.version,
        tools=len(gateway.registry),
        config=gateway.settings.log_config_safely(),
    )

    yield

    logger.info("Shutting down MCP gateway")


def create_app(settings: Optional[Settings] = None, gateway: Optional[Gateway] = None) -> FastAPI:
    """Create and configure FastAPI application."""
    settings = settings or (gateway.settings if gateway else get_settings())
    setup_logging(settings.log_level, settings.log_format)

    gateway = gateway or Gateway(settings)

    app = FastAPI(
        title="MCP Gateway",
        description="JSON-RPC tool registry and dispatch gateway",
        version=__version__,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )
    app.state.gateway = gateway

    app.add_exception_handler(Exception, general_exception_handler)
    app.include_router(create_mcp_router(gateway))

    return app


app = create_app()


if __name__ == "__main__":
    app_settings = get_settings()
    uvicorn.run(
        "gateway.main:app",
        host=app_settings.host,
        port=app_settings.port,
        reload=app_settings.debug,
        log_level=app_settings.log_level.lower(),
    )
