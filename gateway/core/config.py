"""
Configuration management for the MCP gateway.

Settings are read once from the environment (prefix ``MCP_GATEWAY_``) and
an optional ``.env`` file. Instances are frozen: a reconfiguration builds
new Settings and a new registry rather than editing these in place.
"""

from functools import lru_cache
from typing import Any, Dict, List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ..mcp.protocol import LATEST_PROTOCOL_VERSION


class Settings(BaseSettings):
    """Gateway settings."""

    model_config = SettingsConfigDict(
        env_prefix="MCP_GATEWAY_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    # Server
    host: str = Field(default="0.0.0.0", description="Host to bind the server")
    port: int = Field(default=8080, description="Port to bind the server")
    debug: bool = Field(default=False, description="Enable debug mode")

    # Protocol
    server_name: str = Field(default="mcp-gateway", description="Name advertised in serverInfo")
    server_version: str = Field(default="0.1.0", description="Version advertised in serverInfo")
    protocol_version: str = Field(
        default=LATEST_PROTOCOL_VERSION,
        description="Protocol version offered when the client's is unsupported",
    )
    instructions: str = Field(default="", description="Optional usage hints returned by initialize")

    # Providers
    providers: str = Field(
        default="core,memory",
        description="Enabled provider modules (comma-separated)",
    )

    # Dispatch
    tool_timeout_seconds: float = Field(default=30.0, gt=0, description="Default tool deadline")
    strict_arguments: bool = Field(
        default=False,
        description="Reject tool arguments that the schema does not declare",
    )

    # HTTP binding
    max_payload_kb: int = Field(default=1024, ge=1, description="Max JSON-RPC body size in KB")
    max_sessions: int = Field(default=1000, ge=1, description="Max concurrently open sessions")

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="json", description="Log format: json or console")

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        normalized = value.upper()
        if normalized not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unsupported log level: {value}")
        return normalized

    @property
    def enabled_providers(self) -> List[str]:
        """Provider names in configuration order, without duplicates."""
        names = [name.strip() for name in self.providers.split(",") if name.strip()]
        return list(dict.fromkeys(names))

    def log_config_safely(self) -> Dict[str, Any]:
        """Return configuration for startup logging."""
        config = self.model_dump()
        config["enabled_providers"] = self.enabled_providers
        return config


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
