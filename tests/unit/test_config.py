"""Unit tests for Settings."""

import pytest
from pydantic import ValidationError

from gateway.core.config import Settings, get_settings
from gateway.mcp.protocol import LATEST_PROTOCOL_VERSION


class TestSettings:
    """Test suite for Settings."""

    def test_defaults(self, settings):
        assert settings.port == 8080
        assert settings.protocol_version == LATEST_PROTOCOL_VERSION
        assert settings.enabled_providers == ["core", "memory"]
        assert settings.tool_timeout_seconds == 30.0
        assert settings.strict_arguments is False
        assert settings.max_payload_kb == 1024

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("MCP_GATEWAY_PROVIDERS", "memory, core,memory")
        monkeypatch.setenv("MCP_GATEWAY_STRICT_ARGUMENTS", "true")
        monkeypatch.setenv("MCP_GATEWAY_TOOL_TIMEOUT_SECONDS", "2.5")

        settings = Settings(_env_file=None)

        assert settings.enabled_providers == ["memory", "core"]
        assert settings.strict_arguments is True
        assert settings.tool_timeout_seconds == 2.5

    def test_log_level_normalized(self, make_settings):
        assert make_settings(log_level="debug").log_level == "DEBUG"

    def test_invalid_log_level_rejected(self, make_settings):
        with pytest.raises(ValidationError):
            make_settings(log_level="chatty")

    def test_timeout_must_be_positive(self, make_settings):
        with pytest.raises(ValidationError):
            make_settings(tool_timeout_seconds=0)

    def test_settings_are_frozen(self, settings):
        with pytest.raises(ValidationError):
            settings.providers = "core"

    def test_empty_provider_list(self, make_settings):
        assert make_settings(providers=" , ").enabled_providers == []

    def test_log_config_safely_includes_providers(self, settings):
        config = settings.log_config_safely()

        assert config["enabled_providers"] == ["core", "memory"]
        assert config["server_name"] == "mcp-gateway"

    def test_get_settings_is_cached(self):
        get_settings.cache_clear()
        try:
            assert get_settings() is get_settings()
        finally:
            get_settings.cache_clear()
