"""Unit tests for configuration settings."""

import pytest
from pydantic import ValidationError

from toolhost_server.config import ToolhostSettings, ToolServerConfig


def test_settings_default_values(monkeypatch):
    """Test that settings have correct default values."""
    monkeypatch.delenv("TOOLHOST_TOOL_SERVERS", raising=False)
    settings = ToolhostSettings()

    assert settings.host == "127.0.0.1"
    assert settings.port == 8000
    assert settings.ollama_host == "http://localhost:11434"
    assert settings.log_level == "INFO"
    assert settings.max_tool_rounds == 10
    assert settings.max_cycle_seconds == 300.0
    assert settings.parallel_tool_calls is False
    assert [server.name for server in settings.tool_servers] == [
        "todoplan-server",
        "project-server",
    ]


def test_settings_env_prefix(monkeypatch):
    """Test that settings respect the TOOLHOST_ environment variable prefix."""
    monkeypatch.setenv("TOOLHOST_PORT", "9000")
    monkeypatch.setenv("TOOLHOST_OLLAMA_HOST", "http://custom:11434")
    monkeypatch.setenv("TOOLHOST_MAX_TOOL_ROUNDS", "3")

    settings = ToolhostSettings()

    assert settings.port == 9000
    assert settings.ollama_host == "http://custom:11434"
    assert settings.max_tool_rounds == 3


def test_tool_servers_from_env_json(monkeypatch):
    """Test that tool servers can be given as JSON in the environment."""
    monkeypatch.setenv(
        "TOOLHOST_TOOL_SERVERS",
        '[{"name": "alpha", "url": "http://a:8100/sse"},'
        ' {"name": "beta", "url": "http://b:8101/sse"}]',
    )

    settings = ToolhostSettings()

    assert settings.tool_servers == [
        ToolServerConfig(name="alpha", url="http://a:8100/sse"),
        ToolServerConfig(name="beta", url="http://b:8101/sse"),
    ]


def test_server_name_with_separator_rejected():
    """Test that a server name containing the separator is rejected."""
    with pytest.raises(ValidationError):
        ToolServerConfig(name="my_server", url="http://localhost:8100/sse")


def test_duplicate_server_names_rejected():
    """Test that two servers may not share a name."""
    with pytest.raises(ValidationError, match="Duplicate tool server name"):
        ToolhostSettings(
            tool_servers=[
                ToolServerConfig(name="alpha", url="http://a:8100/sse"),
                ToolServerConfig(name="alpha", url="http://b:8100/sse"),
            ]
        )


def test_max_tool_rounds_must_be_positive():
    """Test that a zero round budget is rejected."""
    with pytest.raises(ValidationError):
        ToolhostSettings(max_tool_rounds=0)
