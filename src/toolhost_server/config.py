"""Configuration module for toolhost-server using pydantic-settings."""

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Joins a server name and a tool name into a qualified tool name.
QUALIFIED_NAME_SEPARATOR = "_"


class ToolServerConfig(BaseModel):
    """A remote tool server the host connects to at startup."""

    name: str = Field(..., min_length=1, description="Stable server identity")
    url: str = Field(..., description="URL of the server's SSE stream endpoint")

    @field_validator("name")
    @classmethod
    def validate_name(cls, value: str) -> str:
        """Reject names that would make qualified tool names ambiguous."""
        if QUALIFIED_NAME_SEPARATOR in value:
            raise ValueError(
                f"Server name '{value}' must not contain "
                f"'{QUALIFIED_NAME_SEPARATOR}'"
            )
        return value


def _default_tool_servers() -> list[ToolServerConfig]:
    return [
        ToolServerConfig(name="todoplan-server", url="http://localhost:8100/sse"),
        ToolServerConfig(name="project-server", url="http://localhost:8101/sse"),
    ]


class ToolhostSettings(BaseSettings):
    """Main configuration settings for toolhost-server.

    All settings can be overridden via environment variables with the TOOLHOST_
    prefix. For example, TOOLHOST_OLLAMA_HOST will override the ollama_host
    setting. List-valued settings such as tool_servers are given as JSON:

        TOOLHOST_TOOL_SERVERS='[{"name": "alpha", "url": "http://a:8100/sse"}]'
    """

    # Server
    host: str = "127.0.0.1"
    port: int = 8000

    # Ollama
    ollama_host: str = "http://localhost:11434"
    model: str = "qwen3:8b"
    max_tokens: int = 1024

    # Tool servers
    tool_servers: list[ToolServerConfig] = Field(default_factory=_default_tool_servers)

    # Timeouts (seconds)
    connect_timeout: float = 10.0
    tool_call_timeout: float = 30.0
    chat_timeout: float = 120.0

    # Orchestration budget
    max_tool_rounds: int = Field(default=10, ge=1)
    max_cycle_seconds: float = Field(default=300.0, gt=0)
    parallel_tool_calls: bool = False

    # CORS
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    # Logging
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_prefix="TOOLHOST_")

    @field_validator("tool_servers")
    @classmethod
    def validate_unique_names(
        cls, value: list[ToolServerConfig]
    ) -> list[ToolServerConfig]:
        """Server names identify servers, so they must be unique."""
        seen: set[str] = set()
        for server in value:
            if server.name in seen:
                raise ValueError(f"Duplicate tool server name: {server.name}")
            seen.add(server.name)
        return value
