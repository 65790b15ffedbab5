"""Health check response model."""

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Response model for the health check endpoint.

    Attributes:
        status: Health status indicator ("ok" or "error").
        version: The version of toolhost-server.
        ollama_connected: Whether the Ollama server answered.
        ollama_host: The Ollama host URL.
        servers_connected: Number of tool servers with an open session.
        servers_total: Number of configured tool servers.
    """

    status: str = Field(..., description="Health status of the service")
    version: str = Field(..., description="Version of toolhost-server")
    ollama_connected: bool | None = Field(
        default=None,
        description="Whether Ollama is connected",
    )
    ollama_host: str | None = Field(
        default=None,
        description="Ollama host URL",
    )
    servers_connected: int = Field(default=0, description="Connected tool servers")
    servers_total: int = Field(default=0, description="Configured tool servers")
