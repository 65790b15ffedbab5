"""toolhost-server: Headless FastAPI host bridging Ollama and remote tool servers.

This package connects to any number of tool servers over session-oriented SSE
channels, aggregates their tools into one namespaced catalog, and runs the
model -> tool -> model loop for each conversation.
"""

__version__ = "0.1.0"

from toolhost_server.app import create_app  # noqa: E402

__all__ = ["create_app", "__version__"]
