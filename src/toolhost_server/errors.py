"""Exception types shared across toolhost-server.

Every failure the orchestration core can observe maps onto one of these
classes. Most of them are converted into data (error tool outcomes, failed
server entries) rather than propagated; only ModelCallError ends a cycle.
"""


class ToolhostError(Exception):
    """Base class for all toolhost-server errors."""

    code = "toolhost_error"

    def __init__(self, message: str, details: dict | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        """Return the error in the API error envelope shape."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
            }
        }


class ConnectFailure(ToolhostError):
    """A tool server was unreachable or rejected the handshake."""

    code = "connect_failure"


class TransportFailure(ToolhostError):
    """A request to a connected tool server failed mid-flight."""

    code = "transport_failure"


class CatalogCollisionError(ToolhostError):
    """Two catalog entries produced the same qualified name."""

    code = "catalog_collision"


class ToolNotFoundError(ToolhostError):
    """A qualified tool name could not be resolved to a server."""

    code = "unknown_tool"


class TranscriptError(ToolhostError):
    """A turn would break the transcript's invocation/outcome pairing."""

    code = "invalid_transcript"


class ModelCallError(ToolhostError):
    """The model endpoint failed or returned malformed content."""

    code = "model_error"


class ConversationNotFoundError(ToolhostError):
    """No conversation exists with the requested id."""

    code = "conversation_not_found"
