"""Business logic services for toolhost-server.

This package contains helpers shared by the orchestration loop and the
routers, such as the synthesis of the model's system instructions.
"""

from toolhost_server.services.instructions import build_system_instructions

__all__ = [
    "build_system_instructions",
]
