"""CLI entry point for the demo tool servers.

Invoked as `toolhost-tool-server` (via the script entry point) or
`python -m toolhost_server.tool_servers`.
"""

import argparse
import logging
import sys

import uvicorn

from toolhost_server import __version__
from toolhost_server.tool_servers import SERVERS


def main() -> None:
    """Parse arguments and serve the selected demo tool server over SSE."""
    parser = argparse.ArgumentParser(
        prog="toolhost-tool-server",
        description="Serve one of the demo tool servers over SSE sessions",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"toolhost-tool-server {__version__}",
    )

    parser.add_argument(
        "--server",
        choices=sorted(SERVERS),
        default="todoplan",
        help="Which demo server to run (default: todoplan)",
    )

    parser.add_argument(
        "--host",
        type=str,
        default="127.0.0.1",
        help="Host to bind the server to (default: 127.0.0.1)",
    )

    parser.add_argument(
        "--port",
        type=int,
        default=8100,
        help="Port to bind the server to (default: 8100)",
    )

    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (default: INFO)",
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=args.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    tool_server = SERVERS[args.server]()
    logging.getLogger(__name__).info(
        f"Serving {tool_server.name} on http://{args.host}:{args.port}/sse"
    )

    uvicorn.run(
        tool_server.sse_app(),
        host=args.host,
        port=args.port,
        log_level=args.log_level.lower(),
    )


if __name__ == "__main__":
    sys.exit(main())
