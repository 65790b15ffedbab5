"""CLI entry point for toolhost-server.

Invoked as `toolhost-server` (via the script entry point) or
`python -m toolhost_server`. Flags override the TOOLHOST_* environment
variables, which override the defaults in ToolhostSettings.
"""

import argparse
import logging
import sys

import uvicorn

from toolhost_server import __version__, create_app
from toolhost_server.config import ToolhostSettings

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

# Flag destination -> settings field, for flags that map one to one.
_SETTING_FLAGS = {
    "host": "host",
    "port": "port",
    "ollama_host": "ollama_host",
    "model": "model",
    "max_tool_rounds": "max_tool_rounds",
    "parallel_tool_calls": "parallel_tool_calls",
    "log_level": "log_level",
}


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser. Unset flags default to None."""
    parser = argparse.ArgumentParser(
        prog="toolhost-server",
        description="Headless FastAPI host that lets an Ollama model call tools "
        "on multiple remote tool servers",
    )
    parser.add_argument(
        "--version", action="version", version=f"toolhost-server {__version__}"
    )

    server = parser.add_argument_group("http server")
    server.add_argument("--host", help="Bind address (env: TOOLHOST_HOST)")
    server.add_argument("--port", type=int, help="Bind port (env: TOOLHOST_PORT)")
    server.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload for development (uvicorn --reload)",
    )
    server.add_argument(
        "--log-level",
        choices=LOG_LEVELS,
        help="Logging level (env: TOOLHOST_LOG_LEVEL)",
    )

    model = parser.add_argument_group("model")
    model.add_argument(
        "--ollama-host", help="Ollama server URL (env: TOOLHOST_OLLAMA_HOST)"
    )
    model.add_argument("--model", help="Ollama model name (env: TOOLHOST_MODEL)")

    tools = parser.add_argument_group("tools")
    tools.add_argument(
        "--tool-server",
        action="append",
        metavar="NAME=URL",
        help="Tool server to connect to; repeat for several servers. "
        "Replaces TOOLHOST_TOOL_SERVERS",
    )
    tools.add_argument(
        "--max-tool-rounds",
        type=int,
        help="Model calls allowed per message (env: TOOLHOST_MAX_TOOL_ROUNDS)",
    )
    tools.add_argument(
        "--parallel-tool-calls",
        action="store_true",
        default=None,
        help="Run the tool calls of one model reply concurrently",
    )
    return parser


def parse_tool_server(entry: str) -> dict[str, str]:
    """Parse a NAME=URL flag value.

    Raises:
        ValueError: If the value is not of the form NAME=URL
    """
    name, sep, url = entry.partition("=")
    if not sep or not name or not url:
        raise ValueError(f"--tool-server expects NAME=URL, got '{entry}'")
    return {"name": name, "url": url}


def settings_from_args(args: argparse.Namespace) -> ToolhostSettings:
    """Build settings, with flags that were given overriding the environment.

    Raises:
        ValueError: If a --tool-server value is malformed
        pydantic.ValidationError: If the resulting settings are invalid
    """
    overrides = {
        field: getattr(args, flag)
        for flag, field in _SETTING_FLAGS.items()
        if getattr(args, flag) is not None
    }
    if args.tool_server is not None:
        overrides["tool_servers"] = [
            parse_tool_server(entry) for entry in args.tool_server
        ]
    return ToolhostSettings(**overrides)


def main() -> None:
    """Parse arguments and run the host under uvicorn."""
    parser = build_parser()
    args = parser.parse_args()

    try:
        settings = settings_from_args(args)
    except ValueError as e:
        parser.error(str(e))

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = create_app(settings=settings)
    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        reload=args.reload,
    )


if __name__ == "__main__":
    sys.exit(main())
