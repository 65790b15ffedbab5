"""Aggregated, namespaced view of the tools of all connected servers.

A ToolCatalog is immutable once built. The registry builds a fresh catalog
whenever the connected servers or their tool lists change and swaps it in as
a whole, so a reader holding a catalog never sees it change underneath.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, Iterator

from toolhost_server.config import QUALIFIED_NAME_SEPARATOR
from toolhost_server.errors import CatalogCollisionError, ToolNotFoundError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolDescriptor:
    """A tool as advertised by its owning server.

    Attributes:
        name: Unqualified tool name, unique only within its server
        description: Human-readable description
        input_schema: JSON schema of the accepted arguments
        server: Name of the owning server (a lookup key)
    """

    name: str
    description: str
    input_schema: dict[str, Any] = field(default_factory=dict)
    server: str = ""


@dataclass(frozen=True)
class CatalogEntry:
    """A tool descriptor together with its globally unique qualified name."""

    qualified_name: str
    descriptor: ToolDescriptor

    @property
    def server(self) -> str:
        return self.descriptor.server

    @property
    def tool_name(self) -> str:
        return self.descriptor.name


def qualify(server: str, tool_name: str) -> str:
    """Compose the qualified name of a tool.

    Raises:
        ValueError: If the server name contains the separator
    """
    if QUALIFIED_NAME_SEPARATOR in server:
        raise ValueError(
            f"Server name '{server}' must not contain '{QUALIFIED_NAME_SEPARATOR}'"
        )
    return f"{server}{QUALIFIED_NAME_SEPARATOR}{tool_name}"


def split_qualified_name(qualified_name: str) -> tuple[str, str]:
    """Split a qualified name into (server, tool name).

    Server names never contain the separator, so splitting on its first
    occurrence recovers exactly the pair passed to qualify().

    Raises:
        ValueError: If the name has no separator or an empty part
    """
    server, sep, tool_name = qualified_name.partition(QUALIFIED_NAME_SEPARATOR)
    if not sep or not server or not tool_name:
        raise ValueError(f"'{qualified_name}' is not a qualified tool name")
    return server, tool_name


class ToolCatalog:
    """Insertion-ordered mapping from qualified names to catalog entries."""

    def __init__(self, entries: Iterable[CatalogEntry] = ()) -> None:
        """Create a catalog from already-qualified entries.

        Args:
            entries: Entries in catalog order

        Raises:
            CatalogCollisionError: If two entries share a qualified name
        """
        self._entries: dict[str, CatalogEntry] = {}
        for entry in entries:
            if entry.qualified_name in self._entries:
                raise CatalogCollisionError(
                    f"Qualified tool name '{entry.qualified_name}' is not unique",
                    details={"qualified_name": entry.qualified_name},
                )
            self._entries[entry.qualified_name] = entry

    @classmethod
    def build(
        cls, tools_by_server: Iterable[tuple[str, Iterable[ToolDescriptor]]]
    ) -> "ToolCatalog":
        """Build a catalog from each server's advertised tools.

        Servers are taken in the given order and tools in the order their
        server advertised them. When a qualified name is produced a second
        time the later tool is skipped and logged; the first one wins and the
        two are never merged.

        Args:
            tools_by_server: (server name, descriptors) pairs

        Returns:
            ToolCatalog: The new catalog
        """
        entries: list[CatalogEntry] = []
        seen: dict[str, CatalogEntry] = {}

        for server, descriptors in tools_by_server:
            for descriptor in descriptors:
                if not descriptor.name:
                    logger.warning(f"Skipping unnamed tool from server {server}")
                    continue

                if descriptor.server != server:
                    descriptor = ToolDescriptor(
                        name=descriptor.name,
                        description=descriptor.description,
                        input_schema=descriptor.input_schema,
                        server=server,
                    )

                qualified_name = qualify(server, descriptor.name)
                if qualified_name in seen:
                    logger.warning(
                        f"Skipping tool '{descriptor.name}' from server {server}: "
                        f"qualified name '{qualified_name}' already provided by "
                        f"server {seen[qualified_name].server}"
                    )
                    continue

                entry = CatalogEntry(
                    qualified_name=qualified_name, descriptor=descriptor
                )
                seen[qualified_name] = entry
                entries.append(entry)

        logger.debug(f"Built tool catalog with {len(entries)} tools")
        return cls(entries)

    def resolve(self, qualified_name: str) -> CatalogEntry:
        """Find the entry for a qualified tool name.

        Raises:
            ToolNotFoundError: If no connected server provides the tool
        """
        entry = self._entries.get(qualified_name)
        if entry is None:
            raise ToolNotFoundError(
                f"Unknown tool: {qualified_name}",
                details={"name": qualified_name},
            )
        return entry

    def list_for_model(self) -> list[dict[str, Any]]:
        """Return the tool list in the chat API's function-tool format.

        The owning server only appears as a hint in the description; it is not
        a field of the model-facing view.
        """
        return [
            {
                "type": "function",
                "function": {
                    "name": entry.qualified_name,
                    "description": f"[{entry.server}] {entry.descriptor.description}",
                    "parameters": entry.descriptor.input_schema
                    or {"type": "object", "properties": {}},
                },
            }
            for entry in self._entries.values()
        ]

    def list_entries(self) -> list[CatalogEntry]:
        return list(self._entries.values())

    def servers(self) -> list[str]:
        """Names of the servers contributing at least one tool, in order."""
        return list(dict.fromkeys(entry.server for entry in self._entries.values()))

    def __contains__(self, qualified_name: object) -> bool:
        return qualified_name in self._entries

    def __iter__(self) -> Iterator[CatalogEntry]:
        return iter(self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)
