"""Server registry.

Maps normalized workspace paths to their running server instances. The host
application owns one ``ServerRegistry`` and passes it to whatever needs to
create, look up, or stop servers.
"""

from __future__ import annotations

import asyncio
import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any

from workspace_mcp.config import ServerConfig
from workspace_mcp.eventlog import EventLog
from workspace_mcp.scheduler import Scheduler
from workspace_mcp.server import ServerInstance
from workspace_mcp.tools.base import ToolHandler, ToolSpec
from workspace_mcp.tools.registry import ToolRegistry

TOOLS_LIST_CHANGED = "notifications/tools/list_changed"

ServerCreatedCallback = Callable[[str, ServerInstance], Any]
DirectoryChangeCallback = Callable[[str], Any]


class ServerStartError(Exception):
    """Raised when a server instance cannot be bound."""

    pass


@dataclass
class ServerEntry:
    """A running server and how to reach it."""

    instance: ServerInstance
    port: int
    token: str | None = None


def normalize_path(path: str | os.PathLike[str]) -> str:
    """Normalize a workspace path into a registry key.

    The path is made absolute with ``~`` expanded, and a trailing separator
    is removed unless the path is the filesystem root.

    Args:
        path: Workspace directory.

    Returns:
        Normalized absolute path.
    """
    normalized = os.path.abspath(os.path.expanduser(os.fspath(path)))
    while len(normalized) > 1 and normalized[-1] in "/\\":
        normalized = normalized[:-1]
    return normalized


class ServerRegistry:
    """At most one server instance per workspace path."""

    def __init__(
        self,
        tools: ToolRegistry | None = None,
        scheduler: Scheduler | None = None,
        config: ServerConfig | None = None,
        event_log: EventLog | None = None,
        on_server_created: ServerCreatedCallback | None = None,
        on_directory_change: DirectoryChangeCallback | None = None,
        on_initialized: Callable[[], Any] | None = None,
    ) -> None:
        """Initialize an empty registry.

        Args:
            tools: Tool registry served by every instance.
            scheduler: Host scheduler tool handlers run on.
            config: Settings for new instances.
            event_log: Event log shared by all instances.
            on_server_created: Called with (path, instance) after a new
                instance is registered.
            on_directory_change: Called with the path on every
                ``ensure_server``.
            on_initialized: Passed to every instance; called when a client
                completes the handshake.
        """
        self.tools = tools or ToolRegistry()
        self.scheduler = scheduler or Scheduler()
        self._config = config or ServerConfig()
        self._event_log = event_log or EventLog()
        self._on_server_created = on_server_created
        self._on_directory_change = on_directory_change
        self._on_initialized = on_initialized
        self._servers: dict[str, ServerEntry] = {}
        self._starting: dict[str, asyncio.Task[ServerEntry]] = {}

    def __len__(self) -> int:
        return len(self._servers)

    @property
    def servers(self) -> Mapping[str, ServerEntry]:
        """Read-only view of path -> entry."""
        return MappingProxyType(self._servers)

    async def ensure_server(self, path: str | os.PathLike[str]) -> ServerEntry:
        """Get the server for a workspace, starting one if needed.

        Args:
            path: Workspace directory.

        Returns:
            The existing or newly created entry.

        Raises:
            ServerStartError: If a new instance cannot be bound.
        """
        key = normalize_path(path)
        entry = self._servers.get(key)
        if entry is None:
            # Concurrent callers for the same path share one start
            task = self._starting.get(key)
            if task is None:
                task = asyncio.get_running_loop().create_task(self._start(key))
                self._starting[key] = task
                task.add_done_callback(lambda _: self._starting.pop(key, None))
            entry = await asyncio.shield(task)

        if self._on_directory_change is not None:
            self._on_directory_change(key)
        return entry

    def get_server(self, path: str | os.PathLike[str]) -> ServerEntry | None:
        """Look up the server for a workspace without creating one.

        Args:
            path: Workspace directory.

        Returns:
            The entry, or None if no server runs for that path.
        """
        return self._servers.get(normalize_path(path))

    async def stop_all(self) -> None:
        """Stop every instance and forget all paths."""
        entries = list(self._servers.values())
        self._servers.clear()
        for entry in entries:
            await entry.instance.stop()

    async def restart_all(self) -> list[ServerEntry]:
        """Stop every instance, then start a fresh one for each known path.

        Returns:
            The new entries, in the order the paths were first registered.
        """
        paths = list(self._servers)
        await self.stop_all()
        return [await self.ensure_server(path) for path in paths]

    def notify_all(self, method: str, params: dict[str, Any] | None = None) -> int:
        """Send one notification to every session of every instance.

        Returns:
            Number of sessions written to.
        """
        return sum(entry.instance.notify_all(method, params) for entry in self._servers.values())

    def register_tool(self, spec: ToolSpec | dict[str, Any], handler: ToolHandler) -> ToolSpec:
        """Register a tool and tell connected clients the list changed.

        Args:
            spec: Tool specification.
            handler: Callable invoked with the call's arguments.

        Returns:
            The registered ToolSpec.
        """
        registered = self.tools.register_tool(spec, handler)
        self.notify_all(TOOLS_LIST_CHANGED)
        return registered

    async def _start(self, key: str) -> ServerEntry:
        instance = ServerInstance(
            key,
            self.tools,
            self.scheduler,
            config=self._config,
            event_log=self._event_log,
            on_initialized=self._on_initialized,
        )
        try:
            port = await instance.start()
        except OSError as e:
            raise ServerStartError(f"Failed to start MCP server for {key}: {e}") from e

        entry = ServerEntry(instance=instance, port=port)
        self._servers[key] = entry
        if self._on_server_created is not None:
            self._on_server_created(key, instance)
        return entry

