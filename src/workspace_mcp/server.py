"""MCP server instance.

One listening loopback endpoint serving one workspace. Accepted connections
become sessions whose messages are routed into a shared request dispatcher.
"""

from __future__ import annotations

import asyncio
import itertools
from collections.abc import Callable
from typing import Any

from workspace_mcp.config import ServerConfig
from workspace_mcp.dispatcher import RequestDispatcher
from workspace_mcp.eventlog import EventLog
from workspace_mcp.protocol.jsonrpc import format_notification
from workspace_mcp.protocol.lifecycle import LifecycleManager
from workspace_mcp.protocol.tools import ToolsHandler
from workspace_mcp.protocol.transport import Session
from workspace_mcp.scheduler import Scheduler
from workspace_mcp.tools.registry import ToolRegistry


class ServerInstance:
    """A bound endpoint and its set of sessions.

    Example:
        instance = ServerInstance("/work/project", tools, scheduler)
        port = await instance.start()
        instance.notify_all("notifications/tools/list_changed")
        await instance.stop()
    """

    def __init__(
        self,
        workspace: str,
        tools: ToolRegistry,
        scheduler: Scheduler,
        config: ServerConfig | None = None,
        event_log: EventLog | None = None,
        on_initialized: Callable[[], Any] | None = None,
    ) -> None:
        """Initialize the instance without binding.

        Args:
            workspace: Normalized workspace path served.
            tools: Tool registry shared by all instances.
            scheduler: Host scheduler tool handlers run on.
            config: Server settings.
            event_log: Event log for all records of this instance.
            on_initialized: Host callback for completed handshakes.
        """
        self.workspace = workspace
        self._config = config or ServerConfig()
        self._event_log = event_log or EventLog()
        self._dispatcher = RequestDispatcher(
            ToolsHandler(tools, scheduler, self._event_log),
            on_initialized=on_initialized,
            event_log=self._event_log,
        )
        self._server: asyncio.Server | None = None
        self._port: int | None = None
        # dict keeps accept order
        self._sessions: dict[Session, None] = {}
        self._session_ids = itertools.count(1)

    def __repr__(self) -> str:
        return f"ServerInstance(workspace={self.workspace!r}, port={self._port}, sessions={len(self._sessions)})"

    @property
    def port(self) -> int | None:
        """Bound port, or None before start."""
        return self._port

    @property
    def is_serving(self) -> bool:
        """Whether the endpoint is listening."""
        return self._server is not None and self._server.is_serving()

    @property
    def sessions(self) -> list[Session]:
        """Active sessions in accept order."""
        return list(self._sessions)

    @property
    def dispatcher(self) -> RequestDispatcher:
        """Dispatcher handling this instance's messages."""
        return self._dispatcher

    async def start(self, port: int = 0) -> int:
        """Bind and start listening.

        Args:
            port: Port to bind; 0 picks an ephemeral port.

        Returns:
            The bound port.

        Raises:
            OSError: If the endpoint cannot be bound.
        """
        self._server = await asyncio.start_server(
            self._accept,
            self._config.host,
            port,
            backlog=self._config.backlog,
        )
        self._port = self._server.sockets[0].getsockname()[1]
        self._event_log.log_server("started", self.workspace, self._port)
        return self._port

    async def stop(self) -> None:
        """Close the endpoint and every session."""
        if self._server is None:
            return
        server, self._server = self._server, None
        server.close()
        for session in list(self._sessions):
            session.close()
        self._sessions.clear()
        await server.wait_closed()
        self._event_log.log_server("stopped", self.workspace, self._port)

    def notify_all(self, method: str, params: dict[str, Any] | None = None) -> int:
        """Send one notification to every open session.

        Args:
            method: Notification method name.
            params: Optional parameters.

        Returns:
            Number of sessions the notification was written to.
        """
        payload = format_notification(method, params)
        sent = 0
        for session in list(self._sessions):
            if not session.is_closing:
                session.send(payload)
                sent += 1
        return sent

    async def _accept(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        if self._server is None:
            writer.close()
            return

        session = Session(
            next(self._session_ids),
            reader,
            writer,
            LifecycleManager(
                server_info=self._config.server_info,
                default_protocol_version=self._config.protocol_version,
            ),
            event_log=self._event_log,
            max_line_bytes=self._config.max_line_bytes,
        )
        self._sessions[session] = None
        self._event_log.log_connection("connected", session.id, peer=str(session.peer))
        try:
            await session.run(self._dispatcher.dispatch)
        finally:
            self._sessions.pop(session, None)
