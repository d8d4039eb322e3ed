"""Request dispatcher.

Executes MCP method semantics for one decoded message. Handshake and
housekeeping methods answer immediately; tools/call runs as a task that
answers once the tool handler has completed on the host scheduler.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Callable
from typing import Any, cast

from workspace_mcp.eventlog import EventLog
from workspace_mcp.protocol.jsonrpc import (
    METHOD_NOT_FOUND,
    JsonRpcError,
    format_error,
    format_response,
    parse_message,
)
from workspace_mcp.protocol.methods import Invocation, Method, ToolCallParams, resolve
from workspace_mcp.protocol.tools import ToolsHandler
from workspace_mcp.protocol.transport import Session


class RequestDispatcher:
    """Routes decoded messages to method handlers.

    Responses go back to the session the message came from. Notifications
    never get a response, even when they fail.
    """

    def __init__(
        self,
        tools_handler: ToolsHandler,
        on_initialized: Callable[[], Any] | None = None,
        event_log: EventLog | None = None,
    ) -> None:
        """Initialize the dispatcher.

        Args:
            tools_handler: Handler for tools/list and tools/call.
            on_initialized: Host callback run when a session completes the
                handshake.
            event_log: Event log for received messages.
        """
        self._tools = tools_handler
        self._on_initialized = on_initialized
        self._event_log = event_log or EventLog()
        self._in_flight: set[asyncio.Task[None]] = set()

    @property
    def in_flight(self) -> int:
        """Number of tools/call requests still running."""
        return len(self._in_flight)

    def dispatch(self, message: Any, session: Session) -> asyncio.Task[None] | None:
        """Handle one decoded message from a session.

        Args:
            message: Decoded JSON value.
            session: Session the message arrived on.

        Returns:
            The task answering a tools/call request, otherwise None.
        """
        if self._event_log.enabled:
            self._event_log.log_message("recv", session.id, json.dumps(message))

        try:
            parsed = parse_message(message)
        except JsonRpcError as e:
            # Not a message at all; dropped like an undecodable frame
            self._event_log.log_connection("dropped_frame", session.id, reason=e.message)
            return None

        invocation = resolve(parsed)
        match invocation.method:
            case Method.INITIALIZE:
                result = session.lifecycle.handle_initialize(invocation.params)
                self._reply(session, invocation, result)
            case Method.INITIALIZED:
                if session.lifecycle.handle_initialized():
                    self._notify_initialized(session)
            case Method.PING:
                self._reply(session, invocation, {})
            case Method.PROMPTS_LIST:
                self._reply(session, invocation, {"prompts": []})
            case Method.RESOURCES_LIST:
                self._reply(session, invocation, {"resources": []})
            case Method.ROOTS_LIST_CHANGED:
                self._event_log.log_connection("roots_list_changed", session.id)
            case Method.TOOLS_LIST:
                self._reply(session, invocation, self._tools.handle_list().to_dict())
            case Method.TOOLS_CALL:
                return self._start_call(session, invocation)
            case None:
                if not invocation.is_notification:
                    session.send(
                        format_error(
                            invocation.id,
                            METHOD_NOT_FOUND,
                            f"Method not found: {invocation.method_name}",
                        )
                    )
        return None

    async def wait_idle(self) -> None:
        """Wait until every in-flight tools/call has answered."""
        while self._in_flight:
            await asyncio.gather(*self._in_flight, return_exceptions=True)

    def _notify_initialized(self, session: Session) -> None:
        if self._on_initialized is None:
            return
        # Host callback failures never reach the connection
        try:
            self._on_initialized()
        except Exception as e:
            self._event_log.log_connection("callback_error", session.id, error=str(e))

    def _reply(self, session: Session, invocation: Invocation, result: Any) -> None:
        if not invocation.is_notification:
            session.send(format_response(invocation.id, result))

    def _start_call(self, session: Session, invocation: Invocation) -> asyncio.Task[None]:
        task = asyncio.get_running_loop().create_task(self._call_tool(session, invocation))
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)
        return task

    async def _call_tool(self, session: Session, invocation: Invocation) -> None:
        params = cast(ToolCallParams, invocation.params)
        try:
            result = await self._tools.handle_call(params.name, params.arguments, invocation.id)
        except JsonRpcError as e:
            if not invocation.is_notification:
                session.send(format_error(invocation.id, e.code, e.message, e.data))
            return
        # A session closed meanwhile silently drops the reply
        self._reply(session, invocation, result.to_dict())
