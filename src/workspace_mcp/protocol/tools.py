"""MCP tools/list and tools/call handlers.

Tool handlers run on the host scheduler, never inside a connection's read
loop. Failures are reported as JSON-RPC internal errors.
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass
from typing import Any

from workspace_mcp.eventlog import EventLog
from workspace_mcp.protocol.jsonrpc import INTERNAL_ERROR, JsonRpcError
from workspace_mcp.scheduler import Scheduler
from workspace_mcp.tools.registry import ToolExecutionError, ToolNotFoundError, ToolRegistry


@dataclass
class ToolsListResult:
    """Result of tools/list request."""

    tools: list[dict[str, Any]]

    def to_dict(self) -> dict[str, Any]:
        """Convert to MCP result format.

        Returns:
            Dictionary in MCP tools/list result format.
        """
        return {"tools": self.tools}


@dataclass
class ToolsCallResult:
    """Result of a successful tools/call request."""

    text: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to MCP result format.

        Returns:
            Dictionary in MCP tools/call result format.
        """
        return {
            "content": [{"type": "text", "text": self.text}],
            "isError": False,
        }


def coerce_result(result: Any) -> str:
    """Turn a handler's return value into the text sent to the client.

    Strings pass through, dicts, lists and tuples become JSON, anything else is
    converted with ``str``.

    Raises:
        TypeError: If a dict or list holds values JSON cannot encode.
    """
    if isinstance(result, str):
        return result
    if isinstance(result, dict | list | tuple):
        return json.dumps(result)
    return str(result)


class ToolsHandler:
    """Handles tools/list and tools/call requests."""

    def __init__(self, registry: ToolRegistry, scheduler: Scheduler, event_log: EventLog | None = None) -> None:
        """Initialize the handler.

        Args:
            registry: Tool registry to list and resolve tools from.
            scheduler: Host scheduler tool handlers run on.
            event_log: Event log for tool call records.
        """
        self._registry = registry
        self._scheduler = scheduler
        self._event_log = event_log or EventLog()

    def handle_list(self) -> ToolsListResult:
        """Handle tools/list request.

        Returns:
            ToolsListResult with every tool registered at call time.
        """
        return ToolsListResult(tools=self._registry.list_tools())

    async def handle_call(self, name: str, arguments: Any, request_id: Any = None) -> ToolsCallResult:
        """Handle tools/call request.

        The tool is resolved and invoked on the scheduler, so tools
        registered after the call was received are still found.

        Args:
            name: Name of the tool to call.
            arguments: Tool arguments.
            request_id: JSON-RPC id, for the event log.

        Returns:
            ToolsCallResult with the coerced handler result.

        Raises:
            JsonRpcError: INTERNAL_ERROR if the tool is missing or fails.
        """
        self._event_log.log_tool_call(request_id, name, arguments)
        started = time.perf_counter()
        status = "error"
        try:
            result = await self._scheduler.submit(lambda: self._registry.call_tool(name, arguments))
            text = coerce_result(result)
            status = "success"
            return ToolsCallResult(text=text)
        except ToolNotFoundError as e:
            status = "not_found"
            raise JsonRpcError(INTERNAL_ERROR, str(e)) from e
        except ToolExecutionError as e:
            raise JsonRpcError(INTERNAL_ERROR, f"Internal Error: {e}") from e
        except (TypeError, ValueError) as e:
            raise JsonRpcError(INTERNAL_ERROR, f"Internal Error: {e}") from e
        finally:
            duration_ms = (time.perf_counter() - started) * 1000
            self._event_log.log_tool_result(request_id, status, duration_ms)
