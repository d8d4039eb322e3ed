"""Shared fixtures and helpers for the workspace MCP tests."""

from __future__ import annotations

import asyncio
import json
from typing import Any
from unittest.mock import MagicMock

import pytest

from workspace_mcp.protocol.lifecycle import LifecycleManager
from workspace_mcp.protocol.transport import Session
from workspace_mcp.tools.registry import ToolRegistry


class FakeWriter:
    """Stand-in for asyncio.StreamWriter that records written bytes."""

    def __init__(self) -> None:
        self.data = bytearray()
        self.closed = False

    def write(self, data: bytes) -> None:
        self.data.extend(data)

    def is_closing(self) -> bool:
        return self.closed

    def close(self) -> None:
        self.closed = True

    def get_extra_info(self, name: str, default: Any = None) -> Any:
        if name == "peername":
            return ("127.0.0.1", 50000)
        return default

    def messages(self) -> list[dict[str, Any]]:
        """Decode every line-framed message written so far."""
        return [json.loads(line) for line in self.data.decode("utf-8").splitlines() if line]


def make_session(session_id: int = 1) -> tuple[Session, FakeWriter]:
    """Create a session backed by a FakeWriter."""
    writer = FakeWriter()
    session = Session(session_id, MagicMock(), writer, LifecycleManager())
    return session, writer


@pytest.fixture
def tool_registry() -> ToolRegistry:
    """Registry with a few representative tools."""
    registry = ToolRegistry()
    registry.register_tool(
        {
            "name": "echo",
            "description": "Echoes the input",
            "inputSchema": {
                "type": "object",
                "properties": {"message": {"type": "string"}},
                "required": ["message"],
            },
        },
        lambda args: args["message"],
    )
    registry.register_tool(
        {
            "name": "add",
            "description": "Adds two numbers",
            "inputSchema": {
                "type": "object",
                "properties": {"a": {"type": "number"}, "b": {"type": "number"}},
            },
        },
        lambda args: {"sum": args["a"] + args["b"]},
    )

    def crash(args: Any) -> Any:
        raise RuntimeError("Intentional crash for testing")

    registry.register_tool({"name": "crash", "description": "Always crashes"}, crash)
    return registry


async def read_message(reader: asyncio.StreamReader, timeout: float = 2.0) -> dict[str, Any]:
    """Read one line-framed message from a client connection."""
    line = await asyncio.wait_for(reader.readline(), timeout)
    assert line, "connection closed before a message arrived"
    return json.loads(line)


async def read_header_message(reader: asyncio.StreamReader, timeout: float = 2.0) -> dict[str, Any]:
    """Read one header-framed message from a client connection."""
    header = await asyncio.wait_for(reader.readuntil(b"\r\n\r\n"), timeout)
    length = int(header.split(b":", 1)[1].strip())
    body = await asyncio.wait_for(reader.readexactly(length), timeout)
    return json.loads(body)
