"""MCP lifecycle tracking.

Records the initialize/initialized handshake for one session. The state is
informational: no method is refused because of it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from workspace_mcp.protocol.methods import DEFAULT_PROTOCOL_VERSION, InitializeParams

# Default version to advertise
MCP_PROTOCOL_VERSION = DEFAULT_PROTOCOL_VERSION


def default_capabilities() -> dict[str, Any]:
    """Capabilities advertised in the initialize result."""
    return {
        "tools": {"listChanged": True},
        "resources": {},
        "prompts": {},
    }


class LifecycleState(Enum):
    """MCP connection lifecycle states."""

    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    CLOSED = "closed"


@dataclass
class LifecycleManager:
    """Tracks the handshake of a single session."""

    server_info: dict[str, str] = field(
        default_factory=lambda: {"name": "workspace-mcp", "version": "0.1.0"}
    )
    capabilities: dict[str, Any] = field(default_factory=default_capabilities)
    default_protocol_version: str = MCP_PROTOCOL_VERSION
    state: LifecycleState = LifecycleState.UNINITIALIZED
    protocol_version: str | None = None
    client_info: dict[str, Any] | None = None
    client_capabilities: dict[str, Any] | None = None

    @property
    def is_ready(self) -> bool:
        """Check if the client completed the handshake."""
        return self.state == LifecycleState.READY

    @property
    def connected_client(self) -> dict[str, Any] | None:
        """Get information about the connected client.

        Returns:
            Client info dict as sent by the client, or None if not initialized.
        """
        return self.client_info

    def handle_initialize(self, params: InitializeParams) -> dict[str, Any]:
        """Handle initialize request.

        The client's requested protocol version is echoed back, falling back
        to ``default_protocol_version``. A repeated initialize restarts the
        handshake.

        Args:
            params: Initialize request parameters.

        Returns:
            Initialize response result.
        """
        self.protocol_version = params.protocol_version or self.default_protocol_version
        self.client_info = params.client_info
        self.client_capabilities = params.capabilities
        self.state = LifecycleState.INITIALIZING

        return {
            "protocolVersion": self.protocol_version,
            "serverInfo": self.server_info,
            "capabilities": self.capabilities,
        }

    def handle_initialized(self) -> bool:
        """Handle initialized notification.

        Returns:
            True if this notification moved the session to READY, False if
            it was already ready or closed.
        """
        if self.state in (LifecycleState.READY, LifecycleState.CLOSED):
            return False
        self.state = LifecycleState.READY
        return True

    def handle_close(self) -> None:
        """Mark the session as closed."""
        self.state = LifecycleState.CLOSED
