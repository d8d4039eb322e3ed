"""Built-in tools registered by the command-line host."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from workspace_mcp.tools.base import PluginBase, ToolSpec

if TYPE_CHECKING:
    from workspace_mcp.registry import ServerRegistry


class BuiltinPlugin(PluginBase):
    """Tools describing the running host."""

    def __init__(self, servers: ServerRegistry) -> None:
        """Initialize the plugin.

        Args:
            servers: Registry whose servers ``list_servers`` reports.
        """
        self._servers = servers

    @property
    def name(self) -> str:
        return "builtin"

    def get_tools(self) -> list[ToolSpec]:
        return [
            ToolSpec(
                name="echo",
                description="Return the given message unchanged",
                input_schema={
                    "type": "object",
                    "properties": {"message": {"type": "string"}},
                    "required": ["message"],
                },
            ),
            ToolSpec(
                name="list_servers",
                description="List the workspaces served by this host and their ports",
                input_schema={"type": "object", "properties": {}},
            ),
        ]

    def execute(self, tool_name: str, arguments: Any) -> Any:
        if tool_name == "echo":
            return arguments["message"]
        if tool_name == "list_servers":
            return [
                {
                    "workspace": path,
                    "port": entry.port,
                    "sessions": len(entry.instance.sessions),
                }
                for path, entry in self._servers.servers.items()
            ]
        raise ValueError(f"Unknown tool: {tool_name}")
