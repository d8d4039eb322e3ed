"""Tool specification and plugin base class.

Defines what the host hands to the tool registry: a schema-described tool
specification plus a handler, optionally grouped into a plugin.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

# A handler receives the call's arguments and returns any result
ToolHandler = Callable[[Any], Any]


@dataclass(frozen=True)
class ToolSpec:
    """Specification of a tool exposed to clients."""

    name: str
    description: str = ""
    input_schema: dict[str, Any] = field(default_factory=lambda: {"type": "object"})

    @classmethod
    def from_dict(cls, spec: dict[str, Any]) -> ToolSpec:
        """Create a ToolSpec from its MCP dictionary form.

        Args:
            spec: Dictionary with name, description and inputSchema.

        Returns:
            ToolSpec instance.
        """
        return cls(
            name=spec["name"],
            description=spec.get("description", ""),
            input_schema=spec.get("inputSchema", {"type": "object"}),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to MCP tool format.

        Returns:
            Dictionary in MCP tools/list format.
        """
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }


class PluginBase(ABC):
    """Abstract base class for a group of tools registered together."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the plugin identifier."""
        pass

    @abstractmethod
    def get_tools(self) -> list[ToolSpec]:
        """Return tool specifications provided by this plugin."""
        pass

    @abstractmethod
    def execute(self, tool_name: str, arguments: Any) -> Any:
        """Execute a tool.

        Args:
            tool_name: Name of the tool to execute.
            arguments: Tool arguments as sent by the client.

        Returns:
            Tool result; strings are sent verbatim, dicts and lists as JSON.
        """
        pass
