"""Tool registry - maps tool names to specifications and handlers."""

from __future__ import annotations

from functools import partial
from typing import Any

from workspace_mcp.tools.base import PluginBase, ToolHandler, ToolSpec


class ToolRegistrationError(Exception):
    """Raised when a tool cannot be registered."""

    pass


class ToolNotFoundError(Exception):
    """Raised when a tool is not found."""

    pass


class ToolExecutionError(Exception):
    """Raised when a tool handler fails."""

    pass


class ToolRegistry:
    """Registry of the tools exposed to every server instance.

    Tools are listed in registration order. Names are unique.
    """

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._specs: dict[str, ToolSpec] = {}
        self._handlers: dict[str, ToolHandler] = {}

    def __len__(self) -> int:
        return len(self._specs)

    def __contains__(self, name: object) -> bool:
        return name in self._specs

    def register_tool(self, spec: ToolSpec | dict[str, Any], handler: ToolHandler) -> ToolSpec:
        """Register a tool.

        Args:
            spec: Tool specification, as a ToolSpec or its MCP dict form.
            handler: Callable invoked with the call's arguments.

        Returns:
            The registered ToolSpec.

        Raises:
            ToolRegistrationError: If the spec is invalid or the name is taken.
        """
        if isinstance(spec, dict):
            if not isinstance(spec.get("name"), str):
                raise ToolRegistrationError("Tool spec must have a string 'name'")
            spec = ToolSpec.from_dict(spec)
        if not spec.name:
            raise ToolRegistrationError("Tool name must not be empty")
        if spec.name in self._specs:
            raise ToolRegistrationError(f"Tool already registered: {spec.name}")
        if not callable(handler):
            raise ToolRegistrationError(f"Handler for {spec.name} is not callable")

        self._specs[spec.name] = spec
        self._handlers[spec.name] = handler
        return spec

    def register_plugin(self, plugin: PluginBase) -> list[ToolSpec]:
        """Register every tool provided by a plugin.

        Args:
            plugin: Plugin instance to register.

        Returns:
            The registered specifications.
        """
        return [
            self.register_tool(spec, partial(plugin.execute, spec.name))
            for spec in plugin.get_tools()
        ]

    def list_tools(self) -> list[dict[str, Any]]:
        """List all registered tools in MCP format."""
        return [spec.to_dict() for spec in self._specs.values()]

    def get_spec(self, name: str) -> ToolSpec | None:
        """Get the specification of a tool, or None if unknown."""
        return self._specs.get(name)

    def resolve(self, name: str) -> ToolHandler | None:
        """Get the handler of a tool, or None if unknown."""
        return self._handlers.get(name)

    def call_tool(self, name: str, arguments: Any) -> Any:
        """Call a tool by name.

        Args:
            name: Name of the tool to call.
            arguments: Arguments passed to the handler.

        Returns:
            Whatever the handler returned.

        Raises:
            ToolNotFoundError: If the tool is not registered.
            ToolExecutionError: If the handler raised.
        """
        handler = self.resolve(name)
        if handler is None:
            raise ToolNotFoundError(f"Tool not found: {name}")

        try:
            return handler(arguments)
        except Exception as e:
            raise ToolExecutionError(str(e)) from e
