"""Tool registry and plugins."""

from workspace_mcp.tools.base import PluginBase, ToolHandler, ToolSpec
from workspace_mcp.tools.registry import (
    ToolExecutionError,
    ToolNotFoundError,
    ToolRegistrationError,
    ToolRegistry,
)

__all__ = [
    "PluginBase",
    "ToolExecutionError",
    "ToolHandler",
    "ToolNotFoundError",
    "ToolRegistrationError",
    "ToolRegistry",
    "ToolSpec",
]
