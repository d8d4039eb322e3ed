"""Per-workspace MCP tool server."""

from workspace_mcp.config import ServerConfig, load_config
from workspace_mcp.registry import ServerEntry, ServerRegistry, ServerStartError
from workspace_mcp.scheduler import Scheduler
from workspace_mcp.server import ServerInstance
from workspace_mcp.tools import ToolRegistry, ToolSpec

__version__ = "0.1.0"

__all__ = [
    "Scheduler",
    "ServerConfig",
    "ServerEntry",
    "ServerInstance",
    "ServerRegistry",
    "ServerStartError",
    "ToolRegistry",
    "ToolSpec",
    "load_config",
]
