"""MCP protocol layer: framing, JSON-RPC, lifecycle and session transport."""

from workspace_mcp.protocol.framing import (
    BodyAccumulation,
    Framing,
    FramingDecoder,
    FramingError,
    HeaderSearch,
    encode_frame,
)
from workspace_mcp.protocol.jsonrpc import (
    JsonRpcError,
    JsonRpcNotification,
    JsonRpcRequest,
    JsonRpcResponse,
    format_error,
    format_notification,
    format_response,
    parse_message,
)
from workspace_mcp.protocol.lifecycle import (
    MCP_PROTOCOL_VERSION,
    LifecycleManager,
    LifecycleState,
)
from workspace_mcp.protocol.methods import Invocation, Method, resolve
from workspace_mcp.protocol.tools import ToolsCallResult, ToolsHandler, ToolsListResult
from workspace_mcp.protocol.transport import Session

__all__ = [
    "BodyAccumulation",
    "Framing",
    "FramingDecoder",
    "FramingError",
    "HeaderSearch",
    "Invocation",
    "JsonRpcError",
    "JsonRpcNotification",
    "JsonRpcRequest",
    "JsonRpcResponse",
    "LifecycleManager",
    "LifecycleState",
    "MCP_PROTOCOL_VERSION",
    "Method",
    "Session",
    "ToolsCallResult",
    "ToolsHandler",
    "ToolsListResult",
    "encode_frame",
    "format_error",
    "format_notification",
    "format_response",
    "parse_message",
    "resolve",
]
