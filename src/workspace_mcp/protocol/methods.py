"""Supported MCP methods and their typed parameters.

Incoming messages are resolved once into an ``Invocation`` carrying a
``Method`` member (or ``None`` for anything unsupported) and the parameter
object that method expects.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from workspace_mcp.protocol.jsonrpc import JsonRpcNotification, JsonRpcRequest, MessageId

DEFAULT_PROTOCOL_VERSION = "2024-11-05"


class Method(Enum):
    """Methods understood by the server."""

    INITIALIZE = "initialize"
    INITIALIZED = "notifications/initialized"
    PING = "ping"
    PROMPTS_LIST = "prompts/list"
    RESOURCES_LIST = "resources/list"
    ROOTS_LIST_CHANGED = "notifications/roots/list_changed"
    TOOLS_LIST = "tools/list"
    TOOLS_CALL = "tools/call"


@dataclass(frozen=True)
class InitializeParams:
    """Parameters of an initialize request."""

    protocol_version: str | None = None
    client_info: dict[str, Any] | None = None
    capabilities: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, params: dict[str, Any]) -> InitializeParams:
        version = params.get("protocolVersion")
        capabilities = params.get("capabilities")
        return cls(
            protocol_version=version if isinstance(version, str) else None,
            client_info=params.get("clientInfo"),
            capabilities=capabilities if isinstance(capabilities, dict) else {},
        )


@dataclass(frozen=True)
class ToolCallParams:
    """Parameters of a tools/call request."""

    name: str
    arguments: Any = field(default_factory=dict)

    @classmethod
    def from_dict(cls, params: dict[str, Any]) -> ToolCallParams:
        name = params.get("name")
        arguments = params.get("arguments")
        return cls(
            name="" if name is None else str(name),
            arguments=arguments if arguments is not None else {},
        )


Params = InitializeParams | ToolCallParams | None


@dataclass(frozen=True)
class Invocation:
    """A decoded message resolved against the supported method set."""

    method: Method | None
    method_name: str
    id: MessageId
    is_notification: bool
    params: Params = None


def resolve(message: JsonRpcRequest | JsonRpcNotification) -> Invocation:
    """Resolve a parsed message into an invocation.

    Args:
        message: Parsed request or notification.

    Returns:
        Invocation with typed parameters for the methods that take any.
    """
    try:
        method: Method | None = Method(message.method)
    except ValueError:
        method = None

    raw_params = message.params or {}
    params: Params = None
    if method is Method.INITIALIZE:
        params = InitializeParams.from_dict(raw_params)
    elif method is Method.TOOLS_CALL:
        params = ToolCallParams.from_dict(raw_params)

    if isinstance(message, JsonRpcRequest):
        return Invocation(method, message.method, message.id, False, params)
    return Invocation(method, message.method, None, True, params)
