"""JSON-RPC 2.0 messages exchanged with MCP clients.

Incoming values have already been decoded by the framing layer; this module
only decides whether a value is a request or a notification. Outgoing
responses, errors and notifications are built as small dataclasses and
serialized with ``json.dumps``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

# Standard JSON-RPC 2.0 error codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

JSONRPC_VERSION = "2.0"

MessageId = int | float | str | None


class JsonRpcError(Exception):
    """Error reported back to the client as a JSON-RPC error object."""

    def __init__(self, code: int, message: str, data: Any | None = None) -> None:
        """Initialize the error.

        Args:
            code: JSON-RPC error code.
            message: Text sent as the error message.
            data: Optional structured detail.
        """
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = data

    def to_dict(self) -> dict[str, Any]:
        """Convert to the JSON-RPC error object."""
        error: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            error["data"] = self.data
        return error


@dataclass
class JsonRpcRequest:
    """Message with an ``id``; exactly one response is owed."""

    id: MessageId
    method: str
    params: dict[str, Any] | None = None


@dataclass
class JsonRpcNotification:
    """Message without an ``id``; never answered."""

    method: str
    params: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        message: dict[str, Any] = {"jsonrpc": JSONRPC_VERSION, "method": self.method}
        if self.params is not None:
            message["params"] = self.params
        return message


@dataclass
class JsonRpcResponse:
    """Answer to a request: a result or an error, never both."""

    id: MessageId
    result: Any = None
    error: JsonRpcError | None = None

    def to_dict(self) -> dict[str, Any]:
        message: dict[str, Any] = {"jsonrpc": JSONRPC_VERSION, "id": self.id}
        if self.error is not None:
            message["error"] = self.error.to_dict()
        else:
            message["result"] = self.result
        return message


def _message_id(data: dict[str, Any]) -> MessageId:
    msg_id = data["id"]
    if msg_id is None or isinstance(msg_id, int | float | str):
        return msg_id
    raise JsonRpcError(INVALID_REQUEST, "Invalid Request: id must be a number or string")


def parse_message(data: Any) -> JsonRpcRequest | JsonRpcNotification:
    """Classify a decoded JSON value.

    The ``jsonrpc`` member is not checked and params that are not an object
    are treated as absent. An ``id`` member makes a request even when it is
    null.

    Args:
        data: Value produced by the framing decoder.

    Returns:
        Parsed request or notification.

    Raises:
        JsonRpcError: INVALID_REQUEST if the value is not an object with a
            string ``method``, or its ``id`` has the wrong type.
    """
    if not isinstance(data, dict):
        raise JsonRpcError(INVALID_REQUEST, "Invalid Request: message must be an object")

    method = data.get("method")
    if not isinstance(method, str):
        raise JsonRpcError(INVALID_REQUEST, "Invalid Request: method must be a string")

    params = data.get("params")
    if not isinstance(params, dict):
        params = None

    if "id" not in data:
        return JsonRpcNotification(method=method, params=params)
    return JsonRpcRequest(id=_message_id(data), method=method, params=params)


def format_response(msg_id: MessageId, result: Any) -> str:
    """Serialize a successful response to ``msg_id``."""
    return json.dumps(JsonRpcResponse(id=msg_id, result=result).to_dict())


def format_error(msg_id: MessageId, code: int, message: str, data: Any | None = None) -> str:
    """Serialize an error response to ``msg_id``.

    ``data`` is left out of the error object when it is None.
    """
    return json.dumps(JsonRpcResponse(id=msg_id, error=JsonRpcError(code, message, data)).to_dict())


def format_notification(method: str, params: dict[str, Any] | None = None) -> str:
    """Serialize a server-to-client notification."""
    return json.dumps(JsonRpcNotification(method=method, params=params).to_dict())
