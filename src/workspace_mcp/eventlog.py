"""Server event log.

Append-only JSON Lines log of server, connection, message and tool events.
Each record carries a UTC timestamp and the file is flushed after every
write. Without a log path every call is a no-op.
"""

from __future__ import annotations

import json
import re
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

# Patterns for sensitive argument keys
SENSITIVE_PATTERNS = [
    re.compile(r"password", re.IGNORECASE),
    re.compile(r"secret", re.IGNORECASE),
    re.compile(r"api[_-]?key", re.IGNORECASE),
    re.compile(r"token", re.IGNORECASE),
    re.compile(r"auth", re.IGNORECASE),
    re.compile(r"credential", re.IGNORECASE),
    re.compile(r"private[_-]?key", re.IGNORECASE),
]

DEFAULT_PREVIEW_CHARS = 100


def _is_sensitive_key(key: str) -> bool:
    """Check if a key name indicates sensitive data."""
    return any(pattern.search(key) for pattern in SENSITIVE_PATTERNS)


def _sanitize_arguments(arguments: Any) -> Any:
    """Redact sensitive values from tool arguments.

    Args:
        arguments: Arguments as sent by the client.

    Returns:
        Copy with sensitive values replaced by "[REDACTED]".
    """
    if isinstance(arguments, list):
        return [_sanitize_arguments(item) for item in arguments]
    if not isinstance(arguments, dict):
        return arguments
    sanitized = {}
    for key, value in arguments.items():
        if _is_sensitive_key(str(key)):
            sanitized[key] = "[REDACTED]"
        else:
            sanitized[key] = _sanitize_arguments(value)
    return sanitized


def _get_timestamp() -> str:
    """Get current UTC timestamp in ISO 8601 format."""
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


def preview(text: str | bytes, limit: int = DEFAULT_PREVIEW_CHARS) -> str:
    """Shorten a payload for logging."""
    if isinstance(text, bytes):
        text = text.decode("utf-8", errors="replace")
    if len(text) > limit:
        return text[:limit] + "..."
    return text


class EventLog:
    """Append-only JSON Lines event log."""

    def __init__(self, log_path: Path | None = None, preview_chars: int = DEFAULT_PREVIEW_CHARS) -> None:
        """Initialize the event log.

        Args:
            log_path: Path to the log file, or None to disable logging.
            preview_chars: Payload characters kept in message records.
        """
        self._log_path = log_path
        self._preview_chars = preview_chars
        self._file = None
        if log_path is not None:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            self._file = open(log_path, "a", encoding="utf-8")  # noqa: SIM115

    @property
    def enabled(self) -> bool:
        """Whether records are written anywhere."""
        return self._file is not None and not self._file.closed

    def _write_line(self, data: dict[str, Any]) -> None:
        """Write a JSON line to the log file and flush."""
        if not self.enabled:
            return
        data["timestamp"] = _get_timestamp()
        self._file.write(json.dumps(data, default=str) + "\n")
        self._file.flush()

    def log_server(self, event: str, workspace: str, port: int | None = None) -> None:
        """Log a server start or stop.

        Args:
            event: "started" or "stopped".
            workspace: Normalized workspace path.
            port: Bound port, if known.
        """
        self._write_line({"type": "server", "event": event, "workspace": workspace, "port": port})

    def log_connection(self, event: str, session_id: int, **details: Any) -> None:
        """Log a connection-level event.

        Args:
            event: connected, disconnected, overflow, dropped_frame, bad_header,
                read_error, callback_error.
            session_id: Session identifier within its server.
            **details: Extra fields for the record.
        """
        record = {"type": "connection", "event": event, "session_id": session_id}
        record.update(details)
        self._write_line(record)

    def log_message(self, direction: str, session_id: int, payload: str | bytes) -> None:
        """Log a received or sent message with a truncated payload.

        Args:
            direction: "recv" or "send".
            session_id: Session identifier within its server.
            payload: Message text.
        """
        self._write_line(
            {
                "type": "message",
                "direction": direction,
                "session_id": session_id,
                "payload": preview(payload, self._preview_chars),
            }
        )

    def log_tool_call(self, request_id: Any, tool_name: str, arguments: Any) -> None:
        """Log an incoming tool call.

        Args:
            request_id: JSON-RPC id of the call.
            tool_name: Name of the tool being invoked.
            arguments: Tool arguments (will be sanitized).
        """
        self._write_line(
            {
                "type": "tool_call",
                "request_id": request_id,
                "tool_name": tool_name,
                "arguments": _sanitize_arguments(arguments),
            }
        )

    def log_tool_result(self, request_id: Any, status: str, duration_ms: float) -> None:
        """Log the outcome of a tool call.

        Args:
            request_id: JSON-RPC id to correlate with.
            status: "success", "not_found" or "error".
            duration_ms: Time from call to completion in milliseconds.
        """
        self._write_line(
            {
                "type": "tool_result",
                "request_id": request_id,
                "result_status": status,
                "execution_time_ms": duration_ms,
            }
        )

    def close(self) -> None:
        """Close the log file."""
        if self._file and not self._file.closed:
            self._file.close()

    def __enter__(self) -> EventLog:
        """Context manager entry."""
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Context manager exit."""
        self.close()
