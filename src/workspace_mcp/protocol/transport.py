"""TCP session transport for MCP communication.

A ``Session`` is one accepted connection. It owns the connection's framing
decoder, reads chunks until end of stream, and writes outgoing frames in
the framing the client committed to.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

from workspace_mcp.eventlog import EventLog
from workspace_mcp.protocol.framing import (
    MAX_LINE_BYTES,
    Framing,
    FramingDecoder,
    FramingError,
    encode_frame,
)
from workspace_mcp.protocol.lifecycle import LifecycleManager

READ_CHUNK_SIZE = 65_536

MessageHandler = Callable[[Any, "Session"], None]


class Session:
    """One client connection and its decoding state."""

    def __init__(
        self,
        session_id: int,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        lifecycle: LifecycleManager,
        event_log: EventLog | None = None,
        max_line_bytes: int = MAX_LINE_BYTES,
    ) -> None:
        """Initialize the session.

        Args:
            session_id: Identifier unique within the owning server.
            reader: Stream the client's bytes arrive on.
            writer: Stream outgoing frames are written to.
            lifecycle: Handshake state for this connection.
            event_log: Event log for connection and message records.
            max_line_bytes: Overflow threshold for line framing.
        """
        self.id = session_id
        self.lifecycle = lifecycle
        self._reader = reader
        self._writer = writer
        self._event_log = event_log or EventLog()
        self._decoder = FramingDecoder(max_line_bytes=max_line_bytes, on_discard=self._on_discard)
        self._closed = False

    def __repr__(self) -> str:
        return f"Session(id={self.id}, peer={self.peer!r}, closing={self.is_closing})"

    @property
    def peer(self) -> Any:
        """Remote address of the connection."""
        return self._writer.get_extra_info("peername")

    @property
    def framing(self) -> Framing | None:
        """Framing the client committed to, or None before its first frame."""
        return self._decoder.framing

    @property
    def is_closing(self) -> bool:
        """Whether the connection is closed or being closed."""
        return self._closed or self._writer.is_closing()

    def send(self, payload: str) -> None:
        """Write one JSON payload as a frame.

        Writes to a closing session are dropped.

        Args:
            payload: Serialized JSON text.
        """
        if self.is_closing:
            return
        self._event_log.log_message("send", self.id, payload)
        self._writer.write(encode_frame(payload, self.framing))

    def close(self) -> None:
        """Close the connection. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self.lifecycle.handle_close()
        self._writer.close()

    async def run(self, on_message: MessageHandler) -> None:
        """Read until end of stream, passing each decoded message on.

        The session is closed on end of stream, on a read error, and on a
        header that carries no usable Content-Length.

        Args:
            on_message: Called with (message, session) for every message.
        """
        try:
            while not self._closed:
                try:
                    chunk = await self._reader.read(READ_CHUNK_SIZE)
                except (ConnectionError, OSError) as e:
                    self._event_log.log_connection("read_error", self.id, error=str(e))
                    break
                if not chunk:
                    break

                self._decoder.feed(chunk)
                try:
                    for message in self._decoder.messages():
                        on_message(message, self)
                except FramingError as e:
                    self._event_log.log_connection("bad_header", self.id, error=str(e))
                    break
        finally:
            self._event_log.log_connection("disconnected", self.id)
            self.close()

    def _on_discard(self, reason: str, data: bytes) -> None:
        if reason == "overflow":
            self._event_log.log_connection("overflow", self.id, discarded_bytes=len(data))
        else:
            self._event_log.log_connection(
                "dropped_frame", self.id, reason=reason, payload=data[:100].decode("utf-8", "replace")
            )
