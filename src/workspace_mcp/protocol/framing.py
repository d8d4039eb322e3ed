"""Byte-stream framing for MCP connections.

A connection may frame its messages in one of two ways:

- Header framing (LSP style): ``Content-Length: <n>\\r\\n\\r\\n`` followed by
  exactly ``n`` bytes of JSON. A ``\\n\\n`` terminator is also accepted.
- Line framing: one JSON document per ``\\n``-terminated line.

``FramingDecoder`` accumulates raw bytes and yields complete JSON values,
consuming exactly the bytes of the frames it extracts. It is fed once per
read and drained until no further progress is possible.
"""

from __future__ import annotations

import json
import re
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from enum import Enum
from typing import Any

HEADER_TOKEN = b"Content-Length:"
HEADER_TERMINATORS = (b"\r\n\r\n", b"\n\n")
CONTENT_LENGTH_RE = re.compile(rb"content-length:\s*(\d+)", re.IGNORECASE)

# Unterminated line data beyond this size is discarded
MAX_LINE_BYTES = 10_000


class FramingError(Exception):
    """Raised when a frame header is unusable and the stream cannot continue."""

    pass


class Framing(Enum):
    """Framing convention a connection has committed to."""

    LINE = "line"
    HEADER = "header"


@dataclass(frozen=True)
class HeaderSearch:
    """No body length is pending; looking for a header or a line."""


@dataclass(frozen=True)
class BodyAccumulation:
    """A header was parsed; waiting for ``expected_length`` body bytes."""

    expected_length: int


FramingState = HeaderSearch | BodyAccumulation

# Called with (reason, discarded bytes) whenever data is dropped
DiscardCallback = Callable[[str, bytes], None]


def encode_frame(payload: str, framing: Framing | None = None) -> bytes:
    """Encode an outgoing JSON payload for the given framing.

    Args:
        payload: Serialized JSON text.
        framing: Framing of the receiving connection; line framing if None.

    Returns:
        Bytes ready to be written to the stream.
    """
    body = payload.encode("utf-8")
    if framing is Framing.HEADER:
        return b"Content-Length: %d\r\n\r\n" % len(body) + body
    return body + b"\n"


def _find_header_end(buffer: bytearray) -> tuple[int, int] | None:
    """Locate the earliest blank-line terminator.

    Returns:
        (start of terminator, end of terminator) or None if absent.
    """
    best: tuple[int, int] | None = None
    for terminator in HEADER_TERMINATORS:
        index = buffer.find(terminator)
        if index != -1 and (best is None or index < best[0]):
            best = (index, index + len(terminator))
    return best


class FramingDecoder:
    """Incremental decoder for header-framed and line-framed JSON.

    Invalid JSON in a complete frame is dropped without surfacing an error.
    Unterminated line data above ``max_line_bytes`` is discarded. A header
    that carries the ``Content-Length:`` token but no parsable length raises
    ``FramingError``; the caller is expected to drop the connection.
    """

    def __init__(
        self,
        max_line_bytes: int = MAX_LINE_BYTES,
        on_discard: DiscardCallback | None = None,
    ) -> None:
        """Initialize the decoder.

        Args:
            max_line_bytes: Overflow threshold for unterminated line data.
            on_discard: Optional callback notified of dropped data.
        """
        self._buffer = bytearray()
        self._state: FramingState = HeaderSearch()
        self._framing: Framing | None = None
        self._max_line_bytes = max_line_bytes
        self._on_discard = on_discard

    @property
    def state(self) -> FramingState:
        """Current framing state."""
        return self._state

    @property
    def framing(self) -> Framing | None:
        """Framing committed to by the first frame, or None before that."""
        return self._framing

    @property
    def buffered(self) -> int:
        """Number of bytes received but not yet consumed."""
        return len(self._buffer)

    def feed(self, data: bytes) -> None:
        """Append newly received bytes."""
        self._buffer.extend(data)

    def messages(self) -> Iterator[Any]:
        """Yield every complete message currently extractable.

        The generator stops as soon as more bytes are needed; call it again
        after the next ``feed``.

        Raises:
            FramingError: On a header with no parsable Content-Length.
        """
        while True:
            if isinstance(self._state, BodyAccumulation):
                length = self._state.expected_length
                if len(self._buffer) < length:
                    return
                body = self._take(length)
                self._state = HeaderSearch()
                yield from self._decode(body)
            elif self._buffer.startswith(HEADER_TOKEN):
                if not self._read_header():
                    return
            else:
                newline = self._buffer.find(b"\n")
                if newline == -1:
                    if len(self._buffer) > self._max_line_bytes:
                        self._discard("overflow", self._take(len(self._buffer)))
                    return
                line = self._take(newline + 1)
                self._commit(Framing.LINE)
                yield from self._decode(line)

    def _read_header(self) -> bool:
        """Consume a header block and switch to body accumulation.

        Returns:
            False if the header is not complete yet.
        """
        bounds = _find_header_end(self._buffer)
        if bounds is None:
            return False
        start, end = bounds
        headers = bytes(self._buffer[:start])
        del self._buffer[:end]

        match = CONTENT_LENGTH_RE.search(headers)
        if match is None:
            raise FramingError(
                "Content-Length header without a valid length: "
                + headers.decode("utf-8", errors="replace")
            )
        self._commit(Framing.HEADER)
        self._state = BodyAccumulation(int(match.group(1)))
        return True

    def _decode(self, frame: bytes) -> Iterator[Any]:
        # Invalid JSON and blank lines are dropped; the stream stays usable
        if not frame.strip():
            return
        try:
            message = json.loads(frame)
        except (ValueError, RecursionError):
            # RecursionError: nesting deeper than the decoder can follow
            self._discard("invalid_json", frame)
            return
        yield message

    def _take(self, count: int) -> bytes:
        chunk = bytes(self._buffer[:count])
        del self._buffer[:count]
        return chunk

    def _commit(self, framing: Framing) -> None:
        if self._framing is None:
            self._framing = framing

    def _discard(self, reason: str, data: bytes) -> None:
        if self._on_discard is not None:
            self._on_discard(reason, data)
