"""Length-prefixed JSON framing for the browser native messaging channel.

Each frame is a 4-byte little-endian unsigned length followed by that many
bytes of UTF-8 JSON.
"""

from __future__ import annotations

import json
import struct
from typing import Any

from loguru import logger

HEADER = struct.Struct("<I")


def encode(message: Any) -> bytes:
    """Encode one message as a length-prefixed frame."""
    body = json.dumps(message, ensure_ascii=False, separators=(",", ":")).encode("utf-8")
    return HEADER.pack(len(body)) + body


class FrameCodec:
    """Incremental frame decoder; chunks may split or coalesce frames anywhere."""

    def __init__(self) -> None:
        self._buffer = bytearray()

    @property
    def buffered(self) -> int:
        """Bytes held back waiting for the rest of a frame."""
        return len(self._buffer)

    def feed(self, chunk: bytes) -> list[Any]:
        """Append a chunk and return every complete message found."""
        if chunk:
            self._buffer.extend(chunk)
        messages: list[Any] = []
        offset = 0
        size = len(self._buffer)
        while size - offset >= HEADER.size:
            (length,) = HEADER.unpack_from(self._buffer, offset)
            end = offset + HEADER.size + length
            if end > size:
                break
            body = bytes(self._buffer[offset + HEADER.size:end])
            offset = end
            try:
                messages.append(json.loads(body.decode("utf-8")))
            except (UnicodeDecodeError, json.JSONDecodeError):
                logger.warning("Dropping malformed frame ({} bytes): {!r}", length, body[:200])
        if offset:
            del self._buffer[:offset]
        return messages
