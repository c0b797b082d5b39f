"""
Newline-delimited JSON framing.

Inbound bytes arrive in arbitrary chunks; LineBuffer reassembles them into
complete lines. Outbound messages are encoded one JSON object per line.

Invariants:
    - Lines are split on ``\\n`` at the byte level, so a multi-byte UTF-8
      character split across chunks is reassembled intact
    - Returned lines are whitespace-trimmed and never empty
    - Bytes after the last ``\\n`` stay buffered until more data arrives
"""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator
from typing import Any

logger = logging.getLogger(__name__)


class LineBuffer:
    """Accumulates byte chunks and yields complete lines."""

    def __init__(self) -> None:
        self._buffer = b""

    @property
    def pending(self) -> bytes:
        """Bytes received after the last newline."""
        return self._buffer

    def feed(self, chunk: bytes) -> list[str]:
        """Add a chunk and return every line it completes."""
        self._buffer += chunk
        lines = []
        while True:
            idx = self._buffer.find(b"\n")
            if idx < 0:
                break
            raw, self._buffer = self._buffer[:idx], self._buffer[idx + 1 :]
            line = raw.decode("utf-8", errors="replace").strip()
            if line:
                lines.append(line)
        return lines


async def iter_lines(chunks: AsyncIterator[bytes]) -> AsyncIterator[str]:
    """Yield complete, non-empty lines from a byte-chunk stream."""
    buffer = LineBuffer()
    async for chunk in chunks:
        for line in buffer.feed(chunk):
            yield line
    if buffer.pending.strip():
        logger.debug(f"Discarding {len(buffer.pending)} bytes without trailing newline")


def encode_message(message: dict[str, Any]) -> bytes:
    """Encode one outbound message as an NDJSON line."""
    return (json.dumps(message, separators=(",", ":"), default=str) + "\n").encode("utf-8")
