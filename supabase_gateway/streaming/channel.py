"""
Outbound message channel for a streaming connection.

The protocol engine writes messages with send(); the HTTP response drains
them with stream(). Each message becomes its own chunk, so the response
flushes after every message.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from typing import Any

from .framing import encode_message

logger = logging.getLogger(__name__)


class OutboundChannel:
    """Write side of a streaming session.

    Once closed, send() is a no-op that returns False. Messages already
    queued before close() are still delivered.
    """

    def __init__(self) -> None:
        self._queue: asyncio.Queue[bytes | None] = asyncio.Queue()
        self._closed = False
        self.sent = 0

    @property
    def closed(self) -> bool:
        return self._closed

    def send(self, message: dict[str, Any]) -> bool:
        """Queue a message. Returns False if the channel is closed."""
        if self._closed:
            logger.debug("Dropping message for closed channel")
            return False
        self._queue.put_nowait(encode_message(message))
        self.sent += 1
        return True

    def close(self) -> None:
        """Stop accepting messages and end the stream. Idempotent."""
        if self._closed:
            return
        self._closed = True
        self._queue.put_nowait(None)

    async def stream(self) -> AsyncIterator[bytes]:
        """Yield encoded messages until the channel is closed."""
        while True:
            chunk = await self._queue.get()
            if chunk is None:
                return
            yield chunk
