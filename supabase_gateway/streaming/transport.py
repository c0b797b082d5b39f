"""
ASGI glue for the duplex ``/mcp`` stream.

The request body and the response body are both open for the life of the
connection. DuplexStreamingResponse therefore never reads from
``receive`` itself; the request body belongs to the protocol engine.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Callable

from starlette.requests import ClientDisconnect, Request
from starlette.responses import StreamingResponse
from starlette.types import Receive, Scope, Send

logger = logging.getLogger(__name__)


async def request_chunks(request: Request) -> AsyncIterator[bytes]:
    """Yield request body chunks; a client disconnect ends the stream."""
    try:
        async for chunk in request.stream():
            if chunk:
                yield chunk
    except ClientDisconnect:
        logger.debug("Client disconnected while streaming request body")


class DuplexStreamingResponse(StreamingResponse):
    """Streaming response that leaves the request body to the application.

    ``on_close`` runs once the body iterator is exhausted or the client
    goes away.
    """

    def __init__(self, *args, on_close: Callable[[], None] | None = None, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._on_close = on_close

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        try:
            await send(
                {
                    "type": "http.response.start",
                    "status": self.status_code,
                    "headers": self.raw_headers,
                }
            )
            async for chunk in self.body_iterator:
                if not isinstance(chunk, (bytes, memoryview)):
                    chunk = chunk.encode(self.charset)
                await send({"type": "http.response.body", "body": chunk, "more_body": True})
            await send({"type": "http.response.body", "body": b"", "more_body": False})
        except OSError:
            logger.debug("Client went away while streaming response")
        finally:
            if self._on_close is not None:
                self._on_close()
