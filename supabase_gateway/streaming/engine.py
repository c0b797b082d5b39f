"""
Streaming protocol engine.

One StreamSession drives one long-lived connection:

    HANDSHAKING ──open()──▶ ACTIVE ──close()──▶ CLOSED

open() registers the session and emits the ``ready`` event. run() then
reads byte chunks, frames them into lines and answers each line with
exactly one message:

    not JSON                  -> {"event": "error", "message": "Invalid JSON"}
    missing id / name         -> {"id": ..., "error": "Invalid message format"}
    unknown name              -> {"id": ..., "error": "Unknown tool"}
    tool succeeded            -> {"id": ..., "result": ...}
    tool failed               -> {"id": ..., "error": "<message>"}

Invariants:
    - The first message on every connection is ``ready``
    - Lines are handled one at a time; a tool call finishes and its result
      is queued before the next line is parsed
    - No tool-level error ends the session; only the connection closing does
    - close() is idempotent and unregisters the session exactly once
    - Writes after close() are dropped

How to change safely:
    - Add tools in tools.py; the dispatch loop is tool-agnostic
    - Keep the error strings stable, clients match on them
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import AsyncIterator, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pydantic import ValidationError

from ..backend import describe_validation_error
from ..errors import GatewayError, InvalidMessageError, UnknownToolError
from .channel import OutboundChannel
from .framing import iter_lines
from .registry import Session, SessionRegistry
from .tools import Tool

logger = logging.getLogger(__name__)

INVALID_JSON_EVENT = {"event": "error", "message": "Invalid JSON"}


def is_present(value: Any) -> bool:
    """Whether a decoded JSON value counts as supplied.

    null, false, 0 and "" are missing. Empty arrays and objects are not.
    """
    if value is None or value is False or value == "":
        return False
    if isinstance(value, (int, float)) and value == 0:
        return False
    return True


class SessionState(Enum):
    """Connection lifecycle states."""

    HANDSHAKING = "handshaking"
    ACTIVE = "active"
    CLOSED = "closed"


@dataclass(frozen=True)
class ToolCall:
    """A parsed inbound tool call."""

    id: Any
    name: str
    args: Any = None

    @classmethod
    def parse(cls, payload: Any) -> ToolCall:
        """Build a call from a decoded JSON value.

        Raises:
            InvalidMessageError: Not an object, or ``id``/``name`` missing
        """
        if not isinstance(payload, dict):
            raise InvalidMessageError()
        if not is_present(payload.get("id")) or not is_present(payload.get("name")):
            raise InvalidMessageError()
        return cls(id=payload["id"], name=payload["name"], args=payload.get("args"))


class StreamSession:
    """Protocol engine for a single streaming connection.

    Example:
        >>> session = StreamSession(registry, tools)
        >>> session_id = session.open(request_headers.get("Mcp-Session-Id"))
        >>> session.start(inbound_chunks)
        >>> async for chunk in session.channel.stream():
        ...     await write(chunk)
    """

    def __init__(
        self,
        registry: SessionRegistry,
        tools: Mapping[str, Tool],
        channel: OutboundChannel | None = None,
    ) -> None:
        self._registry = registry
        self._tools = tools
        self.channel = channel or OutboundChannel()
        self.state = SessionState.HANDSHAKING
        self.session: Session | None = None
        self.calls_handled = 0
        self._task: asyncio.Task | None = None

    @property
    def session_id(self) -> str | None:
        return self.session.id if self.session else None

    def open(self, requested_id: str | None = None) -> str:
        """Allocate or resume a session and emit ``ready``.

        Raises:
            UnknownSessionError: ``requested_id`` is not live
            SessionLimitError: Registry is full
        """
        if self.state is not SessionState.HANDSHAKING:
            raise RuntimeError(f"Cannot open session in state {self.state.value}")

        self.session = self._registry.create(self.channel, requested_id)
        self.channel.send({"event": "ready", "sessionId": self.session.id})
        self.state = SessionState.ACTIVE
        verb = "resumed" if self.session.resumed else "active"
        logger.info(f"Session {self.session.id} {verb} ({len(self._registry)} live)")
        return self.session.id

    def start(self, chunks: AsyncIterator[bytes]) -> asyncio.Task:
        """Run the read loop in a background task."""
        self._task = asyncio.create_task(self.run(chunks))
        return self._task

    async def run(self, chunks: AsyncIterator[bytes]) -> None:
        """Process inbound lines until the stream ends, then close."""
        try:
            async for line in iter_lines(chunks):
                if self.state is SessionState.CLOSED:
                    break
                await self.handle_line(line)
        finally:
            self.close()

    async def handle_line(self, line: str) -> dict[str, Any]:
        """Answer one inbound line and queue the reply."""
        message = await self.dispatch(line)
        self.calls_handled += 1
        self.channel.send(message)
        return message

    async def dispatch(self, line: str) -> dict[str, Any]:
        """Compute the reply for one inbound line."""
        try:
            payload = json.loads(line)
        except json.JSONDecodeError:
            logger.debug(f"Session {self.session_id}: invalid JSON line")
            return dict(INVALID_JSON_EVENT)

        try:
            call = ToolCall.parse(payload)
        except InvalidMessageError as exc:
            call_id = payload.get("id") if isinstance(payload, dict) else None
            return {"id": call_id, "error": exc.message}

        try:
            tool = self._tools.get(call.name) if isinstance(call.name, str) else None
            if tool is None:
                raise UnknownToolError(call.name)
            logger.debug(f"Session {self.session_id}: {tool.name} ({tool.capability.value}) id={call.id}")
            result = await tool.handler(call.args)
        except GatewayError as exc:
            return {"id": call.id, "error": exc.message}
        except ValidationError as exc:
            return {"id": call.id, "error": describe_validation_error(exc)}
        except Exception as exc:
            logger.error(f"Session {self.session_id}: tool {call.name} failed: {exc}", exc_info=True)
            return {"id": call.id, "error": str(exc)}

        return {"id": call.id, "result": result}

    def close(self) -> None:
        """Unregister the session and end the output stream. Idempotent."""
        if self.state is SessionState.CLOSED:
            return
        self.state = SessionState.CLOSED

        if self.session is not None:
            self._registry.remove(self.session.id, self.channel)
            logger.info(f"Session {self.session.id} closed after {self.calls_handled} messages")
        self.channel.close()
