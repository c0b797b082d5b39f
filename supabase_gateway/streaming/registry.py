"""
In-memory registry of live streaming sessions.

Maps session id to the output channel of the connection that currently
owns it. The registry is injected into every StreamSession rather than
held as module state.

Invariants:
    - Session ids are unique among live sessions
    - At most one channel is registered per id; resuming an id closes the
      channel it replaces
    - Removal is idempotent and never evicts a newer owner
    - A new session beyond ``max_sessions`` is refused; resumes are not

Thread safety:
    All mutations happen under a threading.Lock, so the registry is safe
    from worker threads as well as from coroutines on one loop.
"""

from __future__ import annotations

import dataclasses
import logging
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

from ..errors import SessionLimitError, UnknownSessionError
from .channel import OutboundChannel

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Session:
    """A live streaming session.

    Attributes:
        id: Opaque session identifier
        channel: Output channel of the owning connection
        created_at: When the id was first allocated
        resumed: Whether the current owner resumed an existing id
    """

    id: str
    channel: OutboundChannel
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    resumed: bool = False


class SessionRegistry:
    """Owns the lifecycle of session ids."""

    def __init__(self, max_sessions: int = 1000) -> None:
        self.max_sessions = max_sessions
        self._sessions: dict[str, Session] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def create(self, channel: OutboundChannel, requested_id: str | None = None) -> Session:
        """Allocate a new session or resume ``requested_id``.

        Args:
            channel: Output channel of the connection taking the session
            requested_id: Id supplied by the client, if any

        Returns:
            The registered Session

        Raises:
            UnknownSessionError: ``requested_id`` is not live
            SessionLimitError: No room for a new session
        """
        with self._lock:
            if requested_id:
                existing = self._sessions.get(requested_id)
                if existing is None:
                    raise UnknownSessionError(requested_id)
                existing.channel.close()
                logger.debug(f"Session {requested_id} taken over by a new connection")
                session = dataclasses.replace(existing, channel=channel, resumed=True)
                self._sessions[requested_id] = session
                return session

            if len(self._sessions) >= self.max_sessions:
                raise SessionLimitError(self.max_sessions)

            session_id = str(uuid.uuid4())
            while session_id in self._sessions:
                session_id = str(uuid.uuid4())
            session = Session(id=session_id, channel=channel)
            self._sessions[session_id] = session
            return session

    def lookup(self, session_id: str) -> Session | None:
        """Get a live session, or None."""
        with self._lock:
            return self._sessions.get(session_id)

    def remove(self, session_id: str, channel: OutboundChannel | None = None) -> bool:
        """Remove a session.

        When ``channel`` is given, the entry is only removed if that channel
        still owns it.

        Returns:
            True if an entry was removed
        """
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return False
            if channel is not None and session.channel is not channel:
                return False
            del self._sessions[session_id]
            return True
