"""
Error types for the Supabase gateway.

This module defines every error kind the gateway reports to clients:
- GatewayError: Base exception
- TableNotAllowedError: Table outside the configured allow-list
- WritesDisabledError: Insert attempted while writes are off
- UpstreamError: Backend responded with a non-success status
- InvalidMessageError: Streamed line is not a valid tool call
- UnknownToolError: Tool name not in the tool table
- UnknownSessionError: Resume requested for a session that does not exist
- SessionLimitError: Live session bound reached

Invariants:
    - All errors inherit from GatewayError
    - ``code`` is always an ErrorKind value
    - ``message`` is the exact client-visible text

How to change safely:
    - Client-visible messages are part of the wire contract; do not reword
    - Add new kinds to ErrorKind before raising them
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    """Closed set of error kinds."""

    TABLE_NOT_ALLOWED = "TABLE_NOT_ALLOWED"
    WRITES_DISABLED = "WRITES_DISABLED"
    UPSTREAM_ERROR = "UPSTREAM_ERROR"
    INVALID_MESSAGE = "INVALID_MESSAGE"
    UNKNOWN_TOOL = "UNKNOWN_TOOL"
    UNKNOWN_SESSION = "UNKNOWN_SESSION"
    SESSION_LIMIT = "SESSION_LIMIT"


class GatewayError(Exception):
    """Base exception for all gateway errors.

    Attributes:
        message: Client-visible error message
        code: Error kind for programmatic handling
        details: Additional error context
    """

    def __init__(
        self,
        message: str,
        code: ErrorKind,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}


class TableNotAllowedError(GatewayError):
    """Table is not in the configured allow-list."""

    def __init__(self, table: Any) -> None:
        super().__init__(
            "Table not allowed",
            code=ErrorKind.TABLE_NOT_ALLOWED,
            details={"table": table},
        )
        self.table = table


class WritesDisabledError(GatewayError):
    """Insert attempted while ALLOW_WRITES is off."""

    def __init__(self) -> None:
        super().__init__("Inserts not allowed", code=ErrorKind.WRITES_DISABLED)


class UpstreamError(GatewayError):
    """Backend responded with a non-success status.

    The message is the JSON rendering of the upstream body so that
    streaming clients see the backend's own error text.

    Attributes:
        status: Upstream HTTP status code
        body: Parsed JSON body, or raw text if it was not JSON
    """

    def __init__(self, status: int, body: Any) -> None:
        super().__init__(
            json.dumps(body),
            code=ErrorKind.UPSTREAM_ERROR,
            details={"status": status, "body": body},
        )
        self.status = status
        self.body = body


class InvalidMessageError(GatewayError):
    """Streamed line is malformed or lacks ``id``/``name``."""

    def __init__(self, message: str = "Invalid message format") -> None:
        super().__init__(message, code=ErrorKind.INVALID_MESSAGE)


class UnknownToolError(GatewayError):
    """Tool name is not registered."""

    def __init__(self, name: Any) -> None:
        super().__init__("Unknown tool", code=ErrorKind.UNKNOWN_TOOL, details={"name": name})
        self.name = name


class UnknownSessionError(GatewayError):
    """Requested session id is not live."""

    def __init__(self, session_id: str) -> None:
        super().__init__(
            "Unknown session",
            code=ErrorKind.UNKNOWN_SESSION,
            details={"session_id": session_id},
        )
        self.session_id = session_id


class SessionLimitError(GatewayError):
    """Too many live sessions."""

    def __init__(self, limit: int) -> None:
        super().__init__(
            "Too many sessions",
            code=ErrorKind.SESSION_LIMIT,
            details={"limit": limit},
        )
        self.limit = limit
