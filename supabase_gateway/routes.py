"""
API routes for the Supabase gateway.

Provides:
- Synchronous tool endpoints (``/tools/supabase_select``, ``/tools/supabase_insert``)
- The streaming endpoint (``/mcp``)
- Plugin manifest and OpenAPI documents

Gateway errors raised by the backend are turned into JSON responses by the
handlers registered in app.py.
"""

import json
import logging
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import FileResponse, JSONResponse, Response

from .backend import BackendClient, InsertRequest, SelectRequest
from .config import Settings
from .errors import SessionLimitError, UnknownSessionError
from .streaming import SessionRegistry, StreamSession, Tool
from .streaming.transport import DuplexStreamingResponse, request_chunks

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Supabase Gateway"])

SESSION_HEADER = "Mcp-Session-Id"
HOST_PLACEHOLDER = "{{HOST}}"


# --- Dependencies ---


def get_settings(request: Request) -> Settings:
    """Get settings from app state."""
    return request.app.state.settings


def get_backend(request: Request) -> BackendClient:
    """Get backend client from app state."""
    return request.app.state.backend


def get_sessions(request: Request) -> SessionRegistry:
    """Get session registry from app state."""
    return request.app.state.sessions


def get_tools(request: Request) -> dict[str, Tool]:
    """Get tool table from app state."""
    return request.app.state.tools


# --- Tool Routes ---


@router.post("/tools/supabase_select")
async def supabase_select(
    body: SelectRequest,
    backend: BackendClient = Depends(get_backend),
):
    """
    Read rows from a table.

    Match filters become ``eq`` predicates; ``order`` sorts on one column.
    """
    return await backend.select(
        body.table,
        select=body.select,
        match=body.match,
        limit=body.limit,
        order=body.order,
    )


@router.post("/tools/supabase_insert")
async def supabase_insert(
    body: InsertRequest,
    backend: BackendClient = Depends(get_backend),
):
    """
    Insert rows into a table.

    Responds with the backend's status. The body is the inserted rows when
    ``returnRepresentation`` is set, otherwise an acknowledgment.
    """
    result = await backend.insert(
        body.table,
        body.rows,
        return_representation=body.return_representation,
    )
    if result.status == 204:
        return Response(status_code=204)
    return JSONResponse(result.payload(), status_code=result.status)


# --- Streaming Route ---


@router.post("/mcp")
async def mcp_stream(
    request: Request,
    sessions: SessionRegistry = Depends(get_sessions),
    tools: dict[str, Tool] = Depends(get_tools),
):
    """
    Open a bidirectional NDJSON stream.

    Send ``Mcp-Session-Id`` to resume a live session. Each request line is a
    tool call ``{"id", "name", "args"}``; each response line answers one call.
    """
    session = StreamSession(sessions, tools)
    try:
        session_id = session.open(request.headers.get(SESSION_HEADER) or None)
    except UnknownSessionError as exc:
        return JSONResponse({"error": exc.message}, status_code=400)
    except SessionLimitError as exc:
        logger.warning(f"Refusing stream: {exc.limit} sessions live")
        return JSONResponse({"error": exc.message}, status_code=503)

    session.start(request_chunks(request))
    return DuplexStreamingResponse(
        session.channel.stream(),
        on_close=session.close,
        media_type="application/json",
        headers={
            SESSION_HEADER: session_id,
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
        },
    )


# --- Document Routes ---


@router.get("/.well-known/ai-plugin.json")
async def plugin_manifest(
    request: Request,
    settings: Settings = Depends(get_settings),
):
    """Serve the plugin manifest, pointing ``api.url`` at this host."""
    try:
        content: Any = json.loads(settings.manifest_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.error(f"Failed to load plugin manifest {settings.manifest_path}: {e}")
        return JSONResponse({"error": "Failed to load plugin manifest"}, status_code=500)

    api = content.get("api") if isinstance(content, dict) else None
    if isinstance(api, dict) and HOST_PLACEHOLDER in str(api.get("url", "")):
        api["url"] = f"https://{request.headers.get('host', 'localhost')}/openapi.json"
    return content


@router.get("/openapi.json", include_in_schema=False)
async def openapi_document(
    request: Request,
    settings: Settings = Depends(get_settings),
):
    """Serve the configured OpenAPI file, or the generated schema."""
    if settings.openapi_path.is_file():
        return FileResponse(settings.openapi_path, media_type="application/json")
    return request.app.openapi()
