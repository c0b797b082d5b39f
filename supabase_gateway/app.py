"""
FastAPI application factory for the Supabase gateway.

This module creates the main FastAPI app with:
- CORS configuration from ALLOWED_ORIGINS
- Backend client lifecycle management
- Session registry and tool table on app state
- Error handlers mapping gateway errors to HTTP status codes
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from ._version import __version__
from .backend import BackendClient
from .config import Settings
from .errors import ErrorKind, GatewayError, UpstreamError
from .routes import router
from .streaming import SessionRegistry, build_tool_table

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    ErrorKind.TABLE_NOT_ALLOWED: 403,
    ErrorKind.WRITES_DISABLED: 403,
    ErrorKind.UNKNOWN_SESSION: 400,
    ErrorKind.SESSION_LIMIT: 503,
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage backend client lifecycle."""
    backend: BackendClient = app.state.backend

    await backend.connect()

    yield

    await backend.close()


async def gateway_error_handler(request: Request, exc: GatewayError) -> JSONResponse:
    """Translate a gateway error into a JSON error response."""
    body = {"error": exc.message}
    if isinstance(exc, UpstreamError):
        body = {"error": exc.body, "status": exc.status}
    return JSONResponse(body, status_code=ERROR_STATUS.get(exc.code, 500))


async def http_error_handler(request: Request, exc: httpx.HTTPError) -> JSONResponse:
    """Backend unreachable or timed out."""
    logger.error(f"Backend request failed: {exc!r}")
    return JSONResponse({"error": str(exc) or exc.__class__.__name__}, status_code=500)


def create_app(
    settings: Settings | None = None,
    backend: BackendClient | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or Settings()
    backend = backend or BackendClient(settings)

    app = FastAPI(
        title="Supabase MCP Gateway",
        description=(
            "Tool endpoints over a Supabase REST API, plus an NDJSON "
            "streaming endpoint that dispatches tool calls."
        ),
        version=__version__,
        lifespan=lifespan,
        # /openapi.json is served by the router
        openapi_url=None,
    )

    app.state.settings = settings
    app.state.backend = backend
    app.state.sessions = SessionRegistry(max_sessions=settings.max_sessions)
    app.state.tools = build_tool_table(backend)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["Mcp-Session-Id"],
    )

    app.add_exception_handler(GatewayError, gateway_error_handler)
    app.add_exception_handler(httpx.HTTPError, http_error_handler)

    # Health endpoint at root
    @app.get("/")
    async def health():
        return {"ok": True}

    app.include_router(router)

    return app
