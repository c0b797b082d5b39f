"""
Shared fixtures for gateway tests.

The Supabase backend is replaced by FakeSupabase, an httpx.MockTransport
handler that records requests and plays back scripted responses.
"""

from typing import Any

import httpx
import pytest
import pytest_asyncio

from supabase_gateway.backend import BackendClient
from supabase_gateway.config import Settings

BACKEND_URL = "http://backend.test"


class FakeSupabase:
    """Scripted PostgREST stand-in."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._scripted: list[Any] = []

    def respond(
        self,
        status: int = 200,
        json: Any = None,
        text: str | None = None,
    ) -> None:
        """Queue the next response."""
        if text is not None:
            self._scripted.append(lambda: httpx.Response(status, text=text))
        elif json is not None:
            self._scripted.append(lambda: httpx.Response(status, json=json))
        else:
            self._scripted.append(lambda: httpx.Response(status))

    def fail(self, exc_factory) -> None:
        """Queue a transport failure."""
        self._scripted.append(exc_factory)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self._scripted:
            return httpx.Response(200, json=[])
        result = self._scripted.pop(0)()
        if isinstance(result, Exception):
            raise result
        return result

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


def make_settings(**overrides: Any) -> Settings:
    """Settings isolated from the process environment and .env."""
    values: dict[str, Any] = {
        "supabase_url": BACKEND_URL,
        "supabase_anon_key": "test-key",
        "allowed_tables": "",
        "allowed_origins": "",
        "allow_writes": False,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def supabase():
    """Fresh fake backend."""
    return FakeSupabase()


@pytest.fixture
def settings():
    """Default settings: all tables, writes off."""
    return make_settings()


@pytest_asyncio.fixture
async def backend(settings, supabase):
    """Connected backend client talking to the fake backend."""
    client = BackendClient(settings, transport=supabase.transport)
    await client.connect()
    yield client
    await client.close()


@pytest_asyncio.fixture
async def make_backend(supabase):
    """Factory for connected backend clients with setting overrides."""
    clients: list[BackendClient] = []

    async def factory(**overrides: Any) -> BackendClient:
        client = BackendClient(make_settings(**overrides), transport=supabase.transport)
        await client.connect()
        clients.append(client)
        return client

    yield factory

    for client in clients:
        await client.close()
