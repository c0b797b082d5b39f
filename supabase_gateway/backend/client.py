"""
HTTP client for the Supabase PostgREST API.

Translates the two gateway tools into REST calls:
- select: GET <base>/<table>?select=...&col=eq.val&limit=N&order=col.dir
- insert: POST <base>/<table> with a JSON body and a Prefer header

There is no caching and no retry. A failed upstream call surfaces
immediately as UpstreamError carrying the status and body.

Invariants:
    - Allow-list and write checks run before any network call
    - One httpx.AsyncClient per BackendClient, opened by connect()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

import httpx

from ..config import Settings
from ..errors import TableNotAllowedError, UpstreamError, WritesDisabledError
from .query import OrderSpec, build_select_query

logger = logging.getLogger(__name__)


@dataclass
class InsertResult:
    """Outcome of an insert.

    Attributes:
        status: Upstream HTTP status
        rows: Inserted rows when the backend returned a representation
    """

    status: int
    rows: Any = None

    def payload(self) -> Any:
        """Rows if present, otherwise a minimal acknowledgment."""
        if self.rows is not None:
            return self.rows
        return {"status": self.status, "message": "Insert successful"}


class BackendClient:
    """
    Async client for the backing REST data API.

    Example:
        >>> client = BackendClient(Settings())
        >>> await client.connect()
        >>> rows = await client.select("todos", limit=5)
        >>> await client.close()
    """

    def __init__(
        self,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = settings
        self._transport = transport
        self._http: httpx.AsyncClient | None = None

    @property
    def is_connected(self) -> bool:
        return self._http is not None

    async def connect(self) -> None:
        """Open the underlying HTTP client."""
        if self._http:
            return

        key = self.settings.supabase_anon_key
        self._http = httpx.AsyncClient(
            headers={
                "apikey": key,
                "Authorization": f"Bearer {key}",
                "Content-Type": "application/json",
            },
            timeout=self.settings.request_timeout,
            transport=self._transport,
        )
        logger.info(f"Backend client ready for {self.settings.rest_base_url}")

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._http:
            await self._http.aclose()
            self._http = None

    async def __aenter__(self) -> BackendClient:
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    def check_table(self, table: str) -> None:
        """Raise TableNotAllowedError unless the allow-list admits ``table``."""
        allowed = self.settings.allowed_table_list
        if allowed and table not in allowed:
            raise TableNotAllowedError(table)

    def table_url(self, table: str) -> str:
        return f"{self.settings.rest_base_url}/{quote(table, safe='')}"

    async def select(
        self,
        table: str,
        select: str = "*",
        match: dict[str, Any] | None = None,
        limit: int | None = None,
        order: OrderSpec | None = None,
    ) -> Any:
        """Read rows from ``table``.

        Args:
            table: Table name
            select: PostgREST projection
            match: Equality filters, applied in order
            limit: Maximum rows
            order: Sort column and direction

        Returns:
            Parsed response body (usually a list of rows, possibly empty)

        Raises:
            TableNotAllowedError: Table is outside the allow-list
            UpstreamError: Backend returned a non-success status
        """
        self.check_table(table)
        http = self._require_http()

        url = f"{self.table_url(table)}?{build_select_query(select, match, limit, order)}"
        logger.debug(f"select {url}")
        response = await http.get(url)
        self._raise_for_status(response)

        if not response.content:
            return []
        return response.json()

    async def insert(
        self,
        table: str,
        rows: Any,
        return_representation: bool = False,
    ) -> InsertResult:
        """Insert ``rows`` into ``table``.

        Raises:
            WritesDisabledError: Writes are turned off
            TableNotAllowedError: Table is outside the allow-list
            UpstreamError: Backend returned a non-success status
        """
        if not self.settings.allow_writes:
            raise WritesDisabledError()
        self.check_table(table)
        http = self._require_http()

        prefer = "return=representation" if return_representation else "return=minimal"
        logger.debug(f"insert into {table} ({prefer})")
        response = await http.post(self.table_url(table), json=rows, headers={"Prefer": prefer})
        self._raise_for_status(response)

        if return_representation and response.status_code != 204 and response.content:
            return InsertResult(status=response.status_code, rows=response.json())
        return InsertResult(status=response.status_code)

    def _require_http(self) -> httpx.AsyncClient:
        if not self._http:
            raise RuntimeError("Not connected")
        return self._http

    @staticmethod
    def _raise_for_status(response: httpx.Response) -> None:
        if response.is_success:
            return
        try:
            body = response.json()
        except ValueError:
            body = response.text
        logger.warning(f"Upstream {response.request.method} failed with {response.status_code}")
        raise UpstreamError(response.status_code, body)
