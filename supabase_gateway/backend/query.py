"""
Tool argument models and PostgREST query encoding.

Encoding follows the browser ``encodeURIComponent`` rules so that the
projection ``*`` and PostgREST operators stay readable on the wire:

    select=*&status=eq.open&limit=5&order=created_at.desc

Invariants:
    - ``select`` is always the first parameter
    - Match filters keep their declaration order
    - ``limit`` is omitted when zero or missing
"""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

from pydantic import BaseModel, ConfigDict, Field, ValidationError

# Characters encodeURIComponent leaves alone besides alphanumerics
URI_COMPONENT_SAFE = "-_.!~*'()"


class OrderSpec(BaseModel):
    """Single-column sort."""

    column: str = Field(..., description="Column to sort by")
    ascending: bool = Field(False, description="Ascending when true, descending otherwise")


class SelectRequest(BaseModel):
    """Arguments for the ``supabase_select`` tool."""

    table: str = Field(..., description="Table to read from")
    select: str = Field("*", description="PostgREST projection")
    match: dict[str, Any] | None = Field(None, description="Equality filters")
    limit: int | None = Field(None, ge=0, description="Maximum rows to return")
    order: OrderSpec | None = Field(None, description="Sort order")


class InsertRequest(BaseModel):
    """Arguments for the ``supabase_insert`` tool."""

    model_config = ConfigDict(populate_by_name=True)

    table: str = Field(..., description="Table to write to")
    rows: list[dict[str, Any]] | dict[str, Any] = Field(..., description="Row or rows to insert")
    return_representation: bool = Field(
        False,
        alias="returnRepresentation",
        description="Ask the backend to return inserted rows",
    )


def format_value(value: Any) -> str:
    """Render a filter value the way a JSON client would stringify it."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def quote_component(value: Any) -> str:
    """Percent-encode a single query component."""
    return quote(format_value(value), safe=URI_COMPONENT_SAFE)


def build_select_query(
    select: str = "*",
    match: dict[str, Any] | None = None,
    limit: int | None = None,
    order: OrderSpec | None = None,
) -> str:
    """Build the query string for a filtered read."""
    params = [f"select={quote_component(select)}"]
    for key, value in (match or {}).items():
        params.append(f"{quote_component(key)}=eq.{quote_component(value)}")
    if limit:
        params.append(f"limit={limit}")
    if order is not None:
        direction = "asc" if order.ascending else "desc"
        params.append(f"order={quote_component(order.column)}.{direction}")
    return "&".join(params)


def describe_validation_error(exc: ValidationError) -> str:
    """One-line summary of a pydantic validation failure."""
    parts = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error["loc"]) or "args"
        parts.append(f"{location}: {error['msg']}")
    return "Invalid arguments: " + "; ".join(parts)
