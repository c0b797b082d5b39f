"""
Tool table for streamed tool calls.

Each tool validates its raw ``args`` mapping into an argument model and
calls the matching BackendClient operation. Argument validation errors
propagate as pydantic ValidationError.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from ..backend import BackendClient, InsertRequest, SelectRequest

SELECT_TOOL = "supabase_select"
INSERT_TOOL = "supabase_insert"


class Capability(Enum):
    """What a tool does to the backend."""

    READ = "read"
    WRITE = "write"


@dataclass(frozen=True)
class Tool:
    """A named tool.

    Attributes:
        name: Wire name used in ``{"name": ...}``
        capability: Read or write
        description: Human readable summary
        handler: Coroutine taking the raw args and returning the result
    """

    name: str
    capability: Capability
    description: str
    handler: Callable[[Any], Awaitable[Any]]


def build_tool_table(backend: BackendClient) -> dict[str, Tool]:
    """Create the tool table bound to ``backend``."""

    async def run_select(args: Any) -> Any:
        request = SelectRequest.model_validate(args or {})
        return await backend.select(
            request.table,
            select=request.select,
            match=request.match,
            limit=request.limit,
            order=request.order,
        )

    async def run_insert(args: Any) -> Any:
        request = InsertRequest.model_validate(args or {})
        result = await backend.insert(
            request.table,
            request.rows,
            return_representation=request.return_representation,
        )
        return result.payload()

    tools = [
        Tool(SELECT_TOOL, Capability.READ, "Read rows from a table", run_select),
        Tool(INSERT_TOOL, Capability.WRITE, "Insert rows into a table", run_insert),
    ]
    return {tool.name: tool for tool in tools}
