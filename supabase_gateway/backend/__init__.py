"""
Backend access for the gateway.

The backend is a PostgREST data API addressed as ``<base>/rest/v1/<table>``.
This package holds the argument models, the query encoder and the async
client that performs the calls.
"""

from .client import BackendClient, InsertResult
from .query import (
    InsertRequest,
    OrderSpec,
    SelectRequest,
    build_select_query,
    describe_validation_error,
)

__all__ = [
    # Client
    "BackendClient",
    "InsertResult",
    # Arguments
    "SelectRequest",
    "InsertRequest",
    "OrderSpec",
    # Encoding
    "build_select_query",
    "describe_validation_error",
]
