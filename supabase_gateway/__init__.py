"""
Supabase MCP Gateway - tool endpoints and an NDJSON streaming session over PostgREST.

This package exposes two tools, ``supabase_select`` and ``supabase_insert``,
in two ways:
- Plain request/response HTTP endpoints (``/tools/<name>``)
- A long-lived streaming endpoint (``/mcp``) that accepts newline-delimited
  JSON tool calls and writes correlated results back on the same connection

Architecture:
    ┌─────────────┐      ┌──────────────┐      ┌──────────────────┐
    │   Client    │─────▶│ HTTP surface │─────▶│  BackendClient   │──▶ PostgREST
    └─────────────┘      └──────┬───────┘      └──────────────────┘
                                │ /mcp                  ▲
                                ▼                       │
                         ┌──────────────┐      ┌────────┴─────────┐
                         │StreamSession │─────▶│   ToolTable      │
                         └──────┬───────┘      └──────────────────┘
                                │
                                ▼
                         ┌──────────────┐
                         │SessionRegistry│
                         └──────────────┘

Invariants:
    - Every streamed tool call produces exactly one outbound message
    - Tool errors never tear down a streaming session
    - Sessions live only as long as their connection

How to change safely:
    - New tools are added to the tool table, not to the engine loop
    - Keep wire messages backward compatible with existing MCP clients
"""

from ._version import __version__

__all__ = ["__version__"]
