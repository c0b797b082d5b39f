"""
MCP-style streaming sessions over a single HTTP request.

The client POSTs to ``/mcp`` and keeps both bodies open. Inbound lines are
tool calls, outbound lines are ``ready``, results and errors, all encoded
as newline-delimited JSON.

Invariants:
    - One session per connection; sessions die with their connection
    - Replies on a session are emitted in the order calls arrived
"""

from .channel import OutboundChannel
from .engine import SessionState, StreamSession, ToolCall
from .framing import LineBuffer, encode_message, iter_lines
from .registry import Session, SessionRegistry
from .tools import INSERT_TOOL, SELECT_TOOL, Capability, Tool, build_tool_table

__all__ = [
    # Engine
    "StreamSession",
    "SessionState",
    "ToolCall",
    # Registry
    "SessionRegistry",
    "Session",
    # Channel and framing
    "OutboundChannel",
    "LineBuffer",
    "iter_lines",
    "encode_message",
    # Tools
    "Tool",
    "Capability",
    "build_tool_table",
    "SELECT_TOOL",
    "INSERT_TOOL",
]
