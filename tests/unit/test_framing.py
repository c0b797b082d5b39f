"""
Unit tests for NDJSON framing and the outbound channel.

Tests cover:
- Line reassembly across chunk boundaries
- Empty line and trailing fragment handling
- Message encoding
- Channel close semantics
"""

import json

import pytest

from supabase_gateway.streaming import LineBuffer, OutboundChannel, encode_message, iter_lines


async def chunks_of(*parts: bytes):
    for part in parts:
        yield part


class TestLineBuffer:
    """Tests for LineBuffer."""

    def test_single_line(self):
        """A complete line is returned trimmed."""
        buffer = LineBuffer()

        assert buffer.feed(b'  {"id":"1"}  \n') == ['{"id":"1"}']
        assert buffer.pending == b""

    def test_line_split_across_chunks(self):
        """Partial lines wait for their newline."""
        buffer = LineBuffer()

        assert buffer.feed(b'{"id":') == []
        assert buffer.pending == b'{"id":'
        assert buffer.feed(b'"1"}\n{"id"') == ['{"id":"1"}']
        assert buffer.pending == b'{"id"'

    def test_many_lines_in_one_chunk(self):
        """Every complete line in a chunk is returned in order."""
        buffer = LineBuffer()

        assert buffer.feed(b"a\nb\nc\n") == ["a", "b", "c"]

    def test_blank_lines_skipped(self):
        """Empty and whitespace-only lines produce nothing."""
        buffer = LineBuffer()

        assert buffer.feed(b"\n   \r\nx\n\n") == ["x"]

    def test_multibyte_character_split(self):
        """UTF-8 sequences split across chunks survive."""
        data = '{"name":"café"}\n'.encode("utf-8")
        split = data.index(b"\xc3") + 1
        buffer = LineBuffer()

        assert buffer.feed(data[:split]) == []
        assert buffer.feed(data[split:]) == ['{"name":"café"}']


class TestIterLines:
    """Tests for iter_lines."""

    @pytest.mark.asyncio
    async def test_yields_lines_and_drops_fragment(self):
        """Trailing bytes without a newline are discarded."""
        lines = [line async for line in iter_lines(chunks_of(b"one\ntw", b"o\nthree"))]

        assert lines == ["one", "two"]


class TestEncodeMessage:
    """Tests for encode_message."""

    def test_one_compact_line(self):
        """Messages are compact JSON terminated by a newline."""
        encoded = encode_message({"id": "1", "result": [1, 2]})

        assert encoded == b'{"id":"1","result":[1,2]}\n'
        assert encoded.count(b"\n") == 1

    def test_newlines_in_values_are_escaped(self):
        """Embedded newlines never break framing."""
        encoded = encode_message({"error": "line1\nline2"})

        assert encoded.count(b"\n") == 1
        assert json.loads(encoded) == {"error": "line1\nline2"}


class TestOutboundChannel:
    """Tests for OutboundChannel."""

    @pytest.mark.asyncio
    async def test_stream_until_closed(self):
        """Queued messages are delivered before the stream ends."""
        channel = OutboundChannel()
        channel.send({"n": 1})
        channel.send({"n": 2})
        channel.close()

        chunks = [chunk async for chunk in channel.stream()]

        assert [json.loads(c) for c in chunks] == [{"n": 1}, {"n": 2}]
        assert channel.sent == 2

    @pytest.mark.asyncio
    async def test_send_after_close_is_noop(self):
        """Writes after close are dropped."""
        channel = OutboundChannel()
        channel.close()

        assert channel.send({"late": True}) is False
        assert [chunk async for chunk in channel.stream()] == []
        assert channel.sent == 0

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self):
        """Closing twice ends the stream once."""
        channel = OutboundChannel()
        channel.close()
        channel.close()

        assert channel.closed
        assert [chunk async for chunk in channel.stream()] == []
