"""LineFrameReader のテスト。"""

from __future__ import annotations

import asyncio

import pytest

from kodama.echo._framing import (
    FrameError,
    FrameReader,
    FrameTooLargeError,
    LineFrameReader,
)


def _make_reader(data: bytes, *, eof: bool = True, limit: int = 2**16) -> asyncio.StreamReader:
    """data を投入済みの StreamReader を生成する。"""
    reader = asyncio.StreamReader(limit=limit)
    reader.feed_data(data)
    if eof:
        reader.feed_eof()
    return reader


class TestLineFrameReader:
    """改行区切りでのフレーム読み出し。"""

    async def test_reads_lines_with_delimiter(self) -> None:
        frames = LineFrameReader(_make_reader(b"a\nbb\n"))
        assert await frames.read_frame() == b"a\n"
        assert await frames.read_frame() == b"bb\n"
        assert await frames.read_frame() is None
        assert frames.remainder == b""

    async def test_empty_stream_returns_none(self) -> None:
        frames = LineFrameReader(_make_reader(b""))
        assert await frames.read_frame() is None
        assert frames.remainder == b""

    async def test_partial_fragment_kept_as_remainder(self) -> None:
        """区切り文字のない末尾断片はフレームとして返さない。"""
        frames = LineFrameReader(_make_reader(b"ok\npartial"))
        assert await frames.read_frame() == b"ok\n"
        assert await frames.read_frame() is None
        assert frames.remainder == b"partial"

    async def test_empty_line_is_a_frame(self) -> None:
        frames = LineFrameReader(_make_reader(b"\n\n"))
        assert await frames.read_frame() == b"\n"
        assert await frames.read_frame() == b"\n"

    async def test_custom_delimiter(self) -> None:
        frames = LineFrameReader(_make_reader(b"a\r\nb\nc\r\n"), delimiter=b"\r\n")
        assert await frames.read_frame() == b"a\r\n"
        assert await frames.read_frame() == b"b\nc\r\n"

    async def test_waits_for_delimiter_across_chunks(self) -> None:
        reader = asyncio.StreamReader()
        frames = LineFrameReader(reader)
        pending = asyncio.create_task(frames.read_frame())

        reader.feed_data(b"pi")
        await asyncio.sleep(0)
        assert not pending.done()

        reader.feed_data(b"ng\n")
        assert await pending == b"ping\n"

    async def test_line_over_limit_raises(self) -> None:
        frames = LineFrameReader(_make_reader(b"x" * 32 + b"\n", limit=8), limit=8)
        with pytest.raises(FrameTooLargeError, match="exceeds 8 bytes") as exc_info:
            await frames.read_frame()
        assert exc_info.value.limit == 8
        assert isinstance(exc_info.value, FrameError)

    async def test_line_over_limit_without_known_limit(self) -> None:
        """limit 未指定でも 0 バイトのような誤った上限を報告しない。"""
        frames = LineFrameReader(_make_reader(b"x" * 32 + b"\n", limit=8))
        with pytest.raises(FrameTooLargeError) as exc_info:
            await frames.read_frame()
        assert exc_info.value.limit is None
        assert "0 bytes" not in str(exc_info.value)
        assert "stream buffer limit" in str(exc_info.value)

    async def test_transport_error_propagates(self) -> None:
        reader = asyncio.StreamReader()
        reader.set_exception(ConnectionResetError("reset by peer"))
        frames = LineFrameReader(reader)
        with pytest.raises(ConnectionResetError):
            await frames.read_frame()

    def test_empty_delimiter_rejected(self) -> None:
        with pytest.raises(ValueError, match="delimiter"):
            LineFrameReader(asyncio.StreamReader(), delimiter=b"")

    def test_satisfies_frame_reader_protocol(self) -> None:
        assert isinstance(LineFrameReader(asyncio.StreamReader()), FrameReader)
