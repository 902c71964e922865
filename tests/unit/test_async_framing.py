"""Unit tests for asyncio framing."""

from __future__ import annotations

import asyncio

import pytest

from smallcbor import AsyncReader, AsyncWriter, Capabilities, CapabilityError, FramingError
from smallcbor.exceptions import ErrorKind
from smallcbor.framing import frame_value


def fed_reader(data: bytes, *, eof: bool = True) -> asyncio.StreamReader:
    reader = asyncio.StreamReader()
    reader.feed_data(data)
    if eof:
        reader.feed_eof()
    return reader


class TestAsyncReader:
    """Test the asyncio frame reader."""

    def test_read_sequence(self) -> None:
        """Test reading frames until a clean end."""

        async def run() -> list:
            reader = AsyncReader(fed_reader(frame_value(1) + frame_value([2, 3])))
            return [await reader.read(), await reader.read(), await reader.read_frame()]

        assert asyncio.run(run()) == [1, [2, 3], None]

    def test_async_iteration(self) -> None:
        """Test async iteration stops at a clean end."""

        async def run() -> list:
            reader = AsyncReader(fed_reader(frame_value(None) + frame_value("x")))
            return [value async for value in reader]

        assert asyncio.run(run()) == [None, "x"]

    def test_partial_prefix(self) -> None:
        """Test a stream ending inside the prefix."""

        async def run() -> None:
            await AsyncReader(fed_reader(b"\x00")).read()

        with pytest.raises(FramingError, match="after 1 of 4 length bytes") as exc_info:
            asyncio.run(run())
        assert exc_info.value.is_unexpected_eof

    def test_partial_payload(self) -> None:
        """Test a stream ending inside the payload."""

        async def run() -> None:
            await AsyncReader(fed_reader(frame_value("abc")[:-2])).read()

        with pytest.raises(FramingError, match="after 2 of 4 payload bytes") as exc_info:
            asyncio.run(run())
        assert exc_info.value.is_unexpected_eof

    def test_resume_after_cancel(self) -> None:
        """Test a cancelled read keeps the partial frame."""
        frame = frame_value("abc")

        async def run() -> str:
            stream = fed_reader(frame[:6], eof=False)
            reader = AsyncReader(stream)
            task = asyncio.ensure_future(reader.read())
            for _ in range(3):
                await asyncio.sleep(0)
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task
            assert reader.pending == 2

            stream.feed_data(frame[6:])
            stream.feed_eof()
            return await reader.read()

        assert asyncio.run(run()) == "abc"

    def test_oversized(self) -> None:
        """Test a frame above the maximum."""

        async def run() -> None:
            await AsyncReader(fed_reader(frame_value("abcdef")), max_len=4).read()

        with pytest.raises(FramingError) as exc_info:
            asyncio.run(run())
        assert exc_info.value.kind is ErrorKind.INVALID_LEN

    def test_stream_error(self) -> None:
        """Test errors of the stream are wrapped."""

        class Broken:
            async def read(self, n: int) -> bytes:
                raise ConnectionResetError("reset")

        async def run() -> None:
            await AsyncReader(Broken()).read()

        with pytest.raises(FramingError) as exc_info:
            asyncio.run(run())
        assert exc_info.value.kind is ErrorKind.IO
        assert isinstance(exc_info.value.cause, ConnectionResetError)

    def test_into_parts(self) -> None:
        """Test giving up the reader and resuming on the same stream."""

        async def run() -> list:
            reader = AsyncReader(fed_reader(frame_value(1) + frame_value(2)), max_len=10)
            first = await reader.read()
            stream, max_len = reader.into_parts()
            assert max_len == 10
            return [first, await AsyncReader(stream, max_len=max_len).read()]

        assert asyncio.run(run()) == [1, 2]

    def test_needs_std(self, fixed_caps: Capabilities) -> None:
        """Test readers are a host feature."""
        with pytest.raises(CapabilityError):
            AsyncReader(object(), fixed_caps)


class TestAsyncWriter:
    """Test the asyncio frame writer."""

    def test_write(self, memory_writer: type) -> None:
        """Test each frame is written and drained."""
        stream = memory_writer()

        async def run() -> int:
            writer = AsyncWriter(stream)
            n = await writer.write([1, 2])
            await writer.write("a")
            await writer.flush()
            await writer.close()
            return n

        assert asyncio.run(run()) == 3
        assert bytes(stream.data) == frame_value([1, 2]) + frame_value("a")
        assert stream.drains == 3
        assert stream.closed

    def test_round_trip(self, memory_writer: type, sample_value: dict) -> None:
        """Test the reader reads what the writer wrote."""
        sink = memory_writer()

        async def run() -> list:
            await AsyncWriter(sink).write(sample_value)
            reader = AsyncReader(fed_reader(bytes(sink.data)))
            return [value async for value in reader]

        assert asyncio.run(run()) == [sample_value]

    def test_oversized_writes_nothing(self, memory_writer: type) -> None:
        """Test an oversized payload leaves the stream untouched."""
        stream = memory_writer()

        async def run() -> None:
            await AsyncWriter(stream, max_len=2).write([1, 2, 3])

        with pytest.raises(FramingError) as exc_info:
            asyncio.run(run())
        assert exc_info.value.kind is ErrorKind.INVALID_LEN
        assert stream.data == bytearray()

    def test_drain_error(self, memory_writer: type) -> None:
        """Test errors while draining are wrapped."""
        stream = memory_writer(fail=BrokenPipeError("closed"))

        async def run() -> None:
            await AsyncWriter(stream).write(1)

        with pytest.raises(FramingError) as exc_info:
            asyncio.run(run())
        assert exc_info.value.kind is ErrorKind.IO

    def test_needs_std(self, fixed_caps: Capabilities, memory_writer: type) -> None:
        """Test writers are a host feature."""
        with pytest.raises(CapabilityError):
            AsyncWriter(memory_writer(), fixed_caps)

    def test_into_parts(self, memory_writer: type) -> None:
        """Test giving up the writer."""
        stream = memory_writer()
        writer = AsyncWriter(stream, max_len=10)

        assert writer.into_parts() == (stream, 10)
