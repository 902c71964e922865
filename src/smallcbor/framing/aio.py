"""Asynchronous frame reader and writer for asyncio streams.

The frame format and end-of-stream rules match ``smallcbor.framing.io``.

AsyncReader keeps a partially read frame on the instance. If a pending
``read`` is cancelled, the bytes already consumed stay buffered and the
next call continues the same frame.

Example:
    ```python
    import asyncio

    from smallcbor.framing import AsyncReader, AsyncWriter

    async def main() -> None:
        reader, writer = await asyncio.open_connection("127.0.0.1", 9000)
        await AsyncWriter(writer).write(["ping", 1])
        reply = await AsyncReader(reader).read()
    ```
"""

from __future__ import annotations

import logging
from typing import Any, AsyncIterator, Optional, Tuple

from ..config import DEFAULT_CAPABILITIES, Capabilities
from ..exceptions import CapabilityError, FramingError
from .basic import (
    DEFAULT_MAX_LEN,
    LENGTH_PREFIX,
    PREFIX_LEN,
    check_len,
    decode_payload,
    encode_frame,
)

logger = logging.getLogger(__name__)


class AsyncReader:
    """Reads length-prefixed CBOR values from an asyncio stream.

    The stream needs an ``async read(n)`` method returning at most ``n``
    bytes and ``b""`` at end of stream, as ``asyncio.StreamReader`` has.
    """

    def __init__(
        self,
        stream: Any,
        capabilities: Optional[Capabilities] = None,
        *,
        max_len: int = DEFAULT_MAX_LEN,
    ) -> None:
        self.capabilities = capabilities if capabilities is not None else DEFAULT_CAPABILITIES
        if not self.capabilities.std:
            raise CapabilityError.disabled("std", "frame readers")
        self._stream = stream
        self._max_len = max_len
        self._prefix = bytearray()
        self._length: Optional[int] = None
        self._payload = bytearray()

    @property
    def stream(self) -> Any:
        return self._stream

    @property
    def max_len(self) -> int:
        return self._max_len

    def set_max_len(self, max_len: int) -> None:
        """Set the largest accepted payload length."""
        self._max_len = max_len

    def into_parts(self) -> Tuple[Any, int]:
        """Give up the reader; returns the stream and the maximum length.

        Bytes held from an interrupted read (see ``pending``) are dropped.
        """
        return self._stream, self._max_len

    @property
    def pending(self) -> int:
        """Bytes of an unfinished frame held from an interrupted read."""
        return len(self._prefix) + len(self._payload)

    async def read_frame(self) -> Optional[bytes]:
        """Read the next frame payload.

        Returns:
            The payload, or None at a clean end of the stream

        Raises:
            FramingError: On I/O failure, truncation or an oversized frame
        """
        if self._length is None:
            while len(self._prefix) < PREFIX_LEN:
                chunk = await self._read(PREFIX_LEN - len(self._prefix))
                if not chunk:
                    if not self._prefix:
                        logger.debug("End of stream")
                        return None
                    got = len(self._prefix)
                    self._reset()
                    raise FramingError.unexpected_eof().with_message(
                        f"stream ended after {got} of {PREFIX_LEN} length bytes"
                    )
                self._prefix += chunk
            (length,) = LENGTH_PREFIX.unpack(self._prefix)
            self._prefix.clear()
            check_len(length, self._max_len)
            self._length = length

        while len(self._payload) < self._length:
            chunk = await self._read(self._length - len(self._payload))
            if not chunk:
                got, want = len(self._payload), self._length
                self._reset()
                raise FramingError.unexpected_eof().with_message(
                    f"stream ended after {got} of {want} payload bytes"
                )
            self._payload += chunk

        payload = bytes(self._payload)
        self._reset()
        logger.debug("Read frame: %d payload bytes", len(payload))
        return payload

    async def read(self, cls: Any = None, ctx: Any = None) -> Any:
        """Read and decode the next value; None at a clean end of stream."""
        payload = await self.read_frame()
        if payload is None:
            return None
        return decode_payload(payload, cls, ctx, self.capabilities)

    def __aiter__(self) -> AsyncIterator[Any]:
        return self

    async def __anext__(self) -> Any:
        payload = await self.read_frame()
        if payload is None:
            raise StopAsyncIteration
        return decode_payload(payload, None, None, self.capabilities)

    async def _read(self, n: int) -> bytes:
        try:
            return await self._stream.read(n)
        except OSError as e:
            raise FramingError.io(e) from e

    def _reset(self) -> None:
        self._prefix.clear()
        self._payload.clear()
        self._length = None


class AsyncWriter:
    """Writes length-prefixed CBOR values to an asyncio stream.

    The stream needs ``write(data)`` and ``async drain()`` methods, as
    ``asyncio.StreamWriter`` has. Each frame is handed to the stream in a
    single ``write`` call, so frames are never interleaved.
    """

    def __init__(
        self,
        stream: Any,
        capabilities: Optional[Capabilities] = None,
        *,
        max_len: int = DEFAULT_MAX_LEN,
    ) -> None:
        self.capabilities = capabilities if capabilities is not None else DEFAULT_CAPABILITIES
        if not self.capabilities.std:
            raise CapabilityError.disabled("std", "frame writers")
        self._stream = stream
        self._max_len = max_len

    @property
    def stream(self) -> Any:
        return self._stream

    @property
    def max_len(self) -> int:
        return self._max_len

    def set_max_len(self, max_len: int) -> None:
        """Set the largest accepted payload length."""
        self._max_len = max_len

    def into_parts(self) -> Tuple[Any, int]:
        """Give up the writer; returns the stream and the maximum length."""
        return self._stream, self._max_len

    async def write(self, value: Any, ctx: Any = None) -> int:
        """Encode and write one value as a frame.

        Returns:
            Number of payload bytes written (the prefix not included)

        Raises:
            FramingError: On encode failure, an oversized payload or I/O failure
        """
        frame = encode_frame(value, ctx, max_len=self._max_len, capabilities=self.capabilities)
        try:
            self._stream.write(bytes(frame))
            await self._stream.drain()
        except OSError as e:
            raise FramingError.io(e) from e
        length = len(frame) - PREFIX_LEN
        logger.debug("Wrote frame: %d payload bytes", length)
        return length

    async def flush(self) -> None:
        try:
            await self._stream.drain()
        except OSError as e:
            raise FramingError.io(e) from e

    async def close(self) -> None:
        """Close the stream and wait until it is closed."""
        self._stream.close()
        wait_closed = getattr(self._stream, "wait_closed", None)
        if wait_closed is not None:
            try:
                await wait_closed()
            except OSError as e:
                raise FramingError.io(e) from e
