"""Blocking frame reader and writer over binary streams.

Example:
    ```python
    import io

    from smallcbor.framing import Reader, Writer

    stream = io.BytesIO()
    Writer(stream).write({"depth": 42})
    stream.seek(0)
    assert list(Reader(stream)) == [{"depth": 42}]
    ```
"""

from __future__ import annotations

import logging
from typing import Any, BinaryIO, Iterator, Optional, Tuple

from ..codec.cursor import as_write_all
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


class Reader:
    """Reads length-prefixed CBOR values from a blocking binary stream.

    A stream that is exhausted before the first byte of a length prefix is
    a clean end: ``read_frame`` returns None and iteration stops. A stream
    that ends anywhere inside a frame raises a FramingError for which
    ``is_unexpected_eof`` is true.
    """

    def __init__(
        self,
        stream: BinaryIO,
        capabilities: Optional[Capabilities] = None,
        *,
        max_len: int = DEFAULT_MAX_LEN,
    ) -> None:
        """Initialize a reader.

        Args:
            stream: Readable binary stream
            capabilities: Active capability profile (``std`` required)
            max_len: Largest accepted payload length

        Raises:
            CapabilityError: If ``std`` is disabled
        """
        self.capabilities = capabilities if capabilities is not None else DEFAULT_CAPABILITIES
        if not self.capabilities.std:
            raise CapabilityError.disabled("std", "frame readers")
        self._stream = stream
        self._max_len = max_len

    @property
    def stream(self) -> BinaryIO:
        return self._stream

    @property
    def max_len(self) -> int:
        return self._max_len

    def set_max_len(self, max_len: int) -> None:
        """Set the largest accepted payload length."""
        self._max_len = max_len

    def into_parts(self) -> Tuple[BinaryIO, int]:
        """Give up the reader; returns the stream and the maximum length."""
        return self._stream, self._max_len

    def read_frame(self) -> Optional[bytes]:
        """Read the next frame payload.

        Returns:
            The payload, or None at a clean end of the stream

        Raises:
            FramingError: On I/O failure, truncation or an oversized frame
        """
        prefix = self._read_upto(PREFIX_LEN)
        if not prefix:
            logger.debug("End of stream")
            return None
        (length,) = LENGTH_PREFIX.unpack(_complete(prefix, PREFIX_LEN))
        check_len(length, self._max_len)
        payload = _complete(self._read_upto(length), length)
        logger.debug("Read frame: %d payload bytes", length)
        return payload

    def read(self, cls: Any = None, ctx: Any = None) -> Any:
        """Read and decode the next value.

        A clean end of stream returns None; use ``read_frame`` or iteration
        to tell it apart from a null payload.

        Raises:
            FramingError: On I/O failure, truncation, an oversized frame or
                a payload that does not decode
        """
        payload = self.read_frame()
        if payload is None:
            return None
        return decode_payload(payload, cls, ctx, self.capabilities)

    def __iter__(self) -> Iterator[Any]:
        while True:
            payload = self.read_frame()
            if payload is None:
                return
            yield decode_payload(payload, None, None, self.capabilities)

    def _read_upto(self, n: int) -> bytes:
        """Read n bytes, or fewer if the stream ends first."""
        buffer = bytearray()
        while len(buffer) < n:
            try:
                chunk = self._stream.read(n - len(buffer))
            except (OSError, ValueError) as e:
                raise FramingError.io(e) from e
            if chunk is None:
                raise FramingError.io(BlockingIOError("stream would block"))
            if not chunk:
                break
            buffer += chunk
        return bytes(buffer)


def _complete(data: bytes, n: int) -> bytes:
    if len(data) < n:
        raise FramingError.unexpected_eof().with_message(
            f"stream ended after {len(data)} of {n} bytes"
        )
    return data


class Writer:
    """Writes length-prefixed CBOR values to a blocking binary stream."""

    def __init__(
        self,
        stream: BinaryIO,
        capabilities: Optional[Capabilities] = None,
        *,
        max_len: int = DEFAULT_MAX_LEN,
    ) -> None:
        """Initialize a writer.

        Args:
            stream: Writable binary stream
            capabilities: Active capability profile (``std`` required)
            max_len: Largest accepted payload length

        Raises:
            CapabilityError: If ``std`` is disabled
        """
        self.capabilities = capabilities if capabilities is not None else DEFAULT_CAPABILITIES
        if not self.capabilities.std:
            raise CapabilityError.disabled("std", "frame writers")
        self._stream = stream
        self._write_all = as_write_all(stream)
        self._max_len = max_len

    @property
    def stream(self) -> BinaryIO:
        return self._stream

    @property
    def max_len(self) -> int:
        return self._max_len

    def set_max_len(self, max_len: int) -> None:
        """Set the largest accepted payload length."""
        self._max_len = max_len

    def into_parts(self) -> Tuple[BinaryIO, int]:
        """Give up the writer; returns the stream and the maximum length."""
        return self._stream, self._max_len

    def write(self, value: Any, ctx: Any = None) -> int:
        """Encode and write one value as a frame.

        Nothing is written if encoding fails or the payload is too long.

        Returns:
            Number of payload bytes written (the prefix not included)

        Raises:
            FramingError: On encode failure, an oversized payload or I/O failure
        """
        frame = encode_frame(value, ctx, max_len=self._max_len, capabilities=self.capabilities)
        try:
            self._write_all(frame)
        except (OSError, ValueError) as e:
            raise FramingError.io(e) from e
        length = len(frame) - PREFIX_LEN
        logger.debug("Wrote frame: %d payload bytes", length)
        return length

    def flush(self) -> None:
        try:
            self._stream.flush()
        except (OSError, ValueError) as e:
            raise FramingError.io(e) from e
