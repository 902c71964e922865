"""Write sinks for the encoder.

The encoder writes through a single ``write_all(data)`` callable. This
module adapts the supported sinks to it:

- ``bytearray``: extended in place (growable)
- any object with ``write_all(data)``, e.g. ``Cursor``
- any binary file-like object with ``write(data)``

``Cursor`` is the fixed-capacity sink: it never grows and raises
``EndOfSlice`` once its buffer is full.
"""

from __future__ import annotations

from typing import Any, Callable, Union

WriteAll = Callable[[Union[bytes, bytearray, memoryview]], None]


class EndOfSlice(BufferError):
    """Raised by Cursor when a write does not fit the remaining space."""

    def __init__(self, needed: int, available: int) -> None:
        super().__init__(f"end of slice: need {needed} bytes, {available} available")
        self.needed = needed
        self.available = available


class Cursor:
    """A write position over a fixed-size buffer.

    Example:
        >>> c = Cursor(bytearray(4))
        >>> c.write_all(b"\\x01\\x02")
        >>> c.position()
        2
        >>> bytes(c.written())
        b'\\x01\\x02'
    """

    def __init__(self, buffer: Union[bytearray, memoryview, int]) -> None:
        """Initialize a cursor at position 0.

        Args:
            buffer: Writable buffer, or a capacity for a fresh zeroed buffer
        """
        if isinstance(buffer, int):
            buffer = bytearray(buffer)
        self._buf = memoryview(buffer).cast("B")
        if self._buf.readonly:
            raise ValueError("Cursor needs a writable buffer")
        self._pos = 0

    def write_all(self, data: Union[bytes, bytearray, memoryview]) -> None:
        n = len(data)
        available = len(self._buf) - self._pos
        if n > available:
            raise EndOfSlice(n, available)
        self._buf[self._pos : self._pos + n] = data
        self._pos += n

    def position(self) -> int:
        return self._pos

    def set_position(self, pos: int) -> None:
        if not 0 <= pos <= len(self._buf):
            raise ValueError(f"position {pos} outside buffer of {len(self._buf)} bytes")
        self._pos = pos

    def capacity(self) -> int:
        return len(self._buf)

    def get_ref(self) -> memoryview:
        """The whole underlying buffer."""
        return self._buf

    def written(self) -> memoryview:
        """The bytes written so far."""
        return self._buf[: self._pos]


def as_write_all(sink: Any) -> WriteAll:
    """Return a ``write_all`` callable for a supported sink.

    Raises:
        TypeError: If the sink is not writable
    """
    if isinstance(sink, bytearray):
        return sink.extend
    write_all = getattr(sink, "write_all", None)
    if callable(write_all):
        return write_all
    write = getattr(sink, "write", None)
    if callable(write):
        return _stream_writer(write)
    raise TypeError(f"{type(sink).__name__} is not a supported encoder sink")


def _stream_writer(write: Callable[[Any], Any]) -> WriteAll:
    # Raw streams may accept fewer bytes than offered.
    def write_all(data: Union[bytes, bytearray, memoryview]) -> None:
        view = memoryview(data)
        while view:
            n = write(view)
            if n is None:
                raise BlockingIOError("sink would block")
            if n == 0:
                raise OSError("sink accepted no bytes")
            view = view[n:]

    return write_all
