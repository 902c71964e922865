"""CBOR decoder.

This module provides the Decoder, a cursor over a caller-owned byte buffer
that reads one data item at a time, and the decode() function that turns a
buffer into a value.

The decoder never reads out of bounds: every read is checked against the
buffer length, and every error carries the byte position of the item (or
read) that failed. Integer and length arguments are accepted in any width,
not only the shortest one.
"""

from __future__ import annotations

import struct
from typing import Any, Iterator, Optional, Tuple

from ..config import DEFAULT_CAPABILITIES, Capabilities
from ..data import (
    ARRAY,
    BREAK,
    BYTES,
    I8_MAX,
    I16_MAX,
    I32_MAX,
    I64_MAX,
    INFO_INDEFINITE,
    INFO_U8,
    INFO_U16,
    INFO_U32,
    INFO_U64,
    MAP,
    SIGNED,
    TAGGED,
    TEXT,
    U8_MAX,
    U16_MAX,
    U32_MAX,
    U64_MAX,
    UNSIGNED,
    Int,
    Tag,
    Type,
    info_of,
    type_of,
)
from ..exceptions import CapabilityError, CborError, DecodeError
from . import skip as _skip

# Positions are tracked as if held in a 64-bit unsigned counter.
MAX_POSITION = U64_MAX

_F16 = struct.Struct(">e")
_F32 = struct.Struct(">f")
_F64 = struct.Struct(">d")

_ARGUMENT_WIDTHS = {INFO_U8: 1, INFO_U16: 2, INFO_U32: 4, INFO_U64: 8}


class Decoder:
    """A non-allocating CBOR decoder over a byte buffer.

    The decoder borrows the buffer: byte strings are returned as read-only
    memoryview slices of it.

    Example:
        >>> d = Decoder(bytes([0x82, 0x01, 0x63, 0x61, 0x62, 0x63]))
        >>> d.array()
        2
        >>> d.u8(), d.str()
        (1, 'abc')
        >>> d.position()
        6
    """

    def __init__(self, data: Any, capabilities: Optional[Capabilities] = None) -> None:
        """Initialize a decoder at position 0.

        Args:
            data: Bytes-like object to decode
            capabilities: Active capability profile (defaults to the host profile)
        """
        view = memoryview(data)
        if view.format != "B" or view.ndim != 1:
            view = view.cast("B")
        self._buf = view.toreadonly()
        self._pos = 0
        self.capabilities = capabilities if capabilities is not None else DEFAULT_CAPABILITIES

    # Position

    def position(self) -> int:
        """Return the current decode position."""
        return self._pos

    def set_position(self, pos: int) -> None:
        """Set the decode position.

        Raises:
            ValueError: If pos lies outside the buffer
        """
        if not 0 <= pos <= len(self._buf):
            raise ValueError(f"position {pos} outside input of {len(self._buf)} bytes")
        self._pos = pos

    def input(self) -> memoryview:
        """Return the whole input buffer."""
        return self._buf

    def probe(self) -> Decoder:
        """Return an independent decoder at the current position.

        Decoding from the probe does not move this decoder.
        """
        probe = Decoder.__new__(Decoder)
        probe._buf = self._buf
        probe._pos = self._pos
        probe.capabilities = self.capabilities
        return probe

    # Generic

    def decode(self, cls: Any = None, ctx: Any = None) -> Any:
        """Decode a value of the given type (a generic value if cls is None)."""
        from .values import decode_as

        return decode_as(self, cls, ctx)

    def datatype(self) -> Type:
        """Inspect the data type at the current position without consuming it.

        Negative integers are classified by magnitude, so the argument of
        0x38-0x3b items is read ahead.
        """
        p = self._pos
        b = self._current()
        if 0x38 <= b <= 0x3B:
            try:
                self._pos += 1
                return Type.read(b, self._argument(b, p))
            finally:
                self._pos = p
        return Type.read(b)

    def skip(self) -> None:
        """Skip over the current data item, nested items included.

        Uses the full work-list algorithm when ``alloc`` is enabled and the
        limited one otherwise; see ``limited_skip`` for its restrictions.
        On error the decoder is moved to the end of its input.
        """
        try:
            if self.capabilities.alloc:
                _skip.skip(self)
            else:
                _skip.limited_skip(self)
        except CborError:
            self._pos = len(self._buf)
            raise

    def limited_skip(self) -> None:
        """Skip the current item without allocating.

        Supports arbitrarily nested definite containers and an indefinite
        container at the top level. Indefinite containers nested inside
        definite ones are not guaranteed to be skipped correctly.
        """
        try:
            _skip.limited_skip(self)
        except CborError:
            self._pos = len(self._buf)
            raise

    # Simple values

    def bool(self) -> bool:
        p = self._pos
        b = self._current()
        if b == 0xF4 or b == 0xF5:
            self._pos += 1
            return b == 0xF5
        raise self._mismatch(b, p, "expected bool")

    def null(self) -> None:
        p = self._pos
        b = self._current()
        if b != 0xF6:
            raise self._mismatch(b, p, "expected null")
        self._pos += 1

    def undefined(self) -> None:
        p = self._pos
        b = self._current()
        if b != 0xF7:
            raise self._mismatch(b, p, "expected undefined")
        self._pos += 1

    def simple(self) -> int:
        p = self._pos
        b = self._current()
        if 0xE0 <= b <= 0xF3:
            self._pos += 1
            return b - 0xE0
        if b == 0xF8:
            self._pos += 1
            return self._read()
        raise self._mismatch(b, p, "expected simple value")

    # Integers

    def u8(self) -> int:
        return self._unsigned_within(U8_MAX, "u8")

    def u16(self) -> int:
        return self._unsigned_within(U16_MAX, "u16")

    def u32(self) -> int:
        return self._unsigned_within(U32_MAX, "u32")

    def u64(self) -> int:
        return self._unsigned_within(U64_MAX, "u64")

    def i8(self) -> int:
        return self._signed_within(I8_MAX, "i8")

    def i16(self) -> int:
        return self._signed_within(I16_MAX, "i16")

    def i32(self) -> int:
        return self._signed_within(I32_MAX, "i32")

    def i64(self) -> int:
        return self._signed_within(I64_MAX, "i64")

    def int(self) -> Int:
        """Decode an integer of the full CBOR range."""
        p = self._pos
        b = self._current()
        major = type_of(b)
        if major not in (UNSIGNED, SIGNED):
            raise self._mismatch(b, p, "expected int")
        self._pos += 1
        return Int(major == SIGNED, self._argument(b, p))

    def char(self) -> str:
        """Decode a unicode scalar value stored as u32."""
        p = self._pos
        n = self.u32()
        if n > 0x10FFFF or 0xD800 <= n <= 0xDFFF:
            raise DecodeError.invalid_char(n).at(p)
        return chr(n)

    # Floats

    def f16(self) -> float:
        """Decode a half float, widened to a Python float."""
        if not self.capabilities.half:
            raise CapabilityError.disabled("half", "half floats")
        p = self._pos
        b = self._current()
        if b != 0xF9:
            raise self._mismatch(b, p, "expected f16")
        self._pos += 1
        return _F16.unpack(self._read_slice(2))[0]

    def f32(self) -> float:
        p = self._pos
        b = self._current()
        if b == 0xF9 and self.capabilities.half:
            return self.f16()
        if b != 0xFA:
            raise self._mismatch(b, p, "expected f32")
        self._pos += 1
        return _F32.unpack(self._read_slice(4))[0]

    def f64(self) -> float:
        p = self._pos
        b = self._current()
        if b == 0xF9 and self.capabilities.half:
            return self.f16()
        if b == 0xFA:
            return self.f32()
        if b != 0xFB:
            raise self._mismatch(b, p, "expected f64")
        self._pos += 1
        return _F64.unpack(self._read_slice(8))[0]

    # Strings

    def bytes(self) -> memoryview:
        """Decode a definite-length byte string.

        See bytes_iter() for indefinite-length support.
        """
        p = self._pos
        b = self._current()
        if type_of(b) != BYTES or info_of(b) == INFO_INDEFINITE:
            raise self._mismatch(b, p, "expected bytes (definite length)")
        self._pos += 1
        return self._read_slice(self._argument(b, p))

    def str(self) -> str:
        """Decode a definite-length text string.

        See str_iter() for indefinite-length support.
        """
        p = self._pos
        b = self._current()
        if type_of(b) != TEXT or info_of(b) == INFO_INDEFINITE:
            raise self._mismatch(b, p, "expected text (definite length)")
        self._pos += 1
        return _utf8(self._read_slice(self._argument(b, p)), p)

    def bytes_iter(self) -> BytesIter:
        """Iterate over the chunks of a byte string.

        A definite byte string yields exactly one chunk.
        """
        p = self._pos
        b = self._current()
        if type_of(b) != BYTES:
            raise self._mismatch(b, p, "expected bytes")
        self._pos += 1
        if info_of(b) == INFO_INDEFINITE:
            return BytesIter(self, None)
        return BytesIter(self, self._argument(b, p))

    def str_iter(self) -> StrIter:
        """Iterate over the chunks of a text string.

        A definite text string yields exactly one chunk.
        """
        p = self._pos
        b = self._current()
        if type_of(b) != TEXT:
            raise self._mismatch(b, p, "expected text")
        self._pos += 1
        if info_of(b) == INFO_INDEFINITE:
            return StrIter(self, None, p)
        return StrIter(self, self._argument(b, p), p)

    # Containers

    def array(self) -> Optional[int]:
        """Begin decoding an array.

        Returns:
            The declared length, or None for an indefinite array
        """
        return self._container(ARRAY, "expected array")

    def map(self) -> Optional[int]:
        """Begin decoding a map.

        Returns:
            The declared number of entries, or None for an indefinite map
        """
        return self._container(MAP, "expected map")

    def array_iter(self, item: Any = None, ctx: Any = None) -> ArrayIter:
        """Iterate over array elements, decoding each as ``item``.

        Args:
            item: Element type (generic values if None)
            ctx: Context passed to each element decode
        """
        return ArrayIter(self, self.array(), item, ctx)

    def map_iter(self, key: Any = None, value: Any = None, ctx: Any = None) -> MapIter:
        """Iterate over map entries as (key, value) tuples."""
        return MapIter(self, self.map(), key, value, ctx)

    def tag(self) -> Tag:
        p = self._pos
        b = self._current()
        if type_of(b) != TAGGED:
            raise self._mismatch(b, p, "expected tag")
        self._pos += 1
        return Tag(self._argument(b, p))

    # Internals shared with the skip and tokenizer modules

    def _current(self) -> int:
        if self._pos < len(self._buf):
            return self._buf[self._pos]
        raise DecodeError.end_of_input().at(self._pos)

    def _read(self) -> int:
        b = self._current()
        self._pos += 1
        return b

    def _read_slice(self, n: int) -> memoryview:
        p = self._pos
        end = p + n
        if end > MAX_POSITION:
            raise DecodeError.overflow(n).at(p).with_message("length exceeds position counter")
        if end > len(self._buf):
            raise DecodeError.end_of_input().at(p)
        self._pos = end
        return self._buf[p:end]

    def _argument(self, b: int, p: int) -> int:
        """Read the argument announced by initial byte ``b`` (already consumed)."""
        info = info_of(b)
        if info < INFO_U8:
            return info
        width = _ARGUMENT_WIDTHS.get(info)
        if width is None:
            raise self._mismatch(b, p, "invalid argument encoding")
        return int.from_bytes(self._read_slice(width), "big")

    def _unsigned_within(self, max_value: int, name: str) -> int:
        p = self._pos
        b = self._current()
        if type_of(b) != UNSIGNED:
            raise self._mismatch(b, p, f"expected {name}")
        self._pos += 1
        n = self._argument(b, p)
        if n > max_value:
            raise DecodeError.overflow(n).at(p).with_message(f"u64->{name}")
        return n

    def _signed_within(self, max_value: int, name: str) -> int:
        p = self._pos
        b = self._current()
        major = type_of(b)
        if major not in (UNSIGNED, SIGNED):
            raise self._mismatch(b, p, f"expected {name}")
        self._pos += 1
        n = self._argument(b, p)
        if n > max_value:
            if major == SIGNED:
                raise DecodeError.overflow(-1 - n).at(p).with_message(f"int->{name}")
            raise DecodeError.overflow(n).at(p).with_message(f"u64->{name}")
        return -1 - n if major == SIGNED else n

    def _container(self, major: int, msg: str) -> Optional[int]:
        p = self._pos
        b = self._current()
        if type_of(b) != major:
            raise self._mismatch(b, p, msg)
        self._pos += 1
        if info_of(b) == INFO_INDEFINITE:
            return None
        return self._argument(b, p)

    def _mismatch(self, b: int, p: int, msg: str) -> DecodeError:
        return DecodeError.type_mismatch(Type.read(b)).at(p).with_message(msg)

    def _at_break(self) -> bool:
        """Consume a BREAK if one is at the current position."""
        if self._current() == BREAK:
            self._pos += 1
            return True
        return False


def _utf8(data: memoryview, p: int) -> str:
    try:
        return str(data, "utf-8")
    except UnicodeDecodeError as e:
        raise DecodeError.utf8(e).at(p) from e


class BytesIter:
    """Iterator over byte string chunks, returned from Decoder.bytes_iter()."""

    def __init__(self, decoder: Decoder, length: Optional[int]) -> None:
        self._decoder = decoder
        self._len = length
        self._done = False

    def __iter__(self) -> Iterator[memoryview]:
        return self

    def __next__(self) -> memoryview:
        if self._done:
            raise StopIteration
        d = self._decoder
        if self._len is None:
            if d._at_break():
                self._done = True
                raise StopIteration
            return d.bytes()
        self._done = True
        return d._read_slice(self._len)


class StrIter:
    """Iterator over text string chunks, returned from Decoder.str_iter()."""

    def __init__(self, decoder: Decoder, length: Optional[int], position: int) -> None:
        self._decoder = decoder
        self._len = length
        self._position = position
        self._done = False

    def __iter__(self) -> Iterator[str]:
        return self

    def __next__(self) -> str:
        if self._done:
            raise StopIteration
        d = self._decoder
        if self._len is None:
            if d._at_break():
                self._done = True
                raise StopIteration
            return d.str()
        self._done = True
        return _utf8(d._read_slice(self._len), self._position)


class ArrayIter:
    """Iterator over array elements, returned from Decoder.array_iter().

    Stopping early leaves the decoder right after the last element yielded.
    A BREAK ending an indefinite array is consumed, never yielded.
    """

    def __init__(self, decoder: Decoder, length: Optional[int], item: Any, ctx: Any) -> None:
        self._decoder = decoder
        self._len = length
        self._item = item
        self._ctx = ctx
        self._done = False

    @property
    def length(self) -> Optional[int]:
        """Elements left for a definite array, None for an indefinite one."""
        return self._len

    def __iter__(self) -> Iterator[Any]:
        return self

    def __next__(self) -> Any:
        if self._done:
            raise StopIteration
        d = self._decoder
        if self._len is None:
            if d._at_break():
                self._done = True
                raise StopIteration
        elif self._len == 0:
            self._done = True
            raise StopIteration
        else:
            self._len -= 1
        return d.decode(self._item, self._ctx)


class MapIter:
    """Iterator over map entries, returned from Decoder.map_iter()."""

    def __init__(
        self, decoder: Decoder, length: Optional[int], key: Any, value: Any, ctx: Any
    ) -> None:
        self._decoder = decoder
        self._len = length
        self._key = key
        self._value = value
        self._ctx = ctx
        self._done = False

    @property
    def length(self) -> Optional[int]:
        return self._len

    def __iter__(self) -> Iterator[Tuple[Any, Any]]:
        return self

    def __next__(self) -> Tuple[Any, Any]:
        if self._done:
            raise StopIteration
        d = self._decoder
        if self._len is None:
            if d._at_break():
                self._done = True
                raise StopIteration
        elif self._len == 0:
            self._done = True
            raise StopIteration
        else:
            self._len -= 1
        k = d.decode(self._key, self._ctx)
        v = d.decode(self._value, self._ctx)
        return k, v


def decode(
    data: Any,
    cls: Any = None,
    ctx: Any = None,
    *,
    capabilities: Optional[Capabilities] = None,
) -> Any:
    """Decode one value from the start of a byte buffer.

    Args:
        data: Bytes-like object holding the encoded value
        cls: Target type; None decodes a generic Python value
        ctx: Context threaded through every nested decode
        capabilities: Active capability profile

    Returns:
        Decoded value

    Raises:
        DecodeError: If the data is truncated or malformed, or does not match cls
        CapabilityError: If decoding needs a disabled capability

    Examples:
        ```python
        from smallcbor import decode

        decode(b"\\x83\\x01\\x02\\x03")       # [1, 2, 3]
        decode(b"\\x19\\x01\\x00", int)       # 256
        ```
    """
    return Decoder(data, capabilities).decode(cls, ctx)
