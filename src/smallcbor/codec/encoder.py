"""CBOR encoder.

This module provides the Encoder, which writes CBOR data items to a sink,
and the encode() / encode_into() functions that turn a value into bytes.

Integers and lengths are always written in the shortest form: arguments
0-23 inline in the initial byte, then 1, 2, 4 or 8 big-endian bytes.
"""

from __future__ import annotations

import math
import operator
import struct
from typing import Any, Optional, Union

from ..config import DEFAULT_CAPABILITIES, Capabilities
from ..data import (
    ARRAY,
    BYTES,
    I8_MAX,
    I16_MAX,
    I32_MAX,
    I64_MAX,
    INFO_INDEFINITE,
    MAP,
    SIGNED,
    SIMPLE,
    TAGGED,
    TEXT,
    U8_MAX,
    U16_MAX,
    U32_MAX,
    U64_MAX,
    UNSIGNED,
    Int,
    Tag,
)
from ..exceptions import CapabilityError, EncodeError
from .cursor import Cursor, as_write_all

_F16 = struct.Struct(">e")
_F32 = struct.Struct(">f")
_F64 = struct.Struct(">d")

BytesLike = Union[bytes, bytearray, memoryview]


def header(major: int, argument: int) -> bytes:
    """Build the shortest header for a major type and argument.

    Example:
        >>> header(0x00, 24).hex()
        '1818'
    """
    if argument < 24:
        return bytes((major | argument,))
    if argument <= U8_MAX:
        return bytes((major | 24, argument))
    if argument <= U16_MAX:
        return bytes((major | 25,)) + argument.to_bytes(2, "big")
    if argument <= U32_MAX:
        return bytes((major | 26,)) + argument.to_bytes(4, "big")
    return bytes((major | 27,)) + argument.to_bytes(8, "big")


class Encoder:
    """A CBOR encoder writing to a sink.

    Every method returns the encoder, so calls can be chained.

    Example:
        >>> e = Encoder()
        >>> _ = e.array(2).u8(1).str("abc")
        >>> bytes(e.writer()).hex()
        '820163616263'
    """

    def __init__(self, writer: Any = None, capabilities: Optional[Capabilities] = None) -> None:
        """Initialize an encoder.

        Args:
            writer: Sink receiving the bytes: a bytearray, an object with
                ``write_all(data)`` or a binary file-like object. A fresh
                bytearray is used when omitted.
            capabilities: Active capability profile (defaults to the host profile)
        """
        if writer is None:
            writer = bytearray()
        self._writer = writer
        self._write_all = as_write_all(writer)
        self.capabilities = capabilities if capabilities is not None else DEFAULT_CAPABILITIES

    def writer(self) -> Any:
        """Return the sink."""
        return self._writer

    def into_writer(self) -> Any:
        """Give up the encoder and return the sink."""
        writer = self._writer
        self._write_all = _closed
        return writer

    # Generic

    def encode(self, value: Any, ctx: Any = None) -> Encoder:
        """Encode any supported value.

        Args:
            value: Value implementing ``encode_cbor`` or a supported Python value
            ctx: Context passed to every nested ``encode_cbor`` call
        """
        from .values import encode_value

        encode_value(self, value, ctx)
        return self

    # Integers

    def u8(self, x: int) -> Encoder:
        return self._unsigned(x, U8_MAX, "u8")

    def u16(self, x: int) -> Encoder:
        return self._unsigned(x, U16_MAX, "u16")

    def u32(self, x: int) -> Encoder:
        return self._unsigned(x, U32_MAX, "u32")

    def u64(self, x: int) -> Encoder:
        return self._unsigned(x, U64_MAX, "u64")

    def i8(self, x: int) -> Encoder:
        return self._signed(x, I8_MAX, "i8")

    def i16(self, x: int) -> Encoder:
        return self._signed(x, I16_MAX, "i16")

    def i32(self, x: int) -> Encoder:
        return self._signed(x, I32_MAX, "i32")

    def i64(self, x: int) -> Encoder:
        return self._signed(x, I64_MAX, "i64")

    def int(self, x: Union[Int, int]) -> Encoder:
        """Encode an integer of the full CBOR range [-2^64, 2^64 - 1]."""
        if not isinstance(x, Int):
            try:
                x = Int.from_int(operator.index(x))
            except OverflowError as e:
                raise EncodeError.message(str(e)) from e
        major = SIGNED if x.is_negative else UNSIGNED
        return self._put(header(major, x.argument))

    # Floats

    def f16(self, x: float) -> Encoder:
        """Encode a half float.

        The conversion is lossy. Values beyond the half range become infinity.
        """
        if not self.capabilities.half:
            raise CapabilityError.disabled("half", "half floats")
        try:
            payload = _F16.pack(x)
        except OverflowError:
            payload = _F16.pack(math.copysign(math.inf, x))
        return self._put(b"\xf9" + payload)

    def f32(self, x: float) -> Encoder:
        try:
            payload = _F32.pack(x)
        except OverflowError as e:
            raise EncodeError.message(f"{x} out of range for f32") from e
        return self._put(b"\xfa" + payload)

    def f64(self, x: float) -> Encoder:
        return self._put(b"\xfb" + _F64.pack(x))

    # Simple values

    def bool(self, x: bool) -> Encoder:
        return self._put(b"\xf5" if x else b"\xf4")

    def null(self) -> Encoder:
        return self._put(b"\xf6")

    def undefined(self) -> Encoder:
        return self._put(b"\xf7")

    def simple(self, x: int) -> Encoder:
        if not 0 <= x <= U8_MAX:
            raise EncodeError.message(f"{x} out of range for a simple value")
        if 24 <= x < 32:
            raise EncodeError.message(f"simple value {x} is reserved")
        if x < 24:
            return self._put(bytes((SIMPLE | x,)))
        return self._put(bytes((SIMPLE | 24, x)))

    def char(self, x: str) -> Encoder:
        """Encode a single unicode scalar value as its code point."""
        if len(x) != 1:
            raise EncodeError.message(f"expected a single character, got {len(x)}")
        n = ord(x)
        if 0xD800 <= n <= 0xDFFF:
            raise EncodeError.message(f"{n:#x} is not a unicode scalar")
        return self.u32(n)

    def tag(self, x: Union[Tag, int]) -> Encoder:
        if isinstance(x, Tag):
            n = x.number
        else:
            try:
                n = Tag(operator.index(x)).number
            except ValueError as e:
                raise EncodeError.message(str(e)) from e
        return self._put(header(TAGGED, n))

    # Strings

    def bytes(self, x: BytesLike) -> Encoder:
        data = memoryview(x).cast("B")
        self._put(header(BYTES, len(data)))
        return self._put(data)

    def str(self, x: str) -> Encoder:
        try:
            data = x.encode("utf-8")
        except UnicodeEncodeError as e:
            raise EncodeError.message("text is not valid unicode") from e
        self._put(header(TEXT, len(data)))
        return self._put(data)

    # Containers

    def array(self, n: int) -> Encoder:
        """Begin a definite array of ``n`` elements."""
        return self._put(header(ARRAY, self._length(n)))

    def map(self, n: int) -> Encoder:
        """Begin a definite map of ``n`` entries."""
        return self._put(header(MAP, self._length(n)))

    def begin_array(self) -> Encoder:
        """Begin an indefinite array, closed by end()."""
        return self._put(bytes((ARRAY | INFO_INDEFINITE,)))

    def begin_map(self) -> Encoder:
        """Begin an indefinite map, closed by end()."""
        return self._put(bytes((MAP | INFO_INDEFINITE,)))

    def begin_bytes(self) -> Encoder:
        """Begin an indefinite byte string of definite chunks, closed by end()."""
        return self._put(bytes((BYTES | INFO_INDEFINITE,)))

    def begin_str(self) -> Encoder:
        """Begin an indefinite text string of definite chunks, closed by end()."""
        return self._put(bytes((TEXT | INFO_INDEFINITE,)))

    def end(self) -> Encoder:
        """Write the BREAK that closes an indefinite item."""
        return self._put(b"\xff")

    # Internals

    def _put(self, data: BytesLike) -> Encoder:
        try:
            self._write_all(data)
        except Exception as e:
            raise EncodeError.write(e) from e
        return self

    def _unsigned(self, x: int, max_value: int, name: str) -> Encoder:
        x = operator.index(x)
        if not 0 <= x <= max_value:
            raise EncodeError.message(f"{x} out of range for {name}")
        return self._put(header(UNSIGNED, x))

    def _signed(self, x: int, max_value: int, name: str) -> Encoder:
        x = operator.index(x)
        if not -1 - max_value <= x <= max_value:
            raise EncodeError.message(f"{x} out of range for {name}")
        if x < 0:
            return self._put(header(SIGNED, -1 - x))
        return self._put(header(UNSIGNED, x))

    @staticmethod
    def _length(n: int) -> int:
        n = operator.index(n)
        if not 0 <= n <= U64_MAX:
            raise EncodeError.message(f"{n} out of range for a length")
        return n


def _closed(data: BytesLike) -> None:
    raise ValueError("encoder gave up its writer")


def encode(
    value: Any,
    ctx: Any = None,
    *,
    capabilities: Optional[Capabilities] = None,
) -> bytes:
    """Encode a value to CBOR bytes.

    Args:
        value: Value to encode
        ctx: Context threaded through every nested encode
        capabilities: Active capability profile

    Returns:
        The encoded bytes

    Raises:
        EncodeError: If the value has no CBOR mapping or is out of range

    Examples:
        ```python
        from smallcbor import encode

        encode([1, 2, 3])        # b"\\x83\\x01\\x02\\x03"
        encode({"a": True})      # b"\\xa1\\x61a\\xf5"
        ```
    """
    buf = bytearray()
    Encoder(buf, capabilities).encode(value, ctx)
    return bytes(buf)


def encode_into(
    value: Any,
    buffer: Union[bytearray, memoryview],
    ctx: Any = None,
    *,
    capabilities: Optional[Capabilities] = None,
) -> memoryview:
    """Encode a value into a fixed-size buffer.

    Args:
        value: Value to encode
        buffer: Writable buffer receiving the bytes
        ctx: Context threaded through every nested encode
        capabilities: Active capability profile

    Returns:
        View of the written prefix of ``buffer``

    Raises:
        EncodeError: If the value does not fit; ``cause`` is an EndOfSlice
    """
    cursor = Cursor(buffer)
    Encoder(cursor, capabilities).encode(value, ctx)
    return cursor.written()
