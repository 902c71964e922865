"""Information about CBOR data types, tags and integers.

The initial byte of every CBOR data item holds the major type in its three
high bits and the additional information in its five low bits. Additional
information 0-23 is the argument itself, 24-27 announce a 1/2/4/8-byte
big-endian argument, and 31 marks indefinite length (or BREAK for major
type 7). Values 28-30 are reserved.
"""

from __future__ import annotations

import enum
import functools
from dataclasses import dataclass
from typing import Any, Optional, Union

# Major types (already shifted into the high bits)
UNSIGNED = 0x00
SIGNED = 0x20
BYTES = 0x40
TEXT = 0x60
ARRAY = 0x80
MAP = 0xA0
TAGGED = 0xC0
SIMPLE = 0xE0
BREAK = 0xFF

# Additional information markers
INFO_U8 = 24
INFO_U16 = 25
INFO_U32 = 26
INFO_U64 = 27
INFO_INDEFINITE = 31

U8_MAX = 0xFF
U16_MAX = 0xFFFF
U32_MAX = 0xFFFF_FFFF
U64_MAX = 0xFFFF_FFFF_FFFF_FFFF
I8_MAX = 0x7F
I16_MAX = 0x7FFF
I32_MAX = 0x7FFF_FFFF
I64_MAX = 0x7FFF_FFFF_FFFF_FFFF


def type_of(b: int) -> int:
    """Major type of an initial byte (highest 3 bits)."""
    return b & 0b111_00000


def info_of(b: int) -> int:
    """Additional information of an initial byte (lowest 5 bits)."""
    return b & 0b000_11111


class Type(enum.Enum):
    """CBOR data types as seen by the decoder.

    Indefinite-length strings and containers have their own members, and
    ``INT`` denotes a negative integer whose magnitude exceeds the i64 range.
    """

    BOOL = "bool"
    NULL = "null"
    UNDEFINED = "undefined"
    U8 = "u8"
    U16 = "u16"
    U32 = "u32"
    U64 = "u64"
    I8 = "i8"
    I16 = "i16"
    I32 = "i32"
    I64 = "i64"
    INT = "int"
    F16 = "f16"
    F32 = "f32"
    F64 = "f64"
    SIMPLE = "simple"
    BYTES = "bytes"
    BYTES_INDEF = "indefinite bytes"
    STRING = "string"
    STRING_INDEF = "indefinite string"
    ARRAY = "array"
    ARRAY_INDEF = "indefinite array"
    MAP = "map"
    MAP_INDEF = "indefinite map"
    TAG = "tag"
    BREAK = "break"
    UNKNOWN = "unknown"

    @classmethod
    def read(cls, b: int, argument: Optional[int] = None) -> Type:
        """Classify an initial byte.

        Negative integers are classified by magnitude, which needs the
        decoded ``argument`` for the initial bytes 0x38-0x3b. Without it the
        narrowest candidate for the wire width is returned.

        Args:
            b: Initial byte of the data item
            argument: Decoded argument following ``b`` (negative integers only)

        Returns:
            The data type
        """
        if b <= 0x18:
            return cls.U8
        if b == 0x19:
            return cls.U16
        if b == 0x1A:
            return cls.U32
        if b == 0x1B:
            return cls.U64
        if 0x20 <= b <= 0x37:
            return cls.I8
        if 0x38 <= b <= 0x3B:
            return _signed_type(b, argument)
        if 0x40 <= b <= 0x5B:
            return cls.BYTES
        if b == 0x5F:
            return cls.BYTES_INDEF
        if 0x60 <= b <= 0x7B:
            return cls.STRING
        if b == 0x7F:
            return cls.STRING_INDEF
        if 0x80 <= b <= 0x9B:
            return cls.ARRAY
        if b == 0x9F:
            return cls.ARRAY_INDEF
        if 0xA0 <= b <= 0xBB:
            return cls.MAP
        if b == 0xBF:
            return cls.MAP_INDEF
        if 0xC0 <= b <= 0xDB:
            return cls.TAG
        if 0xE0 <= b <= 0xF3 or b == 0xF8:
            return cls.SIMPLE
        if b in (0xF4, 0xF5):
            return cls.BOOL
        if b == 0xF6:
            return cls.NULL
        if b == 0xF7:
            return cls.UNDEFINED
        if b == 0xF9:
            return cls.F16
        if b == 0xFA:
            return cls.F32
        if b == 0xFB:
            return cls.F64
        if b == BREAK:
            return cls.BREAK
        return cls.UNKNOWN


_SIGNED_WIDTHS = {
    0x38: (I8_MAX, Type.I8, Type.I16),
    0x39: (I16_MAX, Type.I16, Type.I32),
    0x3A: (I32_MAX, Type.I32, Type.I64),
    0x3B: (I64_MAX, Type.I64, Type.INT),
}


def _signed_type(b: int, argument: Optional[int]) -> Type:
    limit, narrow, wide = _SIGNED_WIDTHS[b]
    if argument is None or argument <= limit:
        return narrow
    return wide


class IanaTag(enum.IntEnum):
    """Tags registered with IANA that the codec knows by name."""

    DATE_TIME = 0x00
    TIMESTAMP = 0x01
    POS_BIGNUM = 0x02
    NEG_BIGNUM = 0x03
    DECIMAL = 0x04
    BIGFLOAT = 0x05
    TO_BASE64URL = 0x15
    TO_BASE64 = 0x16
    TO_BASE16 = 0x17
    CBOR = 0x18
    URI = 0x20
    BASE64URL = 0x21
    BASE64 = 0x22
    REGEX = 0x23
    MIME = 0x24


@dataclass(frozen=True)
class Tag:
    """A CBOR tag number (major type 6)."""

    number: int

    def __post_init__(self) -> None:
        if not 0 <= self.number <= U64_MAX:
            raise ValueError(f"tag number must be 0-{U64_MAX}, got {self.number}")

    def __int__(self) -> int:
        return self.number

    @property
    def iana(self) -> Optional[IanaTag]:
        """The registered tag, if the number is a known one."""
        try:
            return IanaTag(self.number)
        except ValueError:
            return None

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Tag):
            return self.number == other.number
        if isinstance(other, int) and not isinstance(other, bool):
            return self.number == other
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.number)


@functools.total_ordering
class Int:
    """An integer covering the whole CBOR range [-2^64, 2^64 - 1].

    The value is held the way it travels on the wire: a sign flag and the
    unsigned argument, where a negative value ``v`` is stored as ``-1 - v``.
    Equality, ordering and hashing follow the mathematical value.

    Example:
        >>> n = Int.from_int(-(2**64))
        >>> n.is_negative, n.argument
        (True, 18446744073709551615)
        >>> int(n) == -(2**64)
        True
    """

    __slots__ = ("_negative", "_argument")

    MIN_VALUE = -(2**64)
    MAX_VALUE = U64_MAX

    def __init__(self, negative: bool, argument: int) -> None:
        if not 0 <= argument <= U64_MAX:
            raise ValueError(f"argument must be 0-{U64_MAX}, got {argument}")
        self._negative = negative
        self._argument = argument

    @classmethod
    def from_int(cls, value: int) -> Int:
        """Convert a Python int, which must lie in the CBOR integer range."""
        if not cls.MIN_VALUE <= value <= cls.MAX_VALUE:
            raise OverflowError(f"{value} is outside the CBOR integer range")
        if value < 0:
            return cls(True, -1 - value)
        return cls(False, value)

    @property
    def is_negative(self) -> bool:
        return self._negative

    @property
    def argument(self) -> int:
        """The unsigned wire argument."""
        return self._argument

    def __int__(self) -> int:
        if self._negative:
            return -1 - self._argument
        return self._argument

    __index__ = __int__

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Int):
            return int(self) == int(other)
        if isinstance(other, int):
            return int(self) == other
        return NotImplemented

    def __lt__(self, other: Union[Int, int]) -> bool:
        if isinstance(other, (Int, int)):
            return int(self) < int(other)
        return NotImplemented

    def __hash__(self) -> int:
        return hash(int(self))

    def __repr__(self) -> str:
        return f"Int({int(self)})"


@dataclass(frozen=True)
class Simple:
    """A CBOR simple value (major type 7) other than bool, null or undefined."""

    value: int

    def __post_init__(self) -> None:
        if not 0 <= self.value <= U8_MAX:
            raise ValueError(f"simple value must be 0-255, got {self.value}")


class _Undefined:
    """The CBOR ``undefined`` value."""

    _instance: Optional[_Undefined] = None

    def __new__(cls) -> _Undefined:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNDEFINED"

    def __bool__(self) -> bool:
        return False


UNDEFINED = _Undefined()


@dataclass(frozen=True)
class Tagged:
    """A value preceded by a tag."""

    tag: Tag
    value: Any
