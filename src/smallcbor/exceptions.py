"""Exception hierarchy for smallcbor.

This module defines all custom exceptions used throughout the package.
All exceptions inherit from CborError for easy catching of any smallcbor-specific error.

Errors are opaque: they are built through named factory class methods
(``DecodeError.end_of_input()``, ``DecodeError.type_mismatch(found)``, ...)
instead of being constructed field by field, so new details can be attached
later without breaking callers. Builder methods ``at()`` and
``with_message()`` add the byte position and a context message.

Example:
    >>> err = DecodeError.type_mismatch(Type.STRING).at(3).with_message("expected u8")
    >>> err.position
    3
    >>> err.is_type_mismatch
    True
"""

from __future__ import annotations

import enum
from typing import TYPE_CHECKING, Any, Optional, TypeVar

if TYPE_CHECKING:
    from .config import Capabilities
    from .data import Type

_E = TypeVar("_E", bound="CborError")


class ErrorKind(enum.Enum):
    """Classification of a CborError."""

    MESSAGE = "message"
    TYPE_MISMATCH = "type mismatch"
    END_OF_INPUT = "end of input"
    OVERFLOW = "overflow"
    CUSTOM = "custom"
    UTF8 = "invalid utf-8"
    INVALID_CHAR = "invalid char"
    UNKNOWN_VARIANT = "unknown variant"
    MISSING_VALUE = "missing value"
    WRITE = "write error"
    IO = "i/o error"
    DECODE = "decode error"
    ENCODE = "encode error"
    INVALID_LEN = "invalid length"
    UNEXPECTED_EOF = "unexpected end of stream"
    CAPABILITY = "capability disabled"


class CborError(Exception):
    """Base exception for all smallcbor errors.

    Attributes are read-only views of the error state. Use the factory class
    methods of the subclasses to create instances.
    """

    def __init__(
        self,
        kind: ErrorKind,
        msg: Optional[str] = None,
        *,
        found: Optional[Type] = None,
        value: Any = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(msg or kind.value)
        self._kind = kind
        self._msg = msg
        self._found = found
        self._value = value
        self._cause = cause
        self._position: Optional[int] = None
        if cause is not None:
            self.__cause__ = cause

    # Factories shared by all error families

    @classmethod
    def message(cls, msg: str) -> CborError:
        """Create an error carrying only a message."""
        return cls(ErrorKind.MESSAGE, msg)

    @classmethod
    def custom(
        cls, cause: BaseException, capabilities: Optional[Capabilities] = None
    ) -> CborError:
        """Wrap an arbitrary external exception.

        Boxed causes are a host feature: the ``std`` capability must be on.

        Raises:
            CapabilityError: If ``capabilities.std`` is disabled
        """
        if capabilities is not None and not capabilities.std:
            raise CapabilityError.disabled("std", "custom errors")
        return cls(ErrorKind.CUSTOM, str(cause), cause=cause)

    # Builders

    def at(self: _E, position: int) -> _E:
        """Attach the byte position at which the error was detected."""
        self._position = position
        return self

    def with_message(self: _E, msg: str) -> _E:
        """Attach a context message."""
        self._msg = msg
        self.args = (msg,)
        return self

    # Accessors

    @property
    def kind(self) -> ErrorKind:
        return self._kind

    @property
    def position(self) -> Optional[int]:
        return self._position

    @property
    def found(self) -> Optional[Type]:
        """The data type encountered, for type mismatches."""
        return self._found

    @property
    def value(self) -> Any:
        """The offending value, for overflow and variant errors."""
        return self._value

    @property
    def cause(self) -> Optional[BaseException]:
        return self._cause

    @property
    def is_end_of_input(self) -> bool:
        return self._kind is ErrorKind.END_OF_INPUT

    @property
    def is_type_mismatch(self) -> bool:
        return self._kind is ErrorKind.TYPE_MISMATCH

    @property
    def is_overflow(self) -> bool:
        return self._kind is ErrorKind.OVERFLOW

    @property
    def is_message(self) -> bool:
        return self._kind is ErrorKind.MESSAGE

    @property
    def is_custom(self) -> bool:
        return self._kind is ErrorKind.CUSTOM

    def __str__(self) -> str:
        parts = []
        if self._kind is ErrorKind.TYPE_MISMATCH and self._found is not None:
            parts.append(f"unexpected type {self._found.value}")
        elif self._kind is ErrorKind.OVERFLOW:
            parts.append(f"{self._value} overflows target type")
        elif self._kind not in (ErrorKind.MESSAGE, ErrorKind.CUSTOM):
            parts.append(self._kind.value)
        if self._position is not None:
            parts.append(f"at position {self._position}")
        text = " ".join(parts)
        if self._msg:
            return f"{text}: {self._msg}" if text else self._msg
        return text

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._kind.name}, {str(self)!r})"

    def __copy__(self) -> Any:
        raise TypeError(f"{type(self).__name__} is not copyable")

    def __deepcopy__(self, memo: Any) -> Any:
        raise TypeError(f"{type(self).__name__} is not copyable")


class DecodeError(CborError):
    """Raised when decoding CBOR data fails.

    Examples:
        - Truncated data (end of input)
        - Unexpected data type at the current position
        - Integer value does not fit the requested width
        - Invalid UTF-8 in a text string
    """

    @classmethod
    def end_of_input(cls) -> DecodeError:
        return cls(ErrorKind.END_OF_INPUT)

    @classmethod
    def type_mismatch(cls, found: Type) -> DecodeError:
        return cls(ErrorKind.TYPE_MISMATCH, found=found)

    @classmethod
    def overflow(cls, value: int) -> DecodeError:
        return cls(ErrorKind.OVERFLOW, value=value)

    @classmethod
    def utf8(cls, cause: UnicodeDecodeError) -> DecodeError:
        return cls(ErrorKind.UTF8, str(cause), cause=cause)

    @classmethod
    def invalid_char(cls, code: int) -> DecodeError:
        return cls(ErrorKind.INVALID_CHAR, f"{code:#x} is not a unicode scalar", value=code)

    @classmethod
    def unknown_variant(cls, n: int) -> DecodeError:
        return cls(ErrorKind.UNKNOWN_VARIANT, f"unknown variant {n}", value=n)

    @classmethod
    def missing_value(cls, index: int) -> DecodeError:
        return cls(ErrorKind.MISSING_VALUE, f"missing value at index {index}", value=index)


class EncodeError(CborError):
    """Raised when encoding a value fails.

    Examples:
        - The sink rejected the bytes (full buffer, closed file)
        - Value out of range for the requested width
        - Value of a type with no CBOR mapping
    """

    @classmethod
    def write(cls, cause: BaseException) -> EncodeError:
        return cls(ErrorKind.WRITE, str(cause) or type(cause).__name__, cause=cause)


class FramingError(CborError):
    """Raised when framing operations fail.

    Examples:
        - Stream closed in the middle of a frame
        - Length prefix larger than the configured maximum
        - Underlying stream I/O failure
        - Payload could not be decoded or encoded
    """

    @classmethod
    def io(cls, cause: BaseException) -> FramingError:
        return cls(ErrorKind.IO, str(cause) or type(cause).__name__, cause=cause)

    @classmethod
    def decode(cls, cause: DecodeError) -> FramingError:
        return cls(ErrorKind.DECODE, str(cause), cause=cause)

    @classmethod
    def encode(cls, cause: EncodeError) -> FramingError:
        return cls(ErrorKind.ENCODE, str(cause), cause=cause)

    @classmethod
    def invalid_len(cls, length: int, max_len: int) -> FramingError:
        return cls(
            ErrorKind.INVALID_LEN, f"frame length {length} exceeds maximum {max_len}", value=length
        )

    @classmethod
    def unexpected_eof(cls) -> FramingError:
        return cls(ErrorKind.UNEXPECTED_EOF)

    @property
    def is_unexpected_eof(self) -> bool:
        return self._kind is ErrorKind.UNEXPECTED_EOF


class CapabilityError(CborError):
    """Raised when an operation needs a capability the active profile lacks.

    Examples:
        - Decoding a ByteVec with ``alloc`` disabled
        - Encoding a half float with ``half`` disabled
        - Creating a frame Reader with ``std`` disabled
    """

    @classmethod
    def disabled(cls, capability: str, feature: str) -> CapabilityError:
        return cls(ErrorKind.CAPABILITY, f"{feature} require the '{capability}' capability")
