"""Generic CBOR tokenization.

A Tokenizer turns a buffer into a flat sequence of tokens without building
nested values. Definite containers appear as a single ``ARRAY(n)`` or
``MAP(n)`` token followed by their items; indefinite ones as a ``BEGIN_*``
token, their items, and a ``BREAK`` token.

A token sequence is not necessarily well-formed CBOR: the tokenizer checks
each token but not the nesting.

Example:
    >>> [str(t) for t in Tokenizer(bytes([0x9F, 0x01, 0x02, 0xFF]))]
    ['?A[', '1', '2', ']']
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Iterator, Union

from ..data import Type
from ..exceptions import CborError
from .decoder import Decoder


class TokenKind(enum.Enum):
    """Kinds of CBOR tokens."""

    BOOL = "bool"
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
    BYTES = "bytes"
    STRING = "string"
    ARRAY = "array"
    MAP = "map"
    TAG = "tag"
    SIMPLE = "simple"
    BREAK = "break"
    NULL = "null"
    UNDEFINED = "undefined"
    BEGIN_BYTES = "begin bytes"
    BEGIN_STRING = "begin string"
    BEGIN_ARRAY = "begin array"
    BEGIN_MAP = "begin map"


_MARKERS = {
    TokenKind.BREAK: "]",
    TokenKind.NULL: "null",
    TokenKind.UNDEFINED: "undefined",
    TokenKind.BEGIN_BYTES: "?B[",
    TokenKind.BEGIN_STRING: "?S[",
    TokenKind.BEGIN_ARRAY: "?A[",
    TokenKind.BEGIN_MAP: "?M[",
}


@dataclass(frozen=True)
class Token:
    """A single CBOR token.

    Attributes:
        kind: Token kind
        value: Payload: the number, string, bytes view, Tag or container
            length; None for markers
    """

    kind: TokenKind
    value: Any = None

    def __str__(self) -> str:
        kind = self.kind
        if kind in _MARKERS:
            return _MARKERS[kind]
        if kind is TokenKind.BOOL:
            return "true" if self.value else "false"
        if kind is TokenKind.BYTES:
            return f"h'{bytes(self.value).hex(' ')}'"
        if kind is TokenKind.STRING:
            return f'"{self.value}"'
        if kind is TokenKind.ARRAY:
            return f"A[{self.value}]"
        if kind is TokenKind.MAP:
            return f"M[{self.value}]"
        if kind is TokenKind.TAG:
            return f"T({self.value.number})"
        if kind is TokenKind.SIMPLE:
            return f"simple({self.value})"
        if kind is TokenKind.INT:
            return str(int(self.value))
        return str(self.value)


_SINGLE_BYTE = {
    Type.BYTES_INDEF: TokenKind.BEGIN_BYTES,
    Type.STRING_INDEF: TokenKind.BEGIN_STRING,
    Type.ARRAY_INDEF: TokenKind.BEGIN_ARRAY,
    Type.MAP_INDEF: TokenKind.BEGIN_MAP,
    Type.NULL: TokenKind.NULL,
    Type.UNDEFINED: TokenKind.UNDEFINED,
    Type.BREAK: TokenKind.BREAK,
}

_DECODED = {
    Type.BOOL: (TokenKind.BOOL, Decoder.bool),
    Type.U8: (TokenKind.U8, Decoder.u8),
    Type.U16: (TokenKind.U16, Decoder.u16),
    Type.U32: (TokenKind.U32, Decoder.u32),
    Type.U64: (TokenKind.U64, Decoder.u64),
    Type.I8: (TokenKind.I8, Decoder.i8),
    Type.I16: (TokenKind.I16, Decoder.i16),
    Type.I32: (TokenKind.I32, Decoder.i32),
    Type.I64: (TokenKind.I64, Decoder.i64),
    Type.INT: (TokenKind.INT, Decoder.int),
    Type.F16: (TokenKind.F16, Decoder.f16),
    Type.F32: (TokenKind.F32, Decoder.f32),
    Type.F64: (TokenKind.F64, Decoder.f64),
    Type.BYTES: (TokenKind.BYTES, Decoder.bytes),
    Type.STRING: (TokenKind.STRING, Decoder.str),
    Type.ARRAY: (TokenKind.ARRAY, Decoder.array),
    Type.MAP: (TokenKind.MAP, Decoder.map),
    Type.TAG: (TokenKind.TAG, Decoder.tag),
    Type.SIMPLE: (TokenKind.SIMPLE, Decoder.simple),
}


class Tokenizer:
    """An iterator over CBOR tokens.

    Iteration ends at a clean end of input, i.e. when the input is exhausted
    at a token boundary. Any error moves the position to the end of the
    input before it is raised, so the next call ends the iteration.
    """

    def __init__(self, data: Union[Decoder, Any]) -> None:
        """Initialize a tokenizer.

        Args:
            data: Bytes-like input, or a Decoder to continue from its position
        """
        self._decoder = data if isinstance(data, Decoder) else Decoder(data)

    @property
    def decoder(self) -> Decoder:
        return self._decoder

    def __iter__(self) -> Iterator[Token]:
        return self

    def __next__(self) -> Token:
        d = self._decoder
        if d.position() >= len(d.input()):
            raise StopIteration
        return self.token()

    def token(self) -> Token:
        """Decode the next token.

        Raises:
            DecodeError: If the input is exhausted or the token is malformed
        """
        d = self._decoder
        try:
            return self._next(d)
        except CborError:
            d.set_position(len(d.input()))
            raise

    @staticmethod
    def _next(d: Decoder) -> Token:
        p = d.position()
        datatype = d.datatype()
        kind = _SINGLE_BYTE.get(datatype)
        if kind is not None:
            d.set_position(p + 1)
            return Token(kind)
        entry = _DECODED.get(datatype)
        if entry is None:
            raise d._mismatch(d._current(), p, "unknown cbor type")
        kind, read = entry
        return Token(kind, read(d))
