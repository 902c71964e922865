"""CBOR codec for smallcbor.

This module provides the primitive encoder and decoder, the tokenizer, the
skip algorithms and the mapping between Python values and CBOR.
"""

from __future__ import annotations

from .cursor import Cursor, EndOfSlice
from .decoder import ArrayIter, BytesIter, Decoder, MapIter, StrIter, decode
from .encoder import Encoder, encode, encode_into
from .tokens import Token, TokenKind, Tokenizer
from .values import (
    Decodable,
    Encodable,
    IndefiniteArray,
    IndefiniteMap,
    decode_optional,
    encode_optional,
    is_nil,
    nil_of,
)

__all__ = [
    "Decoder",
    "Encoder",
    "decode",
    "encode",
    "encode_into",
    "Cursor",
    "EndOfSlice",
    "ArrayIter",
    "MapIter",
    "BytesIter",
    "StrIter",
    "Token",
    "TokenKind",
    "Tokenizer",
    "Encodable",
    "Decodable",
    "IndefiniteArray",
    "IndefiniteMap",
    "is_nil",
    "nil_of",
    "encode_optional",
    "decode_optional",
]
