"""smallcbor: A Small CBOR Codec

A Python library for encoding and decoding CBOR (RFC 8949), the Concise
Binary Object Representation. It works on caller-owned buffers, never reads
out of bounds, and carries the position of every decoding failure.

Key Features:
- Primitive Encoder/Decoder with shortest-form integer and length encoding
- Definite and indefinite arrays, maps, byte and text strings
- Token stream and skip support for generic traversal
- Length-prefixed framing over blocking and asyncio streams
- Capability profiles for heap-backed or fixed-capacity operation

Quick Start:
    >>> from smallcbor import Decoder, Encoder, decode, encode
    >>>
    >>> data = encode({"depth": 1500, "active": True})
    >>> decode(data)
    {'depth': 1500, 'active': True}
    >>>
    >>> e = Encoder()
    >>> _ = e.array(2).u16(1500).bool(True)
    >>> d = Decoder(e.writer())
    >>> d.array(), d.u16(), d.bool()
    (2, 1500, True)
"""

from __future__ import annotations

from .bytes import ByteArray, ByteSlice, ByteVec
from .codec import (
    Cursor,
    Decodable,
    Decoder,
    Encodable,
    Encoder,
    EndOfSlice,
    IndefiniteArray,
    IndefiniteMap,
    Token,
    TokenKind,
    Tokenizer,
    decode,
    decode_optional,
    encode,
    encode_into,
    encode_optional,
    is_nil,
    nil_of,
)
from .config import DEFAULT_CAPABILITIES, Capabilities
from .data import UNDEFINED, IanaTag, Int, Simple, Tag, Tagged, Type
from .exceptions import (
    CapabilityError,
    CborError,
    DecodeError,
    EncodeError,
    ErrorKind,
    FramingError,
)
from .framing import (
    AsyncReader,
    AsyncWriter,
    Reader,
    Writer,
    frame_value,
    unframe_value,
)
from .net import SocketAddress
from .utils import encoded_len, header_len

__version__ = "0.1.0"

__all__ = [
    # Core API
    "Encoder",
    "Decoder",
    "encode",
    "encode_into",
    "decode",
    # Data model
    "Type",
    "Tag",
    "IanaTag",
    "Int",
    "Simple",
    "Tagged",
    "UNDEFINED",
    "ByteSlice",
    "ByteVec",
    "ByteArray",
    "SocketAddress",
    # Tokens
    "Token",
    "TokenKind",
    "Tokenizer",
    # Value contract
    "Encodable",
    "Decodable",
    "IndefiniteArray",
    "IndefiniteMap",
    "is_nil",
    "nil_of",
    "encode_optional",
    "decode_optional",
    # Sinks
    "Cursor",
    "EndOfSlice",
    # Configuration
    "Capabilities",
    "DEFAULT_CAPABILITIES",
    # Exceptions
    "CborError",
    "DecodeError",
    "EncodeError",
    "FramingError",
    "CapabilityError",
    "ErrorKind",
    # Framing
    "frame_value",
    "unframe_value",
    "Reader",
    "Writer",
    "AsyncReader",
    "AsyncWriter",
    # Sizing
    "encoded_len",
    "header_len",
    # Version
    "__version__",
]
