"""Length-prefixed framing of CBOR values.

A frame is a 4-byte big-endian payload length followed by the payload,
which holds exactly one encoded value:

    [Length (4 bytes)] [Payload (Length bytes)]

Payloads longer than a configurable maximum (512 KiB by default) are
rejected on both ends.
"""

from __future__ import annotations

import logging
import struct
from typing import Any, Optional

from ..codec.decoder import decode
from ..codec.encoder import Encoder
from ..config import Capabilities
from ..exceptions import DecodeError, EncodeError, FramingError

logger = logging.getLogger(__name__)

LENGTH_PREFIX = struct.Struct(">I")
PREFIX_LEN = LENGTH_PREFIX.size
DEFAULT_MAX_LEN = 512 * 1024


def check_len(length: int, max_len: int) -> None:
    """Reject a payload length above the maximum.

    Raises:
        FramingError: If length exceeds max_len
    """
    if length > max_len:
        logger.warning("Frame length %d exceeds maximum %d", length, max_len)
        raise FramingError.invalid_len(length, max_len)


def encode_frame(
    value: Any,
    ctx: Any = None,
    *,
    max_len: int = DEFAULT_MAX_LEN,
    capabilities: Optional[Capabilities] = None,
) -> bytearray:
    """Encode a value into a fresh buffer holding the complete frame."""
    buffer = bytearray(PREFIX_LEN)
    try:
        Encoder(buffer, capabilities).encode(value, ctx)
    except EncodeError as e:
        raise FramingError.encode(e) from e
    length = len(buffer) - PREFIX_LEN
    check_len(length, max_len)
    LENGTH_PREFIX.pack_into(buffer, 0, length)
    return buffer


def frame_value(
    value: Any,
    ctx: Any = None,
    *,
    max_len: int = DEFAULT_MAX_LEN,
    capabilities: Optional[Capabilities] = None,
) -> bytes:
    """Encode a value and frame it with a length prefix.

    Args:
        value: Value to encode
        ctx: Context threaded through the encode
        max_len: Largest accepted payload length
        capabilities: Active capability profile

    Returns:
        Framed message

    Raises:
        FramingError: If encoding fails or the payload is too long

    Example:
        >>> frame_value([1, 2]).hex()
        '00000003820102'
    """
    return bytes(encode_frame(value, ctx, max_len=max_len, capabilities=capabilities))


def unframe_value(
    framed: bytes,
    cls: Any = None,
    ctx: Any = None,
    *,
    max_len: int = DEFAULT_MAX_LEN,
    capabilities: Optional[Capabilities] = None,
) -> Any:
    """Unframe a message and decode its payload.

    Args:
        framed: A complete frame
        cls: Target type of the payload (generic value if None)
        ctx: Context threaded through the decode
        max_len: Largest accepted payload length
        capabilities: Active capability profile

    Returns:
        Decoded payload

    Raises:
        FramingError: If the frame is truncated, too long, followed by extra
            bytes, or its payload does not decode
    """
    if len(framed) < PREFIX_LEN:
        raise FramingError.unexpected_eof().with_message(
            f"frame too short for length prefix: {len(framed)} bytes"
        )
    (length,) = LENGTH_PREFIX.unpack_from(framed)
    check_len(length, max_len)
    end = PREFIX_LEN + length
    if len(framed) < end:
        raise FramingError.unexpected_eof().with_message(
            f"payload truncated: expected {length} bytes, got {len(framed) - PREFIX_LEN}"
        )
    if len(framed) > end:
        raise FramingError.message(f"{len(framed) - end} trailing bytes after frame")
    return decode_payload(memoryview(framed)[PREFIX_LEN:end], cls, ctx, capabilities)


def decode_payload(
    payload: Any, cls: Any, ctx: Any, capabilities: Optional[Capabilities]
) -> Any:
    """Decode a frame payload, wrapping decode errors."""
    try:
        return decode(payload, cls, ctx, capabilities=capabilities)
    except DecodeError as e:
        raise FramingError.decode(e) from e
