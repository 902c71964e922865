"""Encoded size calculation utilities.

These functions compute how many bytes a value occupies on the wire without
materializing the encoded output.
"""

from __future__ import annotations

from typing import Any, Optional, Union

from ..codec.encoder import Encoder
from ..config import Capabilities
from ..data import U8_MAX, U16_MAX, U32_MAX


class SizeCounter:
    """A sink that counts the bytes written to it and discards them."""

    def __init__(self) -> None:
        self.count = 0

    def write_all(self, data: Union[bytes, bytearray, memoryview]) -> None:
        self.count += len(data)


def header_len(argument: int) -> int:
    """Size of the shortest header carrying ``argument``.

    Example:
        >>> [header_len(n) for n in (0, 23, 24, 256, 65536, 2**32)]
        [1, 1, 2, 3, 5, 9]
    """
    if argument < 24:
        return 1
    if argument <= U8_MAX:
        return 2
    if argument <= U16_MAX:
        return 3
    if argument <= U32_MAX:
        return 5
    return 9


def encoded_len(
    value: Any, ctx: Any = None, *, capabilities: Optional[Capabilities] = None
) -> int:
    """Calculate the encoded size of a value in bytes.

    Args:
        value: Value to measure
        ctx: Context threaded through the encode
        capabilities: Active capability profile

    Returns:
        Number of bytes ``encode(value, ctx)`` would produce

    Raises:
        EncodeError: If the value cannot be encoded

    Example:
        >>> encoded_len([1, "abc"])
        6
    """
    counter = SizeCounter()
    Encoder(counter, capabilities).encode(value, ctx)
    return counter.count
