"""Length-prefixed framing of CBOR values for smallcbor.

This module provides frame helpers for complete buffers, blocking readers
and writers for binary streams, and asyncio readers and writers.
"""

from __future__ import annotations

from .aio import AsyncReader, AsyncWriter
from .basic import DEFAULT_MAX_LEN, LENGTH_PREFIX, PREFIX_LEN, frame_value, unframe_value
from .io import Reader, Writer

__all__ = [
    # Helpers
    "frame_value",
    "unframe_value",
    "DEFAULT_MAX_LEN",
    "LENGTH_PREFIX",
    "PREFIX_LEN",
    # Blocking I/O
    "Reader",
    "Writer",
    # Async I/O
    "AsyncReader",
    "AsyncWriter",
]
