"""Pytest configuration and shared fixtures."""

from __future__ import annotations

from typing import Optional

import pytest

from smallcbor import Capabilities


class ChunkedStream:
    """Readable binary stream that hands out at most ``chunk`` bytes per read."""

    def __init__(self, data: bytes, chunk: int = 1) -> None:
        self._data = data
        self._pos = 0
        self._chunk = chunk

    def read(self, n: int = -1) -> bytes:
        if n < 0:
            n = len(self._data) - self._pos
        n = min(n, self._chunk)
        out = self._data[self._pos : self._pos + n]
        self._pos += len(out)
        return out


class MemoryStreamWriter:
    """In-memory stand-in for asyncio.StreamWriter."""

    def __init__(self, fail: Optional[BaseException] = None) -> None:
        self.data = bytearray()
        self.closed = False
        self.drains = 0
        self._fail = fail

    def write(self, data: bytes) -> None:
        self.data += data

    async def drain(self) -> None:
        self.drains += 1
        if self._fail is not None:
            raise self._fail

    def close(self) -> None:
        self.closed = True

    async def wait_closed(self) -> None:
        return None


@pytest.fixture
def host_caps() -> Capabilities:
    """Heap-backed capability profile."""
    return Capabilities.host()


@pytest.fixture
def fixed_caps() -> Capabilities:
    """Fixed-capacity capability profile (no alloc, no std)."""
    return Capabilities.fixed()


@pytest.fixture
def legacy_caps() -> Capabilities:
    """Host profile using the legacy address encodings."""
    return Capabilities.host(legacy=True)


@pytest.fixture
def sample_value() -> dict:
    """Nested value exercising most major types."""
    return {
        "id": 42,
        "depth": -1500,
        "name": "auv-1",
        "payload": b"\x01\x02\x03",
        "readings": [1.5, 2.25, -0.5],
        "active": True,
        "note": None,
    }


@pytest.fixture
def chunked_stream():
    """Factory for streams returning short reads."""
    return ChunkedStream


@pytest.fixture
def memory_writer():
    """Factory for in-memory async stream writers."""
    return MemoryStreamWriter
