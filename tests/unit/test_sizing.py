"""Unit tests for size calculation."""

from __future__ import annotations

import pytest

from smallcbor import EncodeError, encode, encoded_len, header_len
from smallcbor.utils.sizing import SizeCounter


class TestHeaderLen:
    """Test header size calculation."""

    @pytest.mark.parametrize(
        ("argument", "expected"),
        [(0, 1), (23, 1), (24, 2), (255, 2), (256, 3), (65535, 3), (65536, 5), (2**32, 9)],
    )
    def test_header_len(self, argument: int, expected: int) -> None:
        """Test each width boundary."""
        assert header_len(argument) == expected


class TestEncodedLen:
    """Test encoded size calculation."""

    def test_matches_encode(self, sample_value: dict) -> None:
        """Test the size equals the length of the encoding."""
        assert encoded_len(sample_value) == len(encode(sample_value))

    def test_simple_values(self) -> None:
        """Test sizes of small values."""
        assert encoded_len(0) == 1
        assert encoded_len("abc") == 4
        assert encoded_len([1, "abc"]) == 6

    def test_unencodable(self) -> None:
        """Test values with no encoding."""
        with pytest.raises(EncodeError):
            encoded_len(object())

    def test_counter(self) -> None:
        """Test the counting sink."""
        counter = SizeCounter()
        counter.write_all(b"abc")
        counter.write_all(memoryview(b"de"))

        assert counter.count == 5
