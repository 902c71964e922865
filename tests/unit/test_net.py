"""Unit tests for IP and socket address encodings."""

from __future__ import annotations

from ipaddress import IPv4Address, IPv6Address, ip_address
from typing import Optional, Union

import pytest

from smallcbor import Capabilities, DecodeError, Decoder, Encoder, SocketAddress, decode, encode
from smallcbor.exceptions import ErrorKind
from smallcbor.net import decode_ip_addr, encode_ip_addr

LOCALHOST = IPv4Address("127.0.0.1")


class TestCompactEncoding:
    """Test the default byte-string encoding."""

    def test_ipv4(self) -> None:
        """Test an IPv4 address is a 4-byte string."""
        assert encode(LOCALHOST).hex() == "447f000001"

    def test_ipv6(self) -> None:
        """Test an IPv6 address is a 16-byte string."""
        data = encode(IPv6Address("::1"))

        assert data == b"\x50" + bytes(15) + b"\x01"
        assert decode(data, IPv6Address) == IPv6Address("::1")

    def test_socket_address(self) -> None:
        """Test a socket address is [ip, port]."""
        addr = SocketAddress(LOCALHOST, 8080)
        data = encode(addr)

        assert data.hex() == "82447f000001191f90"
        assert decode(data, SocketAddress) == addr
        assert addr.is_v4

    def test_ip_addr_union(self) -> None:
        """Test either family is told apart by length."""
        v6 = ip_address("2001:db8::1")

        assert decode(encode(LOCALHOST), Union[IPv4Address, IPv6Address]) == LOCALHOST
        assert decode(encode(v6), IPv4Address | IPv6Address) == v6

    def test_ip_addr_bad_length(self) -> None:
        """Test a byte string of neither length."""
        with pytest.raises(DecodeError, match="invalid ip address length 3"):
            decode_ip_addr(Decoder(b"\x43\x01\x02\x03"))

    def test_wrong_octet_count(self) -> None:
        """Test an IPv4 target given 16 bytes."""
        with pytest.raises(DecodeError, match="expected 4 octets, got 16"):
            decode(encode(IPv6Address("::1")), IPv4Address)

    def test_missing_port(self) -> None:
        """Test a socket address with only the ip."""
        with pytest.raises(DecodeError) as exc_info:
            decode(b"\x81\x44\x7f\x00\x00\x01", SocketAddress)

        assert exc_info.value.kind is ErrorKind.MISSING_VALUE
        assert exc_info.value.value == 1
        assert exc_info.value.position == 0

    def test_optional_address(self) -> None:
        """Test null decodes to None for an optional address."""
        assert decode(b"\xf6", Optional[SocketAddress]) is None


class TestLegacyEncoding:
    """Test the array-based encoding."""

    def test_ipv4_octets(self, legacy_caps: Capabilities) -> None:
        """Test an IPv4 address as an array of octets."""
        data = encode(IPv4Address("1.2.3.4"), capabilities=legacy_caps)

        assert data.hex() == "8401020304"
        assert decode(data, IPv4Address, capabilities=legacy_caps) == IPv4Address("1.2.3.4")

    def test_ip_addr_variant(self, legacy_caps: Capabilities) -> None:
        """Test an address of either family carries its variant."""
        e = Encoder(capabilities=legacy_caps)
        encode_ip_addr(e, ip_address("1.2.3.4"))
        data = bytes(e.writer())

        assert data.hex() == "82008401020304"
        assert decode_ip_addr(Decoder(data, legacy_caps)) == IPv4Address("1.2.3.4")

    def test_socket_address(self, legacy_caps: Capabilities) -> None:
        """Test [variant, [octets, port]]."""
        addr = SocketAddress(LOCALHOST, 8080)
        data = encode(addr, capabilities=legacy_caps)

        assert data.hex() == "82008284187f000001191f90"
        assert decode(data, SocketAddress, capabilities=legacy_caps) == addr

    def test_socket_address_v6(self, legacy_caps: Capabilities) -> None:
        """Test the v6 variant."""
        addr = SocketAddress(IPv6Address("::1"), 443)
        data = encode(addr, capabilities=legacy_caps)

        assert data[:2] == b"\x82\x01"
        assert decode(data, SocketAddress, capabilities=legacy_caps) == addr

    def test_unknown_trailing_field_skipped(self, legacy_caps: Capabilities) -> None:
        """Test extra fields after the port are ignored."""
        data = b"\x82\x00\x83\x84\x01\x02\x03\x04\x18\x50\x65extra"

        addr = decode(data, SocketAddress, capabilities=legacy_caps)

        assert addr == SocketAddress(IPv4Address("1.2.3.4"), 80)

    def test_indefinite_fields(self, legacy_caps: Capabilities) -> None:
        """Test the field array may be indefinite."""
        data = b"\x82\x00\x9f\x84\x01\x02\x03\x04\x18\x50\xff"
        d = Decoder(data, legacy_caps)

        assert d.decode(SocketAddress) == SocketAddress(IPv4Address("1.2.3.4"), 80)
        assert d.position() == len(data)

    def test_missing_value(self, legacy_caps: Capabilities) -> None:
        """Test a field array without the port."""
        with pytest.raises(DecodeError, match="SocketAddrV4 field 1") as exc_info:
            decode(b"\x82\x00\x81\x84\x01\x02\x03\x04", SocketAddress, capabilities=legacy_caps)

        assert exc_info.value.kind is ErrorKind.MISSING_VALUE
        assert exc_info.value.position == 2

    def test_unknown_variant(self, legacy_caps: Capabilities) -> None:
        """Test a variant other than v4 or v6."""
        with pytest.raises(DecodeError) as exc_info:
            decode(b"\x82\x02\x80", SocketAddress, capabilities=legacy_caps)

        assert exc_info.value.kind is ErrorKind.UNKNOWN_VARIANT
        assert exc_info.value.value == 2
        assert exc_info.value.position == 1

    def test_not_an_enum(self, legacy_caps: Capabilities) -> None:
        """Test the variant wrapper must be a 2-element array."""
        with pytest.raises(DecodeError, match="2-element array"):
            decode(b"\x83\x00\x00\x00", SocketAddress, capabilities=legacy_caps)
