"""CBOR encodings of IP and socket addresses.

Two encodings exist, selected by the ``legacy`` capability.

Compact (default):

- IPv4 address: byte string of 4 octets
- IPv6 address: byte string of 16 octets
- IP address of either family: the above, told apart by length
- socket address: ``[ip, port]``

Legacy (``Capabilities(legacy=True)``):

- IPv4 address: array of 4 u8 octets
- IPv6 address: array of 16 u8 octets
- IP address of either family: ``[variant, octets]``, variant 0 = v4, 1 = v6
- socket address: ``[variant, [octets, port]]``

Decoding fixed-field arrays skips trailing fields it does not know and
reports absent fields as missing values.
"""

from __future__ import annotations

import ipaddress
from typing import TYPE_CHECKING, Any, Callable, List, NamedTuple, Sequence, Union

from .exceptions import DecodeError

if TYPE_CHECKING:
    from .codec.decoder import Decoder
    from .codec.encoder import Encoder

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]

V4 = 0
V6 = 1


class SocketAddress(NamedTuple):
    """An IP address and port."""

    host: IPAddress
    port: int

    @property
    def is_v4(self) -> bool:
        return self.host.version == 4


# Dispatch used by the generic encoder and decoder


def encode_address(e: Encoder, value: Union[IPAddress, SocketAddress]) -> None:
    """Encode an IPv4/IPv6 address or a socket address."""
    if isinstance(value, SocketAddress):
        encode_socket_address(e, value)
    elif isinstance(value, ipaddress.IPv4Address):
        encode_ipv4(e, value)
    else:
        encode_ipv6(e, value)


def decode_address(d: Decoder, cls: Any) -> Any:
    """Decode an address of the given type."""
    if cls is SocketAddress:
        return decode_socket_address(d)
    if cls is ipaddress.IPv4Address:
        return decode_ipv4(d)
    if cls is ipaddress.IPv6Address:
        return decode_ipv6(d)
    return decode_ip_addr(d)


# Single-family addresses


def encode_ipv4(e: Encoder, addr: ipaddress.IPv4Address) -> None:
    _encode_octets(e, addr.packed)


def encode_ipv6(e: Encoder, addr: ipaddress.IPv6Address) -> None:
    _encode_octets(e, addr.packed)


def decode_ipv4(d: Decoder) -> ipaddress.IPv4Address:
    return ipaddress.IPv4Address(_decode_octets(d, 4))


def decode_ipv6(d: Decoder) -> ipaddress.IPv6Address:
    return ipaddress.IPv6Address(_decode_octets(d, 16))


# Either family


def encode_ip_addr(e: Encoder, addr: IPAddress) -> None:
    """Encode an address of either family.

    Example:
        >>> from smallcbor import Encoder
        >>> e = Encoder()
        >>> encode_ip_addr(e, ipaddress.ip_address("127.0.0.1"))
        >>> bytes(e.writer()).hex()
        '447f000001'
    """
    if e.capabilities.legacy:
        e.array(2).u32(V4 if addr.version == 4 else V6)
    _encode_octets(e, addr.packed)


def decode_ip_addr(d: Decoder) -> IPAddress:
    """Decode an address of either family."""
    if not d.capabilities.legacy:
        p = d.position()
        data = d.bytes()
        if len(data) == 4:
            return ipaddress.IPv4Address(data.tobytes())
        if len(data) == 16:
            return ipaddress.IPv6Address(data.tobytes())
        raise DecodeError.message(f"invalid ip address length {len(data)}").at(p)
    variant = _decode_variant(d)
    if variant == V4:
        return decode_ipv4(d)
    return decode_ipv6(d)


# Socket addresses


def encode_socket_address(e: Encoder, addr: SocketAddress) -> None:
    if e.capabilities.legacy:
        e.array(2).u32(V4 if addr.is_v4 else V6)
    e.array(2)
    _encode_octets(e, addr.host.packed)
    e.u16(addr.port)


def decode_socket_address(d: Decoder) -> SocketAddress:
    if not d.capabilities.legacy:
        host, port = _decode_fields(d, [decode_ip_addr, _u16], "SocketAddress")
        return SocketAddress(host, port)
    variant = _decode_variant(d)
    ip = decode_ipv4 if variant == V4 else decode_ipv6
    label = "SocketAddrV4" if variant == V4 else "SocketAddrV6"
    host, port = _decode_fields(d, [ip, _u16], label)
    return SocketAddress(host, port)


# Helpers


def _u16(d: Decoder) -> int:
    return d.u16()


def _encode_octets(e: Encoder, octets: bytes) -> None:
    if e.capabilities.legacy:
        e.array(len(octets))
        for o in octets:
            e.u8(o)
    else:
        e.bytes(octets)


def _decode_octets(d: Decoder, n: int) -> bytes:
    p = d.position()
    if not d.capabilities.legacy:
        data = d.bytes()
        if len(data) != n:
            raise DecodeError.message(f"expected {n} octets, got {len(data)}").at(p)
        return data.tobytes()
    if d.array() != n:
        raise DecodeError.message(f"expected array of {n} octets").at(p)
    return bytes(d.u8() for _ in range(n))


def _decode_variant(d: Decoder) -> int:
    p = d.position()
    if d.array() != 2:
        raise DecodeError.message("expected enum (2-element array)").at(p)
    p = d.position()
    variant = d.u32()
    if variant not in (V4, V6):
        raise DecodeError.unknown_variant(variant).at(p)
    return variant


def _decode_fields(
    d: Decoder, fields: Sequence[Callable[[Decoder], Any]], label: str
) -> List[Any]:
    """Decode a fixed-field array, skipping unknown trailing fields."""
    p = d.position()
    values: List[Any] = [None] * len(fields)
    found = [False] * len(fields)
    n = d.array()
    i = 0
    while True:
        if n is None:
            if d._at_break():
                break
        elif i >= n:
            break
        if i < len(fields):
            values[i] = fields[i](d)
            found[i] = True
        else:
            d.skip()
        i += 1
    for index, ok in enumerate(found):
        if not ok:
            raise DecodeError.missing_value(index).at(p).with_message(f"{label} field {index}")
    return values
