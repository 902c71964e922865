"""Mapping between Python values and the encoder/decoder.

A type takes part in encoding and decoding by implementing the contract:

    class Point:
        def encode_cbor(self, e: Encoder, ctx: Any) -> None: ...

        @classmethod
        def decode_cbor(cls, d: Decoder, ctx: Any) -> Point: ...

The ``ctx`` argument is whatever the caller passed to ``encode``/``decode``
and is handed down unchanged to every nested value.

Built-in Python values map to CBOR as follows:

    None -> null              bool -> bool              int -> int
    float -> f64              str -> text               bytes-like -> bytes
    list/tuple -> array       dict -> map               Tagged -> tag + value
    Simple -> simple          UNDEFINED -> undefined    ipaddress -> see net

Optional values use the nil contract: ``is_nil(value)`` is true for None
and for objects whose ``is_nil()`` returns true, and ``nil_of(cls)`` gives
``cls.nil()`` when defined and None otherwise.
"""

from __future__ import annotations

import ipaddress
import types
import typing
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Optional, Tuple

from ..data import UNDEFINED, Int, Simple, Tag, Tagged, Type, _Undefined
from ..exceptions import CapabilityError, DecodeError, EncodeError

if TYPE_CHECKING:
    from .decoder import Decoder
    from .encoder import Encoder

# Nesting limit for generic (untyped) decoding.
MAX_DEPTH = 256


@typing.runtime_checkable
class Encodable(typing.Protocol):
    """A type that knows how to encode itself."""

    def encode_cbor(self, e: Encoder, ctx: Any) -> None: ...


@typing.runtime_checkable
class Decodable(typing.Protocol):
    """A type that knows how to decode itself."""

    @classmethod
    def decode_cbor(cls, d: Decoder, ctx: Any) -> Any: ...


class IndefiniteArray:
    """An iterable encoded as an indefinite-length array.

    Useful when the number of elements is not known up front, e.g. when
    encoding a generator.
    """

    def __init__(self, items: Iterable[Any]) -> None:
        self.items = items

    def encode_cbor(self, e: Encoder, ctx: Any = None) -> None:
        e.begin_array()
        for item in self.items:
            e.encode(item, ctx)
        e.end()


class IndefiniteMap:
    """An iterable of (key, value) pairs encoded as an indefinite-length map."""

    def __init__(self, entries: Iterable[Tuple[Any, Any]]) -> None:
        self.entries = entries

    def encode_cbor(self, e: Encoder, ctx: Any = None) -> None:
        e.begin_map()
        for k, v in self.entries:
            e.encode(k, ctx)
            e.encode(v, ctx)
        e.end()


# Nil contract


def is_nil(value: Any) -> bool:
    """Whether a value stands for "no value"."""
    if value is None:
        return True
    check = getattr(value, "is_nil", None)
    return bool(check()) if callable(check) else False


def nil_of(cls: Any) -> Any:
    """The "no value" representative of a type."""
    make = getattr(cls, "nil", None)
    return make() if callable(make) else None


def encode_optional(e: Encoder, value: Any, ctx: Any = None) -> None:
    """Encode a value, or null if it is nil."""
    if is_nil(value):
        e.null()
    else:
        e.encode(value, ctx)


def decode_optional(d: Decoder, cls: Any = None, ctx: Any = None) -> Any:
    """Decode a value of type ``cls``, or its nil value if null is found."""
    if d.datatype() is Type.NULL:
        d.null()
        return nil_of(cls)
    return decode_as(d, cls, ctx)


# Encoding


def encode_value(e: Encoder, value: Any, ctx: Any = None) -> None:
    """Encode a value through its contract or its built-in mapping.

    Raises:
        EncodeError: If the value has no CBOR mapping
    """
    from .. import net

    if isinstance(value, Encodable):
        value.encode_cbor(e, ctx)
    elif value is None:
        e.null()
    elif isinstance(value, _Undefined):
        e.undefined()
    elif isinstance(value, bool):
        e.bool(value)
    elif isinstance(value, (int, Int)):
        e.int(value)
    elif isinstance(value, float):
        e.f64(value)
    elif isinstance(value, str):
        e.str(value)
    elif isinstance(value, (bytes, bytearray, memoryview)):
        e.bytes(value)
    elif isinstance(value, Simple):
        e.simple(value.value)
    elif isinstance(value, Tagged):
        e.tag(value.tag)
        encode_value(e, value.value, ctx)
    elif isinstance(value, (ipaddress.IPv4Address, ipaddress.IPv6Address, net.SocketAddress)):
        net.encode_address(e, value)
    elif isinstance(value, (list, tuple)):
        e.array(len(value))
        for item in value:
            encode_value(e, item, ctx)
    elif isinstance(value, Mapping):
        e.map(len(value))
        for k, v in value.items():
            encode_value(e, k, ctx)
            encode_value(e, v, ctx)
    else:
        raise EncodeError.message(f"no CBOR encoding for {type(value).__name__}")


# Decoding


def decode_as(d: Decoder, cls: Any = None, ctx: Any = None) -> Any:
    """Decode a value of the given type.

    ``cls`` may be None (generic value), a type implementing ``decode_cbor``,
    a built-in scalar type, one of the ipaddress types, or a ``typing``
    form such as ``List[int]``, ``Dict[str, int]``, ``Tuple[int, str]`` or
    ``Optional[T]``.

    Raises:
        DecodeError: If the data does not match the type
        TypeError: If the type has no CBOR mapping
    """
    from .. import net

    if cls is None or cls is Any:
        return decode_value(d, ctx)
    if hasattr(cls, "decode_cbor"):
        return cls.decode_cbor(d, ctx)
    origin = typing.get_origin(cls)
    if origin is not None:
        return _decode_generic(d, origin, typing.get_args(cls), ctx)
    if cls is bool:
        return d.bool()
    if cls is int:
        return int(d.int())
    if cls is Int:
        return d.int()
    if cls is float:
        return d.f64()
    if cls is str:
        return "".join(d.str_iter())
    if cls is bytes:
        return b"".join(d.bytes_iter())
    if cls is bytearray:
        return bytearray().join(d.bytes_iter())
    if cls is memoryview:
        return d.bytes()
    if cls is type(None):
        d.null()
        return None
    if cls is Tag:
        return d.tag()
    if cls is Simple:
        return Simple(d.simple())
    if cls is Tagged:
        return Tagged(d.tag(), decode_value(d, ctx))
    if cls in (ipaddress.IPv4Address, ipaddress.IPv6Address, net.SocketAddress):
        return net.decode_address(d, cls)
    if cls in (list, dict, tuple):
        return _decode_generic(d, cls, (), ctx)
    raise TypeError(f"no CBOR decoding for {cls!r}")


def _decode_generic(d: Decoder, origin: Any, args: Tuple[Any, ...], ctx: Any) -> Any:
    if origin is typing.Union or origin is types.UnionType:
        if set(args) == {ipaddress.IPv4Address, ipaddress.IPv6Address}:
            from .. import net

            return net.decode_ip_addr(d)
        inner = [a for a in args if a is not type(None)]
        if len(inner) == 1 and len(args) == 2:
            return decode_optional(d, inner[0], ctx)
        raise TypeError(f"unsupported union {args!r}")
    if not d.capabilities.alloc:
        raise CapabilityError.disabled("alloc", "growable containers")
    if origin is list:
        item = args[0] if args else None
        return list(d.array_iter(item, ctx))
    if origin is dict:
        key, value = args if args else (None, None)
        p = d.position()
        result: Dict[Any, Any] = {}
        for k, v in d.map_iter(key, value, ctx):
            _insert(result, k, v, p)
        return result
    if origin is tuple:
        p = d.position()
        if not args or (len(args) == 2 and args[1] is Ellipsis):
            item = args[0] if args else None
            return tuple(d.array_iter(item, ctx))
        items = d.array_iter(None, ctx)
        n = items.length
        if n is not None and n != len(args):
            raise DecodeError.message(f"expected array of {len(args)} elements, got {n}").at(p)
        values = tuple(d.decode(a, ctx) for a in args)
        if n is None and not d._at_break():
            raise DecodeError.message(f"expected array of {len(args)} elements").at(p)
        return values
    raise TypeError(f"no CBOR decoding for {origin!r}")


def decode_value(d: Decoder, ctx: Any = None, depth: int = 0) -> Any:
    """Decode the next data item into a generic Python value.

    Integers become ``int``, floats ``float``, byte strings ``bytes``,
    arrays ``list``, maps ``dict``, tagged items ``Tagged`` and other simple
    values ``Simple``. Indefinite strings are joined.

    Raises:
        DecodeError: On malformed input or nesting deeper than MAX_DEPTH
        CapabilityError: On containers when ``alloc`` is disabled
    """
    p = d.position()
    t = d.datatype()
    if t is Type.BOOL:
        return d.bool()
    if t is Type.NULL:
        d.null()
        return None
    if t is Type.UNDEFINED:
        d.undefined()
        return UNDEFINED
    if t in _INTEGERS:
        return int(d.int())
    if t is Type.F16:
        return d.f16()
    if t is Type.F32:
        return d.f32()
    if t is Type.F64:
        return d.f64()
    if t is Type.SIMPLE:
        return Simple(d.simple())
    if t is Type.BYTES:
        return bytes(d.bytes())
    if t is Type.STRING:
        return d.str()
    if t is Type.BREAK:
        raise DecodeError.type_mismatch(t).at(p).with_message("unexpected break")
    if t is Type.UNKNOWN:
        raise d._mismatch(d._current(), p, "unknown cbor type")

    if not d.capabilities.alloc:
        raise CapabilityError.disabled("alloc", "generic containers")
    if depth >= MAX_DEPTH:
        raise DecodeError.message(f"nesting deeper than {MAX_DEPTH}").at(p)
    if t is Type.BYTES_INDEF:
        return b"".join(d.bytes_iter())
    if t is Type.STRING_INDEF:
        return "".join(d.str_iter())
    if t is Type.TAG:
        return Tagged(d.tag(), decode_value(d, ctx, depth + 1))
    if t in (Type.ARRAY, Type.ARRAY_INDEF):
        n = d.array()
        items: List[Any] = []
        while _more(d, n, len(items)):
            items.append(decode_value(d, ctx, depth + 1))
        return items
    n = d.map()
    entries: Dict[Any, Any] = {}
    count = 0
    while _more(d, n, count):
        k = decode_value(d, ctx, depth + 1)
        v = decode_value(d, ctx, depth + 1)
        _insert(entries, k, v, p)
        count += 1
    return entries


_INTEGERS = frozenset(
    {Type.U8, Type.U16, Type.U32, Type.U64, Type.I8, Type.I16, Type.I32, Type.I64, Type.INT}
)


def _more(d: Decoder, n: Optional[int], done: int) -> bool:
    if n is None:
        return not d._at_break()
    return done < n


def _insert(entries: Dict[Any, Any], k: Any, v: Any, p: int) -> None:
    try:
        entries[k] = v
    except TypeError as e:
        raise DecodeError.message(f"unhashable map key of type {type(k).__name__}").at(p) from e
