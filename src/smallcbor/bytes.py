"""Byte container types with a CBOR byte string representation.

A ``list`` of small ints encodes as a CBOR array, a byte container as a
CBOR byte string. The three types below make the intended representation
explicit when decoding into a target type:

- ``ByteSlice``: borrows a read-only view of the decoder input (no copy)
- ``ByteVec``: owns growable storage (requires the ``alloc`` capability)
- ``ByteArray[N]``: owns storage of exactly ``N`` bytes
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, ClassVar, Dict, Iterator, Optional, Type, Union

from .exceptions import CapabilityError, DecodeError

if TYPE_CHECKING:
    from .codec.decoder import Decoder
    from .codec.encoder import Encoder

BytesLike = Union[bytes, bytearray, memoryview]


class ByteSlice:
    """Borrowed, read-only view of bytes.

    Decoding a ByteSlice does not copy: the view points into the decoder's
    input buffer and is valid as long as that buffer is.
    """

    __slots__ = ("_view",)

    def __init__(self, data: BytesLike) -> None:
        self._view = memoryview(data).toreadonly().cast("B")

    @property
    def view(self) -> memoryview:
        return self._view

    def __bytes__(self) -> bytes:
        return self._view.tobytes()

    def __len__(self) -> int:
        return len(self._view)

    def __iter__(self) -> Iterator[int]:
        return iter(self._view)

    def __getitem__(self, index: Any) -> Any:
        return self._view[index]

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ByteSlice):
            return self._view == other._view
        if isinstance(other, (bytes, bytearray, memoryview)):
            return self._view == other
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"ByteSlice({bytes(self)!r})"

    def encode_cbor(self, e: Encoder, ctx: Any = None) -> None:
        e.bytes(self._view)

    @classmethod
    def decode_cbor(cls, d: Decoder, ctx: Any = None) -> ByteSlice:
        return cls(d.bytes())


class ByteVec(bytearray):
    """Owned, growable bytes."""

    def encode_cbor(self, e: Encoder, ctx: Any = None) -> None:
        e.bytes(self)

    @classmethod
    def decode_cbor(cls, d: Decoder, ctx: Any = None) -> ByteVec:
        if not d.capabilities.alloc:
            raise CapabilityError.disabled("alloc", "growable byte vectors")
        return cls(d.bytes())

    def __repr__(self) -> str:
        return f"ByteVec({bytes(self)!r})"


class ByteArray(bytes):
    """Owned bytes of a fixed size.

    Subscript the class with the size to get a concrete type:

        >>> Key = ByteArray[4]
        >>> Key(b"\\x01\\x02\\x03\\x04").SIZE
        4
    """

    SIZE: ClassVar[Optional[int]] = None
    _sized: ClassVar[Dict[int, Type[ByteArray]]] = {}

    def __new__(cls, data: BytesLike = b"") -> ByteArray:
        if cls.SIZE is None:
            raise TypeError("use ByteArray[N] to select a size")
        obj = super().__new__(cls, data)
        if len(obj) != cls.SIZE:
            raise ValueError(f"{cls.__name__} needs exactly {cls.SIZE} bytes, got {len(obj)}")
        return obj

    def __class_getitem__(cls, size: int) -> Type[ByteArray]:
        if size < 0:
            raise ValueError(f"size must be >= 0, got {size}")
        sized = cls._sized.get(size)
        if sized is None:
            sized = type(f"ByteArray{size}", (ByteArray,), {"SIZE": size})
            cls._sized[size] = sized
        return sized

    def encode_cbor(self, e: Encoder, ctx: Any = None) -> None:
        e.bytes(self)

    @classmethod
    def decode_cbor(cls, d: Decoder, ctx: Any = None) -> ByteArray:
        p = d.position()
        data = d.bytes()
        if cls.SIZE is None:
            raise TypeError("use ByteArray[N] to select a size")
        if len(data) != cls.SIZE:
            raise DecodeError.message(
                f"byte array length mismatch: expected {cls.SIZE}, got {len(data)}"
            ).at(p)
        return cls(data)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({bytes(self)!r})"
