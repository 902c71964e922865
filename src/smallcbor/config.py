"""Capability configuration for smallcbor.

A fixed set of named capabilities gates functionality:

- ``alloc``: growable containers, full (work-list) skip support and the
  generic list/dict building decoder
- ``std``: host I/O (frame readers and writers) and boxed custom errors
- ``half``: IEEE 754 half-precision floats
- ``legacy``: the older array-based encoding of IP and socket addresses

Two profiles cover the usual deployments: ``Capabilities.host()`` for a
regular Python process and ``Capabilities.fixed()`` which mimics a target
without dynamic allocation.

Example:
    >>> from smallcbor import Capabilities, Decoder
    >>> caps = Capabilities.fixed()
    >>> d = Decoder(b"\\x82\\x01\\x02", capabilities=caps)
    >>> d.skip()  # uses the allocation-free skip
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, model_validator


class Capabilities(BaseModel):
    """Immutable capability set shared by encoders, decoders and frame I/O.

    Attributes:
        alloc: Heap-backed containers and full skip support (default True)
        std: Host I/O and boxed custom errors, requires alloc (default True)
        half: Half-precision float support (default True)
        legacy: Use the pre-compact array form for address types (default False)
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        strict=True,
    )

    alloc: bool = True
    std: bool = True
    half: bool = True
    legacy: bool = False

    @model_validator(mode="after")
    def _check_tiers(self) -> Capabilities:
        if self.std and not self.alloc:
            raise ValueError("the 'std' capability requires 'alloc'")
        return self

    @classmethod
    def host(cls, *, legacy: bool = False) -> Capabilities:
        """Heap-backed profile with host I/O (the default)."""
        return cls(alloc=True, std=True, half=True, legacy=legacy)

    @classmethod
    def fixed(cls, *, legacy: bool = False) -> Capabilities:
        """Fixed-capacity profile: no dynamic allocation, no host I/O."""
        return cls(alloc=False, std=False, half=True, legacy=legacy)


DEFAULT_CAPABILITIES = Capabilities.host()
