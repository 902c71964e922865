"""Unit tests for capability configuration."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from smallcbor import DEFAULT_CAPABILITIES, Capabilities


class TestCapabilities:
    """Test the Capabilities model."""

    def test_defaults(self) -> None:
        """Test the default profile is the host one."""
        caps = Capabilities()

        assert caps.alloc and caps.std and caps.half
        assert not caps.legacy
        assert caps == Capabilities.host() == DEFAULT_CAPABILITIES

    def test_fixed(self) -> None:
        """Test the fixed-capacity profile."""
        caps = Capabilities.fixed()

        assert not caps.alloc
        assert not caps.std
        assert caps.half

    def test_legacy_flag(self) -> None:
        """Test both profiles accept the legacy flag."""
        assert Capabilities.host(legacy=True).legacy
        assert Capabilities.fixed(legacy=True).legacy

    def test_std_requires_alloc(self) -> None:
        """Test the tier rule."""
        with pytest.raises(ValidationError, match="requires 'alloc'"):
            Capabilities(alloc=False)

    def test_frozen(self) -> None:
        """Test profiles are immutable."""
        caps = Capabilities()

        with pytest.raises(ValidationError):
            caps.half = False  # type: ignore[misc]

    def test_unknown_capability(self) -> None:
        """Test unknown fields are rejected."""
        with pytest.raises(ValidationError):
            Capabilities(serde=True)  # type: ignore[call-arg]

    def test_strict_types(self) -> None:
        """Test flags must be real booleans."""
        with pytest.raises(ValidationError):
            Capabilities(half="yes")  # type: ignore[arg-type]

    def test_hashable(self) -> None:
        """Test frozen profiles can be used as keys."""
        assert {Capabilities.fixed(): 1}[Capabilities.fixed()] == 1
