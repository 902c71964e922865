"""Utility functions for smallcbor."""

from __future__ import annotations

from .sizing import SizeCounter, encoded_len, header_len

__all__ = [
    "encoded_len",
    "header_len",
    "SizeCounter",
]
