"""Skipping over CBOR data items.

Two algorithms are provided:

- ``skip``: keeps an explicit work list with one entry per open container,
  either the number of items still expected or ``None`` for an indefinite
  container. Handles every nesting without recursion; memory grows with
  the nesting depth of the input only.
- ``limited_skip``: two counters and no allocation. Correct for any nesting
  of definite containers and for an indefinite container at the top level.
  An indefinite container nested inside a definite one may end the skip
  early, leaving the decoder inside the enclosing item.

Both validate headers as they go and stop at the first malformed one.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional

from ..data import ARRAY, BREAK, BYTES, INFO_INDEFINITE, MAP, TAGGED, TEXT, Type, info_of, type_of
from ..exceptions import DecodeError

if TYPE_CHECKING:
    from .decoder import Decoder


def skip(d: Decoder) -> None:
    """Skip the data item at the decoder position, nested items included.

    Raises:
        DecodeError: On truncated input, reserved headers or a misplaced BREAK
    """
    stack: List[Optional[int]] = [1]
    while stack:
        remaining = stack[-1]
        if remaining is None:
            if d._at_break():
                stack.pop()
                continue
        elif remaining == 0:
            stack.pop()
            continue
        else:
            stack[-1] = remaining - 1

        p = d.position()
        b = d._current()
        major = type_of(b)
        if b == BREAK:
            raise _unexpected_break(p)
        d._pos += 1
        if major in (BYTES, TEXT):
            if info_of(b) == INFO_INDEFINITE:
                _skip_chunks(d, major)
            else:
                d._read_slice(d._argument(b, p))
        elif major in (ARRAY, MAP):
            if info_of(b) == INFO_INDEFINITE:
                stack.append(None)
            else:
                n = d._argument(b, p)
                if major == MAP:
                    n *= 2
                if n > 0:
                    stack.append(n)
        elif major == TAGGED:
            d._argument(b, p)
            # The tagged value belongs to the same item.
            top = stack[-1]
            if top is not None:
                stack[-1] = top + 1
            else:
                stack.append(1)
        else:
            d._argument(b, p)


def limited_skip(d: Decoder) -> None:
    """Skip the data item at the decoder position without allocating.

    ``nrounds`` counts the items still expected, ``irounds`` the open
    indefinite containers.

    Raises:
        DecodeError: On truncated input, reserved headers or a BREAK outside
            an indefinite container
    """
    nrounds = 1
    irounds = 0
    while nrounds > 0 or irounds > 0:
        p = d.position()
        b = d._current()
        major = type_of(b)
        if b == BREAK:
            if irounds == 0:
                raise _unexpected_break(p)
            d._pos += 1
            irounds -= 1
        else:
            d._pos += 1
            if major in (BYTES, TEXT):
                if info_of(b) == INFO_INDEFINITE:
                    _skip_chunks(d, major)
                else:
                    d._read_slice(d._argument(b, p))
            elif major in (ARRAY, MAP):
                if info_of(b) == INFO_INDEFINITE:
                    irounds += 1
                else:
                    n = d._argument(b, p)
                    nrounds += n * 2 if major == MAP else n
            elif major == TAGGED:
                d._argument(b, p)
                nrounds += 1
            else:
                d._argument(b, p)
        if nrounds > 0:
            nrounds -= 1


def _skip_chunks(d: Decoder, major: int) -> None:
    while True:
        p = d.position()
        b = d._current()
        if b == BREAK:
            d._pos += 1
            return
        if type_of(b) != major or info_of(b) == INFO_INDEFINITE:
            raise d._mismatch(b, p, "invalid chunk in indefinite string")
        d._pos += 1
        d._read_slice(d._argument(b, p))


def _unexpected_break(p: int) -> DecodeError:
    return DecodeError.type_mismatch(Type.BREAK).at(p).with_message("unexpected break")

