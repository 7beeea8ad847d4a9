"""Lazy cursor over the stored entries of a vector."""

from __future__ import annotations

from typing import TYPE_CHECKING, Callable

from ..codec import values
from .types import IndexValue

if TYPE_CHECKING:
    from collections.abc import Iterator

    from ..codec.keys import Subspace
    from .types import KeyValue


def range_bounds(
    start: int, stop: int, step: int, size: Callable[[], int]
) -> tuple[int, int, bool]:
    """Resolve slice-style arguments to (low, high, reverse).

    Negative start/stop count back from the size and are clamped at 0; a stop
    of 0 means the size. `size` is only called when one of those applies.
    The covered interval is [low, high). A non-zero step picks the direction
    by its sign, otherwise the range runs descending when start > stop.
    """
    if start < 0 or stop <= 0:
        current = size()
        if start < 0:
            start = max(current + start, 0)
        if stop < 0:
            stop = max(current + stop, 0)
        elif stop == 0:
            stop = current

    if step < 0:
        reverse = True
    elif step > 0:
        reverse = False
    else:
        reverse = start > stop
    return min(start, stop), max(start, stop), reverse


class VectorIterator:
    """Forward-only iterator of IndexValue over stored entries.

    Wraps a store range cursor and decodes one entry per advance. Sparse
    slots inside the range are skipped, not filled with the default. The
    iterator is bound to the transaction that created it and cannot be
    restarted.
    """

    def __init__(self, subspace: Subspace, rows: Iterator[KeyValue], reverse: bool = False):
        self._subspace = subspace
        self._rows = rows
        self.reverse = reverse

    def __iter__(self) -> VectorIterator:
        return self

    def __next__(self) -> IndexValue:
        key, raw = next(self._rows)
        return IndexValue(self._subspace.decode(key), values.decode(raw))
