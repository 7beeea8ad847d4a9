"""Sparse vector layered on an ordered transactional key-value store."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..codec import values
from .errors import InvalidIndexError, OutOfRangeError
from .iterator import VectorIterator, range_bounds
from .types import Value

if TYPE_CHECKING:
    from ..codec.keys import Subspace
    from ..interfaces.store import Transaction
    from .types import Scalar

logger = logging.getLogger(__name__)


class Vector:
    """Array-like sequence of scalars stored one key per index.

    The size of a vector is the index of its last key + 1. Indices below the
    size with no key are sparse and read as the default. The key at size - 1
    is always written, even when it holds the default, so the size can be
    found with a single key lookup.

    Args:
        subspace: Namespace exclusively owned by this vector
        default: Scalar that sparse slots stand for

    Public API:
        - size(tx), empty(tx)
        - get(index, tx), set(index, value, tx), front(tx), back(tx)
        - push(value, tx), pop(tx)
        - get_range(tx, start, stop, step)
        - resize(length, tx), clear(tx)

    Every method runs inside the caller's transaction; a Vector holds no
    state besides its subspace and default.
    """

    def __init__(self, subspace: Subspace, default: Scalar = ""):
        self.subspace = subspace
        self._default_raw = values.encode(default)
        self._default = values.decode(self._default_raw)

    def __repr__(self) -> str:
        return f"Vector({self.subspace!r}, default={self._default!r})"

    @property
    def default(self) -> Value:
        """The configured default as a Value."""
        return self._default

    def size(self, tx: Transaction) -> int:
        """Number of items, including sparsely represented ones."""
        last_key = tx.get_key_at_or_before(self.subspace.last_key())
        if last_key is None or not self.subspace.contains(last_key):
            return 0
        return self.subspace.decode(last_key) + 1

    def empty(self, tx: Transaction) -> bool:
        return self.size(tx) == 0

    def get(self, index: int, tx: Transaction) -> Value:
        """Return the item at index.

        A sparse slot returns Value.empty(); see `default` for what it
        stands for.

        Raises:
            InvalidIndexError: If index is negative
            OutOfRangeError: If index >= size
        """
        if index < 0:
            raise InvalidIndexError(f"vector.get: index {index} out of range")

        # Scan forward instead of a point read: a key past index means the
        # slot is sparse, no key at all means it is past the end.
        start = self.subspace.encode(index)
        _begin, end = self.subspace.range()
        just_one = list(tx.get_range(start, end, limit=1))
        if not just_one:
            raise OutOfRangeError(f"vector.get: index {index} out of range")

        key, raw = just_one[0]
        if key == start:
            return values.decode(raw)
        return Value.empty()

    def front(self, tx: Transaction) -> Value:
        """Return the first item."""
        return self.get(0, tx)

    def back(self, tx: Transaction) -> Value:
        """Return the last item, or Value.empty() if the vector is empty."""
        begin, end = self.subspace.range()
        last = list(tx.get_range(begin, end, limit=1, reverse=True))
        if not last:
            return Value.empty()
        return values.decode(last[0][1])

    def set(self, index: int, value: Scalar, tx: Transaction) -> None:
        """Write value at index. Writing past the end grows the vector."""
        raw = values.encode(value)
        tx.set(self.subspace.encode(index), raw)

    def push(self, value: Scalar, tx: Transaction) -> None:
        """Append value at index size.

        Two pushes in concurrent transactions read the same size; the store
        must reject one of them at commit.
        """
        raw = values.encode(value)
        size = self.size(tx)
        tx.set(self.subspace.encode(size), raw)

    def pop(self, tx: Transaction) -> Value:
        """Remove and return the last item, or Value.empty() if the vector is empty."""
        # Read the last two entries to see whether the second to last item
        # is sparse. If so it must be written out as the new last key.
        begin, end = self.subspace.range()
        last_two = list(tx.get_range(begin, end, limit=2, reverse=True))
        if not last_two:
            return Value.empty()

        indices = [self.subspace.decode(key) for key, _raw in last_two]
        top_key, top_raw = last_two[0]
        popped = values.decode(top_raw)

        if indices[0] == 0:
            pass
        elif len(last_two) == 1 or indices[0] > indices[1] + 1:
            logger.debug(f"Materializing default at index {indices[0] - 1} of {self.subspace!r}")
            tx.set(self.subspace.encode(indices[0] - 1), self._default_raw)

        tx.clear(top_key)
        return popped

    def get_range(
        self, tx: Transaction, start: int = 0, stop: int = 0, step: int = 0
    ) -> VectorIterator:
        """Iterate stored (index, value) pairs between start and stop.

        Arguments follow slice conventions: negative values count back from
        the size and a stop of 0 means the size. Unlike get(), sparse slots
        are skipped rather than reported.
        """
        low, high, reverse = range_bounds(start, stop, step, lambda: self.size(tx))
        begin = self.subspace.encode(low)
        end = self.subspace.encode(high)
        logger.debug(f"Range [{low}, {high}) reverse={reverse} over {self.subspace!r}")
        return VectorIterator(self.subspace, tx.get_range(begin, end, reverse=reverse), reverse)

    def resize(self, length: int, tx: Transaction) -> None:
        """Grow or shrink the vector to length items.

        Growing adds sparse default slots; shrinking drops the tail.
        """
        if length < 0:
            raise InvalidIndexError(f"vector.resize: length {length} out of range")

        size = self.size(tx)
        if length == size:
            return

        if length > size:
            tx.set(self.subspace.encode(length - 1), self._default_raw)
            return

        _begin, end = self.subspace.range()
        tx.clear_range(self.subspace.encode(length), end)
        if length > 0:
            last_key = self.subspace.encode(length - 1)
            if tx.get(last_key) is None:
                tx.set(last_key, self._default_raw)

    def clear(self, tx: Transaction) -> None:
        """Remove all items."""
        begin, end = self.subspace.range()
        tx.clear_range(begin, end)
