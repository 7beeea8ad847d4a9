"""Protocol definition for the backing store transaction."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Protocol, runtime_checkable

from ..core.types import Key, KeyValue, RawValue


@runtime_checkable
class Transaction(Protocol):
    """Ordered key-value operations within one atomic, isolated transaction."""

    def get_key_at_or_before(self, key: Key) -> Key | None:
        """Return the greatest existing key <= key, or None."""
        ...

    def get(self, key: Key) -> RawValue | None:
        """Return the value for key or None if not present."""
        ...

    def set(self, key: Key, value: RawValue) -> None:
        """Write value at key."""
        ...

    def clear(self, key: Key) -> None:
        """Remove key if present."""
        ...

    def get_range(
        self, begin: Key, end: Key, limit: int = 0, reverse: bool = False
    ) -> Iterator[KeyValue]:
        """Ordered iterator over pairs with begin <= key < end.

        A limit of 0 means unlimited. Reverse yields keys in descending order.
        """
        ...

    def clear_range(self, begin: Key, end: Key) -> None:
        """Remove every key with begin <= key < end."""
        ...
