"""Common type definitions for the vector layer.

Defines the scalar tagged union and the primitive key/value aliases.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import NamedTuple, Union

# Core primitive types
Key = bytes
RawValue = bytes
KeyValue = tuple[Key, RawValue]


class Kind(Enum):
    """Discriminant of a Value."""

    EMPTY = 0
    INT = 1
    FLOAT = 2
    TEXT = 3


@dataclass(frozen=True)
class Value:
    """A scalar read back from a vector.

    Exactly one kind is populated. EMPTY is the sparse sentinel: it is
    returned for unset slots and is never produced by decoding stored bytes.
    """

    kind: Kind = Kind.EMPTY
    payload: int | float | str | None = None

    @classmethod
    def empty(cls) -> Value:
        return cls()

    @classmethod
    def of_int(cls, value: int) -> Value:
        return cls(Kind.INT, value)

    @classmethod
    def of_float(cls, value: float) -> Value:
        return cls(Kind.FLOAT, value)

    @classmethod
    def of_text(cls, value: str) -> Value:
        return cls(Kind.TEXT, value)

    @property
    def is_empty(self) -> bool:
        return self.kind is Kind.EMPTY

    @property
    def is_int(self) -> bool:
        return self.kind is Kind.INT

    @property
    def is_float(self) -> bool:
        return self.kind is Kind.FLOAT

    @property
    def is_text(self) -> bool:
        return self.kind is Kind.TEXT

    def or_default(self, default: Value) -> Value:
        """Return `default` if this is the sparse sentinel, else self."""
        return default if self.is_empty else self

    def __repr__(self) -> str:
        if self.is_empty:
            return "Value(EMPTY)"
        return f"Value({self.kind.name}, {self.payload!r})"


# Anything the value codec accepts
Scalar = Union[int, float, str, Value]


class IndexValue(NamedTuple):
    """An (index, value) pair produced by range iteration."""

    index: int
    value: Value
