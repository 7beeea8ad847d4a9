"""Order-preserving index keys inside a namespace.

Key format:
    [prefix] [index + 2**63, big-endian uint64 (8B)]

Offsetting by 2**63 flips the sign bit: INT64_MIN -> 0x00..00,
0 -> 0x80..00 and INT64_MAX -> 0xFF..FF, so memcmp order over keys equals
numeric order over indices.
"""

from __future__ import annotations

import struct

from ..core.errors import DecodeError, InvalidIndexError
from ..core.types import Key

INDEX_MIN = -(1 << 63)
INDEX_MAX = (1 << 63) - 1
_SIGN_BIT = 1 << 63
_INDEX = struct.Struct(">Q")


def strinc(key: Key) -> Key:
    """Return the first key that sorts after every key starting with `key`.

    Raises:
        ValueError: If key is empty or made only of 0xFF bytes
    """
    stripped = key.rstrip(b"\xff")
    if not stripped:
        raise ValueError(f"Key {key!r} has no successor prefix")
    return stripped[:-1] + bytes([stripped[-1] + 1])


class Subspace:
    """A namespace owning every key that starts with `prefix`.

    Args:
        prefix: Non-empty byte prefix, not made only of 0xFF bytes

    Invariants:
        - Every encoded key is exactly len(prefix) + 8 bytes
        - encode(a) < encode(b) for all a < b
        - All encoded keys lie in [begin, end)
    """

    def __init__(self, prefix: bytes):
        if not isinstance(prefix, bytes):
            raise TypeError(f"prefix must be bytes, got {type(prefix).__name__}")
        self.prefix = prefix
        self._end = strinc(prefix)

    def __repr__(self) -> str:
        return f"Subspace({self.prefix!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Subspace):
            return NotImplemented
        return self.prefix == other.prefix

    def __hash__(self) -> int:
        return hash(self.prefix)

    def encode(self, index: int) -> Key:
        """Map an index to its key."""
        if not INDEX_MIN <= index <= INDEX_MAX:
            raise InvalidIndexError(f"index {index} is not a 64-bit integer")
        return self.prefix + _INDEX.pack(index + _SIGN_BIT)

    def decode(self, key: Key) -> int:
        """Map a key back to its index.

        Raises:
            DecodeError: If key is outside the namespace or malformed
        """
        if not key.startswith(self.prefix):
            raise DecodeError(f"key {key!r} is outside {self!r}")
        suffix = key[len(self.prefix):]
        if len(suffix) != _INDEX.size:
            raise DecodeError(f"key {key!r} has a {len(suffix)}-byte index suffix, expected 8")
        return _INDEX.unpack(suffix)[0] - _SIGN_BIT

    def contains(self, key: Key) -> bool:
        return key.startswith(self.prefix)

    def range(self) -> tuple[Key, Key]:
        """Return (begin, end) covering every key in the namespace."""
        return self.prefix, self._end

    def last_key(self) -> Key:
        """Return the greatest key an index can encode to."""
        return self.encode(INDEX_MAX)
