"""Directory layer allocating namespace prefixes for named paths.

Metadata layout (all under 0xFE):
    [0xFE 0x00]                   -> allocation counter (8B big-endian)
    [0xFE 0x01] [name 0x00 name]  -> allocated prefix

Allocated prefixes are [0x15] [counter (8B)]. They all have the same length,
so no allocated prefix is a prefix of another.
"""

from __future__ import annotations

import logging
import struct
from typing import TYPE_CHECKING

from ..codec.keys import Subspace
from ..core.errors import DirectoryNotFoundError

if TYPE_CHECKING:
    from ..interfaces.store import Transaction

logger = logging.getLogger(__name__)

METADATA_PREFIX = b"\xfe"
_COUNTER_KEY = METADATA_PREFIX + b"\x00"
_NODE_PREFIX = METADATA_PREFIX + b"\x01"
_ALLOCATED_PREFIX = b"\x15"
_COUNTER = struct.Struct(">Q")


class DirectoryLayer:
    """Maps paths such as ("tests", "vector") to exclusively owned subspaces.

    Paths are stored in the same transactional store as the data, so
    allocation composes with the caller's transaction.
    """

    def _node_key(self, path: tuple[str, ...]) -> bytes:
        if not path:
            raise ValueError("directory path must not be empty")
        parts = []
        for name in path:
            if not isinstance(name, str) or not name:
                raise ValueError(f"directory names must be non-empty strings, got {name!r}")
            if "\x00" in name:
                raise ValueError(f"directory name {name!r} contains a NUL character")
            parts.append(name.encode("utf-8"))
        return _NODE_PREFIX + b"\x00".join(parts)

    def exists(self, tx: Transaction, *path: str) -> bool:
        return tx.get(self._node_key(path)) is not None

    def open(self, tx: Transaction, *path: str) -> Subspace:
        """Return the subspace for an existing path.

        Raises:
            DirectoryNotFoundError: If the path has not been created
        """
        prefix = tx.get(self._node_key(path))
        if prefix is None:
            raise DirectoryNotFoundError(f"directory {'/'.join(path)} does not exist")
        return Subspace(prefix)

    def create_or_open(self, tx: Transaction, *path: str) -> Subspace:
        """Return the subspace for path, allocating a new prefix if needed."""
        node_key = self._node_key(path)
        prefix = tx.get(node_key)
        if prefix is not None:
            return Subspace(prefix)

        raw = tx.get(_COUNTER_KEY)
        counter = _COUNTER.unpack(raw)[0] + 1 if raw is not None else 1
        prefix = _ALLOCATED_PREFIX + _COUNTER.pack(counter)
        tx.set(_COUNTER_KEY, _COUNTER.pack(counter))
        tx.set(node_key, prefix)

        logger.info(f"Allocated prefix {prefix.hex()} for directory {'/'.join(path)}")
        return Subspace(prefix)

    def remove(self, tx: Transaction, *path: str) -> bool:
        """Delete a path and every key in its subspace.

        Returns:
            True if the path existed
        """
        node_key = self._node_key(path)
        prefix = tx.get(node_key)
        if prefix is None:
            return False
        begin, end = Subspace(prefix).range()
        tx.clear_range(begin, end)
        tx.clear(node_key)
        logger.info(f"Removed directory {'/'.join(path)}")
        return True
