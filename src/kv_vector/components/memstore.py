"""In-memory ordered transactional store.

Uses sortedcontainers.SortedDict for ordered keys, keeps a short version chain
per key for snapshot reads and resolves concurrent commits optimistically.
"""

from __future__ import annotations

import heapq
import logging
import random
import threading
import time
from collections import deque
from itertools import islice
from typing import TYPE_CHECKING, Any, Callable, TypeVar

from sortedcontainers import SortedDict

from ..core.config import StoreConfig
from ..core.errors import (
    ConflictError,
    TransactionClosedError,
    TransactionTooOldError,
)

if TYPE_CHECKING:
    from collections.abc import Iterator

    from ..core.types import Key, KeyValue, RawValue

logger = logging.getLogger(__name__)

T = TypeVar("T")

KeyRange = tuple["Key", "Key"]


def _successor(key: Key) -> Key:
    """Return the smallest key strictly greater than key."""
    return key + b"\x00"


def _visible(chain: list[tuple[int, RawValue | None]], version: int) -> RawValue | None:
    """Return the value a reader at `version` sees in a version chain."""
    for committed, value in reversed(chain):
        if committed <= version:
            return value
    return None


def _intersects(a: list[KeyRange], b: list[KeyRange]) -> bool:
    for a_begin, a_end in a:
        for b_begin, b_end in b:
            if a_begin < b_end and b_begin < a_end:
                return True
    return False


class MemoryStore:
    """Ordered key-value store with serializable optimistic transactions.

    Args:
        config: Store configuration (defaults to StoreConfig())

    Public API:
        - create_transaction(): Start a transaction
        - transact(fn, *args, **kwargs): Run fn(tx, ...) with commit and retry

    Invariants:
        - Commits are serialized and get strictly increasing versions
        - A transaction reads the snapshot at its read version plus its own writes
        - A commit fails if a later commit wrote into any range it read
    """

    def __init__(self, config: StoreConfig | None = None):
        self.config = config or StoreConfig()
        self._lock = threading.Lock()

        # key -> [(commit_version, value_or_none), ...] in version order
        self._data: SortedDict = SortedDict()
        self._version = 0

        # Write ranges of recent commits; covers every version > _oldest_version
        self._history: deque[tuple[int, list[KeyRange]]] = deque()
        self._oldest_version = 0

        logger.info("Initialized MemoryStore")

    @property
    def version(self) -> int:
        """Version of the latest commit."""
        with self._lock:
            return self._version

    def create_transaction(self) -> MemoryTransaction:
        return MemoryTransaction(self)

    def transact(self, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Run fn(tx, *args, **kwargs) in a fresh transaction and commit it.

        Retries with exponential backoff on ConflictError and
        TransactionTooOldError. Any other exception cancels the transaction
        and propagates.

        Returns:
            The result of fn from the attempt that committed

        Raises:
            The last conflict error if all attempts fail
        """
        max_retries = self.config.max_retries
        for attempt in range(max_retries):
            tx = self.create_transaction()
            try:
                result = fn(tx, *args, **kwargs)
                tx.commit()
                return result
            except (ConflictError, TransactionTooOldError) as e:
                if attempt == max_retries - 1:
                    raise
                delay = min(self.config.base_delay * (2**attempt), self.config.max_delay)
                if self.config.jitter:
                    delay = delay * random.uniform(0.5, 1.5)
                logger.warning(
                    f"Transaction attempt {attempt + 1} failed: {e}. Retrying in {delay:.4f}s"
                )
                time.sleep(delay)
            finally:
                if not tx.closed:
                    tx.cancel()

    # Snapshot access used by MemoryTransaction

    def _read_version(self) -> int:
        with self._lock:
            return self._version

    def _check_readable(self, version: int) -> None:
        """Must hold lock."""
        if version < self._oldest_version:
            raise TransactionTooOldError(
                f"read version {version} is older than retained version {self._oldest_version}"
            )

    def _get(self, key: Key, version: int) -> RawValue | None:
        with self._lock:
            self._check_readable(version)
            chain = self._data.get(key)
            return _visible(chain, version) if chain else None

    def _scan(self, begin: Key, end: Key, version: int, reverse: bool) -> Iterator[KeyValue]:
        """Yield live pairs in [begin, end) as of version, in batches under the lock."""
        batch_size = self.config.range_batch_size
        low, high = begin, end
        while low < high:
            with self._lock:
                self._check_readable(version)
                keys = list(
                    islice(
                        self._data.irange(low, high, inclusive=(True, False), reverse=reverse),
                        batch_size,
                    )
                )
                rows = [(key, _visible(self._data[key], version)) for key in keys]

            for key, value in rows:
                if value is not None:
                    yield (key, value)

            if len(keys) < batch_size:
                return
            if reverse:
                high = keys[-1]
            else:
                low = _successor(keys[-1])

    def _commit(
        self,
        read_version: int | None,
        read_ranges: list[KeyRange],
        writes: SortedDict,
        cleared: list[KeyRange],
        write_ranges: list[KeyRange],
    ) -> int:
        with self._lock:
            if read_version is not None:
                self._check_readable(read_version)
                for committed, ranges in self._history:
                    if committed > read_version and _intersects(read_ranges, ranges):
                        raise ConflictError(
                            f"transaction at read version {read_version} conflicts "
                            f"with commit {committed}"
                        )

            self._version += 1
            version = self._version
            self._history.append((version, write_ranges))
            while len(self._history) > self.config.conflict_history_limit:
                self._oldest_version, _ = self._history.popleft()

            for begin, end in cleared:
                for key in list(self._data.irange(begin, end, inclusive=(True, False))):
                    if key not in writes:
                        self._append(key, version, None)
            for key, value in writes.items():
                self._append(key, version, value)

        logger.debug(f"Committed version {version} ({len(writes)} keys, {len(cleared)} clears)")
        return version

    def _append(self, key: Key, version: int, value: RawValue | None) -> None:
        """Add a version to key's chain, pruning entries no reader can see.

        Must hold lock.
        """
        chain = self._data.get(key)
        if chain is None:
            if value is not None:
                self._data[key] = [(version, value)]
            return

        chain.append((version, value))

        # Keep the newest entry at or below the oldest readable version and all after it
        keep_from = 0
        for i, (committed, _value) in enumerate(chain):
            if committed <= self._oldest_version:
                keep_from = i
        if keep_from:
            del chain[:keep_from]
        if len(chain) == 1 and chain[0][1] is None and chain[0][0] <= self._oldest_version:
            del self._data[key]


class MemoryTransaction:
    """A transaction against a MemoryStore.

    Writes are buffered locally and applied atomically on commit. Reads see
    the store snapshot at the read version, taken on first read, merged with
    this transaction's own writes. Not safe for use from multiple threads.

    Usable as a context manager: commits on clean exit, cancels on error.
    """

    def __init__(self, store: MemoryStore):
        self._store = store
        self._read_version: int | None = None
        self._writes: SortedDict = SortedDict()  # key -> value, None for cleared
        self._cleared: list[KeyRange] = []
        self._read_ranges: list[KeyRange] = []
        self._write_ranges: list[KeyRange] = []
        self._closed = False
        self.committed_version: int | None = None

    @property
    def closed(self) -> bool:
        return self._closed

    def _check_open(self) -> None:
        if self._closed:
            raise TransactionClosedError("transaction has already been committed or cancelled")

    def _version(self) -> int:
        if self._read_version is None:
            self._read_version = self._store._read_version()
        return self._read_version

    def _is_cleared(self, key: Key) -> bool:
        return any(begin <= key < end for begin, end in self._cleared)

    def get_read_version(self) -> int:
        self._check_open()
        return self._version()

    def get(self, key: Key) -> RawValue | None:
        self._check_open()
        version = self._version()
        self._read_ranges.append((key, _successor(key)))

        if key in self._writes:
            return self._writes[key]
        if self._is_cleared(key):
            return None
        return self._store._get(key, version)

    def get_key_at_or_before(self, key: Key) -> Key | None:
        self._check_open()
        found = None
        for found, _value in self._iter_range(b"", _successor(key), reverse=True):
            break
        self._read_ranges.append((found if found is not None else b"", _successor(key)))
        return found

    def get_range(
        self, begin: Key, end: Key, limit: int = 0, reverse: bool = False
    ) -> Iterator[KeyValue]:
        self._check_open()
        if limit < 0:
            raise ValueError(f"limit must be >= 0, got {limit}")
        if begin >= end:
            return iter(())
        self._read_ranges.append((begin, end))
        rows = self._iter_range(begin, end, reverse=reverse)
        return islice(rows, limit) if limit else rows

    def _iter_range(self, begin: Key, end: Key, reverse: bool) -> Iterator[KeyValue]:
        """Merge the store snapshot with local writes over [begin, end)."""
        version = self._version()
        local = (
            (key, True)
            for key in list(
                self._writes.irange(begin, end, inclusive=(True, False), reverse=reverse)
            )
        )
        remote_values: dict[Key, RawValue] = {}

        def remote() -> Iterator[tuple[Key, bool]]:
            for key, value in self._store._scan(begin, end, version, reverse):
                remote_values[key] = value
                yield (key, False)

        last = None
        # Local entries come first on equal keys so they shadow the snapshot
        for key, is_local in heapq.merge(local, remote(), key=lambda row: row[0], reverse=reverse):
            self._check_open()
            # Take the remote value as soon as its row is reached, shadowed or not
            remote_value = None if is_local else remote_values.pop(key, None)
            if key == last:
                continue
            last = key

            if key in self._writes:
                value = self._writes[key]
            elif is_local or self._is_cleared(key):
                value = None
            else:
                value = remote_value
            if value is not None:
                yield (key, value)

    def set(self, key: Key, value: RawValue) -> None:
        self._check_open()
        if not isinstance(key, bytes) or not isinstance(value, bytes):
            raise TypeError("keys and values must be bytes")
        self._writes[key] = value
        self._write_ranges.append((key, _successor(key)))

    def clear(self, key: Key) -> None:
        self._check_open()
        self._writes[key] = None
        self._write_ranges.append((key, _successor(key)))

    def clear_range(self, begin: Key, end: Key) -> None:
        self._check_open()
        if begin >= end:
            return
        for key in list(self._writes.irange(begin, end, inclusive=(True, False))):
            del self._writes[key]
        self._cleared.append((begin, end))
        self._write_ranges.append((begin, end))

    def commit(self) -> int | None:
        """Apply all writes atomically.

        Returns:
            The commit version, or None for a read-only transaction

        Raises:
            ConflictError: If a concurrent commit invalidated this transaction's reads
            TransactionTooOldError: If the read version is no longer checkable
        """
        self._check_open()
        self._closed = True
        if not self._write_ranges:
            return None
        self.committed_version = self._store._commit(
            self._read_version,
            self._read_ranges,
            self._writes,
            self._cleared,
            self._write_ranges,
        )
        return self.committed_version

    def cancel(self) -> None:
        """Discard all buffered writes and close the transaction."""
        self._check_open()
        self._closed = True
        self._writes.clear()
        self._cleared.clear()
        logger.debug("Cancelled transaction")

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if not self._closed:
            if exc_type is None:
                self.commit()
            else:
                self.cancel()
        return False
