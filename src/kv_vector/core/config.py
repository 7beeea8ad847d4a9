"""Configuration for the backing store.

Defines all tunable parameters for transactions and retries.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class StoreConfig:
    """Configuration parameters for MemoryStore.

    Attributes:
        max_retries: Attempts made by transact() before giving up
        base_delay: Initial backoff delay in seconds
        max_delay: Cap on a single backoff delay in seconds
        jitter: Whether to randomize backoff delays
        range_batch_size: Keys fetched per lock acquisition during range reads
        conflict_history_limit: Committed write sets retained for conflict checks
    """

    max_retries: int = 10
    base_delay: float = 0.001  # 1 ms
    max_delay: float = 0.1  # 100 ms
    jitter: bool = True
    range_batch_size: int = 256
    conflict_history_limit: int = 10_000

    def __post_init__(self) -> None:
        if self.max_retries < 1:
            raise ValueError("max_retries must be at least 1")
        if self.range_batch_size < 1:
            raise ValueError("range_batch_size must be at least 1")
        if self.conflict_history_limit < 1:
            raise ValueError("conflict_history_limit must be at least 1")
