"""
Fixed-capacity rolling history of derived records.

The buffer is the only place records are retained. Readers get a tuple copy,
so nothing they do can reach back into the buffer.
"""

from __future__ import annotations

from collections import deque
from typing import Generic, TypeVar

R = TypeVar("R")


class HistoryBuffer(Generic[R]):
    """
    Ordered, bounded sequence of records with oldest-first eviction.

    Thread-safety: NOT thread-safe. Owned and mutated by a single StreamPump.
    """

    __slots__ = ('_capacity', '_records')

    def __init__(self, capacity: int = 100) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be at least 1, got {capacity}")
        self._capacity = capacity
        # deque(maxlen) drops from the left on overflow: O(1) FIFO eviction
        self._records: deque[R] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._capacity

    def push(self, record: R) -> None:
        """Append `record`, evicting the oldest one if the buffer is full."""
        self._records.append(record)

    def snapshot_view(self) -> tuple[R, ...]:
        """Point-in-time view, oldest first."""
        return tuple(self._records)

    def latest(self) -> R | None:
        return self._records[-1] if self._records else None

    def __len__(self) -> int:
        return len(self._records)

    def __bool__(self) -> bool:
        return bool(self._records)
