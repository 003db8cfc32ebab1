"""Fixed-capacity, thread-safe history of quote samples."""

from __future__ import annotations

import threading
from collections import deque

from tickwatch.quotes.base import Sample

DEFAULT_CAPACITY = 100


class SampleBuffer:
    """Keeps the most recent ``capacity`` samples, oldest first.

    Appending to a full buffer evicts exactly one sample, the oldest. One
    thread appends while others take snapshots; both go through the lock.
    """

    def __init__(self, capacity: int = DEFAULT_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self._capacity = capacity
        self._samples: deque[Sample] = deque(maxlen=capacity)
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._capacity

    def append(self, sample: Sample) -> None:
        with self._lock:
            # deque(maxlen=...) drops the left end on overflow
            self._samples.append(sample)

    def snapshot(self) -> tuple[Sample, ...]:
        """Return an immutable copy of the samples, oldest to newest."""
        with self._lock:
            return tuple(self._samples)

    def latest(self) -> Sample | None:
        with self._lock:
            return self._samples[-1] if self._samples else None

    def __len__(self) -> int:
        with self._lock:
            return len(self._samples)

    def __repr__(self) -> str:
        return f"SampleBuffer(capacity={self._capacity}, len={len(self)})"
