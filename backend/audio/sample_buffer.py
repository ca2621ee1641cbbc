"""
Fixed-capacity PCM16 sample buffer.

Invariants:
- 0 <= cursor <= capacity
- Only the owning converter mutates the buffer
- snapshot() copies; the emitted bytes never alias the backing array
"""

from __future__ import annotations

import numpy as np

from constants import SAMPLE_BUFFER_CAPACITY_DEFAULT


class SampleBuffer:
    """
    Ordered int16 storage with a write cursor.

    The buffer never flushes itself: the owner checks `is_full`,
    takes a `snapshot()` and calls `reset()`.
    """

    def __init__(self, capacity: int = SAMPLE_BUFFER_CAPACITY_DEFAULT) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be > 0")

        self._data: np.ndarray = np.zeros(capacity, dtype=np.int16)
        self._cursor: int = 0

    @property
    def capacity(self) -> int:
        return int(self._data.shape[0])

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def space(self) -> int:
        return self.capacity - self._cursor

    @property
    def is_full(self) -> bool:
        return self._cursor >= self.capacity

    def push(self, value: int) -> bool:
        """
        Append one sample at the cursor.

        Returns:
            True if the buffer is full after the push.

        Raises:
            BufferError if the buffer is already full.
        """
        if self.is_full:
            raise BufferError("sample buffer is full; reset before pushing")

        self._data[self._cursor] = value
        self._cursor += 1
        return self.is_full

    def write(self, values: np.ndarray) -> int:
        """
        Copy as many of `values` as fit after the cursor.

        Returns the number of samples consumed.
        """
        n = min(self.space, int(values.shape[0]))
        if n <= 0:
            return 0

        self._data[self._cursor : self._cursor + n] = values[:n]
        self._cursor += n
        return n

    def snapshot(self) -> bytes:
        """Little-endian PCM16 copy of the buffered samples."""
        return self._data[: self._cursor].astype("<i2").tobytes()

    def samples(self) -> np.ndarray:
        """Copy of the buffered samples (for tests / diagnostics)."""
        return self._data[: self._cursor].copy()

    def reset(self) -> None:
        self._cursor = 0

    def __len__(self) -> int:
        return self._cursor
