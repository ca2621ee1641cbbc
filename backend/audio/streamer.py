"""
Playback-side buffering for PCM16 model audio.

Design:
- Incoming PCM16 is converted to float32 and accumulated
- Accumulated audio is split into fixed playable buffers (320ms @ 24kHz)
- The host scheduler pulls buffers with next_buffer()
- finish_playback() queues the remainder and refuses new audio until
  the queue drains, then fires the finish callback exactly once
"""

from __future__ import annotations

from collections import deque
from typing import Callable, Deque, Optional

import numpy as np

from audio.pcm import pcm16le_to_float32
from constants import PLAYBACK_BUFFER_S, PLAYBACK_SAMPLE_RATE_HZ

FinishCallback = Callable[[], None]


class AudioStreamer:
    """
    Bounded-latency playback buffer.

    Not thread-safe; the host drives it from one loop.
    """

    def __init__(
        self,
        *,
        sample_rate_hz: int = PLAYBACK_SAMPLE_RATE_HZ,
        buffer_s: float = PLAYBACK_BUFFER_S,
    ) -> None:
        if sample_rate_hz <= 0:
            raise ValueError("sample_rate_hz must be > 0")
        if buffer_s <= 0:
            raise ValueError("buffer_s must be > 0")

        self.sample_rate_hz = sample_rate_hz
        self.buffer_size = int(sample_rate_hz * buffer_s)

        self._queue: Deque[np.ndarray] = deque()
        self._processing = np.zeros(0, dtype=np.float32)
        self._initialized = False
        self._finishing = False
        self._on_finish: Optional[FinishCallback] = None

    # -------------------------
    # Introspection
    # -------------------------

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def is_finishing(self) -> bool:
        return self._finishing

    @property
    def queued_buffers(self) -> int:
        return len(self._queue)

    @property
    def pending_samples(self) -> int:
        return int(self._processing.shape[0])

    def depth_seconds(self) -> float:
        queued = sum(int(b.shape[0]) for b in self._queue) + self.pending_samples
        return queued / self.sample_rate_hz

    # -------------------------
    # Lifecycle
    # -------------------------

    def initialize(self) -> None:
        self._initialized = True

    def stream_audio(self, pcm_bytes: bytes) -> int:
        """
        Accept one PCM16 LE response chunk.

        Returns the number of playable buffers queued by this call.
        Ignored before initialize(), for empty input, and while finishing.
        """
        if not self._initialized or not pcm_bytes or self._finishing:
            return 0

        samples = pcm16le_to_float32(pcm_bytes)
        self._processing = np.concatenate((self._processing, samples))

        queued = 0
        while self._processing.shape[0] >= self.buffer_size:
            self._queue.append(self._processing[: self.buffer_size].copy())
            self._processing = self._processing[self.buffer_size :]
            queued += 1
        return queued

    def next_buffer(self) -> Optional[np.ndarray]:
        """
        Pop the next playable buffer, or None when the queue is empty.
        """
        if self._queue:
            return self._queue.popleft()

        if self._finishing:
            self._complete_finish()
        return None

    def finish_playback(self, on_finish: Optional[FinishCallback] = None) -> None:
        """Queue the partial remainder and call `on_finish` once drained."""
        self._finishing = True
        self._on_finish = on_finish

        if self._processing.shape[0] > 0:
            self._queue.append(self._processing.copy())
            self._processing = np.zeros(0, dtype=np.float32)

        if not self._queue:
            self._complete_finish()

    def reset_finishing(self) -> None:
        self._finishing = False
        self._on_finish = None

    def stop(self) -> None:
        """Drop all queued and pending audio; no finish callback fires."""
        self._finishing = False
        self._on_finish = None
        self._queue.clear()
        self._processing = np.zeros(0, dtype=np.float32)

    def _complete_finish(self) -> None:
        callback = self._on_finish
        self._finishing = False
        self._on_finish = None
        if callback is not None:
            callback()
