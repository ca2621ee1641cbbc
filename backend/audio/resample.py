"""
Host-rate → capture-rate resampling for float blocks.

Contract:
- Streaming: filter history and output phase carry across process() calls
- After N input samples in total, exactly ceil(N * up / down) samples are out
- Causal FIR; the output lags by half the filter length
- reset() starts a fresh stream (implicit zeros before the first sample)
"""
from math import gcd

import numpy as np
from scipy import signal

# Same anti-aliasing design as scipy.signal.resample_poly
_HALF_LEN_PER_RATE = 10
_KAISER_BETA = 5.0


class Resampler:
    """Polyphase resampler that keeps its state between host blocks."""

    def __init__(self, source_rate_hz: int, target_rate_hz: int):
        if source_rate_hz <= 0 or target_rate_hz <= 0:
            raise ValueError("sample rates must be > 0")

        divisor = gcd(source_rate_hz, target_rate_hz)
        self._up = target_rate_hz // divisor
        self._down = source_rate_hz // divisor
        self.source_rate_hz = source_rate_hz
        self.target_rate_hz = target_rate_hz

        max_rate = max(self._up, self._down)
        numtaps = 2 * _HALF_LEN_PER_RATE * max_rate + 1
        self._taps = signal.firwin(
            numtaps, 1.0 / max_rate, window=("kaiser", _KAISER_BETA)
        ) * self._up
        # Input samples still reachable by the filter for future outputs
        self._history_len = -(-(numtaps - 1) // self._up)

        self.reset()

    @property
    def is_identity(self) -> bool:
        return self._up == self._down

    def reset(self) -> None:
        # _origin is the stream index of _history[0]; kept a multiple of
        # `down` so every output lands on a whole upfirdn output index.
        self._history = np.zeros(0, dtype=np.float64)
        self._origin = 0
        self._next_out = 0

    def process(self, samples: np.ndarray) -> np.ndarray:
        """Resample one float block (48kHz → 16kHz is up=1, down=3)."""
        f32 = np.asarray(samples, dtype=np.float32)
        if self.is_identity or f32.size == 0:
            return f32

        window = np.concatenate((self._history, f32.astype(np.float64)))
        total_in = self._origin + window.shape[0]

        # Outputs k with k * down < total_in * up are fully determined now
        end_out = -(-(total_in * self._up) // self._down)
        first_out = self._origin * self._up // self._down

        filtered = signal.upfirdn(self._taps, window, self._up, self._down)
        out = filtered[self._next_out - first_out:end_out - first_out]
        self._next_out = end_out

        keep_from = max(total_in - self._history_len, 0)
        keep_from -= keep_from % self._down
        self._history = window[keep_from - self._origin:]
        self._origin = keep_from

        return out.astype(np.float32)
