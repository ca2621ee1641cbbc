"""
Host-runtime adapter for the capture converter.

The host (sound card callback, browser worklet bridge, test harness)
calls process() once per audio block with `inputs[input][channel]`.
Only channel 0 of input 0 is captured (mono).
"""

from __future__ import annotations

from typing import Optional, Sequence

import numpy as np

from audio.resample import Resampler
from audio.sample_converter import SampleConverter
from constants import CAPTURE_SAMPLE_RATE_HZ, SAMPLE_BUFFER_CAPACITY_DEFAULT
from protocol.port import MessagePort


class AudioCaptureProcessor:
    """
    Owns the MessagePort and SampleConverter for one capture stream.

    process() always returns True: whether to keep calling is the host's
    decision, never the converter's.
    """

    def __init__(
        self,
        *,
        capacity: int = SAMPLE_BUFFER_CAPACITY_DEFAULT,
        host_sample_rate_hz: int = CAPTURE_SAMPLE_RATE_HZ,
        capture_sample_rate_hz: int = CAPTURE_SAMPLE_RATE_HZ,
        port: Optional[MessagePort] = None,
    ) -> None:
        self.port = port if port is not None else MessagePort()
        self.converter = SampleConverter(self.port, capacity=capacity)
        self._resampler = Resampler(host_sample_rate_hz, capture_sample_rate_hz)

    @property
    def capture_sample_rate_hz(self) -> int:
        return self._resampler.target_rate_hz

    def process(self, inputs: Sequence[Sequence[np.ndarray]]) -> bool:
        if inputs and len(inputs[0]):
            channel0 = inputs[0][0]
            self.process_block(channel0)
        return True

    def process_block(self, samples: np.ndarray) -> None:
        """Feed one mono block (host rate) to the converter."""
        if not self._resampler.is_identity:
            try:
                samples = self._resampler.process(samples)
            except (TypeError, ValueError) as exc:
                self.converter.report_error(exc)
                return
        self.converter.process_chunk(samples)

    def reset(self) -> None:
        """Drop buffered samples and resampler history."""
        self.converter.reset()
        self._resampler.reset()
