"""
Capture recorder: consumes processor messages and forwards base64 audio.

Lifecycle:
- start(on_audio_data) attaches to the processor port
- chunks are forwarded only while recording
- stop() detaches, optionally flushing the partial buffer first
"""

from __future__ import annotations

import time
from typing import Callable, Optional

import numpy as np

from audio.processor import AudioCaptureProcessor
from observability.logger import log_event
from protocol.messages import ChunkMessage, ErrorMessage, PortMessage, b64encode_pcm

AudioDataCallback = Callable[[str], None]
ErrorCallback = Callable[[ErrorMessage], None]


class AudioRecorder:
    """
    One recorder == one capture stream.

    The host pushes blocks with feed(); the recorder never pulls audio itself.
    """

    def __init__(self, processor: Optional[AudioCaptureProcessor] = None) -> None:
        self.processor = processor if processor is not None else AudioCaptureProcessor()
        self._on_audio_data: Optional[AudioDataCallback] = None
        self._on_error: Optional[ErrorCallback] = None
        self._is_recording = False

    @property
    def is_recording(self) -> bool:
        return self._is_recording

    def start(
        self,
        on_audio_data: AudioDataCallback,
        on_error: Optional[ErrorCallback] = None,
    ) -> None:
        """
        Begin forwarding chunks to `on_audio_data` as base64 PCM16 strings.

        Raises:
            RuntimeError if already recording.
        """
        if self._is_recording:
            raise RuntimeError("recorder already started")

        self._on_audio_data = on_audio_data
        self._on_error = on_error
        self._is_recording = True
        self.processor.port.on_message = self._handle_message

    def feed(self, samples: np.ndarray) -> bool:
        """Push one mono host block through the processor."""
        if not self._is_recording:
            return True
        return self.processor.process([[samples]])

    def stop(self, *, flush_partial: bool = False) -> int:
        """
        Stop forwarding audio and reset the processor.

        Returns the number of buffered samples that were discarded.
        No-op (returns 0) when not recording.
        """
        if not self._is_recording:
            return 0

        converter = self.processor.converter
        if flush_partial:
            converter.flush()

        dropped = converter.pending
        if dropped:
            log_event({
                "ts_ms": int(time.time() * 1000),
                "event_type": "CAPTURE_RESIDUAL_DROPPED",
                "samples": dropped,
            })

        self.processor.reset()
        self._is_recording = False
        self.processor.port.close()
        self._on_audio_data = None
        self._on_error = None
        return dropped

    # -------------------------
    # Port handler
    # -------------------------

    def _handle_message(self, message: PortMessage) -> None:
        if not self._is_recording:
            return

        if isinstance(message, ChunkMessage):
            if self._on_audio_data is not None:
                self._on_audio_data(b64encode_pcm(message.pcm_bytes))
            return

        if isinstance(message, ErrorMessage):
            if self._on_error is not None:
                self._on_error(message)
