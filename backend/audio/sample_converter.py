"""
Streaming float → PCM16 chunk converter.

Contract:
- Every sample becomes floor(sample * 32768) clamped to [-32768, 32767]
- Samples accumulate in a fixed-capacity SampleBuffer
- Exactly one ChunkMessage per full buffer, in arrival order
- Partial buffers are never emitted implicitly (flush() is explicit)
- Any failure while converting a block is reported as one ErrorMessage;
  the block is rejected whole and no partial chunk is emitted
- A consumer that raises on a chunk costs one ErrorMessage; the rest of
  the block is still buffered and emitted
- Posting never raises out of the converter
- Invoked synchronously by a single host callback; no locking
"""

from __future__ import annotations

import time
import traceback

import numpy as np

from audio.pcm import FloatSamples, float32_to_pcm16
from audio.sample_buffer import SampleBuffer
from constants import SAMPLE_BUFFER_CAPACITY_DEFAULT
from observability.logger import log_event
from protocol.messages import ChunkMessage, ErrorMessage
from protocol.port import MessagePort


class ConversionFailure(Exception):
    """Raised when a sample block cannot be converted to PCM16."""


def _convert(samples: FloatSamples) -> np.ndarray:
    try:
        return float32_to_pcm16(samples)
    except ValueError as exc:
        raise ConversionFailure(str(exc)) from exc


class SampleConverter:
    """
    Owns one SampleBuffer and posts finished chunks to a MessagePort.
    """

    def __init__(
        self,
        port: MessagePort,
        *,
        capacity: int = SAMPLE_BUFFER_CAPACITY_DEFAULT,
    ) -> None:
        self._port = port
        self._buffer = SampleBuffer(capacity)

        self.chunks_emitted: int = 0
        self.samples_processed: int = 0
        self.errors: int = 0

    @property
    def port(self) -> MessagePort:
        return self._port

    @property
    def capacity(self) -> int:
        return self._buffer.capacity

    @property
    def pending(self) -> int:
        """Samples buffered and not yet emitted (always < capacity)."""
        return self._buffer.cursor

    def process_chunk(self, samples: FloatSamples) -> None:
        """
        Convert one block of float samples and emit every buffer it fills.

        Never raises; failures become ErrorMessage events.
        """
        try:
            converted = _convert(samples)
        except Exception as exc:  # pylint: disable=broad-exception-caught
            self.report_error(exc)
            return

        offset = 0
        total = int(converted.shape[0])
        while offset < total:
            written = self._buffer.write(converted[offset:])
            offset += written
            self.samples_processed += written
            if self._buffer.is_full:
                try:
                    self._send_and_clear_buffer()
                except Exception as exc:  # pylint: disable=broad-exception-caught
                    self.report_error(exc)

    def flush(self) -> bool:
        """
        Emit the partial buffer, if any.

        Returns True if a chunk was emitted.
        """
        if self._buffer.cursor == 0:
            return False
        self._send_and_clear_buffer()
        return True

    def reset(self) -> None:
        """Discard buffered samples without emitting them."""
        self._buffer.reset()

    def snapshot(self) -> dict[str, int]:
        """
        Lightweight snapshot for logging / metrics.
        """
        return {
            "capacity": self.capacity,
            "pending": self.pending,
            "chunks_emitted": self.chunks_emitted,
            "samples_processed": self.samples_processed,
            "errors": self.errors,
        }

    def report_error(self, exc: BaseException) -> None:
        """Count, log and post one ErrorMessage for `exc`."""
        self.errors += 1
        message = str(exc) or type(exc).__name__
        stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))

        log_event({
            "ts_ms": int(time.time() * 1000),
            "event_type": "CONVERSION_FAILURE",
            "exception": type(exc).__name__,
            "message": message,
            "pending": self.pending,
        })

        try:
            self._port.post_message(ErrorMessage(message=message, stack=stack))
        except Exception as post_exc:  # pylint: disable=broad-exception-caught
            log_event({
                "ts_ms": int(time.time() * 1000),
                "event_type": "CONSUMER_FAILURE",
                "exception": type(post_exc).__name__,
                "message": str(post_exc),
            })

    # -------------------------
    # Internals
    # -------------------------

    def _send_and_clear_buffer(self) -> None:
        pcm_bytes = self._buffer.snapshot()
        # Reset before posting so a failing consumer cannot wedge the cursor.
        self._buffer.reset()
        self.chunks_emitted += 1
        self._port.post_message(
            ChunkMessage(sequence_num=self.chunks_emitted, pcm_bytes=pcm_bytes)
        )
