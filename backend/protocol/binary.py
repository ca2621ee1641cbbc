# backend/protocol/binary.py
"""
Binary framing helpers for capture transport.

Client → Server (mic):
    4 bytes  seq_num (u32, little-endian)
    N × 4 bytes float32 samples (little-endian), 1 <= N <= CAPTURE_FRAME_MAX_SAMPLES

Usage example:

    frame = decode_capture_frame(payload, ts_ms=now_ms)

    result = check_sequence_gap(last_seq=prev_seq, current_seq=frame.sequence_num)
    if result.gap:
        log_event({
            "event_type": "CAPTURE_SEQ_GAP",
            "expected": result.expected,
            "actual": result.actual,
            "gap_size": result.gap_size,
        })
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from typing import Optional

import numpy as np

from audio.frames import CaptureFrame
from audio.pcm import float32le_bytes_to_samples
from constants import (
    CAPTURE_FRAME_MAX_SAMPLES,
    CAPTURE_SEQ_NUM_BYTES,
    FLOAT32_SAMPLE_WIDTH_BYTES,
    SEQ_NUM_MAX,
    SEQ_NUM_START,
)


# -------------------------
# Exceptions
# -------------------------

class CaptureProtocolError(Exception):
    """Base class for capture framing errors."""


class InvalidFrameLength(CaptureProtocolError):
    """
    Raised when a binary capture frame has an unusable byte length.

    Truncated header, empty or oversized sample block, or a block that is
    not a whole number of float32 samples. The frame must be dropped.
    """


class InvalidSequenceNumber(CaptureProtocolError):
    """
    Raised when a sequence number is outside the valid range.
    """


# -------------------------
# Low-level helpers
# -------------------------

def _u32_le(value: int) -> bytes:
    return struct.pack("<I", value)


def _read_u32_le(buf: bytes, offset: int = 0) -> int:
    return struct.unpack_from("<I", buf, offset)[0]


def is_seq_next(prev: int, current: int) -> bool:
    """
    Return True if `current` is the expected next sequence number
    after `prev`, accounting for wraparound.
    """
    if prev == SEQ_NUM_MAX:
        return current == SEQ_NUM_START
    return current == prev + 1


# -------------------------
# Client → Server (mic)
# -------------------------

def decode_capture_frame(payload: bytes, *, ts_ms: int) -> CaptureFrame:
    """
    Decode a client→server capture frame.
    """
    if len(payload) <= CAPTURE_SEQ_NUM_BYTES:
        raise InvalidFrameLength(
            f"Capture frame length {len(payload)} has no samples"
        )

    seq = _read_u32_le(payload, 0)

    if seq < SEQ_NUM_START or seq > SEQ_NUM_MAX:
        raise InvalidSequenceNumber(f"Invalid seq_num: {seq}")

    body = payload[CAPTURE_SEQ_NUM_BYTES:]

    if len(body) > CAPTURE_FRAME_MAX_SAMPLES * FLOAT32_SAMPLE_WIDTH_BYTES:
        raise InvalidFrameLength(
            f"Capture frame carries more than {CAPTURE_FRAME_MAX_SAMPLES} samples"
        )

    try:
        samples = float32le_bytes_to_samples(body)
    except ValueError as exc:
        raise InvalidFrameLength(str(exc)) from exc

    return CaptureFrame(
        sequence_num=seq,
        samples=samples,
        ts_ms=ts_ms,
    )


def encode_capture_frame(*, sequence_num: int, samples: np.ndarray) -> bytes:
    """
    Encode a capture frame (client side; used by tools and tests).
    """
    if sequence_num < SEQ_NUM_START or sequence_num > SEQ_NUM_MAX:
        raise InvalidSequenceNumber(f"Invalid seq_num: {sequence_num}")

    f32 = np.asarray(samples, dtype="<f4")
    if f32.ndim != 1 or f32.shape[0] == 0:
        raise InvalidFrameLength("Capture frame needs a non-empty 1D sample block")
    if f32.shape[0] > CAPTURE_FRAME_MAX_SAMPLES:
        raise InvalidFrameLength(
            f"Capture frame carries more than {CAPTURE_FRAME_MAX_SAMPLES} samples"
        )

    return _u32_le(sequence_num) + f32.tobytes()


# -------------------------
# Sequence gap detection
# -------------------------

@dataclass(frozen=True)
class SeqCheckResult:
    """
    Result of a sequence continuity check.
    """
    gap: bool
    expected: int
    actual: int

    @property
    def gap_size(self) -> int:
        """
        Number of frames skipped (0 if no gap).

        Handles wraparound correctly.
        """
        if not self.gap:
            return 0

        # Linear (no wrap)
        if self.actual > self.expected:
            return self.actual - self.expected

        # Wraparound
        return (SEQ_NUM_MAX - self.expected + 1) + (self.actual - SEQ_NUM_START)


def check_sequence_gap(
    *,
    last_seq: Optional[int],
    current_seq: int,
) -> SeqCheckResult:
    """
    Check whether `current_seq` follows `last_seq`.

    Pure function; never raises.
    """
    if last_seq is None:
        return SeqCheckResult(
            gap=False,
            expected=current_seq,
            actual=current_seq,
        )

    if is_seq_next(last_seq, current_seq):
        return SeqCheckResult(
            gap=False,
            expected=current_seq,
            actual=current_seq,
        )

    expected = SEQ_NUM_START if last_seq == SEQ_NUM_MAX else last_seq + 1

    return SeqCheckResult(
        gap=True,
        expected=expected,
        actual=current_seq,
    )
