"""
Outbound message types.

Converter → consumer messages travel over a MessagePort as dataclasses.
to_json() gives the dict sent to WebSocket clients; pcm bytes are base64.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass
from typing import Any, Union

from constants import (
    CAPTURE_SAMPLE_RATE_HZ,
    EVENT_CHUNK,
    EVENT_ERROR,
    PCM_MIME_TYPE,
)


def b64encode_pcm(pcm_bytes: bytes) -> str:
    return base64.b64encode(pcm_bytes).decode("ascii")


@dataclass(frozen=True)
class ChunkMessage:
    """
    One full buffer of PCM16 little-endian samples.

    sequence_num:
        1-based emission counter of the converter that produced the chunk.
    """
    sequence_num: int
    pcm_bytes: bytes

    @property
    def event(self) -> str:
        return EVENT_CHUNK

    @property
    def num_samples(self) -> int:
        return len(self.pcm_bytes) // 2

    def to_json(self) -> dict[str, Any]:
        return {
            "event": EVENT_CHUNK,
            "data": {
                "sequence_num": self.sequence_num,
                "pcm16": b64encode_pcm(self.pcm_bytes),
            },
        }


@dataclass(frozen=True)
class ErrorMessage:
    """Conversion failure report (message + formatted traceback)."""
    message: str
    stack: str

    @property
    def event(self) -> str:
        return EVENT_ERROR

    def to_json(self) -> dict[str, Any]:
        return {
            "event": EVENT_ERROR,
            "error": {
                "message": self.message,
                "stack": self.stack,
            },
        }


PortMessage = Union[ChunkMessage, ErrorMessage]


def pcm_mime_type(sample_rate_hz: int = CAPTURE_SAMPLE_RATE_HZ) -> str:
    return f"{PCM_MIME_TYPE};rate={sample_rate_hz}"


def realtime_input_envelope(
    data_b64: str,
    *,
    sample_rate_hz: int = CAPTURE_SAMPLE_RATE_HZ,
) -> dict[str, Any]:
    """
    Wrap base64 PCM16 in the streaming speech API realtime-input envelope.
    """
    return {
        "realtimeInput": {
            "mediaChunks": [
                {
                    "mimeType": pcm_mime_type(sample_rate_hz),
                    "data": data_b64,
                }
            ]
        }
    }


def realtime_input_message(
    pcm_bytes: bytes,
    *,
    sample_rate_hz: int = CAPTURE_SAMPLE_RATE_HZ,
) -> dict[str, Any]:
    return realtime_input_envelope(
        b64encode_pcm(pcm_bytes), sample_rate_hz=sample_rate_hz
    )
