"""
Capture session (one per WebSocket connection).

Responsibilities:
- Owns the AudioRecorder / AudioCaptureProcessor for the connection
- Tracks connection_status
- Decodes inbound binary capture frames and detects sequence gaps
- Turns converter output into outbound realtime-input messages
- Routes inbound JSON control messages (stop / reset)

NOT responsible for:
- Talking to the speech API (the client relays realtimeInput messages)
- Any sample conversion logic
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass, field
from typing import Any, TYPE_CHECKING
from uuid import uuid4

from audio.processor import AudioCaptureProcessor
from audio.recorder import AudioRecorder
from observability.logger import log_event
from protocol.binary import (
    CaptureProtocolError,
    check_sequence_gap,
    decode_capture_frame,
)
from protocol.messages import ErrorMessage, pcm_mime_type, realtime_input_envelope
from session.connection_status import ConnectionStatus

if TYPE_CHECKING:
    from config import AppConfig


# ------------------------------------------------------------------
# Helpers
# ------------------------------------------------------------------

def _now_ms() -> int:
    return time.time_ns() // 1_000_000


def _new_session_id() -> str:
    return f"cap_{uuid4().hex[:12]}"


# ------------------------------------------------------------------
# Session result
# ------------------------------------------------------------------

@dataclass(frozen=True)
class SessionResult:
    """
    Return value for session boundary methods.

    outbound_json:
        JSON messages to send to the client, in order
    """
    outbound_json: tuple[dict[str, Any], ...] = ()


@dataclass
class _Outbox:
    messages: list[dict[str, Any]] = field(default_factory=list)

    def take(self) -> SessionResult:
        out = SessionResult(outbound_json=tuple(self.messages))
        self.messages.clear()
        return out


# ------------------------------------------------------------------
# CaptureSession
# ------------------------------------------------------------------

class CaptureSession:
    """
    One session == one capture stream.
    """

    def __init__(self, *, config: AppConfig) -> None:
        self._config = config
        self.session_id: str | None = None
        self.connection_status = ConnectionStatus.DOWN
        self.recorder: AudioRecorder | None = None
        self._last_seq: int | None = None
        self._outbox = _Outbox()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def on_connect(self) -> SessionResult:
        """Called when the WebSocket connection is established."""
        self.session_id = _new_session_id()
        self.connection_status = ConnectionStatus.UP
        self._start_recorder()

        log_event({
            "ts_ms": _now_ms(),
            "event_type": "CAPTURE_SESSION_STARTED",
            "session_id": self.session_id,
            "capacity": self._config.sample_buffer_capacity,
            "host_sample_rate_hz": self._config.host_sample_rate_hz,
        })

        return SessionResult(outbound_json=({
            "type": "session_started",
            "session_id": self.session_id,
            "mime_type": pcm_mime_type(self._config.capture_sample_rate_hz),
            "chunk_samples": self._config.sample_buffer_capacity,
        },))

    def on_disconnect(self, *, reason: str) -> None:
        """Called when the WebSocket closes (client or server side)."""
        if self.connection_status is ConnectionStatus.DOWN:
            return

        stats: dict[str, int] = {}
        if self.recorder is not None:
            stats = self.recorder.processor.converter.snapshot()
            self.recorder.stop()

        self.connection_status = ConnectionStatus.DOWN
        log_event({
            "ts_ms": _now_ms(),
            "event_type": "CAPTURE_SESSION_ENDED",
            "session_id": self.session_id,
            "reason": reason,
            "stats": stats,
        })

    # ------------------------------------------------------------------
    # Inbound
    # ------------------------------------------------------------------

    def on_binary_message(self, payload: bytes) -> SessionResult:
        """Decode one capture frame and convert its samples."""
        if self.recorder is None or not self.recorder.is_recording:
            return SessionResult()

        try:
            frame = decode_capture_frame(payload, ts_ms=_now_ms())
        except CaptureProtocolError as exc:
            log_event({
                "ts_ms": _now_ms(),
                "event_type": "CAPTURE_PROTOCOL_ERROR",
                "session_id": self.session_id,
                "exception": type(exc).__name__,
                "message": str(exc),
            })
            return SessionResult(outbound_json=(
                {"type": "protocol_error", "message": str(exc)},
            ))

        gap = check_sequence_gap(last_seq=self._last_seq, current_seq=frame.sequence_num)
        if gap.gap:
            log_event({
                "ts_ms": frame.ts_ms,
                "event_type": "CAPTURE_SEQ_GAP",
                "session_id": self.session_id,
                "expected": gap.expected,
                "actual": gap.actual,
                "gap_size": gap.gap_size,
            })
        self._last_seq = frame.sequence_num

        self.recorder.feed(frame.samples)
        return self._outbox.take()

    def on_json_message(self, text: str) -> SessionResult:
        """Handle a control message: {"type": "stop"} or {"type": "reset"}."""
        try:
            msg = json.loads(text)
        except json.JSONDecodeError:
            return SessionResult(outbound_json=(
                {"type": "protocol_error", "message": "invalid JSON"},
            ))

        msg_type = msg.get("type") if isinstance(msg, dict) else None

        if msg_type == "stop":
            dropped = 0
            if self.recorder is not None:
                dropped = self.recorder.stop(
                    flush_partial=self._config.flush_partial_on_stop
                )
            result = self._outbox.take()
            return SessionResult(outbound_json=result.outbound_json + (
                {"type": "stopped", "dropped_samples": dropped},
            ))

        if msg_type == "reset":
            if self.recorder is not None:
                self.recorder.stop()
            self._last_seq = None
            self._start_recorder()
            return SessionResult(outbound_json=({"type": "reset"},))

        return SessionResult(outbound_json=(
            {"type": "protocol_error", "message": f"unknown message type: {msg_type!r}"},
        ))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _start_recorder(self) -> None:
        processor = AudioCaptureProcessor(
            capacity=self._config.sample_buffer_capacity,
            host_sample_rate_hz=self._config.host_sample_rate_hz,
            capture_sample_rate_hz=self._config.capture_sample_rate_hz,
        )
        self.recorder = AudioRecorder(processor)
        self.recorder.start(self._on_audio_data, on_error=self._on_error)

    def _on_audio_data(self, b64_pcm: str) -> None:
        self._outbox.messages.append(realtime_input_envelope(
            b64_pcm, sample_rate_hz=self._config.capture_sample_rate_hz
        ))

    def _on_error(self, message: ErrorMessage) -> None:
        self._outbox.messages.append(message.to_json())
