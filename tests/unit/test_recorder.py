# pylint: disable=missing-module-docstring,missing-function-docstring

import base64
from typing import Any

import numpy as np
import pytest

import audio.recorder as recorder_mod
import audio.sample_converter as converter_mod
from audio.processor import AudioCaptureProcessor
from audio.recorder import AudioRecorder
from protocol.messages import ChunkMessage, ErrorMessage


@pytest.fixture(autouse=True)
def captured_log(monkeypatch: pytest.MonkeyPatch) -> list[dict[str, Any]]:
    emitted: list[dict[str, Any]] = []
    monkeypatch.setattr(recorder_mod, "log_event", emitted.append)
    monkeypatch.setattr(converter_mod, "log_event", emitted.append)
    return emitted


def decode(b64: str) -> list[int]:
    return np.frombuffer(base64.b64decode(b64), dtype="<i2").tolist()


# ---------------------------------------------------------------------
# Processor (host adapter)
# ---------------------------------------------------------------------

def test_process_uses_first_channel_of_first_input():
    proc = AudioCaptureProcessor(capacity=2)

    keep_going = proc.process([
        [np.array([0.5, -0.5], dtype=np.float32), np.array([0.9, 0.9], dtype=np.float32)],
        [np.array([0.1, 0.1], dtype=np.float32)],
    ])

    assert keep_going is True
    (chunk,) = proc.port.drain()
    assert isinstance(chunk, ChunkMessage)
    assert np.frombuffer(chunk.pcm_bytes, dtype="<i2").tolist() == [16384, -16384]


def test_process_without_input_still_continues():
    proc = AudioCaptureProcessor(capacity=2)

    assert proc.process([]) is True
    assert proc.process([[]]) is True
    assert proc.port.drain() == []


def test_process_continues_after_conversion_error():
    proc = AudioCaptureProcessor(capacity=2)

    assert proc.process([[np.array([np.nan], dtype=np.float32)]]) is True

    (error,) = proc.port.drain()
    assert isinstance(error, ErrorMessage)


def test_process_resamples_host_rate():
    proc = AudioCaptureProcessor(capacity=160, host_sample_rate_hz=48_000)

    proc.process([[np.zeros(480, dtype=np.float32)]])

    (chunk,) = proc.port.drain()
    assert chunk.num_samples == 160
    assert proc.converter.pending == 0


def test_process_resampled_stream_has_no_block_edge_dips():
    proc = AudioCaptureProcessor(capacity=4096, host_sample_rate_hz=48_000)

    for _ in range(40):
        proc.process([[np.full(128, 0.5, dtype=np.float32)]])
    proc.converter.flush()

    (chunk,) = proc.port.drain()
    pcm = np.frombuffer(chunk.pcm_bytes, dtype="<i2")
    # 40 * 128 samples at 48kHz -> ceil(5120 / 3) at 16kHz
    assert pcm.shape == (1707,)
    settled = pcm[32:]
    assert settled.min() >= 16380
    assert settled.max() <= 16388


def test_process_continues_when_consumer_always_raises():
    proc = AudioCaptureProcessor(capacity=2)

    def handler(_message: object) -> None:
        raise RuntimeError("consumer down")

    proc.port.on_message = handler

    assert proc.process([[np.array([np.nan], dtype=np.float32)]]) is True
    assert proc.process([[np.array([0.5, 0.5], dtype=np.float32)]]) is True
    assert proc.converter.errors == 2


# ---------------------------------------------------------------------
# Recorder
# ---------------------------------------------------------------------

def test_recorder_forwards_base64_chunks():
    recorder = AudioRecorder(AudioCaptureProcessor(capacity=3))
    received: list[str] = []

    recorder.start(received.append)
    recorder.feed(np.array([0.5, 0.5, 0.5, 0.25], dtype=np.float32))

    assert len(received) == 1
    assert decode(received[0]) == [16384, 16384, 16384]


def test_recorder_start_twice_raises():
    recorder = AudioRecorder()
    recorder.start(lambda _data: None)

    with pytest.raises(RuntimeError):
        recorder.start(lambda _data: None)


def test_recorder_forwards_errors():
    recorder = AudioRecorder(AudioCaptureProcessor(capacity=3))
    errors: list[ErrorMessage] = []

    recorder.start(lambda _data: None, on_error=errors.append)
    recorder.feed(np.array([np.nan], dtype=np.float32))

    assert len(errors) == 1
    assert "NaN" in errors[0].message


def test_stop_drops_partial_buffer_by_default(captured_log: list[dict[str, Any]]):
    recorder = AudioRecorder(AudioCaptureProcessor(capacity=4))
    received: list[str] = []

    recorder.start(received.append)
    recorder.feed(np.array([0.5, 0.5], dtype=np.float32))
    dropped = recorder.stop()

    assert dropped == 2
    assert received == []
    assert recorder.is_recording is False
    assert captured_log[-1]["event_type"] == "CAPTURE_RESIDUAL_DROPPED"
    assert captured_log[-1]["samples"] == 2


def test_stop_with_flush_forwards_partial_buffer():
    recorder = AudioRecorder(AudioCaptureProcessor(capacity=4))
    received: list[str] = []

    recorder.start(received.append)
    recorder.feed(np.array([0.5, 0.5], dtype=np.float32))
    dropped = recorder.stop(flush_partial=True)

    assert dropped == 0
    assert [decode(r) for r in received] == [[16384, 16384]]


def test_no_forwarding_after_stop():
    recorder = AudioRecorder(AudioCaptureProcessor(capacity=1))
    received: list[str] = []

    recorder.start(received.append)
    recorder.stop()
    assert recorder.feed(np.array([0.5], dtype=np.float32)) is True
    recorder.feed(np.array([0.25], dtype=np.float32))

    assert received == []
    assert len(recorder.processor.port) == 0
    assert recorder.processor.converter.samples_processed == 0
    assert recorder.stop() == 0
