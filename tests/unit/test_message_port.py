# pylint: disable=missing-module-docstring,missing-function-docstring

import base64

from protocol.messages import (
    ChunkMessage,
    ErrorMessage,
    realtime_input_message,
)
from protocol.port import MessagePort


def test_messages_buffer_until_handler_attached():
    port = MessagePort()
    port.post_message(ChunkMessage(sequence_num=1, pcm_bytes=b"\x00\x00"))
    port.post_message(ErrorMessage(message="boom", stack="trace"))

    received: list[object] = []
    port.on_message = received.append

    assert [type(m) for m in received] == [ChunkMessage, ErrorMessage]
    assert len(port) == 0
    assert port.posted == 2


def test_close_drops_pending_and_detaches():
    port = MessagePort()
    port.on_message = lambda _m: None
    port.close()

    port.post_message(ErrorMessage(message="x", stack=""))
    assert port.on_message is None
    assert len(port.drain()) == 1
    assert port.drain() == []


def test_chunk_message_json():
    msg = ChunkMessage(sequence_num=3, pcm_bytes=b"\x01\x00\xff\x7f")

    payload = msg.to_json()

    assert payload["event"] == "chunk"
    assert payload["data"]["sequence_num"] == 3
    assert base64.b64decode(payload["data"]["pcm16"]) == b"\x01\x00\xff\x7f"
    assert msg.num_samples == 2


def test_error_message_json():
    payload = ErrorMessage(message="bad", stack="Traceback...").to_json()

    assert payload == {
        "event": "error",
        "error": {"message": "bad", "stack": "Traceback..."},
    }


def test_realtime_input_envelope():
    payload = realtime_input_message(b"\x00\x01", sample_rate_hz=16000)

    (media,) = payload["realtimeInput"]["mediaChunks"]
    assert media["mimeType"] == "audio/pcm;rate=16000"
    assert base64.b64decode(media["data"]) == b"\x00\x01"
