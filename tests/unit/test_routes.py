# pylint: disable=missing-module-docstring,missing-function-docstring

import base64
import json
from typing import Any

import numpy as np
import pytest
from fastapi.testclient import TestClient

from config import AppConfig
from observability import logger
from protocol.binary import encode_capture_frame
import server.routes as routes_mod
from server.app import create_app
from session.capture_session import CaptureSession


@pytest.fixture()
def client(monkeypatch: pytest.MonkeyPatch) -> TestClient:
    monkeypatch.setattr(logger, "_print", lambda _line: None)
    monkeypatch.setattr(logger, "_enabled", True)
    app = create_app(AppConfig(sample_buffer_capacity=4))
    return TestClient(app)


def test_health(client: TestClient):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_capture_websocket_roundtrip(client: TestClient):
    with client.websocket_connect("/ws/capture") as ws:
        hello = ws.receive_json()
        assert hello["type"] == "session_started"

        ws.send_bytes(encode_capture_frame(
            sequence_num=1,
            samples=np.array([0.5, -0.5, 1.0, -1.0, 0.0], dtype=np.float32),
        ))
        message = ws.receive_json()
        (media,) = message["realtimeInput"]["mediaChunks"]
        pcm = np.frombuffer(base64.b64decode(media["data"]), dtype="<i2").tolist()
        assert pcm == [16384, -16384, 32767, -32768]

        ws.send_text(json.dumps({"type": "stop"}))
        assert ws.receive_json() == {"type": "stopped", "dropped_samples": 1}


def test_capture_websocket_reports_bad_frame(client: TestClient):
    with client.websocket_connect("/ws/capture") as ws:
        ws.receive_json()

        ws.send_bytes(b"\x00")

        assert ws.receive_json()["type"] == "protocol_error"


def test_fatal_error_is_logged_with_timestamp(
    client: TestClient, monkeypatch: pytest.MonkeyPatch
):
    emitted: list[dict[str, Any]] = []
    monkeypatch.setattr(routes_mod, "log_event", emitted.append)

    def explode(_self: CaptureSession, _payload: bytes) -> None:
        raise RuntimeError("boom")

    monkeypatch.setattr(CaptureSession, "on_binary_message", explode)

    with client.websocket_connect("/ws/capture") as ws:
        ws.receive_json()
        ws.send_bytes(b"\x00\x00\x00\x00")

    (fatal,) = [e for e in emitted if e["event_type"] == "WS_FATAL_ERROR"]
    assert isinstance(fatal["ts_ms"], int)
    assert fatal["exception"] == "RuntimeError"
    assert fatal["message"] == "boom"
