"""
Route registration for the capture API.

Responsibilities:
- Define HTTP and WebSocket endpoints
- Wire CaptureSession to WebSocket lifecycle
- Pull dependencies from app.state
"""

from __future__ import annotations

import time

from fastapi import WebSocket, WebSocketDisconnect, FastAPI

from observability.logger import log_event
from session.capture_session import CaptureSession, SessionResult


def register_routes(app: FastAPI) -> None:
    """Register all routes on the FastAPI app."""
    @app.get("/health")
    async def health() -> dict[str, str]: # pyright: ignore[reportUnusedFunction]
        return {"status": "ok"}

    @app.websocket("/ws/capture")
    async def capture_endpoint(ws: WebSocket) -> None: # pyright: ignore[reportUnusedFunction]
        await ws.accept()

        session = CaptureSession(config=app.state.config)

        try:
            result = session.on_connect()
            await _flush_session_result(ws, result)

            while True:
                msg = await ws.receive()

                if msg.get("type") == "websocket.disconnect":
                    raise WebSocketDisconnect(code=msg.get("code", 1000))

                if msg.get("text") is not None:
                    result = session.on_json_message(msg["text"])
                    await _flush_session_result(ws, result)

                elif msg.get("bytes") is not None:
                    result = session.on_binary_message(msg["bytes"])
                    await _flush_session_result(ws, result)

        except WebSocketDisconnect:
            session.on_disconnect(reason="client_disconnect")

        except Exception as exc:  # pylint: disable=broad-exception-caught
            log_event({
                "ts_ms": _now_ms(),
                "event_type": "WS_FATAL_ERROR",
                "session_id": session.session_id,
                "exception": type(exc).__name__,
                "message": str(exc),
            })
            session.on_disconnect(reason="server_error")


def _now_ms() -> int:
    return int(time.time() * 1000)


async def _flush_session_result(ws: WebSocket, result: SessionResult) -> None:
    for payload in result.outbound_json:
        await ws.send_json(payload)
