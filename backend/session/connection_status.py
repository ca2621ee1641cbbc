"""
Connection status tracking for capture sessions.

connection_status: DOWN | UP

Pure data owned by CaptureSession.
"""
from enum import Enum

class ConnectionStatus(Enum):
    """
    Connection lifecycle status.

    Independent of whether the recorder is currently forwarding audio.
    """
    DOWN = "DOWN"  # Not connected
    UP = "UP"      # Active WebSocket connection
