"""
CONSTANTS
---------
Single source of truth for all behavioral constants of the capture pipeline.

Rules:
- If changing a value changes runtime behavior, it belongs here.
- No magic numbers elsewhere in the codebase.
- Other modules MUST import from this file.
"""

from __future__ import annotations

from typing import Final

# =============================================================================
# Capture format (PCM16 mono @ 16kHz)
# =============================================================================

CAPTURE_SAMPLE_RATE_HZ: Final[int] = 16_000
CAPTURE_CHANNELS: Final[int] = 1
PCM16_SAMPLE_WIDTH_BYTES: Final[int] = 2
FLOAT32_SAMPLE_WIDTH_BYTES: Final[int] = 4

# Float [-1.0, 1.0] -> int16 conversion
PCM16_MIN: Final[int] = -32768
PCM16_MAX: Final[int] = 32767
PCM16_SCALE: Final[float] = 32768.0

# Samples per emitted chunk (128ms @ 16kHz)
SAMPLE_BUFFER_CAPACITY_DEFAULT: Final[int] = 2048

# Rate the host delivers blocks at; defaults to the capture rate (no
# resampling). Set HOST_SAMPLE_RATE_HZ to 44100 or 48000 for sound cards.
HOST_SAMPLE_RATE_HZ_DEFAULT: Final[int] = 16_000

# =============================================================================
# Playback (model audio responses)
# =============================================================================

PLAYBACK_SAMPLE_RATE_HZ: Final[int] = 24_000
PLAYBACK_BUFFER_S: Final[float] = 0.32

# =============================================================================
# Message formats
# =============================================================================

EVENT_CHUNK: Final[str] = "chunk"
EVENT_ERROR: Final[str] = "error"

PCM_MIME_TYPE: Final[str] = "audio/pcm"

# =============================================================================
# Binary WebSocket capture frames
# =============================================================================
# Client → Server: 4B seq_num (u32 LE) + N float32 LE samples
CAPTURE_SEQ_NUM_BYTES: Final[int] = 4
CAPTURE_FRAME_MAX_SAMPLES: Final[int] = 16_384

SEQ_NUM_START: Final[int] = 1
SEQ_NUM_MAX: Final[int] = 2**32 - 1  # u32 wraparound
