"""
Capture frame primitives.

Pure data containers only.
No behavior, no queues, no timing logic.
"""

from __future__ import annotations
from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class CaptureFrame:
    """
    One block of float audio received from a capture client.

    sequence_num:
        Monotonic sequence number provided by the sender.
        Used for gap detection and debugging only.

    samples:
        Float32 samples in [-1.0, 1.0], mono, at the host sample rate.

    ts_ms:
        Wall-clock timestamp (milliseconds) when the frame was received.
        Used for observability only (not control logic).
    """
    sequence_num: int
    samples: np.ndarray
    ts_ms: int
