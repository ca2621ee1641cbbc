"""PCM conversion utilities."""
from typing import Iterable, Union

import numpy as np

from constants import (
    FLOAT32_SAMPLE_WIDTH_BYTES,
    PCM16_MAX,
    PCM16_MIN,
    PCM16_SCALE,
)

FloatSamples = Union[np.ndarray, Iterable[float]]


def float32_to_pcm16(samples: FloatSamples) -> np.ndarray:
    """
    Convert float samples in [-1.0, 1.0] to int16.

    Each sample becomes floor(sample * 32768), clamped to [-32768, 32767].
    Out-of-range and infinite samples clamp to the nearest bound.

    Raises:
        ValueError if the input is not a flat numeric sequence or contains NaN.
    """
    try:
        f32 = np.asarray(samples, dtype=np.float32)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"samples are not numeric: {exc}") from exc

    if f32.ndim == 0:
        f32 = f32.reshape(1)
    if f32.ndim != 1:
        raise ValueError(f"expected a 1D sample block, got shape {f32.shape}")

    if np.isnan(f32).any():
        raise ValueError("sample block contains NaN")

    # Scaling by a power of two is exact in float32.
    scaled = np.floor(f32.astype(np.float64) * PCM16_SCALE)
    return np.clip(scaled, PCM16_MIN, PCM16_MAX).astype(np.int16)


def pcm16le_to_float32(pcm_bytes: bytes) -> np.ndarray:
    """
    Convert PCM16 little-endian mono bytes to float32 in [-1.0, 1.0).

    Runtime-safe, adapter-agnostic utility.
    No resampling. No channel mixing.
    """
    if len(pcm_bytes) % 2 != 0:
        # Truncated sample; caller should treat as malformed frame upstream.
        pcm_bytes = pcm_bytes[: len(pcm_bytes) - 1]

    audio_i16 = np.frombuffer(pcm_bytes, dtype="<i2")  # little-endian int16
    audio_f32 = audio_i16.astype(np.float32) / PCM16_SCALE
    return audio_f32


def float32le_bytes_to_samples(payload: bytes) -> np.ndarray:
    """
    Decode a raw float32 little-endian block (as sent by a browser worklet).

    Raises:
        ValueError if the payload is not a whole number of float32 samples.
    """
    if len(payload) % FLOAT32_SAMPLE_WIDTH_BYTES != 0:
        raise ValueError(
            f"float32 payload length {len(payload)} is not a multiple of "
            f"{FLOAT32_SAMPLE_WIDTH_BYTES}"
        )
    return np.frombuffer(payload, dtype="<f4").astype(np.float32)
