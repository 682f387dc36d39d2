"""PCM conversion utilities."""
from __future__ import annotations

import base64
import binascii

import numpy as np

from errors import DataCorruptionError
from spec import (
    PCM16_NEGATIVE_SCALE,
    PCM16_POSITIVE_SCALE,
    PLAYBACK_DECODE_DIVISOR,
)


def compute_rms(samples: np.ndarray) -> float:
    """Root-mean-square amplitude of a sample block (0.0 for empty input)."""
    if samples.size == 0:
        return 0.0
    data = samples.astype(np.float64, copy=False)
    return float(np.sqrt(np.mean(data * data)))


def float32_to_pcm16le(samples: np.ndarray) -> bytes:
    """
    Quantize float samples to PCM16 little-endian bytes.

    Clamps to [-1, 1], then scales negatives by 32768 and positives by
    32767. Conversion truncates toward zero, so -1.0 maps to -32768 and
    1.0 maps to 32767.
    """
    clipped = np.clip(samples.astype(np.float64, copy=False), -1.0, 1.0)
    scaled = np.where(
        clipped < 0,
        clipped * PCM16_NEGATIVE_SCALE,
        clipped * PCM16_POSITIVE_SCALE,
    )
    return np.trunc(scaled).astype("<i2").tobytes()


def pcm16le_to_float32(pcm_bytes: bytes) -> np.ndarray:
    """
    Convert PCM16 little-endian mono bytes to float32 in [-1.0, 1.0).

    No resampling. No channel mixing.
    """
    if len(pcm_bytes) % 2 != 0:
        # Truncated trailing sample
        pcm_bytes = pcm_bytes[: len(pcm_bytes) - 1]

    audio_i16 = np.frombuffer(pcm_bytes, dtype="<i2")
    return audio_i16.astype(np.float32) / np.float32(PLAYBACK_DECODE_DIVISOR)


def encode_pcm16_base64(samples: np.ndarray) -> str:
    """Quantize and base64-encode a float sample block."""
    return base64.b64encode(float32_to_pcm16le(samples)).decode("ascii")


def decode_pcm16_base64(data: str) -> np.ndarray:
    """
    Decode a base64 PCM16 payload into float32 samples.

    Raises:
        DataCorruptionError if the payload is not valid base64.
    """
    try:
        raw = base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise DataCorruptionError(f"malformed PCM payload: {e}") from e
    return pcm16le_to_float32(raw)
