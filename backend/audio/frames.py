"""
Audio frame primitives.

Pure data containers only.
No behavior beyond wire rendering, no queues, no timing logic.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from spec import CAPTURE_MIME_TYPE, CAPTURE_SAMPLE_RATE_HZ


@dataclass(frozen=True)
class AudioFrame:
    """
    One block of microphone samples as delivered by the capture callback.

    samples:
        float32 mono samples, nominally in [-1.0, 1.0].

    ts_ms:
        Wall-clock capture timestamp (milliseconds). Observability only.
    """
    samples: np.ndarray
    ts_ms: int


@dataclass(frozen=True)
class TransportEnvelope:
    """
    Transport unit sent to the remote agent.

    data:
        base64 text of little-endian PCM16 mono audio.
    """
    data: str
    sample_count: int
    ts_ms: int
    sample_rate_hz: int = CAPTURE_SAMPLE_RATE_HZ
    mime_type: str = CAPTURE_MIME_TYPE

    def to_wire(self) -> dict[str, str]:
        """Render the outbound wire unit."""
        return {"mimeType": self.mime_type, "data": self.data}
