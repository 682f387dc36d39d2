"""
Microphone capture encoder.

Turns successive capture blocks into:
- one amplitude (RMS) event per block, always
- one TransportEnvelope per `capacity` buffered samples

Runs on the event loop after the device callback hands a block over.
Never raises on sample content.
"""

from __future__ import annotations

from typing import Callable, Protocol

import numpy as np

from audio.frames import AudioFrame, TransportEnvelope
from audio.pcm import compute_rms, encode_pcm16_base64
from observability.logger import log_event
from spec import CAPTURE_BUFFER_SAMPLES_DEFAULT


AmplitudeSink = Callable[[float], None]
EnvelopeSink = Callable[[TransportEnvelope], None]
FrameSink = Callable[[AudioFrame], None]


class CaptureDevice(Protocol):
    """Microphone seen by the voice link."""

    def open(self, on_frame: FrameSink) -> None:
        """
        Acquire the device and start delivering frames.

        `on_frame` is invoked on the event loop, never on the audio
        thread. Raises ConfigurationError if the device is unavailable.
        """
        ...

    def close(self) -> None:
        """Stop delivery and release the device. Idempotent."""
        ...


class AudioCaptureEncoder:
    """
    Fixed-capacity sample buffer with PCM16 envelope emission.

    The encoder exclusively owns its buffer; callers only see the
    amplitude and envelope callbacks.
    """

    def __init__(
        self,
        *,
        on_amplitude: AmplitudeSink,
        on_envelope: EnvelopeSink,
        capacity: int = CAPTURE_BUFFER_SAMPLES_DEFAULT,
    ) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be > 0")

        self._on_amplitude = on_amplitude
        self._on_envelope = on_envelope
        self._capacity = capacity
        self._buffer = np.zeros(capacity, dtype=np.float32)
        self._index = 0
        self.dropped_frames = 0

    @property
    def buffered(self) -> int:
        return self._index

    def ingest(self, frame: AudioFrame) -> None:
        """Consume one capture block."""
        samples = np.asarray(frame.samples, dtype=np.float32).reshape(-1)
        if samples.size == 0:
            self._on_amplitude(0.0)
            return

        if not np.all(np.isfinite(samples)):
            self.dropped_frames += 1
            self._on_amplitude(0.0)
            log_event({
                "ts_ms": frame.ts_ms,
                "event_type": "capture_frame_dropped",
                "level": "WARNING",
                "reason": "non_finite_sample",
                "samples": int(samples.size),
            })
            return

        self._on_amplitude(compute_rms(samples))

        offset = 0
        while offset < samples.size:
            take = min(self._capacity - self._index, samples.size - offset)
            self._buffer[self._index:self._index + take] = samples[offset:offset + take]
            self._index += take
            offset += take

            if self._index >= self._capacity:
                self._flush(frame.ts_ms)

    def reset(self) -> None:
        """Discard any partially filled buffer."""
        self._index = 0

    def _flush(self, ts_ms: int) -> None:
        envelope = TransportEnvelope(
            data=encode_pcm16_base64(self._buffer),
            sample_count=self._capacity,
            ts_ms=ts_ms,
        )
        self._index = 0
        self._on_envelope(envelope)
