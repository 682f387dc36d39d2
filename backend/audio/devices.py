"""
sounddevice-backed microphone and speaker.

The PortAudio callbacks run on a real-time thread. They never block:
- the microphone copies the block and hands it to the event loop
- the speaker mixes already-scheduled buffers under a short lock
"""

from __future__ import annotations

import asyncio
from typing import Any

import numpy as np
import sounddevice as sd

from audio.capture import FrameSink
from audio.frames import AudioFrame
from audio.mixer import ScheduledMixer
from errors import ConfigurationError
from observability.logger import log_event, now_ms
from spec import (
    CAPTURE_BLOCK_SAMPLES,
    CAPTURE_CHANNELS,
    CAPTURE_SAMPLE_RATE_HZ,
    PLAYBACK_CHANNELS,
    PLAYBACK_SAMPLE_RATE_HZ,
)


class SoundDeviceMicrophone:
    """CaptureDevice over a PortAudio input stream."""

    def __init__(
        self,
        *,
        device: int | str | None = None,
        sample_rate_hz: int = CAPTURE_SAMPLE_RATE_HZ,
        block_samples: int = CAPTURE_BLOCK_SAMPLES,
    ) -> None:
        self._device = device
        self._sample_rate_hz = sample_rate_hz
        self._block_samples = block_samples
        self._stream: sd.InputStream | None = None

    def open(self, on_frame: FrameSink) -> None:
        if self._stream is not None:
            return

        loop = asyncio.get_running_loop()

        def _callback(indata: np.ndarray, frames: int, time_info: Any, status: sd.CallbackFlags) -> None:
            if status:
                loop.call_soon_threadsafe(log_event, {
                    "event_type": "capture_status",
                    "level": "WARNING",
                    "status": str(status),
                })
            frame = AudioFrame(samples=indata[:, 0].copy(), ts_ms=now_ms())
            loop.call_soon_threadsafe(on_frame, frame)

        try:
            stream = sd.InputStream(
                samplerate=self._sample_rate_hz,
                channels=CAPTURE_CHANNELS,
                dtype="float32",
                blocksize=self._block_samples,
                device=self._device,
                callback=_callback,
            )
            stream.start()
        except sd.PortAudioError as e:
            raise ConfigurationError(f"audio capture device unavailable: {e}") from e

        self._stream = stream

    def close(self) -> None:
        stream, self._stream = self._stream, None
        if stream is None:
            return
        stream.stop()
        stream.close()


class SoundDeviceSpeaker:
    """
    PlaybackOutput over a PortAudio output stream.

    Scheduled buffers are mixed into the output at their start time on
    the stream clock (see ScheduledMixer).
    """

    def __init__(
        self,
        *,
        device: int | str | None = None,
        sample_rate_hz: int = PLAYBACK_SAMPLE_RATE_HZ,
    ) -> None:
        self._device = device
        self._sample_rate_hz = sample_rate_hz
        self._stream: sd.OutputStream | None = None
        self._mixer = ScheduledMixer(sample_rate_hz)

    def open(self) -> None:
        if self._stream is not None:
            return
        try:
            stream = sd.OutputStream(
                samplerate=self._sample_rate_hz,
                channels=PLAYBACK_CHANNELS,
                dtype="float32",
                device=self._device,
                callback=self._callback,
            )
            stream.start()
        except sd.PortAudioError as e:
            raise ConfigurationError(f"audio output device unavailable: {e}") from e
        self._stream = stream

    def close(self) -> None:
        self.stop_all()
        stream, self._stream = self._stream, None
        if stream is None:
            return
        stream.stop()
        stream.close()

    def current_time(self) -> float:
        if self._stream is None:
            return 0.0
        return float(self._stream.time)

    def play_at(self, samples: np.ndarray, start_s: float) -> None:
        self._mixer.schedule(samples, start_s)

    def stop_all(self) -> None:
        self._mixer.clear()

    def _callback(self, outdata: np.ndarray, frames: int, time_info: Any, status: sd.CallbackFlags) -> None:
        outdata.fill(0)
        self._mixer.render(outdata[:, 0], float(time_info.outputBufferDacTime))
