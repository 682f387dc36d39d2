"""
Gapless playback scheduling for remote agent audio.

A single cursor (`next_start_s`) decides where each decoded buffer
starts on the output clock. Buffers are laid end to end; after silence
the cursor snaps forward to the clock so playback never starts in the
past.
"""

from __future__ import annotations

import asyncio
from typing import Protocol

import numpy as np

from audio.pcm import decode_pcm16_base64
from spec import PLAYBACK_SAMPLE_RATE_HZ


class PlaybackOutput(Protocol):
    """Output device seen by the scheduler and owned by the voice link."""

    def open(self) -> None:
        """Acquire the output device."""
        ...

    def close(self) -> None:
        """Release the output device. Idempotent."""
        ...

    def current_time(self) -> float:
        """Output clock in seconds."""
        ...

    def play_at(self, samples: np.ndarray, start_s: float) -> None:
        """Start `samples` at clock time `start_s`."""
        ...

    def stop_all(self) -> None:
        """Drop everything scheduled or playing."""
        ...


class PlaybackScheduler:
    """
    Owns the playback cursor.

    All cursor reads and writes happen under one asyncio.Lock, so
    concurrent decode completions cannot interleave their
    read-modify-write.
    """

    def __init__(
        self,
        output: PlaybackOutput,
        *,
        sample_rate_hz: int = PLAYBACK_SAMPLE_RATE_HZ,
    ) -> None:
        self._output = output
        self._sample_rate_hz = sample_rate_hz
        self._next_start_s = 0.0
        self._lock = asyncio.Lock()

    @property
    def next_start_s(self) -> float:
        return self._next_start_s

    async def enqueue(self, samples: np.ndarray, duration_s: float) -> float:
        """
        Schedule one buffer.

        Returns:
            The clock time the buffer was scheduled to start.
        """
        async with self._lock:
            now = self._output.current_time()
            if self._next_start_s < now:
                self._next_start_s = now

            start_s = self._next_start_s
            self._output.play_at(samples, start_s)
            self._next_start_s = start_s + duration_s
            return start_s

    async def enqueue_encoded(self, data: str) -> float:
        """
        Decode a base64 PCM16 chunk and schedule it.

        Raises:
            DataCorruptionError for a malformed payload.
        """
        samples = decode_pcm16_base64(data)
        return await self.enqueue(samples, samples.size / self._sample_rate_hz)

    def reset(self) -> None:
        """Stop output and rewind the cursor."""
        self._output.stop_all()
        self._next_start_s = 0.0
