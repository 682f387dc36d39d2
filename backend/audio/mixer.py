"""
Time-scheduled mixing for the output callback.

Buffers are placed on the output stream clock by start time. Each render
call fills one callback window:
- buffers starting after the window are kept untouched
- buffers overlapping the window contribute their overlapping slice
- buffers whose last sample is at or before the window end are dropped

Thread-safe: schedule()/clear() run on the event loop, render() on the
audio thread.
"""

from __future__ import annotations

import threading

import numpy as np


class ScheduledMixer:
    """Mixes scheduled mono float32 buffers into callback windows."""

    def __init__(self, sample_rate_hz: int) -> None:
        if sample_rate_hz <= 0:
            raise ValueError("sample_rate_hz must be > 0")
        self._sample_rate_hz = sample_rate_hz
        self._scheduled: list[tuple[float, np.ndarray]] = []
        self._lock = threading.Lock()

    @property
    def pending(self) -> int:
        with self._lock:
            return len(self._scheduled)

    def schedule(self, samples: np.ndarray, start_s: float) -> None:
        buffer = np.asarray(samples, dtype=np.float32).reshape(-1)
        with self._lock:
            self._scheduled.append((start_s, buffer))

    def clear(self) -> None:
        with self._lock:
            self._scheduled.clear()

    def render(self, out: np.ndarray, window_start_s: float) -> None:
        """Add every buffer's slice for this window into `out` (1-D)."""
        frames = out.shape[0]

        with self._lock:
            remaining: list[tuple[float, np.ndarray]] = []
            for start_s, samples in self._scheduled:
                offset = int(round((start_s - window_start_s) * self._sample_rate_hz))
                if offset >= frames:
                    remaining.append((start_s, samples))
                    continue

                # Negative offset: the head already played in earlier windows
                dst_from = max(0, offset)
                src_from = dst_from - offset
                count = min(frames - dst_from, samples.size - src_from)
                if count > 0:
                    out[dst_from:dst_from + count] += samples[src_from:src_from + count]

                if src_from + max(count, 0) < samples.size:
                    remaining.append((start_s, samples))
            self._scheduled = remaining
