"""
Bounded sliding window of EntropyMetric records.

- Strict append order
- Oldest evicted first once the window is full
- Readers get immutable tuple snapshots
"""

from __future__ import annotations

from collections import deque
from typing import Deque

from telemetry.models import EntropyMetric
from spec import ENTROPY_WINDOW_MAX


class EntropyWindow:
    """Most recent metrics, at most `max_len` of them."""

    def __init__(self, *, max_len: int = ENTROPY_WINDOW_MAX) -> None:
        if max_len <= 0:
            raise ValueError("max_len must be > 0")
        self._metrics: Deque[EntropyMetric] = deque(maxlen=max_len)

    def append(self, metric: EntropyMetric) -> None:
        self._metrics.append(metric)

    def clear(self) -> None:
        self._metrics.clear()

    def snapshot(self) -> tuple[EntropyMetric, ...]:
        return tuple(self._metrics)

    def latest(self) -> EntropyMetric | None:
        return self._metrics[-1] if self._metrics else None

    def __len__(self) -> int:
        return len(self._metrics)
