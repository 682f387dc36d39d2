"""
Timing helpers for observability.

- Durations use monotonic time
- One measurement = one METRIC_TIMER log event
- Prefer the `timed()` context manager so timers cannot leak
"""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Any, Iterator

from observability.logger import log_event, now_ms


@contextmanager
def timed(
    name: str,
    *,
    session_id: str | None = None,
    details: dict[str, Any] | None = None,
) -> Iterator[dict[str, Any]]:
    """
    Measure the enclosed block and emit one METRIC_TIMER event.

    The yielded dict is merged into the event's details, so the block can
    attach outcome fields discovered while it runs:

        with timed("response_generation", session_id=sid) as extra:
            outcome = await service.generate(...)
            extra["circuit_open"] = outcome.circuit_open

    Exceptions inside the block do NOT suppress timing.
    """
    extra: dict[str, Any] = {}
    start_ns = time.monotonic_ns()
    try:
        yield extra
    finally:
        duration_ms = (time.monotonic_ns() - start_ns) // 1_000_000
        log_event({
            "ts_ms": now_ms(),
            "event_type": "METRIC_TIMER",
            "metric": name,
            "value_ms": duration_ms,
            "session_id": session_id,
            "details": {**(details or {}), **extra},
        })
