"""
JSONL event logger.

- Write one JSON object per line
- Output to stdout
- No buffering, no batching
- Optional severity filtering via an event's "level" key
"""

from __future__ import annotations

import json
import sys
import time
from typing import Any, Callable, Mapping, TextIO


_LEVELS: dict[str, int] = {
    "DEBUG": 10,
    "INFO": 20,
    "WARNING": 30,
    "ERROR": 40,
}


# ------------------------------------------------------------------
# Explicit output sink (patchable in tests)
# ------------------------------------------------------------------

def _stdout_print(line: str) -> None:
    sys.stdout.write(line + "\n")
    sys.stdout.flush()

def _discard(line: str) -> None:
    del line

_print: Callable[[str], None] = _stdout_print

_min_level: int = _LEVELS["DEBUG"]


def now_ms() -> int:
    """Wall-clock milliseconds for event timestamps."""
    return time.time_ns() // 1_000_000


def set_log_level(level: str) -> None:
    """
    Drop events whose "level" ranks below `level`.

    Events without a "level" key are always written.
    """
    global _min_level
    _min_level = _LEVELS.get(level.upper(), _LEVELS["INFO"])


def configure_logging(*, level: str = "INFO", enabled: bool = True, stream: TextIO | None = None) -> None:
    """
    Process-wide logger setup, called once at startup.

    `enabled=False` discards every event; `stream` defaults to stdout.
    """
    global _print
    set_log_level(level)

    if not enabled:
        _print = _discard
        return

    target = stream if stream is not None else sys.stdout

    def _write(line: str) -> None:
        target.write(line + "\n")
        target.flush()

    _print = _write


def log_event(event: Mapping[str, Any]) -> None:
    """
    Write a single JSONL event to stdout.

    The caller supplies a fully-formed event dict (event_type plus any
    correlation fields). A missing ts_ms is filled in.

    This function never raises.
    """
    level = event.get("level")
    if isinstance(level, str) and _LEVELS.get(level.upper(), _LEVELS["INFO"]) < _min_level:
        return

    if "ts_ms" not in event:
        event = {"ts_ms": now_ms(), **event}

    try:
        line = json.dumps(event, ensure_ascii=False, separators=(",", ":"))
    except (TypeError, ValueError) as e:
        # Last-resort fallback; logging must never crash the engine
        fallback: dict[str, Any] = {
            "ts_ms": event.get("ts_ms"),
            "event_type": "LOGGER_SERIALIZATION_ERROR",
            "error": str(e),
            "original_event_repr": repr(event),
        }
        line = json.dumps(fallback, ensure_ascii=False, separators=(",", ":"))

    _print(line)
