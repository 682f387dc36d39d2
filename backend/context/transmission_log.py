"""
Operator / agent dialogue log.

Responsibilities:
- Store TransmissionVectors in creation order
- Keep timestamps monotonic (late clocks are clamped up, never reordered)
- Provide tuple snapshots for read-only collaborators

Non-responsibilities:
- No truncation (the log is unbounded within a session)
- No persistence
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from observability.logger import log_event, now_ms


class Origin(str, Enum):
    OPERATOR = "OPERATOR"
    AGENT = "AGENT"


@dataclass(frozen=True)
class TransmissionMetadata:
    """Generation details attached to agent transmissions."""
    thinking_duration_ms: int | None = None
    model_used: str | None = None
    token_consumption: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "thinkingDurationMs": self.thinking_duration_ms,
            "modelUsed": self.model_used,
            "tokenConsumption": self.token_consumption,
        }


@dataclass(frozen=True)
class TransmissionVector:
    """Single dialogue entry."""
    origin: Origin
    payload: str
    timestamp: int
    metadata: TransmissionMetadata | None = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": self.id,
            "origin": self.origin.value,
            "payload": self.payload,
            "timestamp": self.timestamp,
        }
        if self.metadata is not None:
            out["metadata"] = self.metadata.to_dict()
        return out


class TransmissionLog:
    """
    Append-only log owned by one NegotiationSession.

    Invariants:
    - Entries are stored in append order
    - timestamp is non-decreasing across entries
    """

    def __init__(self, session_id: str | None = None) -> None:
        self._session_id = session_id
        self._vectors: list[TransmissionVector] = []

    def append(
        self,
        origin: Origin,
        payload: str,
        *,
        metadata: TransmissionMetadata | None = None,
        timestamp: int | None = None,
    ) -> TransmissionVector:
        ts = now_ms() if timestamp is None else timestamp
        if self._vectors and ts < self._vectors[-1].timestamp:
            log_event({
                "event_type": "transmission_timestamp_clamped",
                "level": "DEBUG",
                "session_id": self._session_id,
                "requested_ts": ts,
                "clamped_ts": self._vectors[-1].timestamp,
            })
            ts = self._vectors[-1].timestamp

        vector = TransmissionVector(origin=origin, payload=payload, timestamp=ts, metadata=metadata)
        self._vectors.append(vector)
        return vector

    def clear(self) -> None:
        self._vectors.clear()

    def snapshot(self) -> tuple[TransmissionVector, ...]:
        return tuple(self._vectors)

    def __len__(self) -> int:
        return len(self._vectors)
