"""
Voice link advisory events.

Rules:
- Events describe facts that have occurred.
- Events carry data only (no behavior).
- Delivered to the owner of the link through its on_advisory callback.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class AdvisoryKind(str, Enum):
    """
    RETRY_SCHEDULED:
        Transport failed; an automatic reconnect is pending.

    CIRCUIT_OPEN:
        Reconnect attempts are exhausted. Terminal: the link is CLOSED and
        only a manual connect() revives it. Callers switch to offline mode.

    CONFIGURATION:
        A required capability is missing. Terminal and never retried.

    RECOVERED:
        The link became ACTIVE again after at least one failure.
    """

    RETRY_SCHEDULED = "RETRY_SCHEDULED"
    CIRCUIT_OPEN = "CIRCUIT_OPEN"
    CONFIGURATION = "CONFIGURATION"
    RECOVERED = "RECOVERED"


@dataclass(frozen=True)
class LinkAdvisory:
    """One advisory about the link's health."""
    kind: AdvisoryKind
    message: str
    attempt: int = 0
    retry_in_s: float | None = None

    @property
    def terminal(self) -> bool:
        return self.kind in (AdvisoryKind.CIRCUIT_OPEN, AdvisoryKind.CONFIGURATION)
