"""
Voice link state enumeration.

Rules:
- This enum defines ONLY the link lifecycle states.
- No behavior, no helper methods, no side effects.
- Transitions are defined exclusively in orchestrator.voice_link.
"""

from __future__ import annotations

from enum import Enum


class LinkState(str, Enum):
    """
    Lifecycle of the live link to the remote agent.

    IDLE:        no session, no devices held
    CONNECTING:  devices acquired, remote session requested
    ACTIVE:      audio flowing in both directions
    DEGRADED:    transport failed; a retry may be pending
    CLOSED:      retries exhausted; manual reconnect required
    """

    IDLE = "IDLE"
    CONNECTING = "CONNECTING"
    ACTIVE = "ACTIVE"
    DEGRADED = "DEGRADED"
    CLOSED = "CLOSED"
