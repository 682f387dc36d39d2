"""
Circuit breaker state enumeration.

Rules:
- Values only; the breaker decides transitions.
"""

from __future__ import annotations

from enum import Enum


class BreakerState(str, Enum):
    """
    CLOSED:
        Attempts are allowed.

    OPEN:
        The configured number of consecutive failures was reached.
        No automatic attempt happens until an explicit reset.
    """

    CLOSED = "CLOSED"
    OPEN = "OPEN"
