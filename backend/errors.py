"""
Error taxonomy and sentinel results.

Classification decides handling:

ConfigurationError:
    A required capability is missing (audio device, remote credential,
    malformed config). Fatal, surfaced immediately, never retried.

TransportError:
    Connect / send / receive failure on a remote link. Retried through a
    CircuitBreaker; exhaustion becomes a terminal advisory, not a crash.

DataCorruptionError:
    Unknown scenario id, malformed decode payload, invalid registry data.
    Logged and answered with a sentinel; the engine keeps running.

ValidationError:
    Missing or empty required input. Rejected synchronously.
"""

from __future__ import annotations

from enum import Enum


class TelemetryEngineError(Exception):
    """Base class for all engine errors."""


class ConfigurationError(TelemetryEngineError):
    """A required capability or setting is missing."""


class TransportError(TelemetryEngineError):
    """A remote link failed to connect, send, or receive."""


class DataCorruptionError(TelemetryEngineError):
    """Reference data or an inbound payload could not be interpreted."""


class ValidationError(TelemetryEngineError):
    """A required input was missing or empty."""


class Sentinel(str, Enum):
    """
    Terminal sentinel values returned instead of raising.

    These are plain strings on the wire so collaborators that only know
    text (UI, dialogue log) can display them unchanged.
    """

    CIRCUIT_BREAKER_ACTIVATED = (
        "CIRCUIT_BREAKER_ACTIVATED: UNABLE_TO_PROCESS_THOUGHT_PATTERN"
    )
    SCENARIO_DATA_CORRUPTION = "ERROR: SCENARIO_DATA_CORRUPTION"
    EMPTY_RESPONSE = "DATA_CORRUPTION_EMPTY_RESPONSE"
