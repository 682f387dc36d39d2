"""
Live agent transport contract.

Purpose:
- Define how the voice link opens a bidirectional session with the
  remote conversational agent and exchanges audio / transcript units.
- Keep reconnection, retry, and lifecycle policy OUT of the transport.

Rules:
- No retries here. A failed connect raises TransportError (or
  ConfigurationError for missing credentials) and that is all.
- After connect() returns, failures are reported through callbacks,
  never raised into the receive loop's owner.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Awaitable, Callable

from audio.frames import TransportEnvelope


@dataclass(frozen=True)
class InboundMessage:
    """
    One decoded server message.

    transcript:
        Operator speech transcription fragment, if present.
    transcript_final:
        True when the fragment closes the current utterance.
    audio_chunks:
        base64 PCM16 24 kHz mono payloads, in arrival order.
    turn_complete:
        The agent finished its turn.
    """
    transcript: str | None = None
    transcript_final: bool = False
    audio_chunks: tuple[str, ...] = ()
    turn_complete: bool = False


@dataclass(frozen=True)
class LiveCallbacks:
    """Callbacks a session reports into. All run on the event loop."""
    on_message: Callable[[InboundMessage], Awaitable[None]]
    on_error: Callable[[Exception], Awaitable[None]]
    on_close: Callable[[], Awaitable[None]]


class LiveSession(ABC):
    """Opaque handle to one open remote session."""

    @abstractmethod
    async def send_audio(self, envelope: TransportEnvelope) -> None:
        """
        Deliver one outbound frame.

        Fire-and-forget: no acknowledgement. Raises TransportError if the
        session can no longer send.
        """
        raise NotImplementedError

    @abstractmethod
    async def close(self) -> None:
        """
        Close the session.

        Idempotent. Must not invoke on_close/on_error for a close the
        owner requested.
        """
        raise NotImplementedError


class LiveTransport(ABC):
    """Factory for live sessions."""

    @abstractmethod
    async def connect(self, callbacks: LiveCallbacks) -> LiveSession:
        """
        Open a session and start delivering inbound messages.

        Raises:
            ConfigurationError: credentials missing (never retried)
            TransportError: any network / handshake failure
        """
        raise NotImplementedError
