"""
Live voice link state machine.

Responsibilities:
- Own the remote session handle, the generation token, and the retry timer
- Acquire / release capture and playback devices
- Wire encoded microphone frames to the session and inbound messages to
  playback and the transcript callback
- Reconnect through a CircuitBreaker; give up into CLOSED

States:
    IDLE → CONNECTING → ACTIVE ⇄ DEGRADED → CLOSED
    sever(): any state → IDLE

Guarantees:
- At most one session and at most one outstanding connect attempt
- Every async completion carries the generation it was started under;
  completions from an older generation are discarded (a session that
  arrives after sever() is closed immediately)
- A cancelled retry timer never reconnects
- sever() is idempotent and safe before any connect()
"""

from __future__ import annotations

import asyncio
from typing import Callable

from adapters.live.base import InboundMessage, LiveCallbacks, LiveSession, LiveTransport
from audio.capture import AudioCaptureEncoder, CaptureDevice
from audio.frames import AudioFrame, TransportEnvelope
from audio.playback import PlaybackOutput, PlaybackScheduler
from errors import ConfigurationError, DataCorruptionError, TransportError
from observability.logger import log_event
from orchestrator.enums.breaker import BreakerState
from orchestrator.enums.state import LinkState
from orchestrator.events import AdvisoryKind, LinkAdvisory
from orchestrator.retry import CircuitBreaker, RetryDecision, RetryState
from spec import CAPTURE_BUFFER_SAMPLES_DEFAULT


TranscriptSink = Callable[[str, bool], None]
AmplitudeSink = Callable[[float], None]
AdvisorySink = Callable[[LinkAdvisory], None]


_ALLOWED_TRANSITIONS: dict[LinkState, frozenset[LinkState]] = {
    LinkState.IDLE: frozenset({LinkState.CONNECTING}),
    LinkState.CONNECTING: frozenset({LinkState.ACTIVE, LinkState.DEGRADED, LinkState.IDLE}),
    LinkState.ACTIVE: frozenset({LinkState.DEGRADED, LinkState.IDLE}),
    LinkState.DEGRADED: frozenset({LinkState.CONNECTING, LinkState.CLOSED, LinkState.IDLE}),
    LinkState.CLOSED: frozenset({LinkState.CONNECTING, LinkState.IDLE}),
}


class VoiceLink:
    """
    One live link per instance.

    The capture-active flag is read through `capture_active()` on every
    encoded frame; the link never stores it.
    """

    def __init__(
        self,
        *,
        transport: LiveTransport,
        microphone: CaptureDevice,
        speaker: PlaybackOutput,
        breaker: CircuitBreaker,
        on_transcript: TranscriptSink,
        on_amplitude: AmplitudeSink,
        capture_active: Callable[[], bool],
        on_advisory: AdvisorySink | None = None,
        capture_buffer_samples: int = CAPTURE_BUFFER_SAMPLES_DEFAULT,
        session_id: str | None = None,
    ) -> None:
        self._transport = transport
        self._microphone = microphone
        self._speaker = speaker
        self._breaker = breaker
        self._on_transcript = on_transcript
        self._capture_active = capture_active
        self._on_advisory = on_advisory
        self._session_id = session_id

        self._encoder = AudioCaptureEncoder(
            on_amplitude=on_amplitude,
            on_envelope=self._on_envelope,
            capacity=capture_buffer_samples,
        )
        self._playback = PlaybackScheduler(speaker)

        self._state = LinkState.IDLE
        self._generation = 0
        self._session: LiveSession | None = None
        self._retry_task: asyncio.Task[None] | None = None
        self._send_tasks: set[asyncio.Task[None]] = set()
        self._devices_open = False
        self.suppressed_frames = 0

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def state(self) -> LinkState:
        return self._state

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def is_active(self) -> bool:
        return self._state is LinkState.ACTIVE

    @property
    def has_pending_retry(self) -> bool:
        return self._retry_task is not None and not self._retry_task.done()

    @property
    def retry_state(self) -> RetryState:
        return self._breaker.retry_state

    @property
    def playback(self) -> PlaybackScheduler:
        return self._playback

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        """
        Manually open the link.

        No-op while CONNECTING or ACTIVE. From DEGRADED the pending retry
        is replaced by an immediate attempt on the same retry budget; from
        IDLE or CLOSED the breaker starts fresh.

        Raises:
            ConfigurationError if a device or credential is missing.
        """
        if self._state in (LinkState.CONNECTING, LinkState.ACTIVE):
            self._log("link_connect_ignored", reason=f"already {self._state.value}")
            return

        self._cancel_retry_timer()
        if self._state is not LinkState.DEGRADED or self._breaker.state is BreakerState.OPEN:
            self._breaker.reset()

        await self._attempt_connect(reason="manual_connect")

    async def sever(self) -> None:
        """
        Tear the link down from any state.

        Everything that invalidates in-flight work happens before the
        first await, so a concurrent completion can never observe a
        half-severed link.
        """
        self._generation += 1
        self._cancel_retry_timer()
        self._cancel_send_tasks()

        session, self._session = self._session, None
        self._release_devices()
        self._encoder.reset()
        self._breaker.reset()

        if self._state is not LinkState.IDLE:
            self._transition(LinkState.IDLE, reason="sever")

        if session is not None:
            await session.close()

    # ------------------------------------------------------------------
    # Connect / failure handling
    # ------------------------------------------------------------------

    async def _attempt_connect(self, *, reason: str) -> None:
        self._generation += 1
        generation = self._generation
        self._transition(LinkState.CONNECTING, reason=reason)

        try:
            self._acquire_devices()
            session = await self._transport.connect(self._callbacks_for(generation))
        except ConfigurationError as e:
            if generation == self._generation:
                self._release_devices()
                self._breaker.reset()
                self._transition(LinkState.IDLE, reason="configuration_error")
                self._advise(LinkAdvisory(kind=AdvisoryKind.CONFIGURATION, message=str(e)))
            raise
        except (TransportError, OSError) as e:
            await self._handle_transport_failure(generation, e)
            return
        except Exception as e:
            self._log(
                "link_connect_unexpected_error",
                level="ERROR",
                error=f"{type(e).__name__}: {e}",
            )
            await self._handle_transport_failure(generation, e)
            return

        if generation != self._generation:
            self._log("link_stale_session_discarded", stale_generation=generation)
            await session.close()
            return

        recovered_from = self._breaker.retry_state.attempt
        self._session = session
        self._breaker.record_success()
        self._transition(LinkState.ACTIVE, reason="session_open")

        if recovered_from:
            self._advise(LinkAdvisory(
                kind=AdvisoryKind.RECOVERED,
                message=f"link restored after {recovered_from} failed attempt(s)",
                attempt=recovered_from,
            ))

    async def _handle_transport_failure(self, generation: int, error: BaseException) -> None:
        if generation != self._generation:
            return
        if self._state not in (LinkState.CONNECTING, LinkState.ACTIVE):
            return

        self._transition(LinkState.DEGRADED, reason=f"{type(error).__name__}: {error}")
        self._cancel_send_tasks()

        session, self._session = self._session, None
        if session is not None:
            await session.close()
            if generation != self._generation:
                return

        decision = self._breaker.record_failure(error)
        if decision.retry:
            self._schedule_retry(generation, decision)
            return

        self._release_devices()
        self._transition(LinkState.CLOSED, reason="retries_exhausted")
        self._advise(LinkAdvisory(
            kind=AdvisoryKind.CIRCUIT_OPEN,
            message="CIRCUIT_BREAKER_OPEN: live link unavailable, manual reconnect required",
            attempt=decision.attempt,
        ))

    def _schedule_retry(self, generation: int, decision: RetryDecision) -> None:
        """
        Start the cancellable reconnect timer for `generation`.

        The timer re-checks the generation after sleeping, so even a timer
        that slipped past cancellation cannot reconnect a severed link.
        """
        self._cancel_retry_timer()
        delay_s = decision.delay_s or 0.0

        async def _retry_timer() -> None:
            try:
                await asyncio.sleep(delay_s)
            except asyncio.CancelledError:
                return

            if generation != self._generation or self._state is not LinkState.DEGRADED:
                return

            self._retry_task = None
            self._breaker.clear_deadline()
            try:
                await self._attempt_connect(reason=f"retry_{decision.attempt}")
            except ConfigurationError:
                # Already surfaced through the CONFIGURATION advisory
                return

        self._retry_task = asyncio.create_task(_retry_timer())
        self._retry_task.add_done_callback(self._on_retry_done)
        self._advise(LinkAdvisory(
            kind=AdvisoryKind.RETRY_SCHEDULED,
            message=f"reconnecting in {delay_s:g}s",
            attempt=decision.attempt,
            retry_in_s=delay_s,
        ))

    def _on_retry_done(self, task: asyncio.Task[None]) -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            self._log("link_retry_failed", level="ERROR", error=f"{type(error).__name__}: {error}")

    def _callbacks_for(self, generation: int) -> LiveCallbacks:
        async def on_message(message: InboundMessage) -> None:
            if generation == self._generation:
                await self._handle_inbound(message)

        async def on_error(error: Exception) -> None:
            await self._handle_transport_failure(generation, error)

        async def on_close() -> None:
            await self._handle_transport_failure(
                generation, TransportError("remote closed the session")
            )

        return LiveCallbacks(on_message=on_message, on_error=on_error, on_close=on_close)

    # ------------------------------------------------------------------
    # Data plane
    # ------------------------------------------------------------------

    def on_capture_frame(self, frame: AudioFrame) -> None:
        """Microphone frame entry point (event loop thread)."""
        self._encoder.ingest(frame)

    def _on_envelope(self, envelope: TransportEnvelope) -> None:
        session = self._session
        if self._state is not LinkState.ACTIVE or session is None or not self._capture_active():
            self.suppressed_frames += 1
            return

        generation = self._generation
        task = asyncio.create_task(self._send(generation, session, envelope))
        self._send_tasks.add(task)
        task.add_done_callback(self._send_tasks.discard)

    async def _send(self, generation: int, session: LiveSession, envelope: TransportEnvelope) -> None:
        try:
            await session.send_audio(envelope)
        except TransportError as e:
            await self._handle_transport_failure(generation, e)

    async def _handle_inbound(self, message: InboundMessage) -> None:
        if message.transcript:
            self._on_transcript(message.transcript, message.transcript_final)

        for chunk in message.audio_chunks:
            try:
                await self._playback.enqueue_encoded(chunk)
            except DataCorruptionError as e:
                self._log("playback_chunk_discarded", level="WARNING", error=str(e))

    # ------------------------------------------------------------------
    # Resources
    # ------------------------------------------------------------------

    def _acquire_devices(self) -> None:
        if self._devices_open:
            return
        self._microphone.open(self.on_capture_frame)
        try:
            self._speaker.open()
        except ConfigurationError:
            self._microphone.close()
            raise
        self._devices_open = True

    def _release_devices(self) -> None:
        if not self._devices_open:
            return
        self._devices_open = False
        self._microphone.close()
        self._playback.reset()
        self._speaker.close()

    def _cancel_retry_timer(self) -> None:
        task, self._retry_task = self._retry_task, None
        if task is not None and not task.done():
            task.cancel()

    def _cancel_send_tasks(self) -> None:
        # A failing send reports from inside its own task; don't cancel it.
        current = asyncio.current_task()
        for task in list(self._send_tasks):
            if task is not current:
                task.cancel()
        self._send_tasks.clear()

    # ------------------------------------------------------------------
    # Observability
    # ------------------------------------------------------------------

    def _transition(self, to_state: LinkState, *, reason: str) -> None:
        from_state = self._state
        if to_state not in _ALLOWED_TRANSITIONS[from_state]:
            raise RuntimeError(f"illegal link transition {from_state.value} -> {to_state.value}")

        self._state = to_state
        log_event({
            "event_type": "LINK_STATE_CHANGED",
            "session_id": self._session_id,
            "from_state": from_state.value,
            "to_state": to_state.value,
            "generation": self._generation,
            "retry_attempt": self._breaker.retry_state.attempt,
            "reason": reason,
        })

    def _advise(self, advisory: LinkAdvisory) -> None:
        self._log(
            "link_advisory",
            level="WARNING" if advisory.terminal else "INFO",
            kind=advisory.kind.value,
            message=advisory.message,
            attempt=advisory.attempt,
        )
        if self._on_advisory is not None:
            self._on_advisory(advisory)

    def _log(self, event_type: str, **fields: object) -> None:
        log_event({
            "event_type": event_type,
            "session_id": self._session_id,
            "state": self._state.value,
            "generation": self._generation,
            **fields,
        })
