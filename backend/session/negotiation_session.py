"""
Operator negotiation session.

Per-session container that composes the engine:
- Owns the active scenario, the capture-active flag and the latest
  acoustic intensity (explicit state, passed into the metrics pipeline)
- Owns the EntropyWindow and the TransmissionLog
- Routes manual transmissions to the remote responder when the live link
  is ACTIVE, otherwise (or when the responder's breaker is open) to the
  offline simulation engine
- Terminates the link and requests the post-session report

The live link is optional and attached after construction because its
callbacks point back into this session.
"""

from __future__ import annotations

import asyncio
import uuid
from enum import Enum
from typing import Any, Awaitable, Callable, Mapping

from adapters.report.base import ReportGenerator
from context.transmission_log import Origin, TransmissionLog, TransmissionMetadata, TransmissionVector
from errors import DataCorruptionError, TransportError, ValidationError
from observability.logger import log_event, now_ms
from observability.metrics import timed
from orchestrator.voice_link import VoiceLink
from scenarios.models import ScenarioMatrix
from scenarios.registry import ScenarioRegistry
from services.response_service import ResponseService
from simulation.offline_engine import OfflineSimulationEngine
from spec import OFFLINE_RESPONSE_DELAY_MS_DEFAULT, UTTERANCE_WINDOW_S_DEFAULT
from telemetry.models import EntropyMetric
from telemetry.pipeline import compute_entropy_metric
from telemetry.window import EntropyWindow


class CognitiveState(str, Enum):
    IDLE = "IDLE"
    THINKING = "THINKING"


class NegotiationSession:
    """
    Invariants:
    - The metric window and the dialogue log always belong to
      `active_scenario`; switching scenario clears both
    - A reply computed before a reset / scenario change is discarded
    """

    def __init__(
        self,
        *,
        registry: ScenarioRegistry,
        offline_engine: OfflineSimulationEngine,
        response_service: ResponseService | None = None,
        report_generator: ReportGenerator | None = None,
        scenario_id: str | None = None,
        offline_delay_ms: int = OFFLINE_RESPONSE_DELAY_MS_DEFAULT,
        utterance_window_s: float = UTTERANCE_WINDOW_S_DEFAULT,
        session_id: str | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.session_id = session_id or uuid.uuid4().hex
        self._registry = registry
        self._offline = offline_engine
        self._responder = response_service
        self._reporter = report_generator
        self._offline_delay_s = offline_delay_ms / 1000
        self._utterance_window_s = utterance_window_s
        self._sleep = sleep

        if scenario_id is None:
            self._scenario = registry.first()
        else:
            scenario = registry.get(scenario_id)
            if scenario is None:
                raise DataCorruptionError(f"unknown scenario id: {scenario_id}")
            self._scenario = scenario

        self._link: VoiceLink | None = None
        self._window = EntropyWindow()
        self._log = TransmissionLog(self.session_id)
        self._epoch = 0

        self.capture_active = True
        self.latest_intensity = 0.0
        self.cognitive_state = CognitiveState.IDLE
        self.analysis_report: Mapping[str, Any] | None = None
        self.network_latency_ms: int | None = None

    # ------------------------------------------------------------------
    # Wiring
    # ------------------------------------------------------------------

    def attach_link(self, link: VoiceLink) -> None:
        self._link = link

    @property
    def link(self) -> VoiceLink | None:
        return self._link

    def is_capture_active(self) -> bool:
        return self.capture_active

    def toggle_capture(self) -> bool:
        self.capture_active = not self.capture_active
        return self.capture_active

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def registry(self) -> ScenarioRegistry:
        return self._registry

    @property
    def active_scenario(self) -> ScenarioMatrix:
        return self._scenario

    def metrics(self) -> tuple[EntropyMetric, ...]:
        return self._window.snapshot()

    def transmissions(self) -> tuple[TransmissionVector, ...]:
        return self._log.snapshot()

    # ------------------------------------------------------------------
    # Link callbacks
    # ------------------------------------------------------------------

    def on_amplitude(self, rms: float) -> None:
        self.latest_intensity = rms

    def on_transcript(self, text: str, final: bool = False) -> EntropyMetric | None:
        """Score a transcript fragment against the active scenario."""
        if not text.strip():
            return None

        metric = compute_entropy_metric(
            text,
            self._scenario.target_rhetoric_pattern,
            self.latest_intensity,
            self._utterance_window_s,
            timestamp_ms=now_ms(),
        )
        self._window.append(metric)
        log_event({
            "event_type": "entropy_metric_recorded",
            "level": "DEBUG",
            "session_id": self.session_id,
            "final": final,
            **metric.to_dict(),
        })
        return metric

    # ------------------------------------------------------------------
    # Operator actions
    # ------------------------------------------------------------------

    async def transmit(self, text: str) -> TransmissionVector | None:
        """
        Send one operator line and append the agent's reply.

        Returns the AGENT vector, or None when the reply was discarded
        because the session was reset meanwhile.

        Raises:
            ValidationError on empty input.
        """
        if not text or not text.strip():
            raise ValidationError("transmission payload is required")

        epoch = self._epoch
        history = self._log.snapshot()
        scenario_id = self._scenario.id

        self._log.append(Origin.OPERATOR, text)
        self.cognitive_state = CognitiveState.THINKING
        self.on_transcript(text, True)

        metadata: TransmissionMetadata | None = None
        try:
            if self._link is not None and self._link.is_active and self._responder is not None:
                outcome = await self._responder.generate(text, history)
                if outcome.circuit_open:
                    log_event({
                        "event_type": "fallback_triggered",
                        "level": "WARNING",
                        "session_id": self.session_id,
                        "scenario_id": scenario_id,
                        "reason": "response_circuit_open",
                    })
                    reply = self._offline.respond(scenario_id, text)
                else:
                    reply = outcome.text
                    metadata = TransmissionMetadata(
                        thinking_duration_ms=outcome.thinking_duration_ms,
                        model_used=outcome.model_used,
                        token_consumption=outcome.token_consumption,
                    )
            else:
                log_event({
                    "event_type": "fallback_triggered",
                    "session_id": self.session_id,
                    "scenario_id": scenario_id,
                    "reason": "link_inactive",
                })
                await self._sleep(self._offline_delay_s)
                reply = self._offline.respond(scenario_id, text)
        finally:
            if epoch == self._epoch:
                self.cognitive_state = CognitiveState.IDLE

        if epoch != self._epoch:
            log_event({
                "event_type": "stale_reply_discarded",
                "session_id": self.session_id,
                "scenario_id": scenario_id,
            })
            return None

        return self._log.append(Origin.AGENT, reply, metadata=metadata)

    def change_scenario(self, scenario_id: str) -> ScenarioMatrix:
        """
        Switch scenario; clears dialogue and metrics.

        Raises:
            DataCorruptionError if `scenario_id` is unknown.
        """
        scenario = self._registry.get(scenario_id)
        if scenario is None:
            raise DataCorruptionError(f"unknown scenario id: {scenario_id}")

        log_event({
            "event_type": "scenario_shift",
            "session_id": self.session_id,
            "previous": self._scenario.id,
            "new": scenario.id,
        })
        self._scenario = scenario
        self._clear()
        return scenario

    def reset(self) -> None:
        """Clear dialogue, metrics and report; close the responder's breaker."""
        self._clear()
        self.analysis_report = None
        if self._responder is not None:
            self._responder.reset()
        log_event({"event_type": "session_reset", "session_id": self.session_id})

    async def connect(self) -> None:
        if self._link is None:
            raise ValidationError("no live link attached")
        await self._link.connect()

    async def sever(self) -> None:
        if self._link is not None:
            await self._link.sever()

    async def terminate_and_analyze(self) -> Mapping[str, Any] | None:
        """
        Sever the link and request the post-session report.

        Report failures are logged and yield None; the session stays usable.
        """
        await self.sever()
        if self._reporter is None:
            return None

        try:
            with timed("report_generation", session_id=self.session_id) as extra:
                report = await self._reporter.generate_report(self._log.snapshot(), self._window.snapshot())
                extra["keys"] = sorted(report)
        except (TransportError, DataCorruptionError) as e:
            log_event({
                "event_type": "analysis_generation_failed",
                "level": "ERROR",
                "session_id": self.session_id,
                "error": f"{type(e).__name__}: {e}",
            })
            return None

        self.analysis_report = report
        return report

    async def measure_latency(self) -> int:
        """Probe the responder; -1 when unavailable."""
        if self._responder is None:
            latency = -1
        else:
            latency = await self._responder.measure_latency()
        self.network_latency_ms = latency
        return latency

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _clear(self) -> None:
        self._epoch += 1
        self._log.clear()
        self._window.clear()
        self.cognitive_state = CognitiveState.IDLE
