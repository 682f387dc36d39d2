"""
Session wiring.

Builds a NegotiationSession from AppConfig with the concrete adapters:
Gemini Live transport, sounddevice devices, OpenAI responder/reporter.
Missing credentials degrade the session instead of failing here: without
an OpenAI key there is no remote responder (offline only); without a
Gemini key the live link raises ConfigurationError on connect().
"""

from __future__ import annotations

import uuid
from typing import Callable

from openai import AsyncOpenAI

from adapters.live.gemini_live import GeminiLiveTransport
from adapters.llm.openai_generator import OpenAIResponseGenerator
from adapters.report.openai_report import OpenAIReportGenerator
from audio.devices import SoundDeviceMicrophone, SoundDeviceSpeaker
from config import AppConfig
from observability.logger import log_event
from orchestrator.events import LinkAdvisory
from orchestrator.retry import CircuitBreaker
from orchestrator.voice_link import VoiceLink
from scenarios.registry import ScenarioRegistry
from services.response_service import ResponseService
from session.negotiation_session import NegotiationSession
from simulation.offline_engine import OfflineSimulationEngine


def load_registry(config: AppConfig) -> ScenarioRegistry:
    if config.scenario_registry_path:
        return ScenarioRegistry.from_json(config.scenario_registry_path)
    return ScenarioRegistry.default()


def build_session(
    config: AppConfig,
    *,
    scenario_id: str | None = None,
    on_advisory: Callable[[LinkAdvisory], None] | None = None,
) -> NegotiationSession:
    session_id = uuid.uuid4().hex
    registry = load_registry(config)

    response_service: ResponseService | None = None
    report_generator: OpenAIReportGenerator | None = None
    if config.openai_api_key:
        client = AsyncOpenAI(api_key=config.openai_api_key)
        response_service = ResponseService(
            OpenAIResponseGenerator(client=client, model=config.llm_model, session_id=session_id),
            CircuitBreaker(name="response_generation", max_attempts=config.max_retry_attempts),
            session_id=session_id,
        )
        report_generator = OpenAIReportGenerator(client=client, model=config.llm_model)

    session = NegotiationSession(
        registry=registry,
        offline_engine=OfflineSimulationEngine(registry, session_id=session_id),
        response_service=response_service,
        report_generator=report_generator,
        scenario_id=scenario_id,
        offline_delay_ms=config.offline_response_delay_ms,
        utterance_window_s=config.utterance_window_s,
        session_id=session_id,
    )

    link = VoiceLink(
        transport=GeminiLiveTransport(
            api_key=config.gemini_api_key,
            model=config.live_model,
            voice_name=config.voice_name,
        ),
        microphone=SoundDeviceMicrophone(),
        speaker=SoundDeviceSpeaker(),
        breaker=CircuitBreaker(name="voice_link", max_attempts=config.max_retry_attempts),
        on_transcript=session.on_transcript,
        on_amplitude=session.on_amplitude,
        capture_active=session.is_capture_active,
        on_advisory=on_advisory,
        capture_buffer_samples=config.capture_buffer_samples,
        session_id=session_id,
    )
    session.attach_link(link)

    log_event({
        "event_type": "session_built",
        "session_id": session_id,
        "env": config.env,
        "scenario_id": session.active_scenario.id,
        "remote_responder": response_service is not None,
        "live_credentials": bool(config.gemini_api_key),
    })
    return session
