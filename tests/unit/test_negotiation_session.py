# pylint: disable=missing-module-docstring,missing-function-docstring

import asyncio
from typing import Any, Mapping, Sequence

import pytest

from adapters.llm.base import GenerationRequest, GenerationResult, ResponseGenerator
from adapters.report.base import ReportGenerator
from context.transmission_log import Origin, TransmissionVector
from errors import DataCorruptionError, TransportError, ValidationError
from observability import logger
from orchestrator.retry import CircuitBreaker
from scenarios.registry import ScenarioRegistry
from services.response_service import ResponseService
from session.negotiation_session import CognitiveState, NegotiationSession
from simulation.offline_engine import OfflineSimulationEngine
from telemetry.models import EntropyMetric


@pytest.fixture(autouse=True)
def _log_lines(monkeypatch: pytest.MonkeyPatch) -> list[str]:
    lines: list[str] = []
    monkeypatch.setattr(logger, "_print", lines.append)
    return lines


# ---------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------

class StubLink:
    def __init__(self, active: bool) -> None:
        self.is_active = active
        self.connects = 0
        self.severs = 0

    async def connect(self) -> None:
        self.connects += 1
        self.is_active = True

    async def sever(self) -> None:
        self.severs += 1
        self.is_active = False


class EchoGenerator(ResponseGenerator):
    def __init__(self, error: str | None = None) -> None:
        self.error = error
        self.requests: list[GenerationRequest] = []

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        self.requests.append(request)
        if self.error:
            return GenerationResult(error=self.error)
        return GenerationResult(text=f"Counter to: {request.prompt}", model_used="gpt-test", token_consumption=5)


class FakeReporter(ReportGenerator):
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.calls: list[tuple[int, int]] = []

    async def generate_report(
        self,
        history: Sequence[TransmissionVector],
        metrics: Sequence[EntropyMetric],
    ) -> Mapping[str, Any]:
        self.calls.append((len(history), len(metrics)))
        if self.error is not None:
            raise self.error
        return {"overallGrade": "A"}


class Sleeps:
    def __init__(self) -> None:
        self.delays: list[float] = []
        self.hook = None

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        if self.hook is not None:
            self.hook()


async def no_sleep(_delay: float) -> None:
    return None


def make_session(
    *,
    link: StubLink | None = None,
    generator: EchoGenerator | None = None,
    reporter: FakeReporter | None = None,
    sleeps: Sleeps | None = None,
) -> NegotiationSession:
    registry = ScenarioRegistry.default()
    responder = None
    if generator is not None:
        responder = ResponseService(generator, CircuitBreaker(name="llm", sleep=no_sleep))
    session = NegotiationSession(
        registry=registry,
        offline_engine=OfflineSimulationEngine(registry),
        response_service=responder,
        report_generator=reporter,
        sleep=sleeps or Sleeps(),
    )
    if link is not None:
        session.attach_link(link)  # type: ignore[arg-type]
    return session


# ---------------------------------------------------------------------
# Construction / scenario
# ---------------------------------------------------------------------

def test_defaults_to_first_scenario():
    session = make_session()
    assert session.active_scenario.id == "SCN-ALPHA-01"
    assert session.cognitive_state is CognitiveState.IDLE


def test_unknown_initial_scenario_is_rejected():
    registry = ScenarioRegistry.default()
    with pytest.raises(DataCorruptionError):
        NegotiationSession(
            registry=registry,
            offline_engine=OfflineSimulationEngine(registry),
            scenario_id="SCN-NOPE",
        )


def test_change_scenario_clears_dialogue_and_metrics():
    session = make_session()
    asyncio.run(session.transmit("We reject"))
    assert session.transmissions() and session.metrics()

    session.change_scenario("SCN-GAMMA-09")

    assert session.active_scenario.id == "SCN-GAMMA-09"
    assert session.transmissions() == ()
    assert session.metrics() == ()


def test_change_to_unknown_scenario_keeps_state():
    session = make_session()
    asyncio.run(session.transmit("We reject"))

    with pytest.raises(DataCorruptionError):
        session.change_scenario("SCN-NOPE")

    assert session.active_scenario.id == "SCN-ALPHA-01"
    assert len(session.transmissions()) == 2


# ---------------------------------------------------------------------
# Transmit: offline branch
# ---------------------------------------------------------------------

def test_offline_fallback_without_link():
    sleeps = Sleeps()
    session = make_session(sleeps=sleeps)

    reply = asyncio.run(session.transmit("We reject the valuation"))

    assert reply is not None
    assert reply.origin is Origin.AGENT
    assert reply.payload.startswith("[SIMULATION_MODE]: Your rejection is noted")
    assert sleeps.delays == [1.5]
    assert [v.origin for v in session.transmissions()] == [Origin.OPERATOR, Origin.AGENT]
    assert len(session.metrics()) == 1
    assert session.cognitive_state is CognitiveState.IDLE


def test_offline_fallback_when_link_inactive():
    generator = EchoGenerator()
    session = make_session(link=StubLink(active=False), generator=generator)

    reply = asyncio.run(session.transmit("yes okay"))

    assert reply is not None and reply.payload.startswith("[SIMULATION_MODE]: Submission detected.")
    assert generator.requests == []


def test_reply_discarded_after_scenario_change_during_delay():
    sleeps = Sleeps()
    session = make_session(sleeps=sleeps)
    sleeps.hook = lambda: session.change_scenario("SCN-BETA-04")

    reply = asyncio.run(session.transmit("We reject"))

    assert reply is None
    assert session.transmissions() == ()
    assert session.active_scenario.id == "SCN-BETA-04"


@pytest.mark.parametrize("text", ["", "   "])
def test_empty_transmission_is_rejected(text: str):
    session = make_session()
    with pytest.raises(ValidationError):
        asyncio.run(session.transmit(text))
    assert session.transmissions() == ()


# ---------------------------------------------------------------------
# Transmit: live branch
# ---------------------------------------------------------------------

def test_live_transmit_uses_remote_responder():
    generator = EchoGenerator()
    sleeps = Sleeps()
    session = make_session(link=StubLink(active=True), generator=generator, sleeps=sleeps)

    asyncio.run(session.transmit("first"))
    reply = asyncio.run(session.transmit("second"))

    assert reply is not None
    assert reply.payload == "Counter to: second"
    assert reply.metadata is not None
    assert reply.metadata.model_used == "gpt-test"
    assert reply.metadata.token_consumption == 5
    # History excludes the line being answered
    assert [v.payload for v in generator.requests[1].history] == ["first", "Counter to: first"]
    assert sleeps.delays == []


def test_live_circuit_open_falls_back_offline():
    session = make_session(link=StubLink(active=True), generator=EchoGenerator(error="503"))

    reply = asyncio.run(session.transmit("our pipeline tech"))

    assert reply is not None
    assert reply.payload == "[SIMULATION_MODE]: The pipeline is speculative. Give me concrete revenue figures for Q3."
    assert reply.metadata is None


def test_reset_closes_responder_breaker():
    generator = EchoGenerator(error="503")
    session = make_session(link=StubLink(active=True), generator=generator)
    asyncio.run(session.transmit("hello"))
    assert len(generator.requests) == 3

    session.reset()
    generator.error = None
    reply = asyncio.run(session.transmit("hello again"))

    assert reply is not None and reply.payload == "Counter to: hello again"
    assert session.transmissions()[0].payload == "hello again"


# ---------------------------------------------------------------------
# Telemetry callbacks
# ---------------------------------------------------------------------

def test_transcript_metric_uses_latest_intensity_and_target():
    session = make_session()
    session.on_amplitude(0.3)

    metric = session.on_transcript("We categorically reject the valuation", False)

    assert metric is not None
    assert metric.spectral_intensity == pytest.approx(0.3)
    assert metric.levenshtein_delta > 0
    assert session.metrics() == (metric,)


def test_blank_transcript_is_ignored():
    session = make_session()
    assert session.on_transcript("   ", True) is None
    assert session.metrics() == ()


def test_toggle_capture():
    session = make_session()
    assert session.is_capture_active()
    assert session.toggle_capture() is False
    assert not session.is_capture_active()


# ---------------------------------------------------------------------
# Terminate / analyze / latency
# ---------------------------------------------------------------------

def test_terminate_and_analyze_stores_report():
    link = StubLink(active=False)
    reporter = FakeReporter()
    session = make_session(link=link, reporter=reporter)
    asyncio.run(session.transmit("We reject"))

    report = asyncio.run(session.terminate_and_analyze())

    assert report == {"overallGrade": "A"}
    assert session.analysis_report == report
    assert link.severs == 1
    assert reporter.calls == [(2, 1)]


def test_report_failure_is_logged_and_returns_none(_log_lines: list[str]):
    session = make_session(reporter=FakeReporter(error=TransportError("down")))

    assert asyncio.run(session.terminate_and_analyze()) is None
    assert session.analysis_report is None
    assert any("analysis_generation_failed" in line for line in _log_lines)


def test_latency_without_responder():
    session = make_session()
    assert asyncio.run(session.measure_latency()) == -1
    assert session.network_latency_ms == -1


def test_connect_without_link_is_rejected():
    with pytest.raises(ValidationError):
        asyncio.run(make_session().connect())
