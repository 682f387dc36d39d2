# pylint: disable=missing-module-docstring,missing-function-docstring

import asyncio
from typing import Any

import pytest

from errors import ConfigurationError, TransportError, ValidationError
from orchestrator import retry
from orchestrator.enums.breaker import BreakerState
from orchestrator.retry import CircuitBreaker, CircuitOpen, exponential_backoff_s


@pytest.fixture(autouse=True)
def _quiet_logs(monkeypatch: pytest.MonkeyPatch) -> list[dict[str, Any]]:
    events: list[dict[str, Any]] = []
    monkeypatch.setattr(retry, "log_event", events.append)
    return events


class Sleeps:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class Flaky:
    """Fails `failures` times, then returns "ok"."""

    def __init__(self, failures: int, exc: Exception | None = None) -> None:
        self.failures = failures
        self.calls = 0
        self.exc = exc or TransportError("boom")

    async def __call__(self) -> str:
        self.calls += 1
        if self.calls <= self.failures:
            raise self.exc
        return "ok"


# ---------------------------------------------------------------------
# Backoff
# ---------------------------------------------------------------------

def test_exponential_backoff():
    assert [exponential_backoff_s(a) for a in (1, 2, 3)] == [2.0, 4.0, 8.0]


# ---------------------------------------------------------------------
# execute()
# ---------------------------------------------------------------------

def test_success_after_transient_failures():
    sleeps = Sleeps()
    breaker = CircuitBreaker(name="t", sleep=sleeps)
    op = Flaky(failures=2)

    assert asyncio.run(breaker.execute(op)) == "ok"
    assert op.calls == 3
    assert sleeps.delays == [2.0, 4.0]
    assert breaker.state is BreakerState.CLOSED
    assert breaker.retry_state.attempt == 0


def test_opens_after_exactly_max_attempts():
    sleeps = Sleeps()
    breaker = CircuitBreaker(name="t", max_attempts=3, sleep=sleeps)
    op = Flaky(failures=10)

    result = asyncio.run(breaker.execute(op))

    assert isinstance(result, CircuitOpen)
    assert result.attempts == 3
    assert "boom" in (result.last_error or "")
    assert op.calls == 3
    assert sleeps.delays == [2.0, 4.0]
    assert breaker.state is BreakerState.OPEN


def test_open_breaker_does_not_invoke_operation_until_reset():
    breaker = CircuitBreaker(name="t", max_attempts=1, sleep=Sleeps())
    op = Flaky(failures=1)

    assert isinstance(asyncio.run(breaker.execute(op)), CircuitOpen)
    assert isinstance(asyncio.run(breaker.execute(op)), CircuitOpen)
    assert op.calls == 1

    breaker.reset()
    assert asyncio.run(breaker.execute(op)) == "ok"
    assert op.calls == 2


@pytest.mark.parametrize("exc", [ConfigurationError("no key"), ValidationError("empty")])
def test_fatal_errors_are_not_retried(exc: Exception):
    breaker = CircuitBreaker(name="t", sleep=Sleeps())
    op = Flaky(failures=5, exc=exc)

    with pytest.raises(type(exc)):
        asyncio.run(breaker.execute(op))
    assert op.calls == 1
    assert breaker.retry_state.attempt == 0


# ---------------------------------------------------------------------
# Decision API
# ---------------------------------------------------------------------

def test_record_failure_decisions(_quiet_logs: list[dict[str, Any]]):
    clock_now = [100.0]
    breaker = CircuitBreaker(name="link", clock=lambda: clock_now[0])

    first = breaker.record_failure(TransportError("a"))
    assert first.retry and first.attempt == 1 and first.delay_s == 2.0
    assert breaker.retry_state.backoff_deadline == 102.0

    second = breaker.record_failure("b")
    assert second.retry and second.delay_s == 4.0

    third = breaker.record_failure("c")
    assert not third.retry and third.attempt == 3
    assert breaker.state is BreakerState.OPEN

    # Further failures are not counted once OPEN
    assert breaker.record_failure("d").attempt == 3

    kinds = [e["event_type"] for e in _quiet_logs]
    assert kinds == ["retry_scheduled", "retry_scheduled", "circuit_open"]


def test_record_success_clears_state():
    breaker = CircuitBreaker(name="t")
    breaker.record_failure("x")
    breaker.record_success()
    assert breaker.retry_state == retry.RetryState()


def test_max_attempts_must_be_positive():
    with pytest.raises(ValueError):
        CircuitBreaker(name="t", max_attempts=0)
