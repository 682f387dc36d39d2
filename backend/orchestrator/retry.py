"""
Bounded retry policy (circuit breaker).

Purpose:
- Centralize retry rules for remote calls and link reconnection
- Keep retry state immutable and owned by one breaker instance
- Report a terminal OPEN state after a fixed number of consecutive
  failures instead of retrying forever

Two ways to use a breaker:
- `execute(operation)`: retry loop with backoff sleeps, for one-shot
  remote calls. Exhaustion returns a CircuitOpen sentinel.
- `record_failure()` / `record_success()`: decision-only API for callers
  that own their own timers (the voice link reconnects this way).
"""
from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, replace
from typing import Awaitable, Callable, TypeVar

from errors import ConfigurationError, ValidationError
from observability.logger import log_event
from orchestrator.enums.breaker import BreakerState
from spec import BACKOFF_BASE_S, MAX_RETRY_ATTEMPTS


T = TypeVar("T")

BackoffFn = Callable[[int], float]
SleepFn = Callable[[float], Awaitable[None]]


# =============================================================================
# Backoff
# =============================================================================

def exponential_backoff_s(attempt: int) -> float:
    """Delay before the next attempt after `attempt` failures: 2^attempt s."""
    return BACKOFF_BASE_S ** attempt


# =============================================================================
# Retry State
# =============================================================================

@dataclass(frozen=True)
class RetryState:
    """
    Immutable retry bookkeeping.

    attempt:
        Consecutive failures recorded since the last success or reset.
    last_error:
        repr-safe description of the most recent failure.
    backoff_deadline:
        Monotonic time before which no retry should start, or None.
    """
    attempt: int = 0
    last_error: str | None = None
    backoff_deadline: float | None = None


@dataclass(frozen=True)
class RetryDecision:
    """Outcome of recording one failure."""
    retry: bool
    attempt: int
    delay_s: float | None = None


@dataclass(frozen=True)
class CircuitOpen:
    """Typed sentinel returned when the breaker refuses or gives up."""
    breaker: str
    attempts: int
    last_error: str | None


# =============================================================================
# Circuit Breaker
# =============================================================================

class CircuitBreaker:
    """
    Consecutive-failure breaker with exponential backoff.

    CLOSED while fewer than `max_attempts` consecutive failures have been
    recorded; OPEN afterwards until `reset()` or a recorded success.
    """

    def __init__(
        self,
        *,
        name: str,
        max_attempts: int = MAX_RETRY_ATTEMPTS,
        backoff: BackoffFn = exponential_backoff_s,
        sleep: SleepFn = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")

        self._name = name
        self._max_attempts = max_attempts
        self._backoff = backoff
        self._sleep = sleep
        self._clock = clock
        self._retry = RetryState()

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def name(self) -> str:
        return self._name

    @property
    def max_attempts(self) -> int:
        return self._max_attempts

    @property
    def retry_state(self) -> RetryState:
        return self._retry

    @property
    def state(self) -> BreakerState:
        if self._retry.attempt >= self._max_attempts:
            return BreakerState.OPEN
        return BreakerState.CLOSED

    # ------------------------------------------------------------------
    # Decision API
    # ------------------------------------------------------------------

    def record_failure(self, error: BaseException | str) -> RetryDecision:
        """
        Count one failure and decide whether another attempt is allowed.

        Once OPEN, further failures are not counted.
        """
        if self.state is BreakerState.OPEN:
            return RetryDecision(retry=False, attempt=self._retry.attempt)

        attempt = self._retry.attempt + 1
        description = error if isinstance(error, str) else f"{type(error).__name__}: {error}"

        if attempt >= self._max_attempts:
            self._retry = RetryState(attempt=attempt, last_error=description)
            log_event({
                "event_type": "circuit_open",
                "level": "WARNING",
                "breaker": self._name,
                "attempts": attempt,
                "last_error": description,
            })
            return RetryDecision(retry=False, attempt=attempt)

        delay_s = self._backoff(attempt)
        self._retry = RetryState(
            attempt=attempt,
            last_error=description,
            backoff_deadline=self._clock() + delay_s,
        )
        log_event({
            "event_type": "retry_scheduled",
            "level": "INFO",
            "breaker": self._name,
            "attempt": attempt,
            "delay_s": delay_s,
            "last_error": description,
        })
        return RetryDecision(retry=True, attempt=attempt, delay_s=delay_s)

    def record_success(self) -> None:
        if self._retry.attempt:
            log_event({
                "event_type": "circuit_recovered",
                "breaker": self._name,
                "after_failures": self._retry.attempt,
            })
        self._retry = RetryState()

    def reset(self) -> None:
        """Explicit reset; the only way out of OPEN besides a success."""
        self._retry = RetryState()

    def clear_deadline(self) -> None:
        self._retry = replace(self._retry, backoff_deadline=None)

    def open_sentinel(self) -> CircuitOpen:
        return CircuitOpen(
            breaker=self._name,
            attempts=self._retry.attempt,
            last_error=self._retry.last_error,
        )

    # ------------------------------------------------------------------
    # Retry loop
    # ------------------------------------------------------------------

    async def execute(self, operation: Callable[[], Awaitable[T]]) -> T | CircuitOpen:
        """
        Run `operation` until it succeeds or the breaker opens.

        ConfigurationError and ValidationError are never retried and
        propagate unchanged. Cancellation propagates.
        """
        if self.state is BreakerState.OPEN:
            return self.open_sentinel()

        while True:
            try:
                result = await operation()
            except (ConfigurationError, ValidationError):
                raise
            except Exception as e:  # pylint: disable=broad-exception-caught
                decision = self.record_failure(e)
                if not decision.retry:
                    return self.open_sentinel()
                assert decision.delay_s is not None
                await self._sleep(decision.delay_s)
                self.clear_deadline()
            else:
                self.record_success()
                return result
