"""
Remote response generation behind a circuit breaker.

Failures never escape as exceptions: exhaustion (or an already-open
breaker) yields GenerationOutcome(circuit_open=True) carrying the
CIRCUIT_BREAKER_ACTIVATED sentinel so the caller can fall back offline.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Sequence

from adapters.llm.base import GenerationRequest, GenerationResult, ResponseGenerator
from context.transmission_log import TransmissionVector
from errors import Sentinel, TransportError, ValidationError
from observability.logger import log_event
from observability.metrics import timed
from orchestrator.enums.breaker import BreakerState
from orchestrator.retry import CircuitBreaker, CircuitOpen
from spec import LATENCY_PROBE_PROMPT


@dataclass(frozen=True)
class GenerationOutcome:
    text: str
    circuit_open: bool = False
    model_used: str | None = None
    token_consumption: int | None = None
    thinking_duration_ms: int = 0


class ResponseService:
    def __init__(
        self,
        generator: ResponseGenerator,
        breaker: CircuitBreaker,
        *,
        session_id: str | None = None,
    ) -> None:
        self._generator = generator
        self._breaker = breaker
        self._session_id = session_id

    @property
    def breaker_state(self) -> BreakerState:
        return self._breaker.state

    def reset(self) -> None:
        self._breaker.reset()

    async def generate(self, prompt: str, history: Sequence[TransmissionVector] = ()) -> GenerationOutcome:
        """
        Ask the remote collaborator for a counter-move.

        Raises:
            ValidationError if `prompt` is empty or whitespace.
        """
        if not prompt or not prompt.strip():
            raise ValidationError("prompt is required")

        request = GenerationRequest(prompt=prompt, history=tuple(history))

        async def _attempt() -> GenerationResult:
            result = await self._generator.generate(request)
            if result.error is not None:
                raise TransportError(result.error)
            return result

        start = time.monotonic()
        with timed("response_generation", session_id=self._session_id) as extra:
            result = await self._breaker.execute(_attempt)
            extra["circuit_open"] = isinstance(result, CircuitOpen)
        thinking_ms = int((time.monotonic() - start) * 1000)

        if isinstance(result, CircuitOpen):
            log_event({
                "event_type": "response_circuit_open",
                "level": "WARNING",
                "session_id": self._session_id,
                "attempts": result.attempts,
                "last_error": result.last_error,
            })
            return GenerationOutcome(
                text=Sentinel.CIRCUIT_BREAKER_ACTIVATED.value,
                circuit_open=True,
                thinking_duration_ms=thinking_ms,
            )

        return GenerationOutcome(
            text=result.text or Sentinel.EMPTY_RESPONSE.value,
            model_used=result.model_used,
            token_consumption=result.token_consumption,
            thinking_duration_ms=thinking_ms,
        )

    async def measure_latency(self) -> int:
        """
        Round-trip time of a minimal probe request in ms, or -1 on failure.

        Bypasses the breaker; never raises for vendor failures.
        """
        start = time.monotonic()
        result = await self._generator.generate(GenerationRequest(prompt=LATENCY_PROBE_PROMPT))
        if result.error is not None:
            log_event({
                "event_type": "latency_probe_failed",
                "level": "WARNING",
                "session_id": self._session_id,
                "error": result.error,
            })
            return -1
        return int((time.monotonic() - start) * 1000)
