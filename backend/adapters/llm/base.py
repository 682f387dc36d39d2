"""
Response-generation adapter contract.

Purpose:
- Define the interface for one-shot "generate a counter-move" calls.
- Keep retries, timing and fallback OUT of the adapter.

Rules:
- Adapters never raise for vendor failures; they return
  GenerationResult(error=...) and let ResponseService decide.
- Adapters must NOT retry internally.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from context.transmission_log import TransmissionVector


@dataclass(frozen=True)
class GenerationRequest:
    prompt: str
    history: tuple[TransmissionVector, ...] = ()


@dataclass(frozen=True)
class GenerationResult:
    """Exactly one of `text` / `error` is meaningful."""
    text: str | None = None
    error: str | None = None
    model_used: str | None = None
    token_consumption: int | None = None


class ResponseGenerator(ABC):
    """
    The adapter is a *dumb pipe*:
    request -> vendor -> result.

    Caller responsibilities (NOT here):
    - Retry policy / circuit breaking
    - Latency measurement
    - Offline fallback
    """

    @abstractmethod
    async def generate(self, request: GenerationRequest) -> GenerationResult:
        """
        Produce a single reply for `request`.

        Contract:
        - Returns GenerationResult(text=...) on success (text may be empty).
        - Returns GenerationResult(error=...) on any vendor failure.
        - Must NOT retry internally.
        """
        raise NotImplementedError
