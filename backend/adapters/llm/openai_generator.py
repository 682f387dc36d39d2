"""OpenAI chat-completions response generator."""

from __future__ import annotations

from typing import Any

import openai

from adapters.llm.base import GenerationRequest, GenerationResult, ResponseGenerator
from adapters.llm.prompts import NEGOTIATE_SYSTEM_PROMPT_V1, build_negotiate_prompt
from observability.logger import log_event


class OpenAIResponseGenerator(ResponseGenerator):
    """
    Non-streaming completion against an injected AsyncOpenAI client.

    One instance may serve many sequential requests.
    """

    def __init__(self, *, client: Any, model: str, session_id: str | None = None) -> None:
        self._client = client
        self._model = model
        self._session_id = session_id

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        messages = [
            {"role": "system", "content": NEGOTIATE_SYSTEM_PROMPT_V1},
            {"role": "user", "content": build_negotiate_prompt(request.prompt, request.history)},
        ]
        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=messages,
            )
        except openai.OpenAIError as e:
            log_event({
                "event_type": "llm_generation_failed",
                "level": "WARNING",
                "session_id": self._session_id,
                "model": self._model,
                "error": f"{type(e).__name__}: {e}",
            })
            return GenerationResult(error=f"{type(e).__name__}: {e}", model_used=self._model)

        return GenerationResult(
            text=self._extract_text(response),
            model_used=getattr(response, "model", None) or self._model,
            token_consumption=self._extract_tokens(response),
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _extract_text(response: Any) -> str:
        try:
            return response.choices[0].message.content or ""
        except (AttributeError, IndexError):
            return ""

    @staticmethod
    def _extract_tokens(response: Any) -> int | None:
        usage = getattr(response, "usage", None)
        return getattr(usage, "total_tokens", None)
