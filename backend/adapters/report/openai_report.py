"""OpenAI JSON-mode post-session report generator."""

from __future__ import annotations

import json
from typing import Any, Mapping, Sequence

import openai

from adapters.llm.prompts import REPORT_SYSTEM_PROMPT_V1, build_report_prompt
from adapters.report.base import ReportGenerator
from context.transmission_log import TransmissionVector
from errors import DataCorruptionError, TransportError
from telemetry.models import EntropyMetric
from telemetry.pipeline import summarize_metrics


class OpenAIReportGenerator(ReportGenerator):
    def __init__(self, *, client: Any, model: str) -> None:
        self._client = client
        self._model = model

    async def generate_report(
        self,
        history: Sequence[TransmissionVector],
        metrics: Sequence[EntropyMetric],
    ) -> Mapping[str, Any]:
        prompt = build_report_prompt(history, summarize_metrics(metrics))
        try:
            response = await self._client.chat.completions.create(
                model=self._model,
                messages=[
                    {"role": "system", "content": REPORT_SYSTEM_PROMPT_V1},
                    {"role": "user", "content": prompt},
                ],
                response_format={"type": "json_object"},
            )
        except openai.OpenAIError as e:
            raise TransportError(f"report generation failed: {type(e).__name__}: {e}") from e

        try:
            raw = response.choices[0].message.content or "{}"
        except (AttributeError, IndexError) as e:
            raise DataCorruptionError("report response has no content") from e

        return parse_report(raw)


def parse_report(raw: str) -> Mapping[str, Any]:
    """
    Decode a JSON report, tolerating markdown code fences.

    Raises:
        DataCorruptionError if the text is not a JSON object.
    """
    cleaned = raw.replace("```json", "").replace("```", "").strip()
    try:
        report = json.loads(cleaned or "{}")
    except json.JSONDecodeError as e:
        raise DataCorruptionError(f"report is not valid JSON: {e}") from e
    if not isinstance(report, dict):
        raise DataCorruptionError("report must be a JSON object")
    return report
