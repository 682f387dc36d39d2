"""Prompt builders for the response and report collaborators."""

from __future__ import annotations

import time
from typing import Sequence

from context.transmission_log import TransmissionVector
from telemetry.models import TelemetrySummary


NEGOTIATE_SYSTEM_PROMPT_V1: str = """
You are the counterparty in a high-stakes negotiation training simulation.

Stay in character. Be terse, strategic and adversarial. Never mention that
this is a simulation, a model, or a prompt. Output plain prose only.
""".strip()


NEGOTIATE_MISSION: str = "Analyze the negotiation leverage. Provide a strategic counter-move."


REPORT_SYSTEM_PROMPT_V1: str = "ROLE: Expert Negotiation Psychologist & Linguistics Coach."


REPORT_STRUCTURE: str = """
{
  "strengths": [{"point": "string", "example": "quote from transcript"}],
  "missedOpportunities": [{"context": "what happened", "betterAlternative": "what they should have said"}],
  "psychologicalTacticsDetected": [{"tacticName": "string", "description": "string"}],
  "confidenceTrajectoryAnalysis": "A narrative paragraph explaining how the user's confidence evolved.",
  "trainingRecommendations": ["string", "string"],
  "overallGrade": "S" | "A" | "B" | "C" | "F"
}
""".strip()


def build_negotiate_prompt(prompt: str, history: Sequence[TransmissionVector]) -> str:
    context = "\n".join(f"{v.origin.value}: {v.payload}" for v in history)
    return (
        "CONTEXT_HISTORY:\n"
        f"{context}\n\n"
        "CURRENT_INPUT:\n"
        f"{prompt}\n\n"
        "MISSION:\n"
        f"{NEGOTIATE_MISSION}"
    )


def build_report_prompt(history: Sequence[TransmissionVector], summary: TelemetrySummary) -> str:
    transcript = "\n".join(
        f"[{time.strftime('%H:%M:%S', time.localtime(v.timestamp / 1000))}] {v.origin.value}: {v.payload}"
        for v in history
    )
    return (
        "TASK: Analyze the following negotiation transcript and telemetry data. Generate a JSON report.\n\n"
        "TELEMETRY SUMMARY:\n"
        f"- Average Confidence Score: {summary.average_confidence * 100:.1f}%\n"
        f"- Peak Verbal Velocity: {summary.peak_velocity:.0f} WPM\n"
        f"- Average Hesitation Markers: {summary.average_hesitation:.1f} per segment\n\n"
        "TRANSCRIPT:\n"
        f"{transcript}\n\n"
        "REQUIREMENTS:\n"
        "Output a single VALID JSON object matching this structure exactly:\n"
        f"{REPORT_STRUCTURE}"
    )
