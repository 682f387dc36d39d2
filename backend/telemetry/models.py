"""
Telemetry record types.

Pure data containers. Field names are snake_case; `to_dict()` renders
the camelCase keys the UI and report collaborators consume.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class RhetoricalImpact:
    """Lexical / acoustic scores for one utterance."""
    clarity_score: float
    aggression_index: float
    logic_density: float
    emotional_resonance_index: float  # -1.0 .. 1.0
    confidence_score: float  # 0.0 .. 1.0


@dataclass(frozen=True)
class EntropyMetric:
    """One scored snapshot of a spoken segment."""
    timestamp: int
    verbal_velocity: float  # words per minute
    hesitation_markers: int
    levenshtein_delta: int
    spectral_intensity: float
    sentiment_valence: float
    confidence_score: float
    logic_density: float
    aggression_index: float
    clarity_score: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "verbalVelocity": self.verbal_velocity,
            "hesitationMarkers": self.hesitation_markers,
            "levenshteinDelta": self.levenshtein_delta,
            "spectralIntensity": self.spectral_intensity,
            "sentimentValence": self.sentiment_valence,
            "confidenceScore": self.confidence_score,
            "logicDensity": self.logic_density,
            "aggressionIndex": self.aggression_index,
            "clarityScore": self.clarity_score,
        }


@dataclass(frozen=True)
class TelemetrySummary:
    """Aggregate view of a metric history for report generation."""
    samples: int
    average_confidence: float
    peak_velocity: float
    average_hesitation: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "samples": self.samples,
            "averageConfidence": self.average_confidence,
            "peakVelocity": self.peak_velocity,
            "averageHesitation": self.average_hesitation,
        }
