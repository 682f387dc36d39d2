"""
Utterance scoring (pure).

compute_entropy_metric() turns one utterance plus its acoustic context
into an immutable EntropyMetric. Nothing here reads shared mutable
state: the caller passes the latest acoustic intensity explicitly.
"""

from __future__ import annotations

import math
import re
from typing import Iterable, Sequence

from telemetry.lexicons import (
    AGGRESSION_LEXICON,
    CONCILIATORY_LEXICON,
    HESITATION_LEXICON,
    LOGIC_MARKERS,
)
from telemetry.models import EntropyMetric, RhetoricalImpact, TelemetrySummary
from spec import (
    CLARITY_LENGTH_PENALTY,
    CLARITY_LOGIC_BONUS,
    CONFIDENCE_AGGRESSION_BONUS,
    CONFIDENCE_HESITATION_PENALTY,
    CONFIDENCE_LOGIC_BONUS,
    CONFIDENCE_MUMBLE_INTENSITY,
    CONFIDENCE_MUMBLE_PENALTY,
    LOGIC_HIT_WEIGHT,
    RESONANCE_FLAT_THRESHOLD,
    RESONANCE_INTENSITY_GAIN,
    RESONANCE_LOUD_THRESHOLD,
    RESONANCE_SHORT_UTTERANCE_FACTOR,
    RESONANCE_SHORT_UTTERANCE_TOKENS,
    SCORE_CEILING,
)


_NON_LETTER = re.compile(r"[^a-z]")


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def clean_token(token: str) -> str:
    """Lower-case and strip everything but a-z."""
    return _NON_LETTER.sub("", token.lower())


def normalize_intensity(intensity: float) -> float:
    """Clamp acoustic intensity into [0, 1]; non-finite counts as silence."""
    if not math.isfinite(intensity):
        return 0.0
    return _clamp(intensity, 0.0, 1.0)


# =============================================================================
# Edit distance
# =============================================================================

def _code_units(text: str) -> Sequence[int]:
    """UTF-16 code units, so astral characters count as two."""
    return memoryview(text.encode("utf-16-le")).cast("H")


def levenshtein(source: str, target: str) -> int:
    """
    Classic edit distance with unit insert / delete / substitute costs.

    Case-sensitive; compares UTF-16 code units exactly.
    """
    a = _code_units(source)
    b = _code_units(target)
    if not a:
        return len(b)
    if not b:
        return len(a)

    previous = list(range(len(b) + 1))
    for i, s_unit in enumerate(a, start=1):
        current = [i]
        for j, t_unit in enumerate(b, start=1):
            cost = 0 if s_unit == t_unit else 1
            current.append(min(
                previous[j] + 1,         # deletion
                current[j - 1] + 1,      # insertion
                previous[j - 1] + cost,  # substitution
            ))
        previous = current
    return previous[-1]


# =============================================================================
# Delivery
# =============================================================================

def verbal_velocity(text: str, elapsed_s: float) -> float:
    """Words per minute; 0 when no time has elapsed."""
    if elapsed_s <= 0:
        return 0.0
    return (len(text.split()) / elapsed_s) * 60.0


def count_hesitations(tokens: Iterable[str]) -> int:
    return sum(1 for token in tokens if clean_token(token) in HESITATION_LEXICON)


# =============================================================================
# Lexical / acoustic impact
# =============================================================================

def analyze_impact(text: str, intensity: float, hesitations: int) -> RhetoricalImpact:
    """
    Score aggression, logic, clarity, resonance and confidence.

    `intensity` must already be normalized to [0, 1].
    """
    tokens = text.lower().split()

    aggression = 0.0
    logic = 0.0
    valence = 0.0
    for token in tokens:
        cleaned = clean_token(token)
        weight = AGGRESSION_LEXICON.get(cleaned)
        if weight is not None:
            aggression += weight * 100.0
            valence -= weight
        weight = CONCILIATORY_LEXICON.get(cleaned)
        if weight is not None:
            valence += weight
        if cleaned in LOGIC_MARKERS:
            logic += LOGIC_HIT_WEIGHT

    aggression_index = min(SCORE_CEILING, aggression)
    logic_density = min(SCORE_CEILING, logic)

    # Verbosity costs clarity, reasoning buys it back
    clarity = _clamp(
        SCORE_CEILING - len(text) * CLARITY_LENGTH_PENALTY + logic_density * CLARITY_LOGIC_BONUS,
        0.0,
        SCORE_CEILING,
    )

    resonance = valence
    if len(tokens) < RESONANCE_SHORT_UTTERANCE_TOKENS:
        resonance *= RESONANCE_SHORT_UTTERANCE_FACTOR
    resonance *= 1.0 + intensity * RESONANCE_INTENSITY_GAIN
    if abs(resonance) < RESONANCE_FLAT_THRESHOLD and intensity > RESONANCE_LOUD_THRESHOLD:
        resonance = -intensity

    confidence = 1.0
    confidence -= hesitations * CONFIDENCE_HESITATION_PENALTY
    if tokens and intensity < CONFIDENCE_MUMBLE_INTENSITY:
        confidence -= CONFIDENCE_MUMBLE_PENALTY
    confidence += logic_density * CONFIDENCE_LOGIC_BONUS
    confidence += aggression_index * CONFIDENCE_AGGRESSION_BONUS

    return RhetoricalImpact(
        clarity_score=clarity,
        aggression_index=aggression_index,
        logic_density=logic_density,
        emotional_resonance_index=_clamp(resonance, -1.0, 1.0),
        confidence_score=_clamp(confidence, 0.0, 1.0),
    )


def compute_entropy_metric(
    text: str,
    target_pattern: str,
    acoustic_intensity: float,
    elapsed_s: float,
    *,
    timestamp_ms: int,
) -> EntropyMetric:
    """Score one utterance against the scenario's target phrase."""
    intensity = normalize_intensity(acoustic_intensity)
    hesitations = count_hesitations(text.split())
    impact = analyze_impact(text, intensity, hesitations)

    return EntropyMetric(
        timestamp=timestamp_ms,
        verbal_velocity=verbal_velocity(text, elapsed_s),
        hesitation_markers=hesitations,
        levenshtein_delta=levenshtein(text, target_pattern),
        spectral_intensity=intensity,
        sentiment_valence=impact.emotional_resonance_index,
        confidence_score=impact.confidence_score,
        logic_density=impact.logic_density,
        aggression_index=impact.aggression_index,
        clarity_score=impact.clarity_score,
    )


def summarize_metrics(metrics: Sequence[EntropyMetric]) -> TelemetrySummary:
    """Aggregate a metric history; empty histories summarize to zeros."""
    if not metrics:
        return TelemetrySummary(samples=0, average_confidence=0.0, peak_velocity=0.0, average_hesitation=0.0)

    count = len(metrics)
    return TelemetrySummary(
        samples=count,
        average_confidence=sum(m.confidence_score for m in metrics) / count,
        peak_velocity=max(m.verbal_velocity for m in metrics),
        average_hesitation=sum(m.hesitation_markers for m in metrics) / count,
    )
