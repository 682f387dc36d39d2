# pylint: disable=missing-module-docstring,missing-function-docstring

import math

import pytest

from telemetry.pipeline import (
    analyze_impact,
    clean_token,
    compute_entropy_metric,
    count_hesitations,
    levenshtein,
    summarize_metrics,
    verbal_velocity,
)


def metric(text: str, intensity: float = 0.5, elapsed: float = 5.0, target: str = "target"):
    return compute_entropy_metric(text, target, intensity, elapsed, timestamp_ms=1_000)


# ---------------------------------------------------------------------
# Levenshtein
# ---------------------------------------------------------------------

@pytest.mark.parametrize(
    "a,b,expected",
    [
        ("kitten", "sitting", 3),
        ("cat", "bat", 1),
        ("Hello", "hello", 1),
        ("", "abc", 3),
        ("abc", "", 3),
        ("", "", 0),
        ("flaw", "lawn", 2),
    ],
)
def test_levenshtein_known_values(a: str, b: str, expected: int):
    assert levenshtein(a, b) == expected


@pytest.mark.parametrize("s", ["", "a", "negotiation", "We categorically reject"])
def test_levenshtein_identity_and_empty(s: str):
    assert levenshtein(s, s) == 0
    assert levenshtein("", s) == len(s)


def test_levenshtein_symmetric_and_triangle():
    words = ["leverage", "average", "beverage", "", "lever"]
    for a in words:
        for b in words:
            assert levenshtein(a, b) == levenshtein(b, a)
            for c in words:
                assert levenshtein(a, c) <= levenshtein(a, b) + levenshtein(b, c)


def test_levenshtein_counts_utf16_code_units():
    # U+1F600 is a surrogate pair
    assert levenshtein("\U0001F600", "") == 2
    assert levenshtein("café", "cafe") == 1


# ---------------------------------------------------------------------
# Velocity / hesitation
# ---------------------------------------------------------------------

def test_velocity_is_words_per_minute():
    assert verbal_velocity("one two three four five", 5.0) == pytest.approx(60.0)


@pytest.mark.parametrize("elapsed", [0.0, -1.0])
def test_velocity_zero_without_elapsed_time(elapsed: float):
    assert verbal_velocity("one two", elapsed) == 0.0


def test_velocity_of_empty_text_is_zero():
    assert verbal_velocity("   ", 5.0) == 0.0


def test_clean_token_strips_to_letters():
    assert clean_token("Um,") == "um"
    assert clean_token("ROI!") == "roi"
    assert clean_token("42") == ""


def test_hesitation_single_tokens_only():
    assert count_hesitations("Um, I uh, like, basically agree".split()) == 4
    # Multi-word fillers cannot match a single cleaned token
    assert count_hesitations("you know sort of".split()) == 0


# ---------------------------------------------------------------------
# Impact scoring
# ---------------------------------------------------------------------

def test_aggression_is_capped_and_pushes_valence_negative():
    impact = analyze_impact("I demand this now", 0.0, 0)
    assert impact.aggression_index == 100.0
    assert impact.emotional_resonance_index == -1.0


def test_logic_density_and_clarity_bonus():
    impact = analyze_impact("because the data shows", 0.5, 0)
    assert impact.logic_density == 30.0
    assert impact.clarity_score == 100.0


def test_clarity_penalizes_length():
    impact = analyze_impact("a" * 1000, 0.5, 0)
    assert impact.clarity_score == pytest.approx(80.0)


def test_short_utterance_resonance_is_halved():
    impact = analyze_impact("flexible", 0.25, 0)
    # 0.8 * 0.5 * (1 + 2 * 0.25)
    assert impact.emotional_resonance_index == pytest.approx(0.6)


def test_flat_loud_utterance_reads_as_tension():
    impact = analyze_impact("hello there friend", 0.5, 0)
    assert impact.emotional_resonance_index == pytest.approx(-0.5)


def test_confidence_penalties_and_bonuses():
    assert analyze_impact("um uh so", 0.5, 2).confidence_score == pytest.approx(0.7)
    # mumbling
    assert analyze_impact("I agree", 0.01, 0).confidence_score == pytest.approx(0.8)
    # silence is not mumbling
    assert analyze_impact("", 0.0, 0).confidence_score == 1.0
    # logic 15 -> +0.03 on top of a mumble
    assert analyze_impact("because", 0.0, 0).confidence_score == pytest.approx(0.83)


# ---------------------------------------------------------------------
# Full metric
# ---------------------------------------------------------------------

def test_compute_entropy_metric_fields():
    m = metric("Um we reject the valuation", intensity=0.5, elapsed=5.0, target="we reject the valuation")

    assert m.timestamp == 1_000
    assert m.verbal_velocity == pytest.approx(60.0)
    assert m.hesitation_markers == 1
    assert m.levenshtein_delta == 3
    assert m.spectral_intensity == 0.5
    assert m.confidence_score == pytest.approx(0.85)
    assert m.to_dict()["levenshteinDelta"] == 3


@pytest.mark.parametrize("raw,expected", [(math.nan, 0.0), (math.inf, 0.0), (3.0, 1.0), (-0.4, 0.0)])
def test_intensity_is_normalized(raw: float, expected: float):
    assert metric("hello", intensity=raw).spectral_intensity == expected


@pytest.mark.parametrize(
    "text",
    [
        "",
        "um uh like actually basically mean um uh like",
        "I demand you refuse this ridiculous hostile unacceptable final offer now immediately",
        "because therefore data statistically result proven consequently analysis metrics roi yield because",
        "I agree I understand we collaborate flexible help fair together potential perhaps consider",
        "x" * 10_000,
    ],
)
@pytest.mark.parametrize("intensity", [0.0, 0.03, 0.5, 1.0])
def test_scores_stay_in_range(text: str, intensity: float):
    m = metric(text, intensity=intensity)
    assert 0.0 <= m.confidence_score <= 1.0
    assert -1.0 <= m.sentiment_valence <= 1.0
    for value in (m.aggression_index, m.logic_density, m.clarity_score):
        assert 0.0 <= value <= 100.0


# ---------------------------------------------------------------------
# Summary
# ---------------------------------------------------------------------

def test_summary_of_empty_history():
    summary = summarize_metrics([])
    assert summary.samples == 0
    assert summary.average_confidence == 0.0


def test_summary_aggregates():
    history = [metric("um one two", elapsed=1.0), metric("one two three four", elapsed=1.0)]
    summary = summarize_metrics(history)

    assert summary.samples == 2
    assert summary.peak_velocity == pytest.approx(240.0)
    assert summary.average_hesitation == pytest.approx(0.5)
    assert summary.to_dict()["peakVelocity"] == pytest.approx(240.0)
