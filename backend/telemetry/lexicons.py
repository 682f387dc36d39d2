"""
Fixed lexicons for utterance scoring.

Immutable module constants; built once at import.
Keys are lower-case, letter-only tokens (see pipeline.clean_token).
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Final, Mapping

# Multi-word entries are kept for completeness; single-token matching
# means they never match a cleaned token.
HESITATION_LEXICON: Final[frozenset[str]] = frozenset({
    "um", "uh", "like", "actually", "basically", "sort of", "mean", "you know",
})

AGGRESSION_LEXICON: Final[Mapping[str, float]] = MappingProxyType({
    "demand": 0.8,
    "must": 0.7,
    "unacceptable": 0.9,
    "final": 0.6,
    "refuse": 0.8,
    "insist": 0.7,
    "ridiculous": 0.8,
    "fail": 0.6,
    "hostile": 0.9,
    "now": 0.5,
    "immediately": 0.6,
})

CONCILIATORY_LEXICON: Final[Mapping[str, float]] = MappingProxyType({
    "agree": 0.6,
    "understand": 0.5,
    "collaborate": 0.7,
    "flexible": 0.8,
    "help": 0.5,
    "fair": 0.6,
    "together": 0.5,
    "potential": 0.4,
    "perhaps": 0.3,
    "consider": 0.4,
})

LOGIC_MARKERS: Final[frozenset[str]] = frozenset({
    "because", "therefore", "data", "statistically", "result", "proven",
    "consequently", "analysis", "metrics", "roi", "yield",
})
