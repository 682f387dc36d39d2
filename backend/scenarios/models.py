"""
Scenario reference data.

ScenarioMatrix / ManifoldRule are immutable once loaded. Rule order is
significant: the offline engine takes the first rule that matches.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum


class DifficultyLevel(str, Enum):
    LOW_YIELD = "LOW_YIELD"
    HIGH_YIELD = "HIGH_YIELD"
    HOSTILE_TAKEOVER = "HOSTILE_TAKEOVER"


@dataclass(frozen=True)
class ManifoldRule:
    """Regex trigger plus the scripted reply it produces."""
    trigger_pattern: str
    synthetic_response: str
    outcome_yield: float
    _compiled: re.Pattern[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        # Raises re.error for a bad pattern; the registry translates it.
        object.__setattr__(self, "_compiled", re.compile(self.trigger_pattern, re.IGNORECASE))

    def matches(self, utterance: str) -> bool:
        return self._compiled.search(utterance.lower()) is not None


@dataclass(frozen=True)
class ScenarioMatrix:
    id: str
    designation: str
    target_rhetoric_pattern: str
    difficulty_level: DifficultyLevel
    rules: tuple[ManifoldRule, ...]
