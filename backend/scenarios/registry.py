"""
Scenario registry.

Read-only lookup by id plus full-library enumeration. Constructed once and
injected; loads from the built-in library or from a JSON file whose
records use camelCase keys:

    [
      {
        "id": "SCN-ALPHA-01",
        "designation": "...",
        "targetRhetoricPattern": "...",
        "difficultyLevel": "HOSTILE_TAKEOVER",
        "manifoldRules": [
          {"triggerPattern": "...", "syntheticResponse": "...", "outcomeYield": 0.8}
        ]
      }
    ]
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any, Iterable, Mapping

from errors import DataCorruptionError
from observability.logger import log_event
from scenarios.library import BUILTIN_SCENARIOS
from scenarios.models import DifficultyLevel, ManifoldRule, ScenarioMatrix


class ScenarioRegistry:
    def __init__(self, scenarios: Iterable[ScenarioMatrix]) -> None:
        by_id: dict[str, ScenarioMatrix] = {}
        for scenario in scenarios:
            if scenario.id in by_id:
                raise DataCorruptionError(f"duplicate scenario id: {scenario.id}")
            by_id[scenario.id] = scenario
        if not by_id:
            raise DataCorruptionError("scenario registry is empty")
        self._by_id = by_id

    @classmethod
    def default(cls) -> "ScenarioRegistry":
        return cls(BUILTIN_SCENARIOS)

    @classmethod
    def from_json(cls, path: str | Path) -> "ScenarioRegistry":
        """
        Load a registry file.

        Raises:
            DataCorruptionError on unreadable files or malformed records.
        """
        try:
            raw = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise DataCorruptionError(f"cannot load scenario registry {path}: {e}") from e

        if not isinstance(raw, list):
            raise DataCorruptionError("scenario registry must be a JSON list")

        registry = cls(_parse_scenario(record) for record in raw)
        log_event({
            "event_type": "scenario_registry_loaded",
            "path": str(path),
            "scenario_count": len(registry),
        })
        return registry

    def get(self, scenario_id: str) -> ScenarioMatrix | None:
        return self._by_id.get(scenario_id)

    def library(self) -> tuple[ScenarioMatrix, ...]:
        return tuple(self._by_id.values())

    def first(self) -> ScenarioMatrix:
        return next(iter(self._by_id.values()))

    def __contains__(self, scenario_id: object) -> bool:
        return scenario_id in self._by_id

    def __len__(self) -> int:
        return len(self._by_id)


def _parse_scenario(record: Any) -> ScenarioMatrix:
    if not isinstance(record, Mapping):
        raise DataCorruptionError(f"scenario record must be an object, got {type(record).__name__}")

    try:
        rules = tuple(_parse_rule(r) for r in record["manifoldRules"])
        return ScenarioMatrix(
            id=str(record["id"]),
            designation=str(record["designation"]),
            target_rhetoric_pattern=str(record["targetRhetoricPattern"]),
            difficulty_level=DifficultyLevel(record["difficultyLevel"]),
            rules=rules,
        )
    except KeyError as e:
        raise DataCorruptionError(f"scenario record missing field {e}") from e
    except (TypeError, ValueError) as e:
        raise DataCorruptionError(f"invalid scenario record: {e}") from e


def _parse_rule(record: Any) -> ManifoldRule:
    if not isinstance(record, Mapping):
        raise DataCorruptionError("manifold rule must be an object")
    try:
        return ManifoldRule(
            trigger_pattern=str(record["triggerPattern"]),
            synthetic_response=str(record["syntheticResponse"]),
            outcome_yield=float(record["outcomeYield"]),
        )
    except re.error as e:
        raise DataCorruptionError(f"invalid trigger pattern {record.get('triggerPattern')!r}: {e}") from e
