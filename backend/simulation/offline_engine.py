"""
Deterministic offline responder.

Used while the live link is not ACTIVE (or when remote generation is
circuit-broken). Pure lookup over the injected registry: the same
(scenario, utterance) always yields the same reply.
"""

from __future__ import annotations

from errors import Sentinel
from observability.logger import log_event
from scenarios.registry import ScenarioRegistry
from spec import SIMULATION_DEFAULT_RESPONSE, SIMULATION_MODE_PREFIX


class OfflineSimulationEngine:
    def __init__(self, registry: ScenarioRegistry, *, session_id: str | None = None) -> None:
        self._registry = registry
        self._session_id = session_id

    def respond(self, scenario_id: str, utterance: str) -> str:
        """
        Scripted reply for `utterance` within `scenario_id`.

        First matching rule wins (definition order). Unknown scenarios
        return the data-corruption sentinel; no match returns the
        default response. Never raises.
        """
        scenario = self._registry.get(scenario_id)
        if scenario is None:
            log_event({
                "event_type": "simulation_scenario_missing",
                "level": "WARNING",
                "session_id": self._session_id,
                "scenario_id": scenario_id,
            })
            return Sentinel.SCENARIO_DATA_CORRUPTION.value

        for index, rule in enumerate(scenario.rules):
            if rule.matches(utterance):
                log_event({
                    "event_type": "simulation_rule_hit",
                    "session_id": self._session_id,
                    "scenario_id": scenario_id,
                    "rule_index": index,
                    "trigger_pattern": rule.trigger_pattern,
                    "outcome_yield": rule.outcome_yield,
                })
                return SIMULATION_MODE_PREFIX + rule.synthetic_response

        log_event({
            "event_type": "simulation_rule_miss",
            "session_id": self._session_id,
            "scenario_id": scenario_id,
            "rule_count": len(scenario.rules),
        })
        return SIMULATION_MODE_PREFIX + SIMULATION_DEFAULT_RESPONSE
