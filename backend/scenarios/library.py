"""Built-in scenario library."""

from __future__ import annotations

from scenarios.models import DifficultyLevel, ManifoldRule, ScenarioMatrix


BUILTIN_SCENARIOS: tuple[ScenarioMatrix, ...] = (
    ScenarioMatrix(
        id="SCN-ALPHA-01",
        designation="HOSTILE TAKEOVER DEFENSE",
        target_rhetoric_pattern=(
            "We categorically reject the valuation as it fails to account "
            "for our proprietary IP pipeline."
        ),
        difficulty_level=DifficultyLevel.HOSTILE_TAKEOVER,
        rules=(
            ManifoldRule(
                trigger_pattern=r"(reject|no|never)",
                synthetic_response=(
                    "Your rejection is noted, but the market cap suggests you "
                    "have no leverage. Explain your liquidity position."
                ),
                outcome_yield=0.8,
            ),
            ManifoldRule(
                trigger_pattern=r"(agree|yes|okay)",
                synthetic_response=(
                    "Submission detected. We are lowering the offer by 15% due "
                    "to your lack of conviction."
                ),
                outcome_yield=0.2,
            ),
            ManifoldRule(
                trigger_pattern=r"(pipeline|ip|tech)",
                synthetic_response="The pipeline is speculative. Give me concrete revenue figures for Q3.",
                outcome_yield=0.6,
            ),
        ),
    ),
    ScenarioMatrix(
        id="SCN-BETA-04",
        designation="EXECUTIVE SALARY ARBITRAGE",
        target_rhetoric_pattern=(
            "My performance metrics justify a base adjustment of twenty "
            "percent plus equity refresh."
        ),
        difficulty_level=DifficultyLevel.HIGH_YIELD,
        rules=(
            ManifoldRule(
                trigger_pattern=r"(percent|equity|stock)",
                synthetic_response="Equity is reserved for critical talent. Prove you are indispensable.",
                outcome_yield=0.7,
            ),
            ManifoldRule(
                trigger_pattern=r"(quit|leave|offer)",
                synthetic_response="Is that a threat? The door is open. We have three candidates ready.",
                outcome_yield=0.1,
            ),
        ),
    ),
    ScenarioMatrix(
        id="SCN-GAMMA-09",
        designation="SUPPLY CHAIN DEADLOCK",
        target_rhetoric_pattern="We need to align on a delivery schedule that mitigates our inventory risk.",
        difficulty_level=DifficultyLevel.LOW_YIELD,
        rules=(
            ManifoldRule(
                trigger_pattern=r"(risk|inventory|schedule)",
                synthetic_response="We can prioritize your shipment if you agree to a 10% premium.",
                outcome_yield=0.5,
            ),
        ),
    ),
)
