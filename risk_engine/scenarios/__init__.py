"""Scenario generation and ranking."""

from __future__ import annotations

from risk_engine.scenarios.generator import SCENARIO_RULES, ScenarioRule, generate_variations
from risk_engine.scenarios.ranker import rank_scenarios, score_scenario

__all__ = [
    "SCENARIO_RULES",
    "ScenarioRule",
    "generate_variations",
    "rank_scenarios",
    "score_scenario",
]
