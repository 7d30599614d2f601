"""Domain models for the risk engine."""

from risk_engine.models.change import ChangedFile, ChangeRequest, ChangeType, Environment, ScenarioVariation
from risk_engine.models.result import (
    FileScore,
    Recommendation,
    RuleImpact,
    ScenarioSuggestionReport,
    ScoreReport,
    SimulationDelta,
    SimulationResult,
    SuggestedScenario,
    WhatIfReport,
)
from risk_engine.models.risk import Criticality, FinalDecision, ImpactClassification, ImpactType, RiskLevel
from risk_engine.models.rule import BusinessRule, DependencyType, Domain, FileRuleMapping, RuleDependencyEdge

__all__ = [
    "BusinessRule",
    "ChangeRequest",
    "ChangeType",
    "ChangedFile",
    "Criticality",
    "DependencyType",
    "Domain",
    "Environment",
    "FileRuleMapping",
    "FileScore",
    "FinalDecision",
    "ImpactClassification",
    "ImpactType",
    "Recommendation",
    "RiskLevel",
    "RuleDependencyEdge",
    "RuleImpact",
    "ScenarioSuggestionReport",
    "ScenarioVariation",
    "ScoreReport",
    "SimulationDelta",
    "SimulationResult",
    "SuggestedScenario",
    "WhatIfReport",
]
