"""Outputs of the risk engine.

Every result is a frozen value object produced fresh by each run and
never mutated afterwards, so two runs over the same input compare equal.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from risk_engine.models.change import ScenarioVariation
from risk_engine.models.risk import FinalDecision, ImpactClassification, RiskLevel

# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------


class FileScore(BaseModel):
    """Point contribution of a single changed file."""

    model_config = ConfigDict(frozen=True)

    path: str
    points: int = Field(default=0, ge=0)
    critical: bool = False
    semi_critical: bool = False
    has_test: bool = False
    incident_count: int = Field(default=0, ge=0)
    factors: tuple[str, ...] = Field(default=(), description="Human-readable contributing factors.")


class ScoreReport(BaseModel):
    """Aggregated file score under one policy version."""

    model_config = ConfigDict(frozen=True)

    policy_version: str
    raw_score: int = Field(default=0, ge=0, description="Sum of file points before clamping.")
    score: int = Field(default=0, ge=0, description="Clamped total score.")
    risk_level: RiskLevel = RiskLevel.BAIXO
    files: tuple[FileScore, ...] = ()


# ---------------------------------------------------------------------------
# Cascade
# ---------------------------------------------------------------------------


class RuleImpact(BaseModel):
    """How one business rule is affected by the change."""

    model_config = ConfigDict(frozen=True)

    rule_id: str
    classification: ImpactClassification
    risk_level: RiskLevel
    depth: int = Field(default=0, ge=0, description="Hops from the nearest seed rule.")
    path: tuple[str, ...] = Field(default=(), description="Rule ids from the originating seed to this rule.")


# ---------------------------------------------------------------------------
# Simulation
# ---------------------------------------------------------------------------


class SimulationResult(BaseModel):
    """Outcome of one pass through the scoring and cascade pipeline."""

    model_config = ConfigDict(frozen=True)

    risk_level: RiskLevel
    final_decision: FinalDecision
    impacted_rule_count: int = Field(default=0, ge=0)
    sla_triggered: bool = False
    notified_teams: tuple[str, ...] = ()
    restrictions: tuple[str, ...] = ()
    score: int = Field(default=0, ge=0)
    policy_version: str = "v1"
    impacts: tuple[RuleImpact, ...] = ()

    def impacted_rule_ids(self) -> set[str]:
        return {impact.rule_id for impact in self.impacts}


class SimulationDelta(BaseModel):
    """Field-by-field difference between a baseline and a simulated result."""

    model_config = ConfigDict(frozen=True)

    risk_before: RiskLevel
    risk_after: RiskLevel
    sla_before: bool
    sla_after: bool
    rules_no_longer_impacted: int = Field(default=0, ge=0)
    teams_before: int = Field(default=0, ge=0)
    teams_after: int = Field(default=0, ge=0)
    restrictions_before: int = Field(default=0, ge=0)
    restrictions_after: int = Field(default=0, ge=0)
    decision_before: FinalDecision
    decision_after: FinalDecision

    @property
    def risk_levels_reduced(self) -> int:
        return self.risk_before.distance_to(self.risk_after)

    @property
    def risk_changed(self) -> bool:
        return self.risk_before != self.risk_after

    @property
    def sla_removed(self) -> bool:
        return self.sla_before and not self.sla_after

    @property
    def sla_added(self) -> bool:
        return self.sla_after and not self.sla_before

    @property
    def restrictions_removed(self) -> int:
        return max(0, self.restrictions_before - self.restrictions_after)

    @property
    def decision_improved(self) -> bool:
        return self.decision_after.improves_on(self.decision_before)


class Recommendation(BaseModel):
    """Headline verdict on a single what-if comparison."""

    model_config = ConfigDict(frozen=True)

    confidence: str
    headline: str
    summary: str


class WhatIfReport(BaseModel):
    """Baseline, simulation, and their delta for one variation."""

    model_config = ConfigDict(frozen=True)

    pull_request_id: str | None = None
    variation: ScenarioVariation
    baseline: SimulationResult
    simulation: SimulationResult
    delta: SimulationDelta
    recommendation: Recommendation


# ---------------------------------------------------------------------------
# Scenario ranking
# ---------------------------------------------------------------------------


class SuggestedScenario(BaseModel):
    """A ranked alternative to the change as submitted."""

    model_config = ConfigDict(frozen=True)

    scenario_id: str = Field(..., description="Stable id derived from generation order, e.g. 'SC-1'.")
    description: str
    risk_level: RiskLevel
    decision: FinalDecision
    sla_removed: bool = False
    teams: tuple[str, ...] = ()
    score: int = Field(default=0, ge=0, le=100)
    explanation: str = ""
    variation: ScenarioVariation


class ScenarioSuggestionReport(BaseModel):
    """Baseline plus the top-ranked alternatives."""

    model_config = ConfigDict(frozen=True)

    pull_request_id: str | None = None
    baseline: SimulationResult
    scenarios: tuple[SuggestedScenario, ...] = ()
    failed_variations: tuple[str, ...] = Field(
        default=(),
        description="Descriptions of variations whose simulation failed and were left out of the ranking.",
    )
