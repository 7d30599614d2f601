"""Risk level -> gate outcome.

Everything downstream of the overall risk level lives here: the
deployment exposure ceiling, the final decision, the SLA flag, the teams
to notify, and the operational restrictions.  All tables are plain data
on :class:`DecisionPolicy` so callers can substitute their own.
"""

from __future__ import annotations

from collections.abc import Iterable

from pydantic import BaseModel, ConfigDict, Field

from risk_engine.models.change import ChangeType, Environment
from risk_engine.models.risk import FinalDecision, RiskLevel
from risk_engine.models.rule import BusinessRule

PLATFORM_TEAM = "Platform Team"
SECURITY_TEAM = "Security Team"

# Production is never capped; only lower environments bound the level.
_DEFAULT_CEILINGS: tuple[tuple[Environment, ChangeType | None, RiskLevel], ...] = (
    (Environment.STAGING, None, RiskLevel.MEDIO),
    (Environment.DEV, None, RiskLevel.BAIXO),
)


def _default_teams() -> dict[RiskLevel, tuple[str, ...]]:
    return {
        RiskLevel.CRITICO: (PLATFORM_TEAM, SECURITY_TEAM),
        RiskLevel.ALTO: (PLATFORM_TEAM,),
        RiskLevel.MEDIO: (PLATFORM_TEAM,),
        RiskLevel.BAIXO: (),
    }


def _default_restrictions() -> dict[RiskLevel, tuple[str, ...]]:
    return {
        RiskLevel.CRITICO: ("Requires VP approval", "Deploy only during business hours"),
        RiskLevel.ALTO: ("Requires additional peer review",),
        RiskLevel.MEDIO: (),
        RiskLevel.BAIXO: (),
    }


class DecisionOutcome(BaseModel):
    """Everything derived from a final risk level."""

    model_config = ConfigDict(frozen=True)

    risk_level: RiskLevel
    final_decision: FinalDecision
    sla_triggered: bool
    notified_teams: tuple[str, ...] = ()
    restrictions: tuple[str, ...] = ()


class DecisionPolicy(BaseModel):
    """Outcome tables.

    ``exposure_ceilings`` is an ordered list of
    ``(environment, change_type or None, ceiling)``; the first row whose
    environment matches, and whose change type matches or is ``None``,
    bounds the overall risk level.  An unmatched context is not capped.
    """

    model_config = ConfigDict(frozen=True)

    exposure_ceilings: tuple[tuple[Environment, ChangeType | None, RiskLevel], ...] = _DEFAULT_CEILINGS
    notified_teams: dict[RiskLevel, tuple[str, ...]] = Field(default_factory=_default_teams)
    restrictions: dict[RiskLevel, tuple[str, ...]] = Field(default_factory=_default_restrictions)
    sla_threshold: RiskLevel = Field(default=RiskLevel.ALTO, description="Lowest level that triggers the SLA.")
    owner_escalation_threshold: RiskLevel = Field(
        default=RiskLevel.ALTO,
        description="Lowest level at which owner teams of directly hit rules are notified.",
    )

    def exposure_ceiling(self, environment: Environment, change_type: ChangeType) -> RiskLevel:
        for env, kind, ceiling in self.exposure_ceilings:
            if env == environment and (kind is None or kind == change_type):
                return ceiling
        return RiskLevel.CRITICO

    def build_outcome(
        self,
        risk_level: RiskLevel,
        environment: Environment,
        direct_rules: Iterable[BusinessRule] = (),
    ) -> DecisionOutcome:
        teams = list(self.notified_teams.get(risk_level, ()))
        if risk_level.ordinal >= self.owner_escalation_threshold.ordinal:
            owners = sorted({r.owner_team for r in direct_rules if r.owner_team})
            teams.extend(owner for owner in owners if owner not in teams)

        return DecisionOutcome(
            risk_level=risk_level,
            final_decision=decide(risk_level, environment),
            sla_triggered=risk_level.ordinal >= self.sla_threshold.ordinal,
            notified_teams=tuple(teams),
            restrictions=tuple(self.restrictions.get(risk_level, ())),
        )


DEFAULT_DECISION_POLICY = DecisionPolicy()


def decide(risk_level: RiskLevel, environment: Environment) -> FinalDecision:
    """Gate decision for *risk_level* deployed to *environment*.

    CRITICO in PRODUCTION is blocked; ALTO anywhere, or CRITICO outside
    PRODUCTION, is approved with restrictions; everything else is approved.
    """
    if risk_level == RiskLevel.CRITICO:
        if environment.is_critical:
            return FinalDecision.BLOQUEADO
        return FinalDecision.APROVADO_COM_RESTRICOES
    if risk_level == RiskLevel.ALTO:
        return FinalDecision.APROVADO_COM_RESTRICOES
    return FinalDecision.APROVADO


def exposure_ceiling(environment: Environment, change_type: ChangeType) -> RiskLevel:
    return DEFAULT_DECISION_POLICY.exposure_ceiling(environment, change_type)


def build_outcome(
    risk_level: RiskLevel,
    environment: Environment,
    direct_rules: Iterable[BusinessRule] = (),
) -> DecisionOutcome:
    return DEFAULT_DECISION_POLICY.build_outcome(risk_level, environment, direct_rules)
