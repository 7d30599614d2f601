"""Baseline vs. simulation comparison.

Everything here is derived from two :class:`SimulationResult` values and
nothing else, so an explanation can always be traced back to the delta
that produced it.
"""

from __future__ import annotations

from risk_engine.models.result import Recommendation, SimulationDelta, SimulationResult


def compute_delta(baseline: SimulationResult, simulated: SimulationResult) -> SimulationDelta:
    """Field-by-field difference from *baseline* to *simulated*."""
    no_longer_impacted = baseline.impacted_rule_ids() - simulated.impacted_rule_ids()
    return SimulationDelta(
        risk_before=baseline.risk_level,
        risk_after=simulated.risk_level,
        sla_before=baseline.sla_triggered,
        sla_after=simulated.sla_triggered,
        rules_no_longer_impacted=len(no_longer_impacted),
        teams_before=len(baseline.notified_teams),
        teams_after=len(simulated.notified_teams),
        restrictions_before=len(baseline.restrictions),
        restrictions_after=len(simulated.restrictions),
        decision_before=baseline.final_decision,
        decision_after=simulated.final_decision,
    )


def build_explanation(delta: SimulationDelta) -> str:
    """Plain-English summary of *delta*, one sentence per changed aspect."""
    sentences: list[str] = []

    reduced = delta.risk_levels_reduced
    if reduced > 0:
        sentences.append(f"Reduces risk from {delta.risk_before.value} to {delta.risk_after.value}.")
    elif reduced < 0:
        sentences.append(f"Increases risk from {delta.risk_before.value} to {delta.risk_after.value}.")
    else:
        sentences.append(f"Keeps risk level stable at {delta.risk_after.value}.")

    if delta.sla_removed:
        sentences.append("SLA no longer required.")
    elif delta.sla_added:
        sentences.append("SLA now required.")

    if delta.rules_no_longer_impacted > 0:
        sentences.append(f"Removes impact on {delta.rules_no_longer_impacted} rule(s).")

    if delta.teams_after < delta.teams_before:
        sentences.append(f"Reduces notifications from {delta.teams_before} to {delta.teams_after} team(s).")

    if delta.restrictions_removed > 0:
        sentences.append(f"Removes {delta.restrictions_removed} operational restriction(s).")

    return " ".join(sentences)


def recommend(delta: SimulationDelta) -> Recommendation:
    """Headline verdict: ALTA confidence for a reduction, BAIXA for an increase, MEDIA otherwise."""
    reduced = delta.risk_levels_reduced
    if reduced > 0:
        confidence, headline = "ALTA", "Significant risk reduction"
    elif reduced < 0:
        confidence, headline = "BAIXA", "Risk increase detected"
    else:
        confidence, headline = "MEDIA", "Risk unchanged"
    return Recommendation(confidence=confidence, headline=headline, summary=build_explanation(delta))
