"""Scenario simulation, scoring, and ranking.

Every variation is simulated against the same baseline, scored on how
much it improves the outcome, and the best ``max_scenarios`` are kept.

Score (clamped to 100):

=============================  ======
Signal                         Points
=============================  ======
risk drops 1 / 2 / 3 levels    20 / 30 / 40
SLA no longer triggered        30
strictly fewer teams notified  15
decision improves              15
=============================  ======
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from concurrent.futures import Future, ThreadPoolExecutor

from risk_engine.errors import InvalidInputError, RiskEngineError
from risk_engine.models.change import ScenarioVariation
from risk_engine.models.result import (
    ScenarioSuggestionReport,
    SimulationDelta,
    SimulationResult,
    SuggestedScenario,
)
from risk_engine.simulation.delta import build_explanation, compute_delta
from risk_engine.telemetry.profiling import profile_operation

logger = logging.getLogger(__name__)

MAX_SCENARIO_SCORE = 100

_RISK_REDUCTION_POINTS: dict[int, int] = {1: 20, 2: 30, 3: 40}
_SLA_REMOVED_POINTS = 30
_FEWER_TEAMS_POINTS = 15
_DECISION_IMPROVED_POINTS = 15

Simulator = Callable[[ScenarioVariation], SimulationResult]


def score_scenario(delta: SimulationDelta) -> int:
    """Improvement score of a simulated variation over its baseline."""
    score = _RISK_REDUCTION_POINTS.get(delta.risk_levels_reduced, 0)
    if delta.sla_removed:
        score += _SLA_REMOVED_POINTS
    if delta.teams_after < delta.teams_before:
        score += _FEWER_TEAMS_POINTS
    if delta.decision_improved:
        score += _DECISION_IMPROVED_POINTS
    return min(score, MAX_SCENARIO_SCORE)


def _simulate_all(
    simulate: Simulator,
    variations: Sequence[ScenarioVariation],
    workers: int,
) -> list[SimulationResult | Exception]:
    """Run every variation, returning results (or the failure) in input order.

    A failing variation never aborts the others, whatever it raised.
    """

    def run(variation: ScenarioVariation) -> SimulationResult | Exception:
        try:
            return simulate(variation)
        except Exception as exc:  # noqa: BLE001
            return exc

    if workers <= 1 or len(variations) <= 1:
        return [run(v) for v in variations]

    with ThreadPoolExecutor(max_workers=min(workers, len(variations)), thread_name_prefix="scenario") as pool:
        futures: list[Future[SimulationResult | Exception]] = [pool.submit(run, v) for v in variations]
        return [f.result() for f in futures]


@profile_operation("scenarios.rank")
def rank_scenarios(
    baseline: SimulationResult,
    variations: Sequence[ScenarioVariation],
    simulate: Simulator,
    *,
    max_scenarios: int = 3,
    workers: int = 1,
    pull_request_id: str | None = None,
) -> ScenarioSuggestionReport:
    """Simulate, score, and rank *variations* against *baseline*.

    Parameters
    ----------
    baseline:
        Result of evaluating the request as submitted.
    variations:
        Candidates in generation order.  Scenario ids follow this order.
    simulate:
        Runs one variation through the engine pipeline.
    max_scenarios:
        Number of top scenarios to return.  Must be at least 1.
    workers:
        Thread pool size for the simulations.  ``1`` runs sequentially.

    Any variation whose simulation raises is logged at WARNING, listed in
    ``failed_variations``, and left out of the ranking.

    Raises
    ------
    InvalidInputError
        If *max_scenarios* is below 1.
    """
    if max_scenarios < 1:
        raise InvalidInputError(f"max_scenarios must be >= 1, got {max_scenarios}", field="max_scenarios")

    outcomes = _simulate_all(simulate, variations, workers)

    candidates: list[SuggestedScenario] = []
    failed: list[str] = []
    for index, (variation, outcome) in enumerate(zip(variations, outcomes, strict=True), start=1):
        if isinstance(outcome, RiskEngineError):
            logger.warning("Dropping scenario %r: %s", variation.description, outcome)
            failed.append(variation.description)
            continue
        if isinstance(outcome, Exception):
            logger.warning(
                "Dropping scenario %r after unexpected %s: %s",
                variation.description,
                type(outcome).__name__,
                outcome,
                exc_info=outcome,
            )
            failed.append(variation.description)
            continue

        delta = compute_delta(baseline, outcome)
        candidates.append(
            SuggestedScenario(
                scenario_id=f"SC-{index}",
                description=variation.description,
                risk_level=outcome.risk_level,
                decision=outcome.final_decision,
                sla_removed=delta.sla_removed,
                teams=outcome.notified_teams,
                score=score_scenario(delta),
                explanation=build_explanation(delta),
                variation=variation,
            )
        )

    # sorted() is stable, so equal scores keep generation order.
    ranked = sorted(candidates, key=lambda s: s.score, reverse=True)[:max_scenarios]

    logger.info(
        "Ranked %d of %d scenario(s) for %s (%d failed, returning %d)",
        len(candidates),
        len(variations),
        pull_request_id or "<anonymous>",
        len(failed),
        len(ranked),
    )
    return ScenarioSuggestionReport(
        pull_request_id=pull_request_id,
        baseline=baseline,
        scenarios=tuple(ranked),
        failed_variations=tuple(failed),
    )
