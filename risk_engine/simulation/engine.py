"""The risk decision engine.

A single private pipeline turns a :class:`ChangeRequest` into a
:class:`SimulationResult`:

1. score the changed files under the selected policy;
2. find the rules the files touch and propagate along dependency edges;
3. overall level = max(score level, every impacted rule level), bounded
   by the exposure ceiling of a non-production environment (production
   is never capped);
4. derive decision, SLA, teams, and restrictions from the level.

``evaluate`` runs it on the request as submitted.  ``simulate`` runs the
very same pipeline on an overridden copy, so a variation that only
changes environment or change type is indistinguishable from evaluating
the overridden request directly.  The one exception is scope reduction:
removing three or more files steps the final level down once.

Nothing here writes state.  The catalog and incident history are
injected read-only snapshots, so one engine may serve concurrent calls.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from pydantic import ValidationError

from risk_engine.catalog.protocols import IncidentHistoryReader, RuleCatalogReader
from risk_engine.catalog.rule_catalog import EMPTY_CATALOG, RuleCatalog
from risk_engine.config import EngineSettings, load_settings
from risk_engine.errors import InvalidInputError, SimulationError
from risk_engine.graph.cascade import build_rule_graph, highest_impact_level, propagate
from risk_engine.models.change import ChangedFile, ChangeRequest, ChangeType, Environment, ScenarioVariation
from risk_engine.models.result import ScenarioSuggestionReport, SimulationResult, WhatIfReport
from risk_engine.models.risk import ImpactType, RiskLevel
from risk_engine.models.rule import BusinessRule
from risk_engine.policy.decision import DEFAULT_DECISION_POLICY, DecisionPolicy
from risk_engine.policy.rule_sets import ScoringPolicy, get_policy
from risk_engine.policy.scorer import score_files
from risk_engine.scenarios.generator import generate_variations
from risk_engine.scenarios.ranker import rank_scenarios
from risk_engine.simulation.delta import compute_delta, recommend
from risk_engine.telemetry.profiling import profile_operation

logger = logging.getLogger(__name__)

# Removing at least this many files steps the simulated level down once.
SCOPE_REDUCTION_THRESHOLD = 3

FileInput = ChangedFile | Mapping[str, Any]


# ---------------------------------------------------------------------------
# Request construction
# ---------------------------------------------------------------------------


def build_request(
    changed_files: Iterable[FileInput] | None,
    environment: Environment | str | None,
    change_type: ChangeType | str | None,
    policy_version: str | None = None,
    pull_request_id: str | None = None,
) -> ChangeRequest:
    """Validate raw inputs into a :class:`ChangeRequest`.

    Raises
    ------
    InvalidInputError
        If the environment or change type is missing or unknown, or the
        file list is missing, empty, or malformed.
    """
    if environment is None:
        raise InvalidInputError("environment is required", field="environment")
    if change_type is None:
        raise InvalidInputError("change_type is required", field="change_type")
    if changed_files is None:
        raise InvalidInputError("changed_files is required", field="changed_files")

    try:
        return ChangeRequest(
            changed_files=tuple(changed_files),
            environment=environment,
            change_type=change_type,
            policy_version=policy_version,
            pull_request_id=pull_request_id,
        )
    except ValidationError as exc:
        raise InvalidInputError.from_validation_error(exc) from exc


def _coerce_variation(override: ScenarioVariation | Mapping[str, Any]) -> ScenarioVariation:
    if isinstance(override, ScenarioVariation):
        return override
    try:
        return ScenarioVariation.model_validate(override)
    except ValidationError as exc:
        raise InvalidInputError.from_validation_error(exc) from exc


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------


class RiskEngine:
    """Evaluate, simulate, and suggest alternatives for change requests.

    Parameters
    ----------
    catalog:
        Read-only rule catalog.  Defaults to an empty catalog, in which
        case only file scoring contributes to the level.
    settings:
        Engine settings; loaded from the environment when omitted.
    incident_reader:
        Optional incident history.  When omitted each policy's keyword
        incident table is used.
    decision_policy:
        Outcome tables (exposure ceilings, teams, restrictions).
    """

    def __init__(
        self,
        catalog: RuleCatalogReader | None = None,
        settings: EngineSettings | None = None,
        *,
        incident_reader: IncidentHistoryReader | None = None,
        decision_policy: DecisionPolicy = DEFAULT_DECISION_POLICY,
    ) -> None:
        self._catalog: RuleCatalogReader = catalog if catalog is not None else EMPTY_CATALOG
        self._settings = settings or load_settings()
        self._incident_reader = incident_reader
        self._decision_policy = decision_policy

        if isinstance(self._catalog, RuleCatalog):
            self._graph = self._catalog.graph
        else:
            self._graph = build_rule_graph(self._catalog.dependency_edges())

    @property
    def settings(self) -> EngineSettings:
        return self._settings

    @property
    def catalog(self) -> RuleCatalogReader:
        return self._catalog

    def policy_for(self, request: ChangeRequest) -> ScoringPolicy:
        """Scoring policy named by *request*, or the configured default."""
        version = request.policy_version
        if version is None or not version.strip():
            version = self._settings.default_policy_version
        return get_policy(version)

    # -- public operations ----------------------------------------------------

    @profile_operation("engine.evaluate")
    def evaluate(self, request: ChangeRequest) -> SimulationResult:
        """Evaluate *request* as submitted."""
        result = self._run(request)
        logger.info(
            "Evaluated %s: %d file(s) env=%s type=%s -> %s / %s (score=%d, rules=%d)",
            request.pull_request_id or "<anonymous>",
            len(request.changed_files),
            request.environment.value,
            request.change_type.value,
            result.risk_level.value,
            result.final_decision.value,
            result.score,
            result.impacted_rule_count,
        )
        return result

    @profile_operation("engine.simulate")
    def simulate(self, request: ChangeRequest, variation: ScenarioVariation) -> SimulationResult:
        """Evaluate *request* as if *variation* had been applied.

        The scope-reduction step-down counts only the files the variation
        actually removed.  Exclusions naming paths that are not part of the
        change do not count towards :data:`SCOPE_REDUCTION_THRESHOLD`.

        Raises
        ------
        SimulationError
            If the variation excludes every changed file.
        """
        altered, removed = self.apply_variation(request, variation)
        result = self._run(altered, removed_files=removed)
        logger.debug(
            "Simulated %r: %s / %s",
            variation.description,
            result.risk_level.value,
            result.final_decision.value,
        )
        return result

    def compare(self, request: ChangeRequest, variation: ScenarioVariation) -> WhatIfReport:
        """Baseline, simulation, delta, and recommendation for one variation."""
        baseline = self.evaluate(request)
        simulated = self.simulate(request, variation)
        delta = compute_delta(baseline, simulated)
        return WhatIfReport(
            pull_request_id=request.pull_request_id,
            variation=variation,
            baseline=baseline,
            simulation=simulated,
            delta=delta,
            recommendation=recommend(delta),
        )

    def suggest_scenarios(self, request: ChangeRequest, max_scenarios: int | None = None) -> ScenarioSuggestionReport:
        """Generate, simulate, and rank alternatives to *request*.

        Raises
        ------
        InvalidInputError
            If *max_scenarios* is below 1.
        """
        limit = self._settings.default_max_scenarios if max_scenarios is None else max_scenarios
        if limit < 1:
            raise InvalidInputError(f"max_scenarios must be >= 1, got {limit}", field="max_scenarios")

        baseline = self.evaluate(request)
        variations = generate_variations(request, self.policy_for(request))
        return rank_scenarios(
            baseline,
            variations,
            lambda variation: self.simulate(request, variation),
            max_scenarios=limit,
            workers=self._settings.simulation_workers,
            pull_request_id=request.pull_request_id,
        )

    # -- pipeline -------------------------------------------------------------

    @staticmethod
    def apply_variation(request: ChangeRequest, variation: ScenarioVariation) -> tuple[ChangeRequest, int]:
        """Return the overridden request and the number of files actually removed."""
        excluded = set(variation.exclude_files)
        unknown = sorted(excluded - set(request.paths))
        if unknown:
            logger.debug("Ignoring exclusions for files not in the change: %s", unknown)

        remaining = tuple(f for f in request.changed_files if f.path not in excluded)
        if not remaining:
            raise SimulationError(
                "Variation excludes every changed file; nothing left to evaluate",
                variation=variation.description,
            )

        altered = request.model_copy(
            update={
                "changed_files": remaining,
                "environment": variation.override_environment or request.environment,
                "change_type": variation.override_change_type or request.change_type,
            }
        )
        return altered, len(request.changed_files) - len(remaining)

    def _rule_index(self, rule_ids: Iterable[str]) -> dict[str, BusinessRule]:
        if isinstance(self._catalog, RuleCatalog):
            return dict(self._catalog.rules)
        index: dict[str, BusinessRule] = {}
        for rule_id in rule_ids:
            rule = self._catalog.get_rule(rule_id)
            if rule is not None:
                index[rule_id] = rule
        return index

    def _run(self, request: ChangeRequest, *, removed_files: int = 0) -> SimulationResult:
        policy = self.policy_for(request)
        report = score_files(request.changed_files, policy, self._incident_reader)

        touched = self._catalog.impact_types_for(request.paths)
        direct_ids = [rule_id for rule_id, kind in touched.items() if kind == ImpactType.DIRECT]
        indirect_ids = [rule_id for rule_id, kind in touched.items() if kind == ImpactType.INDIRECT]
        rules = self._rule_index({*touched, *self._graph.nodes})

        impacts = propagate(
            direct_ids,
            self._graph,
            rules=rules,
            indirect_rule_ids=indirect_ids,
            max_depth=self._settings.cascade_max_depth,
            cascade_decay=self._settings.cascade_decay,
        )

        level = RiskLevel.highest(report.risk_level, highest_impact_level(impacts))
        ceiling = self._decision_policy.exposure_ceiling(request.environment, request.change_type)
        level = RiskLevel.lowest(level, ceiling)
        if removed_files >= SCOPE_REDUCTION_THRESHOLD:
            level = level.step_down()

        outcome = self._decision_policy.build_outcome(
            level,
            request.environment,
            [rules[rule_id] for rule_id in direct_ids if rule_id in rules],
        )
        return SimulationResult(
            risk_level=outcome.risk_level,
            final_decision=outcome.final_decision,
            impacted_rule_count=len(impacts),
            sla_triggered=outcome.sla_triggered,
            notified_teams=outcome.notified_teams,
            restrictions=outcome.restrictions,
            score=report.score,
            policy_version=report.policy_version,
            impacts=tuple(impacts.values()),
        )


# ---------------------------------------------------------------------------
# Module-level entry points
# ---------------------------------------------------------------------------


def evaluate(
    changed_files: Iterable[FileInput] | None,
    environment: Environment | str | None,
    change_type: ChangeType | str | None,
    policy_version: str | None = None,
    *,
    catalog: RuleCatalogReader | None = None,
    settings: EngineSettings | None = None,
) -> SimulationResult:
    """One-shot evaluation with a throwaway :class:`RiskEngine`."""
    request = build_request(changed_files, environment, change_type, policy_version)
    return RiskEngine(catalog, settings).evaluate(request)


def simulate(
    changed_files: Iterable[FileInput] | None,
    environment: Environment | str | None,
    change_type: ChangeType | str | None,
    policy_version: str | None,
    override: ScenarioVariation | Mapping[str, Any],
    *,
    catalog: RuleCatalogReader | None = None,
    settings: EngineSettings | None = None,
) -> SimulationResult:
    """One-shot what-if simulation with a throwaway :class:`RiskEngine`."""
    request = build_request(changed_files, environment, change_type, policy_version)
    return RiskEngine(catalog, settings).simulate(request, _coerce_variation(override))


def suggest_scenarios(
    changed_files: Iterable[FileInput] | None,
    environment: Environment | str | None,
    change_type: ChangeType | str | None,
    policy_version: str | None = None,
    max_scenarios: int | None = None,
    *,
    catalog: RuleCatalogReader | None = None,
    settings: EngineSettings | None = None,
) -> ScenarioSuggestionReport:
    """One-shot scenario suggestion with a throwaway :class:`RiskEngine`."""
    request = build_request(changed_files, environment, change_type, policy_version)
    return RiskEngine(catalog, settings).suggest_scenarios(request, max_scenarios)
