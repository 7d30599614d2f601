"""Candidate scenario generation.

Variations come from a fixed, ordered rule table.  Each rule is a
predicate over the request and a builder that returns the variation, or
``None`` when the rule has nothing useful to propose (e.g. no critical
file to exclude).  The same request always yields the same variations in
the same order.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from risk_engine.models.change import ChangeRequest, ChangeType, Environment, ScenarioVariation
from risk_engine.policy.rule_sets import ScoringPolicy

logger = logging.getLogger(__name__)

Predicate = Callable[[ChangeRequest], bool]
Builder = Callable[[ChangeRequest, ScoringPolicy], ScenarioVariation | None]


@dataclass(frozen=True)
class ScenarioRule:
    """One row of the generation table."""

    name: str
    applies: Predicate
    build: Builder


def _always(_request: ChangeRequest) -> bool:
    return True


def _in_production(request: ChangeRequest) -> bool:
    return request.environment == Environment.PRODUCTION


def _override(
    description: str,
    environment: Environment | None = None,
    change_type: ChangeType | None = None,
) -> Builder:
    def build(_request: ChangeRequest, _policy: ScoringPolicy) -> ScenarioVariation:
        return ScenarioVariation(
            description=description,
            override_environment=environment,
            override_change_type=change_type,
        )

    return build


def _exclude_critical_files(request: ChangeRequest, policy: ScoringPolicy) -> ScenarioVariation | None:
    critical = tuple(path for path in request.paths if policy.is_critical_file(path))
    if not critical or len(critical) == len(request.changed_files):
        return None
    return ScenarioVariation(
        description=f"Exclude {len(critical)} critical file(s) from this change",
        exclude_files=critical,
    )


def _split_change(request: ChangeRequest, _policy: ScoringPolicy) -> ScenarioVariation | None:
    paths = request.paths
    if len(paths) < 2:
        return None
    deferred = tuple(paths[(len(paths) + 1) // 2 :])
    return ScenarioVariation(
        description=f"Split the PR: defer {len(deferred)} of {len(paths)} file(s) to a follow-up",
        exclude_files=deferred,
    )


SCENARIO_RULES: tuple[ScenarioRule, ...] = (
    ScenarioRule(
        "production-to-staging",
        _in_production,
        _override("Deploy to STAGING before PRODUCTION", environment=Environment.STAGING),
    ),
    ScenarioRule(
        "production-to-dev",
        _in_production,
        _override("Validate in DEV before PRODUCTION", environment=Environment.DEV),
    ),
    ScenarioRule(
        "hotfix-to-feature",
        lambda r: r.change_type == ChangeType.HOTFIX,
        _override("Ship as a planned FEATURE instead of a HOTFIX", change_type=ChangeType.FEATURE),
    ),
    ScenarioRule(
        "feature-to-refactor",
        lambda r: r.change_type == ChangeType.FEATURE,
        _override("Reframe as a REFACTOR without behaviour change", change_type=ChangeType.REFACTOR),
    ),
    ScenarioRule("exclude-critical-files", _always, _exclude_critical_files),
    ScenarioRule("split-change", _always, _split_change),
    ScenarioRule(
        "staging-feature",
        lambda r: _in_production(r) and r.change_type == ChangeType.HOTFIX,
        _override(
            "Deploy to STAGING as a planned FEATURE",
            environment=Environment.STAGING,
            change_type=ChangeType.FEATURE,
        ),
    ),
)


def generate_variations(
    request: ChangeRequest,
    policy: ScoringPolicy,
    rules: tuple[ScenarioRule, ...] = SCENARIO_RULES,
) -> list[ScenarioVariation]:
    """Apply *rules* in order and collect the variations they produce."""
    variations: list[ScenarioVariation] = []
    for rule in rules:
        if not rule.applies(request):
            continue
        variation = rule.build(request, policy)
        if variation is None:
            logger.debug("Scenario rule %s produced no variation", rule.name)
            continue
        variations.append(variation)

    logger.debug("Generated %d variation(s) for %s", len(variations), request.pull_request_id or "<anonymous>")
    return variations
