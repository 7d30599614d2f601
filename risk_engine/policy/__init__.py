"""Scoring policies, file scoring, and gate decisions."""

from __future__ import annotations

from risk_engine.policy.decision import (
    DEFAULT_DECISION_POLICY,
    DecisionOutcome,
    DecisionPolicy,
    build_outcome,
    decide,
    exposure_ceiling,
)
from risk_engine.policy.rule_sets import (
    POLICY_V1,
    POLICY_V2,
    PolicyVersion,
    ScoringPolicy,
    available_policies,
    get_policy,
    resolve_policy_version,
)
from risk_engine.policy.scorer import infer_has_test, is_test_path, level_for_score, score_files

__all__ = [
    "DEFAULT_DECISION_POLICY",
    "POLICY_V1",
    "POLICY_V2",
    "DecisionOutcome",
    "DecisionPolicy",
    "PolicyVersion",
    "ScoringPolicy",
    "available_policies",
    "build_outcome",
    "decide",
    "exposure_ceiling",
    "get_policy",
    "infer_has_test",
    "is_test_path",
    "level_for_score",
    "resolve_policy_version",
    "score_files",
]
