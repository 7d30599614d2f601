"""Deterministic file scorer.

Turns the changed files of a request into a clamped point total and a
score-derived risk level, along with a human-readable list of
contributing factors per file.  No randomness, no learned weights: the
same files under the same policy always produce the same report.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from risk_engine.catalog.protocols import IncidentHistoryReader
from risk_engine.models.change import ChangedFile
from risk_engine.models.result import FileScore, ScoreReport
from risk_engine.models.risk import RiskLevel
from risk_engine.policy.rule_sets import ScoringPolicy
from risk_engine.telemetry.profiling import profile_operation

logger = logging.getLogger(__name__)

# Score -> level thresholds, checked from the top.
_LEVEL_THRESHOLDS: tuple[tuple[int, RiskLevel], ...] = (
    (80, RiskLevel.CRITICO),
    (60, RiskLevel.ALTO),
    (30, RiskLevel.MEDIO),
)

_TEST_DIRECTORIES: frozenset[str] = frozenset({"test", "tests", "__tests__"})


def level_for_score(score: int) -> RiskLevel:
    """Map a clamped score onto a risk level (>=80 CRITICO, >=60 ALTO, >=30 MEDIO)."""
    for threshold, level in _LEVEL_THRESHOLDS:
        if score >= threshold:
            return level
    return RiskLevel.BAIXO


def _file_name(path: str) -> str:
    return path.replace("\\", "/").rsplit("/", 1)[-1]


def _stem(path: str) -> str:
    return _file_name(path).split(".", 1)[0]


def is_test_path(path: str) -> bool:
    """True when *path* looks like a test file."""
    normalised = path.replace("\\", "/")
    directories = normalised.lower().split("/")[:-1]
    if any(segment in _TEST_DIRECTORIES for segment in directories):
        return True

    name = _file_name(normalised)
    stem = _stem(normalised)
    lowered = name.lower()
    if lowered.startswith("test_") or stem.lower().endswith("_test"):
        return True
    if stem.endswith("Test") or stem.endswith("Tests"):
        return True
    return ".spec." in lowered or ".test." in lowered


def infer_has_test(file: ChangedFile, change_set: Sequence[ChangedFile]) -> bool:
    """Resolve whether *file* has an associated test.

    An explicit ``has_test`` always wins.  Otherwise the file counts as
    tested if it is a test itself, or if another file in the same change
    set is a test whose name contains this file's stem.
    """
    if file.has_test is not None:
        return file.has_test
    if is_test_path(file.path):
        return True

    stem = _stem(file.path).lower()
    if not stem:
        return False
    for other in change_set:
        if other.path == file.path or not is_test_path(other.path):
            continue
        if stem in _file_name(other.path).lower():
            return True
    return False


def score_file(
    file: ChangedFile,
    policy: ScoringPolicy,
    *,
    has_test: bool,
    incident_count: int,
) -> FileScore:
    """Score a single file under *policy*."""
    points = 0
    factors: list[str] = []

    critical = policy.is_critical_file(file.path)
    semi_critical = not critical and policy.is_semi_critical_file(file.path)
    if critical:
        points += policy.critical_file_score
        factors.append(f"Critical file (+{policy.critical_file_score})")
    elif semi_critical and policy.semi_critical_file_score:
        points += policy.semi_critical_file_score
        factors.append(f"Semi-critical file (+{policy.semi_critical_file_score})")

    band = policy.line_band_score(file.lines_changed)
    if band:
        points += band
        factors.append(f"{file.lines_changed} lines changed (+{band})")

    if not has_test:
        points += policy.no_test_score
        factors.append(f"No associated test (+{policy.no_test_score})")

    if incident_count > 0:
        incident_points = min(policy.incident_score * incident_count, policy.max_incident_score)
        points += incident_points
        factors.append(f"{incident_count} past incident(s) (+{incident_points})")

    return FileScore(
        path=file.path,
        points=points,
        critical=critical,
        semi_critical=semi_critical,
        has_test=has_test,
        incident_count=incident_count,
        factors=tuple(factors),
    )


@profile_operation("policy.score")
def score_files(
    files: Sequence[ChangedFile],
    policy: ScoringPolicy,
    incident_reader: IncidentHistoryReader | None = None,
) -> ScoreReport:
    """Score every file and aggregate into a clamped :class:`ScoreReport`.

    Parameters
    ----------
    files:
        The change set.  Also used to infer test presence.
    policy:
        Scoring constants to apply.
    incident_reader:
        Optional incident history; when absent the policy's keyword
        incident table is used.
    """
    scored: list[FileScore] = []
    for file in files:
        if incident_reader is not None:
            incidents = max(0, incident_reader.incident_count_for(file.path))
        else:
            incidents = policy.incident_history_for(file.path)
        scored.append(
            score_file(
                file,
                policy,
                has_test=infer_has_test(file, files),
                incident_count=incidents,
            )
        )

    raw = sum(f.points for f in scored)
    clamped = min(raw, policy.max_score)
    level = level_for_score(clamped)

    logger.debug(
        "Scored %d file(s) under %s: raw=%d score=%d level=%s",
        len(scored),
        policy.version.value,
        raw,
        clamped,
        level.value,
    )
    return ScoreReport(
        policy_version=policy.version.value,
        raw_score=raw,
        score=clamped,
        risk_level=level,
        files=tuple(scored),
    )
