"""Versioned scoring policies.

A policy is an immutable bundle of constants.  Versions are an enum that
maps onto exactly one bundle; selection is a pure lookup.  V1 and V2 may
be used side by side within the same process, but a single evaluation
only ever sees one of them.

===================  ======  ======
Constant             V1      V2
===================  ======  ======
critical file        30      30
semi-critical file   --      15 ("controller")
> 100 lines          20      20
50-100 lines         10      10
no test              20      25
per incident         5       5
incident cap/file    20      20
max score            100     100
incidents billing    3       4
incidents payment    2       3
incidents order      1       2
===================  ======  ======
"""

from __future__ import annotations

import logging
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)


class PolicyVersion(str, Enum):
    V1 = "v1"
    V2 = "v2"


DEFAULT_POLICY_VERSION = PolicyVersion.V1

_CRITICAL_KEYWORDS: tuple[str, ...] = ("billing", "payment", "pricing", "order")


class ScoringPolicy(BaseModel):
    """Constants for one scoring policy version."""

    model_config = ConfigDict(frozen=True)

    version: PolicyVersion
    critical_keywords: tuple[str, ...] = _CRITICAL_KEYWORDS
    semi_critical_keywords: tuple[str, ...] = ()
    critical_file_score: int = Field(default=30, ge=0)
    semi_critical_file_score: int = Field(default=0, ge=0)
    lines_over_100_score: int = Field(default=20, ge=0)
    lines_50_to_100_score: int = Field(default=10, ge=0)
    no_test_score: int = Field(default=20, ge=0)
    incident_score: int = Field(default=5, ge=0)
    max_incident_score: int = Field(default=20, ge=0)
    max_score: int = Field(default=100, ge=1)
    incident_history: tuple[tuple[str, int], ...] = Field(
        default=(),
        description="Ordered (path keyword, incident count) pairs; the first match wins.",
    )

    def is_critical_file(self, path: str) -> bool:
        return _contains_any(path, self.critical_keywords)

    def is_semi_critical_file(self, path: str) -> bool:
        return _contains_any(path, self.semi_critical_keywords)

    def incident_history_for(self, path: str) -> int:
        """Known incident count for *path* according to the policy's keyword table."""
        lowered = path.lower()
        for keyword, count in self.incident_history:
            if keyword in lowered:
                return count
        return 0

    def line_band_score(self, lines_changed: int) -> int:
        if lines_changed > 100:
            return self.lines_over_100_score
        if lines_changed >= 50:
            return self.lines_50_to_100_score
        return 0


def _contains_any(path: str, keywords: tuple[str, ...]) -> bool:
    if not path or not keywords:
        return False
    lowered = path.lower()
    return any(keyword in lowered for keyword in keywords)


POLICY_V1 = ScoringPolicy(
    version=PolicyVersion.V1,
    no_test_score=20,
    incident_history=(("billing", 3), ("payment", 2), ("order", 1)),
)

POLICY_V2 = ScoringPolicy(
    version=PolicyVersion.V2,
    semi_critical_keywords=("controller",),
    semi_critical_file_score=15,
    no_test_score=25,
    incident_history=(("billing", 4), ("payment", 3), ("order", 2)),
)

_POLICIES: dict[PolicyVersion, ScoringPolicy] = {
    PolicyVersion.V1: POLICY_V1,
    PolicyVersion.V2: POLICY_V2,
}


def resolve_policy_version(version: str | None) -> PolicyVersion:
    """Map a caller-supplied version string onto a known version.

    Matching is trimmed and case-insensitive.  ``None``, blank, and
    unknown strings resolve to the default; unknown strings also log a
    warning so that typos are visible without failing the request.
    """
    if version is None or not version.strip():
        return DEFAULT_POLICY_VERSION
    normalised = version.strip().lower()
    try:
        return PolicyVersion(normalised)
    except ValueError:
        logger.warning(
            "Unknown policy version %r; falling back to %s",
            version,
            DEFAULT_POLICY_VERSION.value,
        )
        return DEFAULT_POLICY_VERSION


def get_policy(version: str | PolicyVersion | None = None) -> ScoringPolicy:
    """Return the scoring policy for *version* (default V1)."""
    if isinstance(version, PolicyVersion):
        return _POLICIES[version]
    return _POLICIES[resolve_policy_version(version)]


def available_policies() -> list[ScoringPolicy]:
    return [_POLICIES[v] for v in PolicyVersion]
