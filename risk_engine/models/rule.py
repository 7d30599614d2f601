"""Business rule catalog schema.

Rules, dependency edges, and file-to-rule mappings are immutable once
loaded.  The catalog owns them for the duration of an evaluation.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

from risk_engine.models.risk import Criticality, ImpactType


class Domain(str, Enum):
    """Business domain a rule belongs to."""

    PAYMENT = "PAYMENT"
    BILLING = "BILLING"
    ORDER = "ORDER"
    USER = "USER"
    GENERIC = "GENERIC"


class DependencyType(str, Enum):
    """Nature of the relationship between two rules.

    Whatever the type, an edge is oriented so that a change to the
    *source* rule impacts the *target* rule.
    """

    DEPENDS_ON = "DEPENDS_ON"
    FEEDS = "FEEDS"
    VALIDATES = "VALIDATES"
    AGGREGATES = "AGGREGATES"
    DERIVES_FROM = "DERIVES_FROM"

    @property
    def label(self) -> str:
        return _DEPENDENCY_LABELS[self]


_DEPENDENCY_LABELS: dict[DependencyType, str] = {
    DependencyType.DEPENDS_ON: "depends on",
    DependencyType.FEEDS: "feeds",
    DependencyType.VALIDATES: "validates",
    DependencyType.AGGREGATES: "aggregates",
    DependencyType.DERIVES_FROM: "derives from",
}


class BusinessRule(BaseModel):
    """A catalogued business rule."""

    model_config = ConfigDict(frozen=True)

    rule_id: str = Field(..., min_length=1, description="Opaque rule identifier.")
    name: str = Field(..., min_length=1, description="Human-readable rule name.")
    domain: Domain = Field(default=Domain.GENERIC, description="Business domain.")
    criticality: Criticality = Field(default=Criticality.MEDIA, description="Business criticality.")
    owner_team: str | None = Field(
        default=None,
        description="Team that owns the rule; notified when the rule is directly hit by a high-risk change.",
    )


class RuleDependencyEdge(BaseModel):
    """Directed dependency ``source -> target`` between two rules."""

    model_config = ConfigDict(frozen=True)

    source_rule_id: str = Field(..., min_length=1, description="Rule whose change causes the impact.")
    target_rule_id: str = Field(..., min_length=1, description="Rule that receives the impact.")
    dependency_type: DependencyType = Field(default=DependencyType.DEPENDS_ON)
    rationale: str = Field(default="", description="Free-text business explanation of the dependency.")

    @model_validator(mode="after")
    def reject_self_loop(self) -> RuleDependencyEdge:
        if self.source_rule_id == self.target_rule_id:
            raise ValueError(f"Rule '{self.source_rule_id}' cannot depend on itself.")
        return self

    @property
    def key(self) -> tuple[str, str]:
        return (self.source_rule_id, self.target_rule_id)


class FileRuleMapping(BaseModel):
    """Declares that *file_path* implements (DIRECT) or influences (INDIRECT) a rule."""

    model_config = ConfigDict(frozen=True)

    file_path: str = Field(..., min_length=1)
    rule_id: str = Field(..., min_length=1)
    impact_type: ImpactType = Field(default=ImpactType.DIRECT)
