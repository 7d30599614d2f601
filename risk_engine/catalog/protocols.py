"""Collaborator protocol definitions.

The engine only ever reads from these interfaces.  Any object with the
right methods can stand in for the in-memory :class:`RuleCatalog`, e.g.
an adapter over a database snapshot taken before the evaluation starts.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol, runtime_checkable

from risk_engine.models.risk import ImpactType
from risk_engine.models.rule import BusinessRule, RuleDependencyEdge


@runtime_checkable
class RuleCatalogReader(Protocol):
    """Read-only view over business rules, their dependencies, and file mappings."""

    def rules_touched_by(self, files: Iterable[str]) -> list[str]:
        """Return the sorted ids of every rule mapped to any of *files*."""
        ...

    def impact_types_for(self, files: Iterable[str]) -> dict[str, ImpactType]:
        """Map each rule touched by *files* to the strongest impact type.

        A rule reached by both a DIRECT and an INDIRECT mapping is DIRECT.
        """
        ...

    def dependency_edges(self) -> list[RuleDependencyEdge]:
        """Return every dependency edge in a stable order."""
        ...

    def get_rule(self, rule_id: str) -> BusinessRule | None:
        """Look up one rule, or ``None`` when it is not catalogued."""
        ...


@runtime_checkable
class IncidentHistoryReader(Protocol):
    """Source of historical incident counts."""

    def incident_count_for(self, path_or_rule_id: str) -> int:
        """Number of past incidents attributed to a file path or rule id."""
        ...
