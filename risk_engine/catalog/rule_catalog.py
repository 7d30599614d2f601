"""In-memory rule catalog snapshot.

A :class:`RuleCatalog` is built once (from code, a dict, or a JSON file)
and handed to the engine read-only.  The dependency graph is built and
validated at construction time, so a catalog that exists is one whose
edges are free of self-loops and duplicates.

JSON layout accepted by :meth:`RuleCatalog.from_dict`::

    {
      "rules": [
        {"rule_id": "BR-PAY-001", "name": "Card capture",
         "domain": "PAYMENT", "criticality": "CRITICA", "owner_team": "Payments"}
      ],
      "dependencies": [
        {"source_rule_id": "BR-PAY-001", "target_rule_id": "BR-BIL-002",
         "dependency_type": "FEEDS", "rationale": "captured amount is invoiced"}
      ],
      "mappings": [
        {"file_path": "src/payment/capture.py", "rule_id": "BR-PAY-001", "impact_type": "DIRECT"}
      ]
    }
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

import networkx as nx
from pydantic import ValidationError

from risk_engine.errors import InvalidInputError
from risk_engine.graph.cascade import build_rule_graph
from risk_engine.models.risk import ImpactType
from risk_engine.models.rule import BusinessRule, FileRuleMapping, RuleDependencyEdge

logger = logging.getLogger(__name__)


class RuleCatalog:
    """Read-only snapshot of rules, dependency edges, and file mappings.

    Parameters
    ----------
    rules:
        Catalogued business rules.  Later duplicates of a ``rule_id`` are ignored.
    dependencies:
        Directed ``source -> target`` edges.
    mappings:
        File-to-rule mappings.
    """

    def __init__(
        self,
        rules: Iterable[BusinessRule] = (),
        dependencies: Iterable[RuleDependencyEdge] = (),
        mappings: Iterable[FileRuleMapping] = (),
    ) -> None:
        self._rules: dict[str, BusinessRule] = {}
        for rule in rules:
            if rule.rule_id in self._rules:
                logger.debug("Ignoring duplicate rule definition %s", rule.rule_id)
                continue
            self._rules[rule.rule_id] = rule

        edges = list(dependencies)
        self._graph = build_rule_graph(edges)
        seen: set[tuple[str, str]] = set()
        self._edges: list[RuleDependencyEdge] = []
        for edge in edges:
            if edge.key not in seen:
                seen.add(edge.key)
                self._edges.append(edge)
        self._edges.sort(key=lambda e: e.key)

        self._mappings: dict[str, list[FileRuleMapping]] = {}
        for mapping in mappings:
            self._mappings.setdefault(mapping.file_path, []).append(mapping)

        unknown = sorted(n for n in self._graph.nodes if n not in self._rules)
        if unknown:
            logger.debug("Dependency graph references %d uncatalogued rule(s): %s", len(unknown), unknown)

    # -- construction -------------------------------------------------------

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> RuleCatalog:
        """Build a catalog from a parsed JSON document.

        Raises
        ------
        InvalidInputError
            If any entry fails validation (including self-referencing edges).
        """
        try:
            rules = [BusinessRule.model_validate(r) for r in data.get("rules", [])]
            dependencies = [RuleDependencyEdge.model_validate(d) for d in data.get("dependencies", [])]
            mappings = [FileRuleMapping.model_validate(m) for m in data.get("mappings", [])]
        except ValidationError as exc:
            raise InvalidInputError.from_validation_error(exc) from exc
        return cls(rules=rules, dependencies=dependencies, mappings=mappings)

    # -- RuleCatalogReader ----------------------------------------------------

    def rules_touched_by(self, files: Iterable[str]) -> list[str]:
        return sorted(self.impact_types_for(files))

    def impact_types_for(self, files: Iterable[str]) -> dict[str, ImpactType]:
        touched: dict[str, ImpactType] = {}
        for path in files:
            for mapping in self._mappings.get(path, ()):
                if touched.get(mapping.rule_id) != ImpactType.DIRECT:
                    touched[mapping.rule_id] = mapping.impact_type
        return {rule_id: touched[rule_id] for rule_id in sorted(touched)}

    def dependency_edges(self) -> list[RuleDependencyEdge]:
        return list(self._edges)

    def get_rule(self, rule_id: str) -> BusinessRule | None:
        return self._rules.get(rule_id)

    # -- accessors ------------------------------------------------------------

    @property
    def graph(self) -> nx.DiGraph:
        """The validated dependency graph.  Callers must not mutate it."""
        return self._graph

    @property
    def rules(self) -> Mapping[str, BusinessRule]:
        return dict(self._rules)

    def __len__(self) -> int:
        return len(self._rules)

    def __repr__(self) -> str:
        return (
            f"RuleCatalog(rules={len(self._rules)}, edges={self._graph.number_of_edges()}, "
            f"mapped_files={len(self._mappings)})"
        )


def load_catalog(path: str | Path) -> RuleCatalog:
    """Read a catalog JSON document from *path*."""
    catalog_path = Path(path)
    try:
        data = json.loads(catalog_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise InvalidInputError(f"Catalog file {catalog_path} is not valid JSON: {exc}", field="catalog") from exc
    if not isinstance(data, dict):
        raise InvalidInputError(f"Catalog file {catalog_path} must contain a JSON object", field="catalog")

    catalog = RuleCatalog.from_dict(data)
    logger.info("Loaded rule catalog from %s: %r", catalog_path, catalog)
    return catalog


EMPTY_CATALOG = RuleCatalog()
