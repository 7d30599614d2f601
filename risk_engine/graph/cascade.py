"""Cascade propagation over the business-rule dependency graph.

Rules touched by a change are *seeds*.  From every seed a breadth-first
walk follows outgoing dependency edges (``source -> target`` means a
change to the source impacts the target) up to ``max_depth`` hops.

Classification of a reached rule:

* seeds touched through a DIRECT file mapping are **DIRECT**;
* rules reached one or more hops from a DIRECT seed are **CASCADE**;
* seeds touched only through an INDIRECT mapping, and rules reached only
  from such seeds, are **INDIRECT**.

When a rule is reached along several paths the strongest classification
wins (DIRECT > CASCADE > INDIRECT) and its risk level is the maximum
over all paths.  A reached rule never carries more risk than an
INDIRECT touch of its own criticality, and always sits at least
``cascade_decay`` levels below the seed it was reached from.

Each walk keeps its own visited set and never re-enqueues a visited
rule, so dependency cycles terminate without being reported.  Successors
are visited in sorted order so that depth and path are reproducible.
"""

from __future__ import annotations

import logging
from collections import deque
from collections.abc import Iterable, Mapping

import networkx as nx

from risk_engine.errors import InvalidInputError
from risk_engine.models.result import RuleImpact
from risk_engine.models.risk import Criticality, ImpactClassification, ImpactType, RiskLevel
from risk_engine.models.rule import BusinessRule, DependencyType, RuleDependencyEdge
from risk_engine.telemetry.profiling import profile_operation

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 3
DEFAULT_CASCADE_DECAY = 1

EdgeLike = RuleDependencyEdge | tuple[str, str]


# ---------------------------------------------------------------------------
# Graph construction
# ---------------------------------------------------------------------------


def build_rule_graph(edges: Iterable[EdgeLike]) -> nx.DiGraph:
    """Build a directed rule graph from dependency edges.

    Edges may be :class:`RuleDependencyEdge` objects or bare
    ``(source, target)`` pairs.  Duplicate edges collapse onto the first
    occurrence, whose dependency type and rationale are kept.

    Raises
    ------
    InvalidInputError
        If an edge points a rule at itself.
    """
    graph = nx.DiGraph()
    for edge in edges:
        if isinstance(edge, RuleDependencyEdge):
            source, target = edge.source_rule_id, edge.target_rule_id
            dependency_type, rationale = edge.dependency_type, edge.rationale
        else:
            source, target = edge
            dependency_type, rationale = DependencyType.DEPENDS_ON, ""

        if source == target:
            raise InvalidInputError(f"Rule '{source}' cannot depend on itself.", field="dependencies")
        if graph.has_edge(source, target):
            logger.debug("Ignoring duplicate dependency %s -> %s", source, target)
            continue
        graph.add_edge(source, target, dependency_type=dependency_type, rationale=rationale)

    return graph


# ---------------------------------------------------------------------------
# Propagation
# ---------------------------------------------------------------------------


@profile_operation("cascade.propagate")
def propagate(
    direct_rule_ids: Iterable[str],
    edges_or_graph: nx.DiGraph | Iterable[EdgeLike],
    *,
    rules: Mapping[str, BusinessRule] | None = None,
    indirect_rule_ids: Iterable[str] = (),
    max_depth: int = DEFAULT_MAX_DEPTH,
    cascade_decay: int = DEFAULT_CASCADE_DECAY,
) -> dict[str, RuleImpact]:
    """Classify every rule reachable from the seeds within *max_depth* hops.

    The walk is depth-bounded: a rule more than *max_depth* hops from every
    seed is not reported at all, even though the graph reaches it.  Raise
    the bound (``cascade_max_depth`` in the settings) to follow longer
    chains.

    Parameters
    ----------
    direct_rule_ids:
        Rules touched through a DIRECT file mapping.
    edges_or_graph:
        A graph from :func:`build_rule_graph`, or the raw edges to build one.
    rules:
        Catalogued rules by id.  Rules missing from the mapping are treated
        as criticality BAIXA.
    indirect_rule_ids:
        Rules touched only through an INDIRECT file mapping.
    max_depth:
        Maximum number of hops walked from any seed.  ``0`` reports the
        seeds only.
    cascade_decay:
        Levels a reached rule sits below the seed it was reached from.

    Returns
    -------
    dict[str, RuleImpact]
        Impacts keyed by rule id, in sorted key order.
    """
    if max_depth < 0:
        raise InvalidInputError(f"max_depth must be >= 0, got {max_depth}", field="max_depth")
    if cascade_decay < 1:
        raise InvalidInputError(f"cascade_decay must be >= 1, got {cascade_decay}", field="cascade_decay")

    graph = edges_or_graph if isinstance(edges_or_graph, nx.DiGraph) else build_rule_graph(edges_or_graph)
    catalog = rules or {}
    impacts: dict[str, RuleImpact] = {}

    def criticality_of(rule_id: str) -> Criticality:
        rule = catalog.get(rule_id)
        return rule.criticality if rule is not None else Criticality.BAIXA

    seeds = [
        (rule_id, ImpactType.DIRECT, ImpactClassification.DIRECT, ImpactClassification.CASCADE)
        for rule_id in sorted(set(direct_rule_ids))
    ] + [
        (rule_id, ImpactType.INDIRECT, ImpactClassification.INDIRECT, ImpactClassification.INDIRECT)
        for rule_id in sorted(set(indirect_rule_ids))
    ]

    for seed, impact_type, seed_class, reached_class in seeds:
        origin_level = RiskLevel.from_rule(criticality_of(seed), impact_type)
        _merge(impacts, RuleImpact(rule_id=seed, classification=seed_class, risk_level=origin_level, path=(seed,)))

        ceiling = origin_level.step_down(cascade_decay)
        visited: set[str] = {seed}
        queue: deque[tuple[str, int, tuple[str, ...]]] = deque([(seed, 0, (seed,))])

        while queue:
            node, depth, path = queue.popleft()
            if depth >= max_depth or node not in graph:
                continue
            for successor in sorted(graph.successors(node)):
                if successor in visited:
                    continue
                visited.add(successor)
                level = RiskLevel.lowest(
                    RiskLevel.from_rule(criticality_of(successor), ImpactType.INDIRECT),
                    ceiling,
                )
                next_path = (*path, successor)
                _merge(
                    impacts,
                    RuleImpact(
                        rule_id=successor,
                        classification=reached_class,
                        risk_level=level,
                        depth=depth + 1,
                        path=next_path,
                    ),
                )
                queue.append((successor, depth + 1, next_path))

    logger.debug(
        "Propagated %d seed(s) to %d impacted rule(s) (max_depth=%d, decay=%d)",
        len(seeds),
        len(impacts),
        max_depth,
        cascade_decay,
    )
    return {rule_id: impacts[rule_id] for rule_id in sorted(impacts)}


def _merge(impacts: dict[str, RuleImpact], candidate: RuleImpact) -> None:
    """Fold *candidate* into *impacts*, keeping the strongest classification and highest level."""
    existing = impacts.get(candidate.rule_id)
    if existing is None:
        impacts[candidate.rule_id] = candidate
        return

    # Depth and path follow the strongest classification, then the shortest walk.
    primary = existing
    if candidate.classification.strength > existing.classification.strength or (
        candidate.classification == existing.classification and candidate.depth < existing.depth
    ):
        primary = candidate

    impacts[candidate.rule_id] = RuleImpact(
        rule_id=candidate.rule_id,
        classification=primary.classification,
        risk_level=RiskLevel.highest(existing.risk_level, candidate.risk_level),
        depth=primary.depth,
        path=primary.path,
    )


def highest_impact_level(impacts: Mapping[str, RuleImpact]) -> RiskLevel:
    """Most severe risk level among *impacts* (BAIXO when empty)."""
    return RiskLevel.highest(*(impact.risk_level for impact in impacts.values()))
