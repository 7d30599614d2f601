"""Business-rule dependency graph and cascade propagation."""

from __future__ import annotations

from risk_engine.graph.cascade import build_rule_graph, highest_impact_level, propagate

__all__ = ["build_rule_graph", "highest_impact_level", "propagate"]
