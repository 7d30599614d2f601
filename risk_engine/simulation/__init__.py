"""Evaluation and counterfactual simulation.

The engine lives in :mod:`risk_engine.simulation.engine`; it is not
re-exported here because the scenario ranker imports
:mod:`risk_engine.simulation.delta` while the engine imports the ranker.
"""

from __future__ import annotations

from risk_engine.simulation.delta import build_explanation, compute_delta, recommend

__all__ = ["build_explanation", "compute_delta", "recommend"]
