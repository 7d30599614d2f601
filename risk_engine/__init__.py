"""Change risk decision engine.

Scores a proposed change, propagates its impact across business-rule
dependencies, and explores what-if alternatives that would lower the risk.
"""

from __future__ import annotations

from risk_engine.catalog import IncidentHistoryReader, RuleCatalog, RuleCatalogReader, load_catalog
from risk_engine.config import EngineSettings, load_settings
from risk_engine.errors import InvalidInputError, RiskEngineError, SimulationError
from risk_engine.models import (
    ChangedFile,
    ChangeRequest,
    ChangeType,
    Environment,
    FinalDecision,
    RiskLevel,
    ScenarioSuggestionReport,
    ScenarioVariation,
    SimulationResult,
)
from risk_engine.simulation.engine import RiskEngine, build_request, evaluate, simulate, suggest_scenarios

__version__ = "0.1.0"

__all__ = [
    "ChangeRequest",
    "ChangeType",
    "ChangedFile",
    "EngineSettings",
    "Environment",
    "FinalDecision",
    "IncidentHistoryReader",
    "InvalidInputError",
    "RiskEngine",
    "RiskEngineError",
    "RiskLevel",
    "RuleCatalog",
    "RuleCatalogReader",
    "ScenarioSuggestionReport",
    "ScenarioVariation",
    "SimulationError",
    "SimulationResult",
    "build_request",
    "evaluate",
    "load_catalog",
    "load_settings",
    "simulate",
    "suggest_scenarios",
]
