"""Business rule catalog and the collaborator protocols the engine reads through."""

from __future__ import annotations

from risk_engine.catalog.protocols import IncidentHistoryReader, RuleCatalogReader
from risk_engine.catalog.rule_catalog import EMPTY_CATALOG, RuleCatalog, load_catalog

__all__ = [
    "EMPTY_CATALOG",
    "IncidentHistoryReader",
    "RuleCatalog",
    "RuleCatalogReader",
    "load_catalog",
]
