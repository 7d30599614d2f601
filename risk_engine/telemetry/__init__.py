"""Logging and timing instrumentation."""

from __future__ import annotations

from risk_engine.telemetry.json_formatter import JSONFormatter, configure_logging
from risk_engine.telemetry.profiling import OperationTiming, ProfileCollector, profile_operation

__all__ = [
    "JSONFormatter",
    "OperationTiming",
    "ProfileCollector",
    "configure_logging",
    "profile_operation",
]
