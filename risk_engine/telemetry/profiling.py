"""Timing instrumentation for the engine's hot paths.

``@profile_operation(name)`` wraps a function with a ``perf_counter_ns``
timer.  Each call is recorded into the process-wide
:class:`ProfileCollector` and logged at DEBUG level::

    @profile_operation("cascade.propagate")
    def propagate(...):
        ...

The collector keeps the most recent ``max_results`` timings per
operation and reports count / mean / p50 / p95 / p99 / min / max.
"""

from __future__ import annotations

import functools
import logging
import threading
import time
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, TypeVar

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


@dataclass(frozen=True)
class OperationTiming:
    """One timed call."""

    operation: str
    duration_ms: float
    failed: bool = False


class ProfileCollector:
    """Thread-safe ring buffer of recent timings, keyed by operation name.

    Parameters
    ----------
    max_results:
        Number of timings retained per operation.
    """

    _instance: ProfileCollector | None = None
    _instance_lock = threading.Lock()

    def __init__(self, max_results: int = 100) -> None:
        self._max_results = max_results
        self._timings: dict[str, deque[OperationTiming]] = {}
        self._lock = threading.Lock()

    @classmethod
    def get_instance(cls) -> ProfileCollector:
        if cls._instance is None:
            with cls._instance_lock:
                if cls._instance is None:
                    cls._instance = ProfileCollector()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Drop the singleton (for testing)."""
        with cls._instance_lock:
            cls._instance = None

    def record(self, timing: OperationTiming) -> None:
        with self._lock:
            bucket = self._timings.setdefault(timing.operation, deque(maxlen=self._max_results))
            bucket.append(timing)

    def operations(self) -> list[str]:
        with self._lock:
            return sorted(self._timings)

    def get_stats(self, operation: str) -> dict[str, Any] | None:
        """Aggregate the retained timings for *operation*, or ``None`` if there are none."""
        with self._lock:
            bucket = self._timings.get(operation)
            if not bucket:
                return None
            durations = sorted(t.duration_ms for t in bucket)
            failures = sum(1 for t in bucket if t.failed)

        count = len(durations)
        return {
            "operation": operation,
            "count": count,
            "failures": failures,
            "mean_ms": round(sum(durations) / count, 3),
            "p50_ms": round(_percentile(durations, 50), 3),
            "p95_ms": round(_percentile(durations, 95), 3),
            "p99_ms": round(_percentile(durations, 99), 3),
            "min_ms": round(durations[0], 3),
            "max_ms": round(durations[-1], 3),
        }

    def clear(self) -> None:
        with self._lock:
            self._timings.clear()


def _percentile(sorted_values: list[float], p: float) -> float:
    """Linear-interpolated percentile of an already sorted list."""
    if not sorted_values:
        return 0.0
    k = (p / 100.0) * (len(sorted_values) - 1)
    lower = int(k)
    upper = min(lower + 1, len(sorted_values) - 1)
    return sorted_values[lower] + (k - lower) * (sorted_values[upper] - sorted_values[lower])


def profile_operation(name: str) -> Callable[[F], F]:
    """Decorator that times every call of the wrapped function under *name*."""

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            start_ns = time.perf_counter_ns()
            failed = False
            try:
                return func(*args, **kwargs)
            except Exception:
                failed = True
                raise
            finally:
                duration_ms = (time.perf_counter_ns() - start_ns) / 1_000_000
                ProfileCollector.get_instance().record(
                    OperationTiming(operation=name, duration_ms=round(duration_ms, 3), failed=failed)
                )
                logger.debug("PROFILE %s: %.3f ms", name, duration_ms)

        return wrapper  # type: ignore[return-value]

    return decorator
