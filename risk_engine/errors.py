"""Exception taxonomy for the risk engine.

Only :class:`InvalidInputError` ever escapes a public entry point.
:class:`SimulationError` is raised per variation and contained by the
scenario ranker.  Unknown policy versions and dependency cycles are not
errors at all.
"""

from __future__ import annotations

from pydantic import ValidationError


class RiskEngineError(Exception):
    """Base class for every error raised by the engine."""


class InvalidInputError(RiskEngineError, ValueError):
    """The primary request is missing or has malformed required fields.

    Attributes
    ----------
    field:
        Name of the offending field, when known.
    """

    def __init__(self, message: str, *, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)

    @classmethod
    def from_validation_error(cls, exc: ValidationError) -> InvalidInputError:
        """Flatten a pydantic ``ValidationError`` into a single readable message."""
        errors = exc.errors()
        parts = []
        for err in errors:
            location = ".".join(str(p) for p in err.get("loc", ()))
            parts.append(f"{location}: {err.get('msg', 'invalid value')}" if location else err.get("msg", ""))
        first_field = ".".join(str(p) for p in errors[0].get("loc", ())) if errors else None
        return cls("; ".join(parts) or str(exc), field=first_field or None)


class SimulationError(RiskEngineError):
    """A single what-if variation could not be simulated."""

    def __init__(self, message: str, *, variation: str | None = None) -> None:
        self.variation = variation
        super().__init__(message)
