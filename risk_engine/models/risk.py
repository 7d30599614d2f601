"""Ordered risk vocabulary shared by scoring, propagation, and ranking.

Every enum that takes part in a comparison exposes an explicit integer
ordinal.  The enums are ``str``-valued for clean JSON round-trips, so
their natural ``<`` is lexicographic and must never be used for ordering.
"""

from __future__ import annotations

from enum import Enum


class Criticality(str, Enum):
    """Business criticality of a rule, ordered BAIXA < MEDIA < ALTA < CRITICA."""

    BAIXA = "BAIXA"
    MEDIA = "MEDIA"
    ALTA = "ALTA"
    CRITICA = "CRITICA"

    @property
    def rank(self) -> int:
        return _CRITICALITY_ORDER.index(self)


class ImpactType(str, Enum):
    """How a changed file relates to the rule it maps to."""

    DIRECT = "DIRECT"  # file implements the rule
    INDIRECT = "INDIRECT"  # file influences the rule


class RiskLevel(str, Enum):
    """Severity of a change, ordered BAIXO < MEDIO < ALTO < CRITICO."""

    BAIXO = "BAIXO"
    MEDIO = "MEDIO"
    ALTO = "ALTO"
    CRITICO = "CRITICO"

    @property
    def ordinal(self) -> int:
        """Numeric position: BAIXO=0 .. CRITICO=3."""
        return _RISK_ORDER.index(self)

    @property
    def label(self) -> str:
        return _RISK_LABELS[self]

    @classmethod
    def from_ordinal(cls, value: int) -> RiskLevel:
        """Return the level at *value*, clamped into ``[0, 3]``."""
        return _RISK_ORDER[max(0, min(value, len(_RISK_ORDER) - 1))]

    @classmethod
    def highest(cls, *levels: RiskLevel | None) -> RiskLevel:
        """Return the most severe of *levels*, ignoring ``None``.

        An empty argument list (or only ``None`` values) yields BAIXO.
        """
        present = [lvl for lvl in levels if lvl is not None]
        if not present:
            return cls.BAIXO
        return max(present, key=lambda lvl: lvl.ordinal)

    @classmethod
    def lowest(cls, *levels: RiskLevel) -> RiskLevel:
        return min(levels, key=lambda lvl: lvl.ordinal)

    def step_down(self, levels: int = 1) -> RiskLevel:
        """Return the level *levels* positions below this one (floored at BAIXO)."""
        return RiskLevel.from_ordinal(self.ordinal - levels)

    def distance_to(self, other: RiskLevel) -> int:
        """Signed number of levels from *self* down to *other*.

        Positive when *other* is less severe (a reduction).
        """
        return self.ordinal - other.ordinal

    @classmethod
    def from_rule(cls, criticality: Criticality, impact_type: ImpactType) -> RiskLevel:
        """Two-factor risk of touching a rule of *criticality* via *impact_type*.

        A DIRECT touch maps criticality one-to-one (CRITICA -> CRITICO,
        ALTA -> ALTO, MEDIA -> MEDIO); an INDIRECT touch lands one level
        lower.  BAIXA is always BAIXO.
        """
        if criticality == Criticality.CRITICA:
            return cls.CRITICO if impact_type == ImpactType.DIRECT else cls.ALTO
        if criticality == Criticality.ALTA:
            return cls.ALTO if impact_type == ImpactType.DIRECT else cls.MEDIO
        if criticality == Criticality.MEDIA:
            return cls.MEDIO if impact_type == ImpactType.DIRECT else cls.BAIXO
        return cls.BAIXO


class FinalDecision(str, Enum):
    """Gate outcome for a change."""

    APROVADO = "APROVADO"
    APROVADO_COM_RESTRICOES = "APROVADO_COM_RESTRICOES"
    BLOQUEADO = "BLOQUEADO"

    @property
    def ordinal(self) -> int:
        """Ranking ordinal used to detect improvement (higher is better)."""
        return _DECISION_ORDINALS[self]

    def improves_on(self, other: FinalDecision) -> bool:
        return self.ordinal > other.ordinal


class ImpactClassification(str, Enum):
    """How a rule was reached by a change."""

    DIRECT = "DIRECT"
    CASCADE = "CASCADE"
    INDIRECT = "INDIRECT"

    @property
    def strength(self) -> int:
        """DIRECT > CASCADE > INDIRECT."""
        return _CLASSIFICATION_STRENGTH[self]

    @classmethod
    def strongest(cls, first: ImpactClassification, second: ImpactClassification) -> ImpactClassification:
        return first if first.strength >= second.strength else second


_CRITICALITY_ORDER: list[Criticality] = [
    Criticality.BAIXA,
    Criticality.MEDIA,
    Criticality.ALTA,
    Criticality.CRITICA,
]

_RISK_ORDER: list[RiskLevel] = [
    RiskLevel.BAIXO,
    RiskLevel.MEDIO,
    RiskLevel.ALTO,
    RiskLevel.CRITICO,
]

_RISK_LABELS: dict[RiskLevel, str] = {
    RiskLevel.BAIXO: "Baixo",
    RiskLevel.MEDIO: "Médio",
    RiskLevel.ALTO: "Alto",
    RiskLevel.CRITICO: "Crítico",
}

# Not contiguous: APROVADO_COM_RESTRICOES is 2, not 1.
_DECISION_ORDINALS: dict[FinalDecision, int] = {
    FinalDecision.BLOQUEADO: 0,
    FinalDecision.APROVADO_COM_RESTRICOES: 2,
    FinalDecision.APROVADO: 3,
}

_CLASSIFICATION_STRENGTH: dict[ImpactClassification, int] = {
    ImpactClassification.INDIRECT: 1,
    ImpactClassification.CASCADE: 2,
    ImpactClassification.DIRECT: 3,
}
