"""Schémas et types pour le rapprochement des colonnes."""

from __future__ import annotations

import math
from dataclasses import dataclass, field

BOUND = "bound"
IGNORED = "ignored"
SYNTHETIC = "synthetic"


@dataclass(frozen=True)
class TargetField:
    """Un champ du jeu de données cible."""

    field_name: str  # identifiant machine, unique
    human_name: str  # libellé affiché
    data_type: str = "text"


@dataclass(frozen=True)
class CsvColumn:
    """Une colonne du CSV, repérée par sa position (0-based)."""

    position: int
    header: str


@dataclass(frozen=True)
class MatchCandidate:
    """Un couple (colonne CSV, champ cible) évalué pendant un passage du matcher."""

    position: int
    field_name: str
    badness: float  # 0 = identique, inf = jamais
    field_rank: int = 0  # ordre de présentation du champ dans le schéma

    @property
    def is_viable(self) -> bool:
        return not math.isinf(self.badness)

    def __repr__(self) -> str:
        return f"MatchCandidate(position={self.position}, field={self.field_name!r}, badness={self.badness:.2f})"


@dataclass(frozen=True)
class ColumnBinding:
    """État d'une position du CSV."""

    position: int
    name: str  # nom de champ ou nom provisoire
    status: str  # bound, ignored, synthetic

    @property
    def field_name(self) -> str | None:
        return self.name if self.status in (BOUND, SYNTHETIC) else None


@dataclass
class MatchOutcome:
    """Résultat d'un passage du matcher."""

    assignments: dict[int, str | None]  # position -> field_name (None = ignorée)
    candidates: dict[int, list[MatchCandidate]] = field(default_factory=dict)  # préférences triées, pour diagnostic

    @property
    def bound(self) -> dict[int, str]:
        return {pos: name for pos, name in self.assignments.items() if name is not None}

    @property
    def ignored_positions(self) -> list[int]:
        return sorted(pos for pos, name in self.assignments.items() if name is None)

    @property
    def claimed_fields(self) -> set[str]:
        return set(self.bound.values())

    def best_badness(self, position: int) -> float:
        """Meilleur score obtenu par une position, tous champs confondus (inf si aucun)."""
        prefs = self.candidates.get(position) or []
        return prefs[0].badness if prefs else math.inf

    def badness_of(self, position: int) -> float:
        """Score du champ finalement retenu pour une position (inf si ignorée)."""
        name = self.assignments.get(position)
        for c in self.candidates.get(position, []):
            if c.field_name == name:
                return c.badness
        return math.inf
