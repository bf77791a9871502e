"""Moteur de rapprochement : affectation gloutonne des colonnes CSV aux champs cibles."""

from __future__ import annotations

import heapq
import logging
import math
from collections import deque
from collections.abc import Iterable, Sequence

from colconcorde.matching.distance import badness
from colconcorde.matching.schema import CsvColumn, MatchCandidate, MatchOutcome, TargetField

logger = logging.getLogger(__name__)


def _rank_key(position: int, preferences: deque[MatchCandidate]) -> tuple[int, float, int]:
    """Rang d'une position : meilleure préférence restante, puis position ; les cas sans issue en dernier."""
    if not preferences or not preferences[0].is_viable:
        return (1, 0.0, position)
    return (0, preferences[0].badness, position)


class ColumnMatcher:
    """
    Propose une correspondance colonne CSV → champ cible.

    L'affectation est gloutonne : à chaque étape la position dont la meilleure
    préférence restante est la moins mauvaise (la plus à gauche en cas
    d'égalité) prend son champ préféré. Si ce champ est déjà pris, seule
    cette préférence est écartée et la position revient dans la file. Une
    affectation n'est jamais remise en cause, même si une position traitée
    plus tard aurait été un meilleur partenaire.

    Example:
        >>> fields = [TargetField("first_name", "First Name")]
        >>> outcome = ColumnMatcher(fields).run(["First Name", "Notes"])
        >>> outcome.assignments
        {0: 'first_name', 1: None}
    """

    def __init__(self, fields: Sequence[TargetField]) -> None:
        self.fields = list(fields)

    def preferences(self, column: CsvColumn) -> list[MatchCandidate]:
        """Scores de la colonne contre chaque champ, triés par score puis ordre du schéma."""
        candidates = [
            MatchCandidate(
                position=column.position,
                field_name=target.field_name,
                badness=badness(column.header, target),
                field_rank=rank,
            )
            for rank, target in enumerate(self.fields)
        ]
        candidates.sort(key=lambda c: (c.badness, c.field_rank))
        return candidates

    def run(self, columns: Iterable[CsvColumn | str]) -> MatchOutcome:
        """
        Exécute le rapprochement pour toutes les colonnes.

        Args:
            columns: Colonnes du CSV (CsvColumn, ou simples en-têtes dans l'ordre).

        Returns:
            MatchOutcome : une affectation terminale par position.
        """
        cols = [c if isinstance(c, CsvColumn) else CsvColumn(i, c) for i, c in enumerate(columns)]

        all_preferences: dict[int, list[MatchCandidate]] = {}
        remaining: dict[int, deque[MatchCandidate]] = {}
        queue: list[tuple[int, float, int]] = []
        for col in cols:
            prefs = self.preferences(col)
            all_preferences[col.position] = prefs
            remaining[col.position] = deque(prefs)
            heapq.heappush(queue, _rank_key(col.position, remaining[col.position]))

        assignments: dict[int, str | None] = {}
        claimed: set[str] = set()
        while queue:
            _, _, position = heapq.heappop(queue)
            prefs = remaining[position]
            if not prefs or math.isinf(prefs[0].badness):
                logger.debug("Colonne %d: aucune préférence viable, ignorée", position)
                assignments[position] = None
                continue

            best = prefs[0]
            if best.field_name in claimed:
                logger.debug(
                    "Colonne %d: %s déjà pris, préférence suivante",
                    position,
                    best.field_name,
                )
                prefs.popleft()
                heapq.heappush(queue, _rank_key(position, prefs))
                continue

            logger.debug("Colonne %d -> %s (badness=%.2f)", position, best.field_name, best.badness)
            assignments[position] = best.field_name
            claimed.add(best.field_name)

        assert len(assignments) == len(cols)
        return MatchOutcome(
            assignments=dict(sorted(assignments.items())),
            candidates=all_preferences,
        )
