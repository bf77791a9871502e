"""Module de rapprochement des colonnes."""

from colconcorde.matching.matcher import ColumnMatcher
from colconcorde.matching.schema import ColumnBinding, CsvColumn, MatchCandidate, MatchOutcome, TargetField

__all__ = ["ColumnMatcher", "ColumnBinding", "CsvColumn", "MatchCandidate", "MatchOutcome", "TargetField"]
