"""Session d'édition d'un fichier de contrôle : CSV, schéma cible et correspondance."""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Callable
from typing import Any

from colconcorde.config import (
    READ_OPTIONS,
    VALID_ACTIONS,
    ColConcordeError,
    ConfigError,
    ControlFile,
    FileTypeControl,
    LocationColumn,
)
from colconcorde.dataset import DatasetSchema
from colconcorde.io_csv import TabularSource, load_table
from colconcorde.mapping import EVENT_OPTION_CHANGED, MappingEvent, MappingState
from colconcorde.matching.matcher import ColumnMatcher
from colconcorde.matching.schema import ColumnBinding, CsvColumn, MatchCandidate, MatchOutcome, TargetField

logger = logging.getLogger(__name__)

# Options modifiables via update_options (la correspondance elle-même passe par bind/ignore)
OPTION_NAMES = frozenset(
    f.name
    for f in dataclasses.fields(FileTypeControl)
    if f.name not in {"columns", "ignore_columns", "synthetic_locations", "synthetic_points"}
)


class FieldNotFoundError(ColConcordeError, KeyError):
    """Champ absent du schéma cible."""


class MappingSession:
    """
    Associe un CSV au schéma d'un jeu de données via un fichier de contrôle.

    À l'ouverture, si le fichier de contrôle n'a pas encore de colonnes,
    chaque position reçoit un nom provisoire puis le rapprochement
    automatique est lancé. Les modifications (bind, ignore, options de
    lecture) renvoient la liste des événements à relayer aux vues ; le
    fichier de contrôle est tenu à jour après chaque modification.
    """

    def __init__(
        self,
        control: ControlFile,
        schema: DatasetSchema,
        *,
        table: TabularSource | None = None,
        table_loader: Callable[[FileTypeControl], TabularSource] = load_table,
        keep_existing_columns: bool = False,
    ) -> None:
        self.control = control
        self.schema = schema
        self._loader = table_loader
        self.matcher = ColumnMatcher(schema.fields)
        self.last_outcome: MatchOutcome | None = None

        fc = control.csv
        if fc.has_header_row and fc.skip < 1:
            fc.skip = 1
        self.table: TabularSource = table if table is not None else table_loader(fc)

        if not fc.has_columns():
            self.state = MappingState(self.table.column_count)
            self.match_columns()
        else:
            self.state = MappingState.from_control(fc)
            if self.state.column_count != self.table.column_count:
                logger.warning(
                    "Le fichier de contrôle décrit %d colonnes, le CSV en contient %d: colonnes réinitialisées",
                    self.state.column_count,
                    self.table.column_count,
                )
                self.state.reshape(self.table.column_count)
                self.match_columns()
            elif not keep_existing_columns:
                self.match_columns()
        self._sync()

    def _sync(self) -> None:
        self.state.export_to(self.control.csv)

    def _field(self, field_name: str) -> TargetField:
        target = self.schema.get(field_name)
        if target is None:
            raise FieldNotFoundError(f"Champ inconnu dans le schéma: {field_name!r}")
        return target

    # Lecture

    @property
    def column_count(self) -> int:
        return self.state.column_count

    def csv_columns(self) -> list[CsvColumn]:
        return [CsvColumn(i, self.table.column_name(i)) for i in range(self.table.column_count)]

    def display_name(self, position: int) -> str:
        """En-tête du CSV s'il existe, sinon nom associé à la position. Pour affichage uniquement."""
        if self.control.csv.has_header_row:
            return self.table.column_name(position)
        return self.state.column_at(position)

    def binding_at(self, position: int) -> ColumnBinding:
        return self.state.binding_at(position)

    def bindings(self) -> list[ColumnBinding]:
        return self.state.bindings()

    def unmapped_fields(self) -> list[TargetField]:
        return self.state.unmapped_fields(self.schema)

    def diagnostics(self, position: int) -> list[MatchCandidate]:
        """Préférences calculées lors du dernier rapprochement automatique pour une position."""
        if self.last_outcome is None:
            return []
        return list(self.last_outcome.candidates.get(position, []))

    def rows_contain_same_number_of_columns(self) -> bool:
        count = self.table.column_count
        return all(self.table.row_size(i) == count for i in range(self.table.row_count))

    def to_control_file(self) -> ControlFile:
        self._sync()
        return self.control

    def control_file_contents(self) -> str:
        return self.to_control_file().to_json()

    # Modifications

    def match_columns(self) -> list[MappingEvent]:
        """Relance le rapprochement automatique sur les en-têtes actuels."""
        outcome = self.matcher.run(self.csv_columns())
        self.last_outcome = outcome
        events = self.state.apply(outcome)
        logger.info(
            "Rapprochement: %d colonne(s) associée(s), %d ignorée(s)",
            len(outcome.bound),
            len(outcome.ignored_positions),
        )
        self._sync()
        return events

    def bind(self, field_name: str, position: int) -> list[MappingEvent]:
        target = self._field(field_name)
        events = self.state.bind(target.field_name, position)
        self._sync()
        return events

    def ignore(self, position: int) -> list[MappingEvent]:
        events = self.state.ignore(position)
        self._sync()
        return events

    def ignore_field(self, field_name: str) -> list[MappingEvent]:
        target = self._field(field_name)
        events = self.state.ignore_field(target.field_name)
        self._sync()
        return events

    def unignore_field(self, field_name: str) -> list[MappingEvent]:
        target = self._field(field_name)
        events = self.state.unignore_field(target.field_name)
        self._sync()
        return events

    def set_synthetic_location(self, field_name: str, location: LocationColumn) -> list[MappingEvent]:
        target = self._field(field_name)
        events = self.state.set_synthetic(target.field_name, dataclasses.replace(location, kind="location"))
        self._sync()
        return events

    def set_synthetic_point(self, field_name: str, point: LocationColumn) -> list[MappingEvent]:
        target = self._field(field_name)
        events = self.state.set_synthetic(target.field_name, dataclasses.replace(point, kind="point"))
        self._sync()
        return events

    def remove_synthetic(self, field_name: str) -> list[MappingEvent]:
        events = self.state.remove_synthetic(field_name)
        self._sync()
        return events

    def set_action(self, action: str) -> list[MappingEvent]:
        if action not in VALID_ACTIONS:
            raise ConfigError(f"action invalide: {action!r}. Valides: {sorted(VALID_ACTIONS)}")
        self.control.action = action
        return [MappingEvent(EVENT_OPTION_CHANGED, value=("action", action))]

    def update_options(self, **changes: Any) -> list[MappingEvent]:
        """
        Modifie des options de lecture du CSV.

        Le CSV est relu si une option de lecture change. Un changement de
        séparateur, ou tout changement du nombre de colonnes, réinitialise
        la correspondance et relance le rapprochement automatique.
        Activer/désactiver la ligne d'en-tête décale skip d'une ligne.

        Raises:
            ConfigError: Si une option est inconnue ou invalide.
            CsvFileError: Si le CSV ne peut pas être relu.
        """
        unknown = set(changes) - OPTION_NAMES
        if unknown:
            raise ConfigError(f"Options inconnues: {sorted(unknown)}")

        fc = self.control.csv
        changed = {k: v for k, v in changes.items() if getattr(fc, k) != v}
        if not changed:
            return []

        new_fc = dataclasses.replace(fc, **changed)
        if "has_header_row" in changed and "skip" not in changed:
            new_fc.skip = fc.skip + 1 if new_fc.has_header_row else max(fc.skip - 1, 0)
        new_fc.validate()

        table = self._loader(new_fc) if READ_OPTIONS & changed.keys() else self.table

        self.control.csv = new_fc
        self.table = table
        events = [MappingEvent(EVENT_OPTION_CHANGED, value=(k, v)) for k, v in changed.items()]

        if "separator" in changed or table.column_count != self.state.column_count:
            events.extend(self.state.reshape(table.column_count))
            events.extend(self.match_columns())
        else:
            self._sync()
        return events

    def set_separator(self, separator: str) -> list[MappingEvent]:
        return self.update_options(separator=separator)

    def set_has_header_row(self, has_header_row: bool) -> list[MappingEvent]:
        return self.update_options(has_header_row=has_header_row)
