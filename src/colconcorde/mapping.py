"""État de la correspondance colonnes CSV → champs cibles."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from colconcorde.config import ColConcordeError, ConfigError, FileTypeControl, LocationColumn
from colconcorde.matching.schema import BOUND, IGNORED, SYNTHETIC, ColumnBinding, MatchOutcome, TargetField
from colconcorde.normalize import field_key

logger = logging.getLogger(__name__)

_PLACEHOLDER_RE = re.compile(r"^__column_\d+__$")

# Types d'événements émis par les mutations
EVENT_BOUND = "bound"
EVENT_IGNORED = "ignored"
EVENT_FIELD_IGNORED = "field_ignored"
EVENT_FIELD_UNIGNORED = "field_unignored"
EVENT_SYNTHETIC_SET = "synthetic_set"
EVENT_SYNTHETIC_REMOVED = "synthetic_removed"
EVENT_RESHAPED = "reshaped"
EVENT_OPTION_CHANGED = "option_changed"


class ColumnPositionError(ColConcordeError, IndexError):
    """Position hors des colonnes du CSV."""


def placeholder_name(index: int) -> str:
    """Nom provisoire, unique par position, donné à une colonne non associée."""
    return f"__column_{index}__"


def is_placeholder(name: str) -> bool:
    return bool(_PLACEHOLDER_RE.match(name))


@dataclass(frozen=True)
class MappingEvent:
    """Notification d'une modification de l'état (à relayer par l'appelant)."""

    kind: str
    position: int | None = None
    field_name: str | None = None
    value: object = None


class MappingState:
    """
    Correspondance par position du CSV.

    Chaque position porte un nom (champ cible ou nom provisoire) et un
    drapeau "ignorée". Un index inverse champ → position garantit qu'un
    champ n'est associé qu'à une seule position. Les mutations valident
    leurs arguments avant toute modification et renvoient la liste des
    événements produits, dans l'ordre.
    """

    def __init__(self, column_count: int) -> None:
        if column_count < 0:
            raise ValueError(f"column_count doit être >= 0 (got {column_count})")
        self._names: list[str] = [placeholder_name(i) for i in range(column_count)]
        self._ignored: list[bool] = [True] * column_count
        self._index: dict[str, int] = {}
        # clé de champ -> nom tel qu'écrit (dicts ordonnés)
        self._ignored_fields: dict[str, str] = {}
        self._synthetic: dict[str, tuple[str, LocationColumn]] = {}

    @classmethod
    def from_columns(
        cls,
        columns: Sequence[str],
        ignore_columns: Iterable[str] = (),
        synthetic: dict[str, LocationColumn] | None = None,
    ) -> MappingState:
        """
        Reconstruit l'état à partir d'un tableau de colonnes existant.

        Raises:
            ConfigError: Si un même champ apparaît à plusieurs positions.
        """
        state = cls(len(columns))
        ignored = list(ignore_columns)
        ignored_keys = {field_key(name) for name in ignored}
        synthetic = dict(synthetic or {})
        synthetic_keys = {field_key(name) for name in synthetic}

        for pos, name in enumerate(columns):
            if not name or is_placeholder(name):
                continue
            key = field_key(name)
            if key in state._index:
                raise ConfigError(f"Champ {name!r} associé à plusieurs colonnes ({state._index[key]} et {pos})")
            state._names[pos] = name
            state._index[key] = pos
            state._ignored[pos] = key in ignored_keys or key in synthetic_keys

        for name in ignored:
            if not is_placeholder(name) and field_key(name) not in state._index:
                state._ignored_fields.setdefault(field_key(name), name)
        state._synthetic = {field_key(name): (name, d) for name, d in synthetic.items()}
        state.check_invariants()
        return state

    @classmethod
    def from_control(cls, fc: FileTypeControl) -> MappingState:
        synthetic = {**fc.synthetic_locations, **fc.synthetic_points}
        return cls.from_columns(fc.columns or [], fc.ignore_columns, synthetic)

    def export_to(self, fc: FileTypeControl) -> None:
        """Écrit colonnes, colonnes ignorées et colonnes synthétiques dans la section csv."""
        fc.columns = list(self._names)
        fc.ignore_columns = self.ignore_columns
        synthetic = self.synthetic
        fc.synthetic_locations = {k: v for k, v in synthetic.items() if v.kind == "location"}
        fc.synthetic_points = {k: v for k, v in synthetic.items() if v.kind == "point"}

    # Lecture

    @property
    def column_count(self) -> int:
        return len(self._names)

    @property
    def columns(self) -> list[str]:
        return list(self._names)

    @property
    def ignore_columns(self) -> list[str]:
        names = [name for name, ignored in zip(self._names, self._ignored) if ignored]
        keys = {field_key(name) for name in names}
        names.extend(name for key, name in self._ignored_fields.items() if key not in keys)
        return names

    @property
    def synthetic(self) -> dict[str, LocationColumn]:
        return dict(self._synthetic.values())

    def _check_position(self, position: int) -> None:
        if not 0 <= position < len(self._names):
            raise ColumnPositionError(
                f"Position {position} hors du CSV ({len(self._names)} colonnes)"
            )

    def _is_placeholder_at(self, position: int) -> bool:
        return self._names[position] == placeholder_name(position)

    def column_at(self, position: int) -> str:
        """Nom associé à une position (champ ou nom provisoire)."""
        self._check_position(position)
        return self._names[position]

    def binding_at(self, position: int) -> ColumnBinding:
        self._check_position(position)
        name = self._names[position]
        if not self._ignored[position]:
            status = BOUND
        elif not self._is_placeholder_at(position) and field_key(name) in self._synthetic:
            status = SYNTHETIC
        else:
            status = IGNORED
        return ColumnBinding(position=position, name=name, status=status)

    def bindings(self) -> list[ColumnBinding]:
        return [self.binding_at(i) for i in range(len(self._names))]

    def position_of(self, field_name: str) -> int | None:
        """Position portant ce champ (comparaison insensible à la casse), ou None."""
        return self._index.get(field_key(field_name))

    def is_ignored(self, name: str) -> bool:
        """Vrai si le champ est ignoré explicitement ou via la position qui le porte."""
        if field_key(name) in self._ignored_fields:
            return True
        pos = self.position_of(name)
        return pos is not None and self._ignored[pos]

    def is_synthetic(self, field_name: str) -> bool:
        return field_key(field_name) in self._synthetic

    def unmapped_fields(self, fields: Iterable[TargetField]) -> list[TargetField]:
        """Champs cibles sans colonne, non ignorés et non synthétiques."""
        return [
            f
            for f in fields
            if self.position_of(f.field_name) is None
            and field_key(f.field_name) not in self._ignored_fields
            and field_key(f.field_name) not in self._synthetic
        ]

    # Mutations

    def bind(self, field_name: str, position: int) -> list[MappingEvent]:
        """
        Associe un champ à une position.

        Si le champ était associé ailleurs, l'ancienne position reprend un nom
        provisoire et devient ignorée. Une éventuelle définition synthétique
        du champ est supprimée.

        Raises:
            ColumnPositionError: Si la position n'existe pas.
        """
        self._check_position(position)
        if not field_name or is_placeholder(field_name):
            raise ValueError(f"Nom de champ invalide: {field_name!r}")

        events: list[MappingEvent] = []
        key = field_key(field_name)
        previous = self._index.get(key)
        if previous is not None and previous != position:
            self._names[previous] = placeholder_name(previous)
            self._ignored[previous] = True
            del self._index[key]
            events.append(MappingEvent(EVENT_IGNORED, previous, None))

        if not self._is_placeholder_at(position):
            displaced = field_key(self._names[position])
            if displaced != key:
                self._index.pop(displaced, None)

        self._ignored_fields.pop(key, None)
        if self._synthetic.pop(key, None) is not None:
            events.append(MappingEvent(EVENT_SYNTHETIC_REMOVED, None, field_name))

        self._names[position] = field_name
        self._ignored[position] = False
        self._index[key] = position
        events.append(MappingEvent(EVENT_BOUND, position, field_name))

        self.check_invariants()
        return events

    def ignore(self, position: int) -> list[MappingEvent]:
        """Marque une position comme ignorée (idempotent)."""
        self._check_position(position)
        self._ignored[position] = True
        self.check_invariants()
        return [MappingEvent(EVENT_IGNORED, position, None)]

    def ignore_field(self, field_name: str) -> list[MappingEvent]:
        """
        Marque un champ cible comme volontairement non renseigné.

        Si le champ est associé à une position, celle-ci devient ignorée :
        le nom figure alors dans ignoreColumns, comme après un rechargement.
        """
        if not field_name:
            raise ValueError("Nom de champ vide")
        self._ignored_fields.setdefault(field_key(field_name), field_name)
        position = self.position_of(field_name)
        if position is not None:
            self._ignored[position] = True
        self.check_invariants()
        return [MappingEvent(EVENT_FIELD_IGNORED, position, field_name)]

    def unignore_field(self, field_name: str) -> list[MappingEvent]:
        """Annule ignore_field ; la position du champ, s'il en a une et n'est pas synthétique, redevient associée."""
        key = field_key(field_name)
        self._ignored_fields.pop(key, None)
        position = self.position_of(field_name)
        if position is not None and key not in self._synthetic:
            self._ignored[position] = False
        self.check_invariants()
        return [MappingEvent(EVENT_FIELD_UNIGNORED, position, field_name)]

    def set_synthetic(self, field_name: str, derivation: LocationColumn) -> list[MappingEvent]:
        """
        Déclare un champ comme composé (localisation, point).

        La position qui portait ce champ, s'il y en a une, devient ignorée :
        les données viennent désormais de la composition.
        """
        if not field_name:
            raise ValueError("Nom de champ vide")
        self._synthetic[field_key(field_name)] = (field_name, derivation)
        position = self.position_of(field_name)
        if position is not None:
            self._ignored[position] = True
        self.check_invariants()
        return [MappingEvent(EVENT_SYNTHETIC_SET, position, field_name, derivation)]

    def remove_synthetic(self, field_name: str) -> list[MappingEvent]:
        if self._synthetic.pop(field_key(field_name), None) is None:
            return []
        return [MappingEvent(EVENT_SYNTHETIC_REMOVED, self.position_of(field_name), field_name)]

    def reshape(self, column_count: int) -> list[MappingEvent]:
        """Abandonne toutes les associations : noms provisoires, toutes positions ignorées."""
        if column_count < 0:
            raise ValueError(f"column_count doit être >= 0 (got {column_count})")
        logger.info("Nouvelle forme du CSV: %d -> %d colonnes", len(self._names), column_count)
        self._names = [placeholder_name(i) for i in range(column_count)]
        self._ignored = [True] * column_count
        self._index = {}
        self.check_invariants()
        return [MappingEvent(EVENT_RESHAPED, None, None, column_count)]

    def apply(self, outcome: MatchOutcome) -> list[MappingEvent]:
        """Applique le résultat du matcher, position par position."""
        events: list[MappingEvent] = []
        for position, field_name in sorted(outcome.assignments.items()):
            if field_name is None:
                events.extend(self.ignore(position))
            else:
                events.extend(self.bind(field_name, position))
        return events

    def check_invariants(self) -> None:
        """Vérifie la cohérence interne (erreur de programmation si elle échoue)."""
        n = len(self._names)
        assert len(self._ignored) == n
        for key, pos in self._index.items():
            assert 0 <= pos < n, f"index inverse hors limites: {key} -> {pos}"
            assert field_key(self._names[pos]) == key, f"index inverse incohérent pour {key}"
        for pos, name in enumerate(self._names):
            if name == placeholder_name(pos):
                assert self._ignored[pos], f"position provisoire {pos} non ignorée"
            else:
                assert self._index.get(field_key(name)) == pos, f"champ {name} absent de l'index"
