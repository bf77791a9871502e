"""Schéma du jeu de données cible : liste ordonnée des champs."""

from __future__ import annotations

import json
from collections.abc import Iterator, Sequence
from pathlib import Path
from typing import Any

from colconcorde.config import ColConcordeError
from colconcorde.matching.schema import TargetField
from colconcorde.normalize import field_key


class SchemaError(ColConcordeError, ValueError):
    """Schéma invalide (champ sans nom, nom de champ dupliqué)."""


class SchemaFileError(ColConcordeError):
    """Erreur de chargement du fichier de schéma (fichier absent, JSON invalide)."""


def _first(d: dict[str, Any], *keys: str) -> Any:
    for k in keys:
        if d.get(k) is not None:
            return d[k]
    return None


class DatasetSchema:
    """Champs cibles dans leur ordre de présentation."""

    def __init__(self, fields: Sequence[TargetField]) -> None:
        seen: dict[str, str] = {}
        for f in fields:
            if not f.field_name:
                raise SchemaError(f"Champ sans fieldName: {f!r}")
            key = field_key(f.field_name)
            if key in seen:
                raise SchemaError(f"fieldName dupliqué: {f.field_name!r} (déjà défini: {seen[key]!r})")
            seen[key] = f.field_name
        self.fields: list[TargetField] = list(fields)
        self._by_key = {field_key(f.field_name): f for f in self.fields}

    def __iter__(self) -> Iterator[TargetField]:
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)

    @property
    def field_names(self) -> list[str]:
        return [f.field_name for f in self.fields]

    def get(self, field_name: str) -> TargetField | None:
        """Champ par nom (insensible à la casse), ou None."""
        return self._by_key.get(field_key(field_name))

    @classmethod
    def from_records(cls, records: list[dict[str, Any]]) -> DatasetSchema:
        """
        Construit le schéma depuis une liste de dicts.

        Clés acceptées : fieldName/field_name, name/human_name, dataTypeName/data_type.
        Le libellé vaut le fieldName s'il est absent.
        """
        fields: list[TargetField] = []
        for i, rec in enumerate(records):
            if not isinstance(rec, dict):
                raise SchemaError(f"Champ #{i} invalide: {rec!r}")
            field_name = _first(rec, "fieldName", "field_name")
            if not field_name:
                raise SchemaError(f"Champ #{i} sans fieldName")
            human_name = _first(rec, "name", "human_name") or field_name
            data_type = _first(rec, "dataTypeName", "data_type") or "text"
            fields.append(TargetField(str(field_name), str(human_name), str(data_type)))
        return cls(fields)

    @classmethod
    def load(cls, path: str | Path) -> DatasetSchema:
        """
        Charge le schéma depuis un fichier JSON (liste de champs ou objet {"columns": [...]}).

        Raises:
            SchemaFileError: Si le fichier est absent ou le JSON invalide.
            SchemaError: Si le schéma est invalide.
        """
        path = Path(path).resolve()
        if not path.exists():
            raise SchemaFileError(f"Fichier de schéma introuvable: {path}")
        try:
            with open(path, encoding="utf-8") as f:
                d = json.load(f)
        except json.JSONDecodeError as e:
            raise SchemaFileError(f"JSON invalide dans {path}: {e}") from e
        except OSError as e:
            raise SchemaFileError(f"Impossible de lire {path}: {e}") from e

        if isinstance(d, dict):
            d = d.get("columns")
        if not isinstance(d, list):
            raise SchemaFileError(f"Schéma invalide: {path} doit contenir une liste de champs ou un objet \"columns\"")
        return cls.from_records(d)
