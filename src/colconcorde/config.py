"""Fichier de contrôle : options de lecture du CSV et correspondance des colonnes."""

from __future__ import annotations

import codecs
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

VALID_ACTIONS = frozenset({"Replace", "Append", "Upsert", "Delete"})
VALID_SYNTHETIC_KINDS = frozenset({"location", "point"})
LOCATION_COMPONENTS = ("address", "city", "state", "zip", "latitude", "longitude")


class ColConcordeError(Exception):
    """Exception de base pour ColConcorde."""


class ConfigError(ColConcordeError, ValueError):
    """Erreur de validation du fichier de contrôle."""


class ConfigFileError(ColConcordeError):
    """Erreur de chargement du fichier de contrôle (fichier absent, JSON invalide)."""


def _single_char(name: str, value: Any, *, allow_empty: bool) -> str:
    text = "" if value is None else str(value)
    if len(text) > 1 or (not text and not allow_empty):
        raise ConfigError(f"{name} doit être un caractère unique (got {value!r})")
    return text


@dataclass
class LocationColumn:
    """Description d'une colonne synthétique composée de plusieurs colonnes du CSV."""

    address: str | None = None
    city: str | None = None
    state: str | None = None
    zip: str | None = None
    latitude: str | None = None
    longitude: str | None = None
    kind: str = "location"  # location, point

    @classmethod
    def from_dict(cls, d: dict[str, Any], kind: str = "location") -> LocationColumn:
        if kind not in VALID_SYNTHETIC_KINDS:
            raise ConfigError(f"kind invalide: {kind!r}. Valides: {sorted(VALID_SYNTHETIC_KINDS)}")
        if not isinstance(d, dict):
            raise ConfigError(f"Colonne synthétique invalide: {d!r}")
        unknown = set(d) - set(LOCATION_COMPONENTS)
        if unknown:
            raise ConfigError(f"Composants inconnus: {sorted(unknown)}. Valides: {list(LOCATION_COMPONENTS)}")
        return cls(**{k: d.get(k) for k in LOCATION_COMPONENTS}, kind=kind)

    def to_dict(self) -> dict[str, str]:
        return {k: getattr(self, k) for k in LOCATION_COMPONENTS if getattr(self, k) is not None}

    def components(self) -> list[str]:
        """Colonnes sources utilisées par la composition, dans l'ordre canonique."""
        return [getattr(self, k) for k in LOCATION_COMPONENTS if getattr(self, k)]


# attribut Python -> clé JSON
_CSV_KEYS: dict[str, str] = {
    "file_path": "filePath",
    "separator": "separator",
    "quote": "quote",
    "escape": "escape",
    "encoding": "encoding",
    "has_header_row": "hasHeaderRow",
    "skip": "skip",
    "trim_whitespace": "trimWhitespace",
    "empty_text_is_null": "emptyTextIsNull",
    "set_aside_errors": "setAsideErrors",
    "use_geocoding": "useSocrataGeocoding",
    "timezone": "timezone",
    "fixed_timestamp_format": "fixedTimestampFormat",
    "floating_timestamp_format": "floatingTimestampFormat",
}

# Options dont la modification impose de relire le CSV
READ_OPTIONS = frozenset({"file_path", "separator", "quote", "escape", "encoding", "has_header_row", "skip", "trim_whitespace"})


@dataclass
class FileTypeControl:
    """Section "csv" du fichier de contrôle."""

    file_path: str = ""
    separator: str = ","
    quote: str = '"'
    escape: str = ""
    encoding: str = "utf-8"
    has_header_row: bool = True
    skip: int = 0  # lignes sautées, ligne d'en-tête comprise
    trim_whitespace: bool = True
    empty_text_is_null: bool = True
    set_aside_errors: bool = False
    use_geocoding: bool = True
    timezone: str = "UTC"
    fixed_timestamp_format: list[str] = field(default_factory=lambda: ["ISO8601"])
    floating_timestamp_format: list[str] = field(default_factory=lambda: ["ISO8601"])

    columns: list[str] | None = None  # None = pas encore initialisées
    ignore_columns: list[str] = field(default_factory=list)
    synthetic_locations: dict[str, LocationColumn] = field(default_factory=dict)
    synthetic_points: dict[str, LocationColumn] = field(default_factory=dict)

    def has_columns(self) -> bool:
        return self.columns is not None

    def validate(self) -> None:
        """
        Vérifie la cohérence des options.

        Raises:
            ConfigError: Si une option est invalide.
        """
        if self.separator != "\t":
            _single_char("separator", self.separator, allow_empty=False)
        _single_char("quote", self.quote, allow_empty=True)
        _single_char("escape", self.escape, allow_empty=True)
        if not isinstance(self.skip, int) or isinstance(self.skip, bool) or self.skip < 0:
            raise ConfigError(f"skip doit être un entier >= 0 (got {self.skip!r})")
        if self.has_header_row and self.skip < 1:
            raise ConfigError("skip doit être >= 1 quand hasHeaderRow est vrai")
        try:
            codecs.lookup(self.encoding)
        except LookupError as e:
            raise ConfigError(f"encoding inconnu: {self.encoding!r}") from e
        for name in ("fixed_timestamp_format", "floating_timestamp_format"):
            value = getattr(self, name)
            if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
                raise ConfigError(f"{_CSV_KEYS[name]} doit être une liste de chaînes")
        if self.columns is not None and not all(isinstance(c, str) for c in self.columns):
            raise ConfigError("columns doit être une liste de chaînes")

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> FileTypeControl:
        if not isinstance(d, dict):
            raise ConfigError(f"Section csv invalide: {d!r}")
        kwargs: dict[str, Any] = {}
        for attr, key in _CSV_KEYS.items():
            if key in d and d[key] is not None:
                kwargs[attr] = d[key]
        if "skip" in kwargs:
            try:
                kwargs["skip"] = int(kwargs["skip"])
            except (TypeError, ValueError) as e:
                raise ConfigError(f"skip doit être un entier (got {kwargs['skip']!r})") from e

        columns = d.get("columns")
        if columns is not None and not isinstance(columns, list):
            raise ConfigError("columns doit être une liste ou null")

        locations = d.get("syntheticLocations") or {}
        points = d.get("syntheticPoints") or {}
        fc = cls(
            **kwargs,
            columns=list(columns) if columns is not None else None,
            ignore_columns=list(d.get("ignoreColumns") or []),
            synthetic_locations={k: LocationColumn.from_dict(v, "location") for k, v in locations.items()},
            synthetic_points={k: LocationColumn.from_dict(v, "point") for k, v in points.items()},
        )
        if fc.has_header_row and fc.skip < 1:
            fc.skip = 1
        fc.validate()
        return fc

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {key: getattr(self, attr) for attr, key in _CSV_KEYS.items()}
        d["fixedTimestampFormat"] = list(self.fixed_timestamp_format)
        d["floatingTimestampFormat"] = list(self.floating_timestamp_format)
        d["columns"] = list(self.columns) if self.columns is not None else None
        d["ignoreColumns"] = list(self.ignore_columns)
        if self.synthetic_locations:
            d["syntheticLocations"] = {k: v.to_dict() for k, v in self.synthetic_locations.items()}
        if self.synthetic_points:
            d["syntheticPoints"] = {k: v.to_dict() for k, v in self.synthetic_points.items()}
        return d


@dataclass
class ControlFile:
    """Fichier de contrôle d'un import CSV."""

    action: str = "Replace"  # Replace, Append, Upsert, Delete
    csv: FileTypeControl = field(default_factory=FileTypeControl)

    @classmethod
    def for_csv(cls, file_path: str | Path, **options: Any) -> ControlFile:
        """Crée un fichier de contrôle vierge (colonnes non initialisées) pour un CSV."""
        fc = FileTypeControl(file_path=str(file_path), **options)
        if fc.has_header_row and fc.skip < 1:
            fc.skip = 1
        fc.validate()
        return cls(csv=fc)

    @classmethod
    def from_dict(cls, d: dict[str, Any]) -> ControlFile:
        action = d.get("action", "Replace")
        if action not in VALID_ACTIONS:
            raise ConfigError(f"action invalide: {action!r}. Valides: {sorted(VALID_ACTIONS)}")
        return cls(action=action, csv=FileTypeControl.from_dict(d.get("csv") or {}))

    def to_dict(self) -> dict[str, Any]:
        return {"action": self.action, "csv": self.csv.to_dict()}

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False)

    @classmethod
    def load(cls, path: str | Path) -> ControlFile:
        """
        Charge le fichier de contrôle depuis un fichier JSON.

        Raises:
            ConfigFileError: Si le fichier est absent ou le JSON invalide.
            ConfigError: Si le contenu est invalide.
        """
        path = Path(path).resolve()
        if not path.exists():
            raise ConfigFileError(f"Fichier de contrôle introuvable: {path}")

        try:
            with open(path, encoding="utf-8") as f:
                d = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigFileError(f"JSON invalide dans {path}: {e}") from e
        except OSError as e:
            raise ConfigFileError(f"Impossible de lire {path}: {e}") from e

        if not isinstance(d, dict):
            raise ConfigFileError(f"Fichier de contrôle invalide: {path} doit contenir un objet JSON")

        control = cls.from_dict(d)
        control.resolve_paths(path.parent)
        return control

    def save(self, path: str | Path) -> None:
        """Écrit le fichier de contrôle en JSON indenté."""
        try:
            with open(path, "w", encoding="utf-8") as f:
                f.write(self.to_json())
                f.write("\n")
        except OSError as e:
            raise ConfigFileError(f"Impossible d'écrire {path}: {e}") from e

    def resolve_paths(self, base_dir: Path) -> None:
        """Résout le chemin relatif du CSV par rapport au répertoire de base (dossier du fichier de contrôle)."""
        if self.csv.file_path and not Path(self.csv.file_path).is_absolute():
            self.csv.file_path = str((Path(base_dir) / self.csv.file_path).resolve())
