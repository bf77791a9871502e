"""Lecture des fichiers CSV : en-têtes et cellules par position."""

from __future__ import annotations

import csv
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

import pandas as pd

from colconcorde.config import ColConcordeError, FileTypeControl
from colconcorde.mapping import ColumnPositionError
from colconcorde.matching.schema import CsvColumn
from colconcorde.normalize import clean_header

logger = logging.getLogger(__name__)

CANDIDATE_DELIMITERS = [",", ";", "\t", "|"]


class CsvFileError(ColConcordeError):
    """Erreur de lecture d'un CSV (fichier absent, encodage, séparateur)."""


class TabularSource(Protocol):
    """Source tabulaire lue par position."""

    @property
    def column_count(self) -> int: ...

    @property
    def row_count(self) -> int: ...

    def column_name(self, position: int) -> str: ...

    def value_at(self, row: int, position: int) -> str | None: ...

    def row_size(self, row: int) -> int: ...


@dataclass
class CsvTable:
    """Contenu d'un CSV : en-têtes et cellules (une colonne pandas par position)."""

    headers: list[str]
    frame: pd.DataFrame
    row_sizes: list[int]

    @classmethod
    def from_rows(cls, headers: list[str], rows: list[list[str]]) -> CsvTable:
        """Construit la table ; les lignes courtes sont complétées par des cellules vides (None)."""
        width = len(headers)
        padded = [row[:width] + [None] * (width - len(row)) for row in rows]
        frame = pd.DataFrame(padded, columns=range(width), dtype=object)
        return cls(headers=list(headers), frame=frame, row_sizes=[len(r) for r in rows])

    @property
    def column_count(self) -> int:
        return len(self.headers)

    @property
    def row_count(self) -> int:
        return len(self.frame)

    def _check_position(self, position: int) -> None:
        if not 0 <= position < len(self.headers):
            raise ColumnPositionError(f"Position {position} hors du CSV ({len(self.headers)} colonnes)")

    def column_name(self, position: int) -> str:
        self._check_position(position)
        return self.headers[position]

    def value_at(self, row: int, position: int) -> str | None:
        self._check_position(position)
        if not 0 <= row < len(self.frame):
            raise IndexError(f"Ligne {row} hors du CSV ({len(self.frame)} lignes)")
        val = self.frame.iat[row, position]
        return None if pd.isna(val) else str(val)

    def row_size(self, row: int) -> int:
        return self.row_sizes[row]

    def rows_contain_same_number_of_columns(self) -> bool:
        return all(size == self.column_count for size in self.row_sizes)

    def columns(self) -> list[CsvColumn]:
        return [CsvColumn(i, h) for i, h in enumerate(self.headers)]


def detect_separator(path: str | Path, encoding: str = "utf-8", *, skip_rows: int = 0) -> str | None:
    """Devine le séparateur à partir des premières lignes non vides (None si indéterminé)."""
    path = Path(path)
    try:
        with path.open("r", encoding=encoding, errors="replace") as f:
            for _ in range(skip_rows):
                if f.readline() == "":
                    return None
            sample_lines: list[str] = []
            for line in f:
                if line.strip() == "":
                    continue
                sample_lines.append(line)
                if len(sample_lines) >= 5:
                    break
    except OSError:
        return None
    if not sample_lines:
        return None
    sample = "".join(sample_lines)
    try:
        dialect = csv.Sniffer().sniff(sample, delimiters=CANDIDATE_DELIMITERS)
        return dialect.delimiter
    except csv.Error:
        first = sample_lines[0]
        counts = {d: first.count(d) for d in CANDIDATE_DELIMITERS}
        best = max(counts, key=counts.get)
        return best if counts[best] > 0 else None


def _read_rows(
    path: Path,
    *,
    encoding: str,
    separator: str,
    quote: str,
    escape: str,
    limit: int | None,
) -> list[list[str]]:
    # csv.reader plutôt que pd.read_csv : la largeur réelle de chaque ligne est
    # conservée pour rows_contain_same_number_of_columns
    rows: list[list[str]] = []
    with path.open("r", encoding=encoding, newline="") as f:
        reader = csv.reader(
            f,
            delimiter=separator,
            quotechar=quote or '"',
            quoting=csv.QUOTE_MINIMAL if quote else csv.QUOTE_NONE,
            escapechar=escape or None,
        )
        for row in reader:
            if limit is not None and len(rows) >= limit:
                break
            rows.append(row)
    return rows


def load_csv(
    filepath: str | Path,
    *,
    separator: str | None = None,
    encoding: str = "utf-8",
    quote: str = '"',
    escape: str = "",
    skip: int = 1,
    has_header_row: bool = True,
    trim_whitespace: bool = False,
    max_rows: int | None = None,
) -> CsvTable:
    """
    Charge un CSV.

    Args:
        filepath: Chemin vers le fichier.
        separator: Séparateur (None = détection automatique).
        encoding: Encodage ; utf-8 invalide → nouvel essai en latin-1.
        skip: Lignes sautées, ligne d'en-tête comprise.
        has_header_row: La dernière ligne sautée contient les en-têtes.
        trim_whitespace: Supprimer les espaces autour des cellules et en-têtes.
        max_rows: Nombre maximal de lignes de données lues (None = toutes).

    Returns:
        CsvTable chargée.

    Raises:
        CsvFileError: Si le fichier est absent ou illisible.
    """
    path = Path(filepath)
    if not path.exists():
        raise CsvFileError(f"Fichier introuvable: {path}")

    header_idx = max(skip - 1, 0)
    data_start = max(skip, 1) if has_header_row else skip
    limit = data_start + max_rows if max_rows is not None else None

    def _read(enc: str) -> list[list[str]]:
        sep = separator or detect_separator(path, enc, skip_rows=header_idx) or ","
        return _read_rows(path, encoding=enc, separator=sep, quote=quote, escape=escape, limit=limit)

    try:
        rows = _read(encoding)
    except UnicodeDecodeError:
        if encoding.lower().replace("-", "").replace("_", "") != "utf8":
            raise CsvFileError(f"Encodage {encoding} invalide pour {path}") from None
        logger.warning("Encodage utf-8 invalide pour %s, nouvel essai en latin-1", path)
        try:
            rows = _read("latin-1")
        except (OSError, csv.Error) as e:
            raise CsvFileError(f"Erreur CSV {path}: {e}") from e
    except (OSError, csv.Error) as e:
        raise CsvFileError(f"Erreur CSV {path}: {e}. Vérifiez le séparateur et les guillemets.") from e

    data = [r for r in rows[data_start:] if r]
    if has_header_row:
        headers = rows[header_idx] if len(rows) > header_idx else []
    else:
        headers = [""] * (len(data[0]) if data else 0)
    headers = [clean_header(h, strip=trim_whitespace) for h in headers]

    if trim_whitespace:
        data = [[cell.strip() for cell in r] for r in data]

    logger.debug("%s: %d colonnes, %d lignes", path, len(headers), len(data))
    return CsvTable.from_rows(headers, data)


def load_table(fc: FileTypeControl, *, max_rows: int | None = None) -> CsvTable:
    """Charge le CSV décrit par la section csv d'un fichier de contrôle."""
    if not fc.file_path:
        raise CsvFileError("Aucun fichier CSV (filePath) dans le fichier de contrôle")
    return load_csv(
        fc.file_path,
        separator=fc.separator,
        encoding=fc.encoding,
        quote=fc.quote,
        escape=fc.escape,
        skip=fc.skip,
        has_header_row=fc.has_header_row,
        trim_whitespace=fc.trim_whitespace,
        max_rows=max_rows,
    )
