"""Génération du rapport de correspondance."""

from __future__ import annotations

import math
from datetime import datetime
from pathlib import Path

import pandas as pd

from colconcorde import __version__
from colconcorde.matching.schema import BOUND, IGNORED, SYNTHETIC
from colconcorde.session import MappingSession


def _fmt_badness(value: float) -> float | str:
    return "" if math.isinf(value) else round(value, 2)


def build_mapping_df(session: MappingSession) -> pd.DataFrame:
    """
    Construit le DataFrame de l'onglet MAPPING : une ligne par colonne du CSV.

    Colonnes : position, en-tête, champ, libellé, type, statut, score du champ
    retenu et meilleur score du dernier rapprochement automatique.
    """
    rows = []
    for binding in session.bindings():
        target = session.schema.get(binding.field_name) if binding.field_name else None
        prefs = session.diagnostics(binding.position)
        chosen = next((c.badness for c in prefs if target and c.field_name == target.field_name), math.inf)
        best = prefs[0] if prefs else None
        rows.append(
            {
                "position": binding.position,
                "csv_header": session.display_name(binding.position),
                "field_name": binding.field_name or "",
                "human_name": target.human_name if target else "",
                "data_type": target.data_type if target else "",
                "status": binding.status,
                "badness": _fmt_badness(chosen),
                "best_candidate": best.field_name if best and best.is_viable else "",
                "best_badness": _fmt_badness(best.badness) if best else "",
            }
        )
    columns = [
        "position",
        "csv_header",
        "field_name",
        "human_name",
        "data_type",
        "status",
        "badness",
        "best_candidate",
        "best_badness",
    ]
    return pd.DataFrame(rows, columns=columns)


def build_unmapped_df(session: MappingSession) -> pd.DataFrame:
    """Champs du schéma sans colonne associée (ni ignorés, ni synthétiques)."""
    rows = [
        {"field_name": f.field_name, "human_name": f.human_name, "data_type": f.data_type}
        for f in session.unmapped_fields()
    ]
    return pd.DataFrame(rows, columns=["field_name", "human_name", "data_type"])


def build_report_df(session: MappingSession) -> pd.DataFrame:
    """
    Construit le DataFrame pour l'onglet REPORT.

    Contient : nb colonnes, nb associées, nb ignorées, nb synthétiques,
    nb champs non associés, options de lecture, horodatage, version.
    """
    statuses = [b.status for b in session.bindings()]
    fc = session.control.csv

    rows = [
        ("Metric", "Value"),
        ("nb_csv_columns", len(statuses)),
        ("nb_bound", statuses.count(BOUND)),
        ("nb_ignored", statuses.count(IGNORED)),
        ("nb_synthetic", statuses.count(SYNTHETIC)),
        ("nb_unmapped_fields", len(session.unmapped_fields())),
        ("rows_same_width", session.rows_contain_same_number_of_columns()),
        ("", ""),
        ("Parameters", ""),
        ("file_path", fc.file_path),
        ("action", session.control.action),
        ("separator", fc.separator),
        ("encoding", fc.encoding),
        ("has_header_row", fc.has_header_row),
        ("skip", fc.skip),
        ("", ""),
        ("timestamp", datetime.now().isoformat()),
        ("version", __version__),
    ]
    return pd.DataFrame(rows, columns=["Key", "Value"])


def print_report_console(session: MappingSession) -> None:
    """Affiche un résumé de la correspondance en console."""
    bindings = session.bindings()
    statuses = [b.status for b in bindings]

    print("\n=== ColConcorde Report ===")
    for b in bindings:
        target = b.field_name or "-"
        print(f"  [{b.position}] {session.display_name(b.position)!r:30} -> {target} ({b.status})")
    print(f"  Colonnes CSV:     {len(statuses)}")
    print(f"  Associées:        {statuses.count(BOUND)}")
    print(f"  Ignorées:         {statuses.count(IGNORED)}")
    print(f"  Synthétiques:     {statuses.count(SYNTHETIC)}")
    unmapped = session.unmapped_fields()
    print(f"  Champs sans colonne: {len(unmapped)}")
    for f in unmapped:
        print(f"    - {f.field_name} ({f.human_name})")
    if not session.rows_contain_same_number_of_columns():
        print("  Attention: les lignes n'ont pas toutes le même nombre de colonnes")
    print(f"  Version:          {__version__}")
    print("==========================\n")


def save_report_xlsx(filepath: str | Path, session: MappingSession) -> None:
    """Sauvegarde le rapport dans un fichier xlsx (onglets MAPPING, UNMAPPED, REPORT)."""
    sheets = {
        "MAPPING": build_mapping_df(session),
        "UNMAPPED": build_unmapped_df(session),
        "REPORT": build_report_df(session),
    }
    with pd.ExcelWriter(filepath, engine="openpyxl") as writer:
        for sheet_name, df in sheets.items():
            df.to_excel(writer, sheet_name=sheet_name[:31], index=False)
