"""Interface en ligne de commande ColConcorde."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from colconcorde import __version__
from colconcorde.config import ColConcordeError, ConfigError, ControlFile
from colconcorde.dataset import DatasetSchema
from colconcorde.io_csv import detect_separator, load_csv
from colconcorde.report import print_report_console, save_report_xlsx
from colconcorde.session import MappingSession

logger = logging.getLogger(__name__)


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="{asctime} - {levelname} - {message}",
        style="{",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _parse_bind(value: str) -> tuple[str, int]:
    """Analyse "champ=position"."""
    field_name, sep, pos = value.rpartition("=")
    if not sep or not field_name:
        raise ConfigError(f"--bind attend champ=position (got {value!r})")
    try:
        return field_name, int(pos)
    except ValueError as e:
        raise ConfigError(f"--bind: position invalide dans {value!r}") from e


def cmd_headers(filepath: str, *, separator: str | None = None, encoding: str = "utf-8", has_header_row: bool = True) -> int:
    """Liste les colonnes d'un CSV."""
    table = load_csv(
        filepath,
        separator=separator,
        encoding=encoding,
        skip=1 if has_header_row else 0,
        has_header_row=has_header_row,
        max_rows=100,
    )
    print(f"Colonnes dans {filepath}:")
    for col in table.columns():
        print(f"  [{col.position}] {col.header!r}")
    if not table.rows_contain_same_number_of_columns():
        print("Attention: les lignes n'ont pas toutes le même nombre de colonnes")
    return 0


def cmd_match(
    schema_path: str,
    *,
    csv_path: str | None = None,
    control_path: str | None = None,
    output_path: str | None = None,
    report_path: str | None = None,
    separator: str | None = None,
    has_header_row: bool = True,
    binds: list[str] | None = None,
    ignores: list[int] | None = None,
    keep_existing_columns: bool = False,
    dry_run: bool = False,
) -> int:
    """Rapproche les colonnes d'un CSV du schéma cible et écrit le fichier de contrôle."""
    schema = DatasetSchema.load(schema_path)

    if control_path:
        control = ControlFile.load(control_path)
        if csv_path:
            control.csv.file_path = str(Path(csv_path).resolve())
    elif csv_path:
        sep = separator or detect_separator(csv_path) or ","
        control = ControlFile.for_csv(Path(csv_path).resolve(), separator=sep, has_header_row=has_header_row)
    else:
        raise ConfigError("--csv ou --control requis")

    session = MappingSession(control, schema, keep_existing_columns=keep_existing_columns)
    if control_path and separator:
        session.set_separator(separator)

    for value in binds or []:
        field_name, position = _parse_bind(value)
        for event in session.bind(field_name, position):
            logger.debug("%s", event)
    for position in ignores or []:
        for event in session.ignore(position):
            logger.debug("%s", event)

    print_report_console(session)

    if report_path:
        save_report_xlsx(report_path, session)
        print(f"Rapport écrit: {report_path}")

    if dry_run:
        print("Mode dry-run: pas d'écriture du fichier de contrôle.")
        print(session.control_file_contents())
        return 0

    if not output_path:
        print("Erreur: --output requis en mode non dry-run.")
        return 1

    session.to_control_file().save(output_path)
    print(f"Fichier de contrôle écrit: {output_path}")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="colconcorde",
        description="Rapprochement des colonnes d'un CSV avec le schéma d'un jeu de données",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--verbose", "-v", action="store_true", help="Journal détaillé")

    subparsers = parser.add_subparsers(dest="command", help="Commandes")

    # headers
    p_headers = subparsers.add_parser("headers", help="Lister les colonnes d'un CSV")
    p_headers.add_argument("file", help="Fichier CSV")
    p_headers.add_argument("--separator", "-s", help="Séparateur (défaut: détection)")
    p_headers.add_argument("--encoding", default="utf-8", help="Encodage")
    p_headers.add_argument("--no-header", action="store_true", help="Pas de ligne d'en-tête")

    # match
    p_match = subparsers.add_parser("match", help="Rapprocher les colonnes du schéma")
    p_match.add_argument("--schema", required=True, help="Schéma JSON du jeu de données")
    p_match.add_argument("--csv", help="Fichier CSV")
    p_match.add_argument("--control", "-c", help="Fichier de contrôle existant")
    p_match.add_argument("--output", "-o", help="Fichier de contrôle à écrire")
    p_match.add_argument("--report", "-r", help="Rapport xlsx")
    p_match.add_argument("--separator", "-s", help="Séparateur (défaut: détection)")
    p_match.add_argument("--no-header", action="store_true", help="Pas de ligne d'en-tête")
    p_match.add_argument("--bind", "-b", action="append", default=[], help="Association manuelle champ=position")
    p_match.add_argument("--ignore", action="append", type=int, default=[], help="Position à ignorer")
    p_match.add_argument("--keep-columns", action="store_true", help="Conserver les colonnes du fichier de contrôle")
    p_match.add_argument("--dry-run", action="store_true", help="Afficher sans écrire le fichier de contrôle")

    args = parser.parse_args(argv)
    _setup_logging(args.verbose)

    try:
        if args.command == "headers":
            return cmd_headers(
                args.file,
                separator=args.separator,
                encoding=args.encoding,
                has_header_row=not args.no_header,
            )

        if args.command == "match":
            if not args.dry_run and not args.output:
                parser.error("--output requis sauf en --dry-run")
            return cmd_match(
                args.schema,
                csv_path=args.csv,
                control_path=args.control,
                output_path=args.output,
                report_path=args.report,
                separator=args.separator,
                has_header_row=not args.no_header,
                binds=args.bind,
                ignores=args.ignore,
                keep_existing_columns=args.keep_columns,
                dry_run=args.dry_run,
            )
    except ColConcordeError as e:
        print(f"Erreur: {e}")
        return 1

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
