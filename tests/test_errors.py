"""Tests des cas d'erreur."""

import sys
from pathlib import Path

import pytest

from colconcorde import ColConcordeError
from colconcorde.config import ConfigError, ConfigFileError, ControlFile
from colconcorde.io_csv import CsvFileError, load_csv
from colconcorde.mapping import ColumnPositionError, MappingState
from colconcorde.session import FieldNotFoundError


def test_control_load_file_not_found(tmp_path: Path) -> None:
    """ControlFile.load() lève ConfigFileError si le fichier n'existe pas."""
    missing = tmp_path / "inexistant.json"
    with pytest.raises(ConfigFileError, match="introuvable"):
        ControlFile.load(missing)


def test_control_load_invalid_json(tmp_path: Path) -> None:
    """ControlFile.load() lève ConfigFileError si le JSON est invalide."""
    bad_json = tmp_path / "control.json"
    bad_json.write_text("{ invalid json }", encoding="utf-8")
    with pytest.raises(ConfigFileError, match="JSON invalide"):
        ControlFile.load(bad_json)


def test_control_load_not_dict(tmp_path: Path) -> None:
    """ControlFile.load() lève ConfigFileError si le JSON n'est pas un objet."""
    bad_control = tmp_path / "control.json"
    bad_control.write_text("[1, 2, 3]", encoding="utf-8")
    with pytest.raises(ConfigFileError, match="objet JSON"):
        ControlFile.load(bad_control)


def test_load_csv_file_not_found(tmp_path: Path) -> None:
    """load_csv() lève CsvFileError si le fichier n'existe pas."""
    with pytest.raises(CsvFileError, match="introuvable"):
        load_csv(tmp_path / "inexistant.csv")


def test_load_csv_wrong_encoding(tmp_path: Path) -> None:
    """Un encodage explicite autre que utf-8 n'est pas remplacé par latin-1."""
    path = tmp_path / "data.csv"
    path.write_bytes("nom,prénom\n".encode("utf-16"))
    with pytest.raises(CsvFileError, match="Encodage"):
        load_csv(path, separator=",", encoding="ascii")


def test_error_hierarchy() -> None:
    """Toutes les erreurs métier dérivent de ColConcordeError."""
    for exc in (ConfigError, ConfigFileError, CsvFileError, ColumnPositionError, FieldNotFoundError):
        assert issubclass(exc, ColConcordeError)
    assert issubclass(ColumnPositionError, IndexError)
    assert issubclass(FieldNotFoundError, KeyError)


def test_position_error_message() -> None:
    with pytest.raises(ColumnPositionError, match="Position 3 hors du CSV \\(2 colonnes\\)"):
        MappingState(2).ignore(3)


def test_cli_error_exit_code(capsys: pytest.CaptureFixture[str]) -> None:
    """La CLI retourne 1 et affiche un message en cas d'erreur."""
    from colconcorde.cli import main

    old_argv = sys.argv
    try:
        sys.argv = ["colconcorde", "match", "--schema", "/chemin/inexistant.json", "--dry-run"]
        exit_code = main()
    finally:
        sys.argv = old_argv

    assert exit_code == 1
    assert "Erreur" in capsys.readouterr().out
