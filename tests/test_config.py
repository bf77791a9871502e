"""Tests du module config (fichier de contrôle)."""

import json
from pathlib import Path

import pytest

from colconcorde.config import ConfigError, ControlFile, FileTypeControl, LocationColumn


def test_control_defaults() -> None:
    control = ControlFile.from_dict({})
    assert control.action == "Replace"
    assert control.csv.separator == ","
    assert control.csv.has_header_row is True
    assert control.csv.skip == 1
    assert control.csv.columns is None
    assert not control.csv.has_columns()


def test_control_load_resolves_paths(tmp_path: Path) -> None:
    """ControlFile.load() résout le chemin du CSV par rapport au fichier de contrôle."""
    (tmp_path / "data").mkdir()
    control_path = tmp_path / "control.json"
    control_path.write_text(
        """
        {
            "action": "Upsert",
            "csv": {"filePath": "data/people.csv", "separator": ";", "skip": 2}
        }
    """,
        encoding="utf-8",
    )

    control = ControlFile.load(control_path)
    assert control.action == "Upsert"
    assert Path(control.csv.file_path).is_absolute()
    assert Path(control.csv.file_path).parent == (tmp_path / "data").resolve()
    assert control.csv.separator == ";"
    assert control.csv.skip == 2


def test_control_save_and_load(tmp_path: Path) -> None:
    control = ControlFile.for_csv(tmp_path / "people.csv", separator="\t")
    control.csv.columns = ["first_name", "__column_1__"]
    control.csv.ignore_columns = ["__column_1__"]
    control.csv.synthetic_locations = {"location": LocationColumn(address="addr", city="city")}
    path = tmp_path / "control.json"
    control.save(path)

    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["csv"]["columns"] == ["first_name", "__column_1__"]
    assert data["csv"]["ignoreColumns"] == ["__column_1__"]
    assert data["csv"]["syntheticLocations"] == {"location": {"address": "addr", "city": "city"}}
    assert "syntheticPoints" not in data["csv"]

    assert ControlFile.load(path) == control


def test_for_csv_forces_skip_with_header() -> None:
    control = ControlFile.for_csv("people.csv")
    assert control.csv.skip == 1
    control = ControlFile.for_csv("people.csv", has_header_row=False)
    assert control.csv.skip == 0


def test_validation_invalid_action() -> None:
    with pytest.raises(ConfigError, match="action invalide"):
        ControlFile.from_dict({"action": "Merge"})


def test_validation_separator() -> None:
    with pytest.raises(ConfigError, match="separator"):
        FileTypeControl.from_dict({"separator": ";;"})
    with pytest.raises(ConfigError, match="separator"):
        FileTypeControl.from_dict({"separator": ""})
    assert FileTypeControl.from_dict({"separator": "\t"}).separator == "\t"


def test_validation_skip() -> None:
    with pytest.raises(ConfigError, match="skip"):
        FileTypeControl.from_dict({"skip": -1, "hasHeaderRow": False})
    with pytest.raises(ConfigError, match="skip"):
        FileTypeControl.from_dict({"skip": "deux"})
    fc = FileTypeControl(skip=0, has_header_row=True)
    with pytest.raises(ConfigError, match="hasHeaderRow"):
        fc.validate()


def test_validation_encoding() -> None:
    with pytest.raises(ConfigError, match="encoding inconnu"):
        FileTypeControl.from_dict({"encoding": "klingon-8"})


def test_validation_columns() -> None:
    with pytest.raises(ConfigError, match="columns"):
        FileTypeControl.from_dict({"columns": "a,b"})


def test_synthetic_columns_parsed() -> None:
    fc = FileTypeControl.from_dict(
        {
            "syntheticLocations": {"location": {"address": "addr", "zip": "cp"}},
            "syntheticPoints": {"geo": {"latitude": "lat", "longitude": "lon"}},
        }
    )
    assert fc.synthetic_locations["location"] == LocationColumn(address="addr", zip="cp", kind="location")
    assert fc.synthetic_points["geo"].kind == "point"
    assert fc.synthetic_points["geo"].components() == ["lat", "lon"]


def test_synthetic_unknown_component() -> None:
    with pytest.raises(ConfigError, match="Composants inconnus"):
        FileTypeControl.from_dict({"syntheticLocations": {"location": {"country": "c"}}})
