"""Tests de lecture des CSV."""

from pathlib import Path

import pytest

from colconcorde.config import FileTypeControl
from colconcorde.io_csv import CsvFileError, CsvTable, detect_separator, load_csv, load_table
from colconcorde.mapping import ColumnPositionError


def _write(tmp_path: Path, content: str, name: str = "data.csv") -> Path:
    path = tmp_path / name
    path.write_text(content, encoding="utf-8")
    return path


def test_load_csv_basic(people_csv: Path) -> None:
    table = load_csv(people_csv)
    assert table.headers == ["First Name", "Last Name", "Zip", "Date of Birth", "Notes"]
    assert table.column_count == 5
    assert table.row_count == 2
    assert table.value_at(0, 1) == "Lovelace"
    assert table.value_at(1, 4) == ""
    assert table.rows_contain_same_number_of_columns()


def test_detect_separator(tmp_path: Path) -> None:
    semi = _write(tmp_path, "a;b;c\n1;2;3\n4;5;6\n", "semi.csv")
    tab = _write(tmp_path, "a\tb\n1\t2\n", "tab.csv")
    assert detect_separator(semi) == ";"
    assert detect_separator(tab) == "\t"
    assert load_csv(semi).column_count == 3


def test_quoted_separator(tmp_path: Path) -> None:
    path = _write(tmp_path, 'a,b\n"x,y",z\n')
    table = load_csv(path, separator=",")
    assert table.value_at(0, 0) == "x,y"
    assert table.value_at(0, 1) == "z"


def test_ragged_rows(tmp_path: Path) -> None:
    path = _write(tmp_path, "a,b,c\n1,2\n1,2,3,4\n")
    table = load_csv(path, separator=",")
    assert table.column_count == 3
    assert not table.rows_contain_same_number_of_columns()
    assert table.row_size(0) == 2
    assert table.row_size(1) == 4
    assert table.value_at(0, 2) is None


def test_skip_leading_lines(tmp_path: Path) -> None:
    path = _write(tmp_path, "# export du 01/01\n\na,b\n1,2\n")
    table = load_csv(path, separator=",", skip=3)
    assert table.headers == ["a", "b"]
    assert table.row_count == 1


def test_no_header_row(tmp_path: Path) -> None:
    path = _write(tmp_path, "1,2\n3,4\n")
    table = load_csv(path, separator=",", skip=0, has_header_row=False)
    assert table.headers == ["", ""]
    assert table.row_count == 2
    assert table.value_at(0, 0) == "1"


def test_bom_removed_from_header(tmp_path: Path) -> None:
    path = tmp_path / "bom.csv"
    path.write_text("a,b\n1,2\n", encoding="utf-8-sig")
    assert load_csv(path, separator=",").headers == ["a", "b"]


def test_latin1_fallback(tmp_path: Path) -> None:
    path = tmp_path / "latin.csv"
    path.write_bytes("nom,prénom\nCurie,Marie\n".encode("latin-1"))
    table = load_csv(path, separator=",")
    assert table.headers == ["nom", "prénom"]


def test_trim_whitespace(tmp_path: Path) -> None:
    path = _write(tmp_path, " a , b \n 1 ,2\n")
    table = load_csv(path, separator=",", trim_whitespace=True)
    assert table.headers == ["a", "b"]
    assert table.value_at(0, 0) == "1"


def test_max_rows(tmp_path: Path) -> None:
    path = _write(tmp_path, "a\n1\n2\n3\n")
    assert load_csv(path, separator=",", max_rows=2).row_count == 2


def test_position_errors() -> None:
    table = CsvTable.from_rows(["a"], [["1"]])
    with pytest.raises(ColumnPositionError):
        table.column_name(1)
    with pytest.raises(IndexError):
        table.value_at(3, 0)


def test_load_table_from_control(people_csv: Path) -> None:
    fc = FileTypeControl(file_path=str(people_csv), skip=1)
    assert load_table(fc).column_count == 5


def test_missing_file(tmp_path: Path) -> None:
    with pytest.raises(CsvFileError, match="introuvable"):
        load_csv(tmp_path / "absent.csv")
    with pytest.raises(CsvFileError, match="filePath"):
        load_table(FileTypeControl())
