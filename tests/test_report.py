"""Tests du rapport de correspondance."""

from pathlib import Path

import pandas as pd
import pytest

from colconcorde.config import ControlFile
from colconcorde.dataset import DatasetSchema
from colconcorde.report import (
    build_mapping_df,
    build_report_df,
    build_unmapped_df,
    print_report_console,
    save_report_xlsx,
)
from colconcorde.session import MappingSession


@pytest.fixture
def session(people_csv: Path, schema: DatasetSchema) -> MappingSession:
    return MappingSession(ControlFile.for_csv(people_csv), schema)


def test_build_mapping_df(session: MappingSession) -> None:
    df = build_mapping_df(session)
    assert len(df) == 5
    assert df["field_name"].tolist() == ["first_name", "last_name", "", "birth_date", ""]
    assert df["status"].tolist() == ["bound", "bound", "ignored", "bound", "ignored"]
    assert df.loc[3, "human_name"] == "Date of Birth"
    assert df.loc[3, "data_type"] == "calendar_date"
    assert df.loc[0, "badness"] == 0.0
    assert df.loc[4, "badness"] == ""
    assert df.loc[4, "best_candidate"] == ""


def test_build_unmapped_df(session: MappingSession) -> None:
    df = build_unmapped_df(session)
    assert df["field_name"].tolist() == ["zip_code"]
    session.bind("zip_code", 2)
    assert build_unmapped_df(session).empty


def test_build_report_df(session: MappingSession) -> None:
    df = build_report_df(session)
    values = dict(zip(df["Key"], df["Value"]))
    assert values["nb_csv_columns"] == 5
    assert values["nb_bound"] == 3
    assert values["nb_ignored"] == 2
    assert values["nb_synthetic"] == 0
    assert values["nb_unmapped_fields"] == 1
    assert values["separator"] == ","


def test_save_report_xlsx(tmp_path: Path, session: MappingSession) -> None:
    path = tmp_path / "report.xlsx"
    save_report_xlsx(path, session)
    assert path.exists()
    with pd.ExcelFile(path, engine="openpyxl") as xls:
        assert xls.sheet_names == ["MAPPING", "UNMAPPED", "REPORT"]
        mapping = pd.read_excel(xls, sheet_name="MAPPING")
    assert len(mapping) == 5


def test_print_report_console(session: MappingSession, capsys: pytest.CaptureFixture[str]) -> None:
    print_report_console(session)
    out = capsys.readouterr().out
    assert "ColConcorde Report" in out
    assert "zip_code" in out
    assert "first_name" in out
