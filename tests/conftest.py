"""Fixtures partagées : schéma cible et CSV d'exemple."""

from pathlib import Path

import pytest

from colconcorde.dataset import DatasetSchema
from colconcorde.matching.schema import TargetField


@pytest.fixture
def headers() -> list[str]:
    return ["First Name", "Last Name", "Zip", "Date of Birth", "Notes"]


@pytest.fixture
def fields() -> list[TargetField]:
    return [
        TargetField("first_name", "First Name"),
        TargetField("last_name", "Last Name"),
        TargetField("zip_code", "ZIP Code"),
        TargetField("birth_date", "Date of Birth", "calendar_date"),
    ]


@pytest.fixture
def schema(fields: list[TargetField]) -> DatasetSchema:
    return DatasetSchema(fields)


@pytest.fixture
def people_csv(tmp_path: Path) -> Path:
    path = tmp_path / "people.csv"
    path.write_text(
        "First Name,Last Name,Zip,Date of Birth,Notes\n"
        "Ada,Lovelace,10001,1815-12-10,math\n"
        "Alan,Turing,20002,1912-06-23,\n",
        encoding="utf-8",
    )
    return path
