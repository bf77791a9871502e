"""Tests du schéma cible."""

import json
from pathlib import Path

import pytest

from colconcorde.dataset import DatasetSchema, SchemaError, SchemaFileError
from colconcorde.matching.schema import TargetField


def test_from_records_accepts_both_key_styles() -> None:
    schema = DatasetSchema.from_records(
        [
            {"fieldName": "first_name", "name": "First Name", "dataTypeName": "text"},
            {"field_name": "birth_date", "human_name": "Date of Birth", "data_type": "calendar_date"},
            {"fieldName": "notes"},
        ]
    )
    assert schema.field_names == ["first_name", "birth_date", "notes"]
    assert schema.get("birth_date") == TargetField("birth_date", "Date of Birth", "calendar_date")
    assert schema.get("notes") == TargetField("notes", "notes", "text")
    assert len(schema) == 3


def test_get_is_case_insensitive(schema: DatasetSchema) -> None:
    assert schema.get("FIRST_NAME") is not None
    assert schema.get("FIRST_NAME").field_name == "first_name"
    assert schema.get("unknown") is None


def test_duplicate_field_names_rejected() -> None:
    with pytest.raises(SchemaError, match="dupliqué"):
        DatasetSchema([TargetField("zip", "Zip"), TargetField("ZIP", "Zip code")])


def test_missing_field_name_rejected() -> None:
    with pytest.raises(SchemaError, match="sans fieldName"):
        DatasetSchema.from_records([{"name": "Orphan"}])
    with pytest.raises(SchemaError, match="invalide"):
        DatasetSchema.from_records(["first_name"])


def test_load_list_and_object(tmp_path: Path) -> None:
    records = [{"fieldName": "first_name", "name": "First Name"}]
    as_list = tmp_path / "list.json"
    as_list.write_text(json.dumps(records), encoding="utf-8")
    as_obj = tmp_path / "obj.json"
    as_obj.write_text(json.dumps({"columns": records}), encoding="utf-8")

    assert DatasetSchema.load(as_list).fields == DatasetSchema.load(as_obj).fields


def test_load_errors(tmp_path: Path) -> None:
    with pytest.raises(SchemaFileError, match="introuvable"):
        DatasetSchema.load(tmp_path / "absent.json")

    bad = tmp_path / "bad.json"
    bad.write_text("{not json", encoding="utf-8")
    with pytest.raises(SchemaFileError, match="JSON invalide"):
        DatasetSchema.load(bad)

    scalar = tmp_path / "scalar.json"
    scalar.write_text("42", encoding="utf-8")
    with pytest.raises(SchemaFileError):
        DatasetSchema.load(scalar)
