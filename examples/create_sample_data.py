"""Crée un CSV et un schéma de démonstration pour ColConcorde."""

import json
from pathlib import Path

import pandas as pd

DATA_DIR = Path(__file__).parent / "data"
DATA_DIR.mkdir(exist_ok=True)

people = pd.DataFrame({
    "First Name": ["Ada", "Alan", "Grace", "Edsger"],
    "last name": ["Lovelace", "Turing", "Hopper", "Dijkstra"],
    "ZIP": ["10001", "20002", "30003", "40004"],
    "Date of Brith": ["1815-12-10", "1912-06-23", "1906-12-09", "1930-05-11"],
    "Street Address": ["12 St James Sq", "2 Wilmslow Rd", "1 Navy Yard", "5 Plantage"],
    "City": ["London", "Wilmslow", "Arlington", "Amsterdam"],
    "Notes": ["math", "cs", "cobol", "go to"],
})

schema = [
    {"fieldName": "first_name", "name": "First Name"},
    {"fieldName": "last_name", "name": "Last Name"},
    {"fieldName": "zip_code", "name": "ZIP Code"},
    {"fieldName": "birth_date", "name": "Date of Birth", "dataTypeName": "calendar_date"},
    {"fieldName": "city", "name": "City"},
    {"fieldName": "location", "name": "Location", "dataTypeName": "location"},
]

people.to_csv(DATA_DIR / "people.csv", index=False)
(DATA_DIR / "schema.json").write_text(json.dumps({"columns": schema}, indent=2), encoding="utf-8")
print(f"Fichiers créés dans {DATA_DIR}")
print(f"Essayer : colconcorde match --schema {DATA_DIR / 'schema.json'} --csv {DATA_DIR / 'people.csv'} --dry-run")
