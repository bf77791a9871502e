"""Normalisation des en-têtes et noms de champs."""

from __future__ import annotations

from typing import Any

_BOM = "\ufeff"


def field_key(field_name: str) -> str:
    """Clé d'identité d'un nom de champ (comparaison insensible à la casse)."""
    return field_name.casefold()


def clean_header(value: Any, *, strip: bool = False) -> str:
    """
    Nettoie une cellule d'en-tête brute : None → "", BOM retiré.

    Les différences de casse ou de séparateurs sont laissées intactes :
    elles sont prises en compte par la distance d'édition.
    """
    text = safe_str(value).lstrip(_BOM)
    return text.strip() if strip else text


def safe_str(val: Any) -> str:
    """Convertit une valeur en chaîne pour affichage/stockage."""
    if val is None or (isinstance(val, float) and (val != val or val == float("inf"))):
        return ""
    return str(val)
