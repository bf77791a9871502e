"""Distances d'édition entre en-têtes CSV et champs cibles."""

from __future__ import annotations

import math
from collections.abc import Callable

from rapidfuzz.distance import Levenshtein

from colconcorde.matching.schema import TargetField

CHEAP_EDIT = 0.1
FIELD_NAME_THRESHOLD = 0.25
HUMAN_NAME_THRESHOLD = 0.25


def _is_alnum(c: str) -> bool:
    return c.isalpha() or c.isdigit()


def weighted_levenshtein(
    s1: str,
    s2: str,
    *,
    substitution_cost: Callable[[str, str], float],
    deletion_cost: Callable[[str], float],
    insertion_cost: Callable[[str], float],
) -> float:
    """
    Distance d'édition pondérée pour transformer s1 en s2.

    Les coûts sont fournis par caractère : suppression d'un caractère de s1,
    insertion d'un caractère de s2, substitution (c1 de s1 → c2 de s2).
    Deux caractères identiques se substituent gratuitement.
    """
    if s1 == s2:
        return 0.0

    previous = [0.0]
    for c2 in s2:
        previous.append(previous[-1] + insertion_cost(c2))

    for c1 in s1:
        deletion = deletion_cost(c1)
        current = [previous[0] + deletion]
        for j, c2 in enumerate(s2):
            substitution = 0.0 if c1 == c2 else substitution_cost(c1, c2)
            current.append(
                min(
                    current[j] + insertion_cost(c2),
                    previous[j + 1] + deletion,
                    previous[j] + substitution,
                )
            )
        previous = current

    return previous[-1]


def _header_substitution(c1: str, c2: str) -> float:
    # Ponctuation/espace de l'en-tête → "_" du nom de champ
    if not _is_alnum(c1) and c2 == "_":
        return CHEAP_EDIT
    # Majuscule vers sa propre minuscule seulement ; l'ancien calcul acceptait
    # n'importe quelle minuscule (A → z à 0,1)
    if c1.isupper() and c1.lower() == c2:
        return CHEAP_EDIT
    return 1.0


def _field_name_substitution(c1: str, c2: str) -> float:
    if c1 == "_" and not _is_alnum(c2):
        return 0.0
    return 1.0


def _unit(_c: str) -> float:
    return 1.0


def _free(_c: str) -> float:
    return 0.0


def header_to_field_name(header: str, field_name: str) -> float:
    """
    Distance entre un en-tête CSV et un nom de champ machine.

    La distance directe rend peu coûteux le passage de la ponctuation à "_"
    et des majuscules aux minuscules. Elle n'est retenue que si le nom de
    champ se retrouve presque entièrement dans l'en-tête (distance inverse,
    insertions gratuites, inférieure à 25 % de la longueur du nom de champ) ;
    sinon la paire est rejetée (inf).

    Examples:
        >>> round(header_to_field_name("First Name", "first_name"), 2)
        0.3
        >>> header_to_field_name("xyz_totally_unrelated", "id")
        inf
    """
    reverse = weighted_levenshtein(
        field_name,
        header,
        substitution_cost=_field_name_substitution,
        deletion_cost=_unit,
        insertion_cost=_free,
    )
    if not reverse < len(field_name) * FIELD_NAME_THRESHOLD:
        return math.inf
    return weighted_levenshtein(
        header,
        field_name,
        substitution_cost=_header_substitution,
        deletion_cost=_unit,
        insertion_cost=_unit,
    )


def header_to_human_name(header: str, human_name: str) -> float:
    """Distance de Levenshtein simple, rejetée (inf) au-delà de 25 % de la plus longue chaîne."""
    distance = Levenshtein.distance(header, human_name)
    if distance < max(len(header), len(human_name)) * HUMAN_NAME_THRESHOLD:
        return float(distance)
    return math.inf


def badness(header: str, target: TargetField) -> float:
    """Score d'une paire (en-tête, champ) : le meilleur des deux rapprochements."""
    return min(
        header_to_human_name(header, target.human_name),
        header_to_field_name(header, target.field_name),
    )
