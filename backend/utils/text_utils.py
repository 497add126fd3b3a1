"""
Utilitaires texte : code (slug) des modèles, dates affichées en français
"""

import re
import unicodedata
from datetime import date, datetime
from typing import Optional, Union

_ESPACES = re.compile(r"\s+")
_HORS_SLUG = re.compile(r"[^a-z0-9_]")

MOIS_COURTS = [
    "janv.", "févr.", "mars", "avr.", "mai", "juin",
    "juil.", "août", "sept.", "oct.", "nov.", "déc.",
]


def slugify_code(nom: str) -> str:
    """
    Dérive un code de modèle à partir de son nom.

    Minuscules, accents translittérés, espaces remplacés par '_',
    tout caractère hors [a-z0-9_] supprimé.

    Example:
        slugify_code("Évaluation Grille")  # "evaluation_grille"
    """
    if not nom:
        return ""
    s = unicodedata.normalize("NFKD", nom.strip().lower())
    s = "".join(ch for ch in s if not unicodedata.combining(ch))
    s = _ESPACES.sub("_", s)
    return _HORS_SLUG.sub("", s)


def format_date_fr(value: Optional[Union[date, datetime]]) -> str:
    """
    Date courte en français (ex: "3 févr. 2025"), chaîne vide si absente.
    """
    if value is None:
        return ""
    return f"{value.day} {MOIS_COURTS[value.month - 1]} {value.year}"
