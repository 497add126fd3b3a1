# backend/models/champ_types.py
"""
Registre des types de champ proposés dans les modèles d'activité.

Unique point de vérité : libellé du sélecteur de type, présence d'une
sous-liste d'options, widget attendu côté formulaire. Ajouter un type =
une entrée ici + un variant dans backend/models/formulaire.py.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List


class TypeChamp(str, Enum):
    TEXT = "text"
    LONG_TEXT = "textarea"
    NUMBER = "number"
    DATE = "date"
    DATETIME = "datetime"
    BOOLEAN = "boolean"
    FILE = "file"
    CHOICE = "choice"


# Anciennes valeurs encore acceptées en lecture
_ALIAS = {
    "long_text": TypeChamp.LONG_TEXT,
}


@dataclass(frozen=True)
class DefinitionType:
    type: TypeChamp
    label: str
    has_options: bool = False
    widget: str = "text"


TYPES_CHAMP: Dict[TypeChamp, DefinitionType] = {
    TypeChamp.TEXT: DefinitionType(TypeChamp.TEXT, "Texte court", widget="text"),
    TypeChamp.LONG_TEXT: DefinitionType(TypeChamp.LONG_TEXT, "Texte long", widget="textarea"),
    TypeChamp.NUMBER: DefinitionType(TypeChamp.NUMBER, "Nombre", widget="number"),
    TypeChamp.DATE: DefinitionType(TypeChamp.DATE, "Date", widget="date"),
    TypeChamp.DATETIME: DefinitionType(TypeChamp.DATETIME, "Date et heure", widget="datetime-local"),
    TypeChamp.BOOLEAN: DefinitionType(TypeChamp.BOOLEAN, "Oui / Non", widget="checkbox"),
    TypeChamp.FILE: DefinitionType(TypeChamp.FILE, "Fichier", widget="file"),
    TypeChamp.CHOICE: DefinitionType(TypeChamp.CHOICE, "Choix unique", has_options=True, widget="select"),
}


def parse_type_champ(value: Any) -> TypeChamp:
    """
    Convertit une valeur lue (API, YAML, formulaire) en TypeChamp.
    Une valeur inconnue retombe sur TEXT : le serveur peut connaître
    des types plus récents que ce client.
    """
    if isinstance(value, TypeChamp):
        return value
    raw = str(value or "").strip().lower()
    if raw in _ALIAS:
        return _ALIAS[raw]
    try:
        return TypeChamp(raw)
    except ValueError:
        return TypeChamp.TEXT


def get_definition(type_champ: Any) -> DefinitionType:
    return TYPES_CHAMP[parse_type_champ(type_champ)]


def supporte_options(type_champ: Any) -> bool:
    """True si le type porte une liste d'options (value, label)"""
    return get_definition(type_champ).has_options


def choix_types() -> List[DefinitionType]:
    """Types dans l'ordre d'affichage du sélecteur"""
    return list(TYPES_CHAMP.values())


__all__ = [
    "TypeChamp", "DefinitionType", "TYPES_CHAMP",
    "parse_type_champ", "get_definition", "supporte_options", "choix_types",
]
