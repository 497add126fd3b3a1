"""
Modèles Pydantic des modèles d'activité et du formulaire produit
"""

from .champ_types import TypeChamp, TYPES_CHAMP, parse_type_champ, supporte_options
from .activite_template import (
    ActiviteTemplate,
    ChampTemplate,
    OptionChoix,
    TemplatePage,
    FiltresTemplates,
    StatutFiltre,
    Pole
)
from .formulaire import ChoixTypesActivite, TypeActiviteChoix, construire_choix_types

__all__ = [
    "TypeChamp",
    "TYPES_CHAMP",
    "parse_type_champ",
    "supporte_options",
    "ActiviteTemplate",
    "ChampTemplate",
    "OptionChoix",
    "TemplatePage",
    "FiltresTemplates",
    "StatutFiltre",
    "Pole",
    "ChoixTypesActivite",
    "TypeActiviteChoix",
    "construire_choix_types"
]
