"""
Forme produite pour le moteur de rendu des formulaires d'activité.

Chaque champ est un variant étiqueté par son type : seul le variant
'choice' porte des options. Le rendu (et la validation des valeurs
saisies) reste à la charge du consommateur et de l'API.
"""

from typing import Annotated, Any, Dict, Iterable, List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator

from backend.models.activite_template import ActiviteTemplate, ChampTemplate, OptionChoix
from backend.models.champ_types import TypeChamp, parse_type_champ

PREFIXE_TEMPLATE = "tpl:"


class _ChampBase(BaseModel):
    name: str
    label: str = ""
    required: bool = False


class ChampTexte(_ChampBase):
    type: Literal["text"] = "text"


class ChampTexteLong(_ChampBase):
    type: Literal["textarea"] = "textarea"


class ChampNombre(_ChampBase):
    type: Literal["number"] = "number"


class ChampDate(_ChampBase):
    type: Literal["date"] = "date"


class ChampDateHeure(_ChampBase):
    type: Literal["datetime"] = "datetime"


class ChampBooleen(_ChampBase):
    type: Literal["boolean"] = "boolean"


class ChampFichier(_ChampBase):
    type: Literal["file"] = "file"


class ChampChoix(_ChampBase):
    type: Literal["choice"] = "choice"
    options: List[OptionChoix] = Field(default_factory=list)


ChampFormulaire = Annotated[
    Union[
        ChampTexte, ChampTexteLong, ChampNombre, ChampDate,
        ChampDateHeure, ChampBooleen, ChampFichier, ChampChoix,
    ],
    Field(discriminator="type"),
]

VARIANTS: Dict[TypeChamp, type] = {
    TypeChamp.TEXT: ChampTexte,
    TypeChamp.LONG_TEXT: ChampTexteLong,
    TypeChamp.NUMBER: ChampNombre,
    TypeChamp.DATE: ChampDate,
    TypeChamp.DATETIME: ChampDateHeure,
    TypeChamp.BOOLEAN: ChampBooleen,
    TypeChamp.FILE: ChampFichier,
    TypeChamp.CHOICE: ChampChoix,
}


class TypeActiviteChoix(BaseModel):
    """Type d'activité proposé pour un pôle"""
    value: str
    label: str
    fields: List[ChampFormulaire] = Field(default_factory=list)

    @field_validator("fields", mode="before")
    @classmethod
    def _types_connus(cls, v: Any) -> Any:
        out = []
        for f in (v or []):
            if isinstance(f, dict):
                f = {**f, "type": parse_type_champ(f.get("type")).value}
            out.append(f)
        return out


class ChoixTypesActivite(BaseModel):
    """Réponse de /requetes/:id/activity-type-choices/"""
    pole_code: str
    pole_name: Optional[str] = None
    types: List[TypeActiviteChoix] = Field(default_factory=list)


def champ_formulaire(champ: ChampTemplate) -> ChampFormulaire:
    variant = VARIANTS[champ.type_champ]
    data: Dict[str, Any] = {"name": champ.nom, "label": champ.label, "required": champ.required}
    if variant is ChampChoix:
        data["options"] = [o.model_copy() for o in champ.options]
    return variant(**data)


def valeur_template(template_id: int) -> str:
    return f"{PREFIXE_TEMPLATE}{template_id}"


def template_id_depuis_valeur(value: str) -> Optional[int]:
    """'tpl:12' -> 12 ; None pour un type d'activité qui n'est pas un modèle"""
    if not value or not value.startswith(PREFIXE_TEMPLATE):
        return None
    try:
        return int(value[len(PREFIXE_TEMPLATE):])
    except ValueError:
        return None


def construire_type(template: ActiviteTemplate) -> TypeActiviteChoix:
    return TypeActiviteChoix(
        value=valeur_template(template.id),
        label=template.nom,
        fields=[champ_formulaire(c) for c in template.champs_actifs()],
    )


def construire_choix_types(
    pole_id: int,
    pole_code: str,
    templates: Iterable[ActiviteTemplate],
    pole_name: Optional[str] = None,
) -> ChoixTypesActivite:
    """
    Types proposés à un pôle : modèles actifs et assignés au pôle,
    triés par ordre puis par nom, champs inactifs exclus.
    """
    offerts = [t for t in templates if t.is_active and t.id is not None and pole_id in t.pole_ids]
    offerts.sort(key=lambda t: (t.ordre, t.nom.lower()))
    return ChoixTypesActivite(
        pole_code=pole_code,
        pole_name=pole_name,
        types=[construire_type(t) for t in offerts],
    )


def filtrer_valeurs(fields: Iterable[ChampFormulaire], values: Dict[str, Any]) -> Dict[str, Any]:
    """Ne garde que les clés des champs du type sélectionné"""
    noms = {f.name for f in fields}
    return {k: v for k, v in (values or {}).items() if k in noms}


def preparer_valeurs(fields: Iterable[ChampFormulaire], values: Dict[str, Any]) -> Dict[str, Any]:
    """
    Données envoyées avec l'activité : un champ requis est toujours présent
    (chaîne vide si non saisi), un champ facultatif vide est omis.
    """
    values = values or {}
    out: Dict[str, Any] = {}
    for f in fields:
        v = values.get(f.name)
        vide = v is None or v == ""
        if f.required:
            out[f.name] = "" if vide else v
        elif not vide:
            out[f.name] = v
    return out
