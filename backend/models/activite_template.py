"""
Modèles Pydantic des modèles d'activité (template + champs personnalisés)
"""

from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from backend.models.champ_types import TypeChamp, parse_type_champ, supporte_options


class OptionChoix(BaseModel):
    """Option d'un champ 'choice' : clé stable + libellé affiché"""
    value: str = ""
    label: str = ""


class ChampTemplate(BaseModel):
    """Champ personnalisé d'un modèle d'activité"""
    model_config = ConfigDict(extra="ignore")

    id: Optional[int] = Field(None, description="Absent tant que le champ n'est pas enregistré")
    nom: str = Field("", description="Clé machine, unique dans le modèle (ex: date_visite)")
    label: str = Field("", description="Libellé affiché")
    type_champ: TypeChamp = TypeChamp.TEXT
    required: bool = False
    ordre: Optional[int] = Field(None, description="Ordre d'affichage (défaut : position)")
    options: List[OptionChoix] = Field(default_factory=list)
    is_active: bool = True

    @field_validator("type_champ", mode="before")
    @classmethod
    def _type_inconnu_en_texte(cls, v: Any) -> TypeChamp:
        return parse_type_champ(v)

    @field_validator("options", mode="before")
    @classmethod
    def _options_vides(cls, v: Any) -> Any:
        return v or []

    @property
    def a_options(self) -> bool:
        return supporte_options(self.type_champ)

    def to_payload(self, position: int) -> Dict[str, Any]:
        """Forme envoyée à l'API ; l'ordre est celui de la position finale"""
        payload: Dict[str, Any] = {}
        if self.id is not None:
            payload["id"] = self.id
        payload.update({
            "nom": self.nom,
            "label": self.label,
            "type_champ": self.type_champ.value,
            "required": self.required,
            "ordre": position,
            "options": [o.model_dump() for o in self.options],
            "is_active": self.is_active,
        })
        return payload


class ActiviteTemplate(BaseModel):
    """Modèle d'activité configurable (nom, code, pôles, champs)"""
    model_config = ConfigDict(extra="ignore")

    id: Optional[int] = None
    nom: str = ""
    code: str = ""
    description: Optional[str] = None
    is_active: bool = True
    ordre: int = 0
    pole_ids: List[int] = Field(default_factory=list)
    champs: List[ChampTemplate] = Field(default_factory=list)
    created_at: Optional[datetime] = None

    @field_validator("pole_ids", mode="before")
    @classmethod
    def _poles_uniques(cls, v: Any) -> List[int]:
        vus: List[int] = []
        for p in (v or []):
            p = int(p)
            if p not in vus:
                vus.append(p)
        return vus

    @field_validator("champs", mode="before")
    @classmethod
    def _champs_vides(cls, v: Any) -> Any:
        return v or []

    @model_validator(mode="after")
    def _ordre_par_defaut(self) -> "ActiviteTemplate":
        for i, champ in enumerate(self.champs):
            if champ.ordre is None:
                champ.ordre = i
        return self

    @property
    def est_persiste(self) -> bool:
        return self.id is not None

    def champs_tries(self) -> List[ChampTemplate]:
        """Champs triés par ordre ; à égalité, la position dans la liste l'emporte"""
        indexes = sorted(
            range(len(self.champs)),
            key=lambda i: (self.champs[i].ordre if self.champs[i].ordre is not None else i, i),
        )
        return [self.champs[i] for i in indexes]

    def champs_actifs(self) -> List[ChampTemplate]:
        return [c for c in self.champs_tries() if c.is_active]

    def to_payload(self) -> Dict[str, Any]:
        """Document complet pour create/update (liste de champs renumérotée)"""
        return {
            "nom": self.nom,
            "code": self.code,
            "description": self.description or "",
            "is_active": self.is_active,
            "ordre": self.ordre,
            "pole_ids": list(self.pole_ids),
            "champs": [c.to_payload(i) for i, c in enumerate(self.champs)],
        }

    def to_yaml(self) -> str:
        """Exporte la définition (sans identifiants serveur) en YAML"""
        import yaml
        return yaml.safe_dump(self.to_payload(), default_flow_style=False, allow_unicode=True, sort_keys=False)

    @classmethod
    def from_yaml(cls, content: str) -> "ActiviteTemplate":
        """Charge une définition exportée par to_yaml()"""
        import yaml
        data = yaml.safe_load(content) or {}
        data.pop("id", None)
        for champ in data.get("champs") or []:
            champ.pop("id", None)
        return cls(**data)


class TemplatePage(BaseModel):
    """Page de résultats renvoyée par list_templates"""
    items: List[ActiviteTemplate] = Field(default_factory=list)
    total_count: int = 0


class StatutFiltre(str, Enum):
    TOUS = "all"
    ACTIFS = "active"
    INACTIFS = "inactive"


class FiltresTemplates(BaseModel):
    """Filtres du catalogue, combinés en ET"""
    model_config = ConfigDict(frozen=True)

    search: str = ""
    created_after: Optional[date] = None
    created_before: Optional[date] = None
    statut: StatutFiltre = StatutFiltre.TOUS

    @property
    def is_active(self) -> Optional[bool]:
        if self.statut == StatutFiltre.TOUS:
            return None
        return self.statut == StatutFiltre.ACTIFS

    def to_params(self) -> Dict[str, Any]:
        """Paramètres de requête (les filtres vides sont omis)"""
        params: Dict[str, Any] = {}
        if self.search.strip():
            params["search"] = self.search.strip()
        if self.created_after:
            params["created_after"] = self.created_after.isoformat()
        if self.created_before:
            params["created_before"] = self.created_before.isoformat()
        if self.is_active is not None:
            params["is_active"] = "true" if self.is_active else "false"
        return params


class Pole(BaseModel):
    """Unité organisationnelle à laquelle un modèle peut être proposé"""
    model_config = ConfigDict(extra="ignore")

    id: int
    nom: str = ""
    code: Optional[str] = None
