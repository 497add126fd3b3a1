# backend/services/memory_repository.py
"""
Dépôt de modèles d'activité en mémoire.

Même contrat que l'API (filtres, pagination, suppression logique,
unicité du code) ; sert en mode hors ligne et dans les tests.
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple
from zoneinfo import ZoneInfo

from loguru import logger

from backend.models.activite_template import ActiviteTemplate, FiltresTemplates, Pole, TemplatePage
from backend.services.exceptions import ConflictError, NotFoundError

PARIS = ZoneInfo("Europe/Paris")


class MemoryTemplateRepository:
    """Implémentation en mémoire du contrat TemplateRepository"""

    def __init__(
        self,
        templates: Iterable[ActiviteTemplate] = (),
        poles: Iterable[Pole] = (),
        latence: float = 0.0,
    ):
        self._templates: Dict[int, ActiviteTemplate] = {}
        self._poles: List[Pole] = list(poles)
        self._next_id = 1
        self._next_champ_id = 1
        self.latence = latence
        # Historique des appels list_templates : (filtres, page, page_size)
        self.appels: List[Tuple[FiltresTemplates, int, int]] = []
        for t in templates:
            self._seed(t)

    def _seed(self, template: ActiviteTemplate) -> None:
        t = template.model_copy(deep=True)
        if t.id is None:
            t.id = self._next_id
        self._next_id = max(self._next_id, t.id + 1)
        if t.created_at is None:
            t.created_at = datetime.now(PARIS)
        self._numeroter_champs(t)
        self._templates[t.id] = t

    def _numeroter_champs(self, template: ActiviteTemplate) -> None:
        for c in template.champs:
            if c.id is None:
                c.id = self._next_champ_id
            self._next_champ_id = max(self._next_champ_id, c.id + 1)

    async def _pause(self) -> None:
        await asyncio.sleep(self.latence)

    def _get(self, template_id: int) -> ActiviteTemplate:
        template = self._templates.get(template_id)
        if template is None:
            raise NotFoundError(404, "Modèle introuvable.")
        return template

    def _verifier_code(self, code: str, exclude_id: Optional[int] = None) -> None:
        for t in self._templates.values():
            if t.code == code and t.id != exclude_id:
                raise ConflictError(400, "Un modèle d'activité avec ce code existe déjà.")

    @staticmethod
    def _correspond(t: ActiviteTemplate, filtres: FiltresTemplates) -> bool:
        terme = filtres.search.strip().lower()
        if terme:
            texte = " ".join([t.nom, t.code, t.description or ""]).lower()
            if terme not in texte:
                return False
        created = t.created_at.date() if t.created_at else None
        if filtres.created_after and (created is None or created < filtres.created_after):
            return False
        if filtres.created_before and (created is None or created > filtres.created_before):
            return False
        if filtres.is_active is not None and t.is_active != filtres.is_active:
            return False
        return True

    async def list_templates(self, filtres: FiltresTemplates, page: int, page_size: int) -> TemplatePage:
        self.appels.append((filtres, page, page_size))
        await self._pause()
        items = [t for t in self._templates.values() if self._correspond(t, filtres)]
        items.sort(key=lambda t: (t.ordre, t.nom.lower()))
        debut = (page - 1) * page_size
        if page < 1 or (page > 1 and debut >= len(items)):
            raise NotFoundError(404, "Page invalide.")
        return TemplatePage(
            items=[t.model_copy(deep=True) for t in items[debut:debut + page_size]],
            total_count=len(items),
        )

    async def get_template(self, template_id: int) -> ActiviteTemplate:
        await self._pause()
        return self._get(template_id).model_copy(deep=True)

    async def create_template(self, document: Dict[str, Any]) -> ActiviteTemplate:
        await self._pause()
        data = dict(document)
        if not (data.get("nom") or "").strip():
            raise ConflictError(400, "Le nom est obligatoire.")
        if not (data.get("code") or "").strip():
            raise ConflictError(400, "Le code est obligatoire.")
        self._verifier_code(data["code"])
        data.pop("id", None)
        data["created_at"] = datetime.now(PARIS)
        template = ActiviteTemplate(**data)
        template.id = self._next_id
        self._next_id += 1
        self._numeroter_champs(template)
        self._templates[template.id] = template
        logger.info(f"[mémoire] Modèle créé : {template.code} (ID: {template.id})")
        return template.model_copy(deep=True)

    async def update_template(self, template_id: int, document: Dict[str, Any]) -> ActiviteTemplate:
        await self._pause()
        current = self._get(template_id)
        if "code" in document and document["code"] != current.code:
            raise ConflictError(400, "Le code d'un modèle ne peut pas être modifié.")
        data = current.model_dump()
        data.update({k: v for k, v in document.items() if k not in ("id", "created_at")})
        updated = ActiviteTemplate(**data)
        self._numeroter_champs(updated)
        self._templates[template_id] = updated
        logger.info(f"[mémoire] Modèle {template_id} mis à jour")
        return updated.model_copy(deep=True)

    async def deactivate_template(self, template_id: int) -> None:
        await self._pause()
        self._get(template_id).is_active = False
        logger.info(f"[mémoire] Modèle {template_id} désactivé")

    async def list_poles(self) -> List[Pole]:
        await self._pause()
        return [p.model_copy() for p in self._poles]

    def all_templates(self) -> List[ActiviteTemplate]:
        """Tous les modèles, y compris inactifs (forme complète)"""
        return [t.model_copy(deep=True) for t in self._templates.values()]
