"""
Contrat du dépôt de modèles d'activité.

Le moteur (éditeur, catalogue) ne parle qu'à ce contrat ; le transport
et le stockage sont à la charge des implémentations
(HttpTemplateRepository, MemoryTemplateRepository).
"""

from typing import Any, Dict, List, Protocol, runtime_checkable

from backend.models.activite_template import ActiviteTemplate, FiltresTemplates, Pole, TemplatePage


@runtime_checkable
class TemplateRepository(Protocol):
    """
    Toutes les méthodes sont des coroutines. Les erreurs sont des
    backend.services.exceptions.ApiError (statut + 'detail' éventuel).
    """

    async def list_templates(self, filtres: FiltresTemplates, page: int, page_size: int) -> TemplatePage:
        """Page de modèles (forme liste : 'champs' peut être vide)"""
        ...

    async def get_template(self, template_id: int) -> ActiviteTemplate:
        """Modèle complet, champs compris ; NotFoundError si l'id n'existe plus"""
        ...

    async def create_template(self, document: Dict[str, Any]) -> ActiviteTemplate:
        ...

    async def update_template(self, template_id: int, document: Dict[str, Any]) -> ActiviteTemplate:
        """Remplacement du document ou mise à jour partielle (ex: {'is_active': True})"""
        ...

    async def deactivate_template(self, template_id: int) -> None:
        """Suppression logique : is_active=False, rien n'est effacé"""
        ...

    async def list_poles(self) -> List[Pole]:
        ...
