"""
Catalogue des modèles d'activité : recherche, filtres, pagination,
désactivation / réactivation et ouverture de l'éditeur.
"""

import asyncio
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Callable, Dict, List, Optional, Set

from loguru import logger

from backend.config import CatalogConfig
from backend.models.activite_template import ActiviteTemplate, FiltresTemplates, StatutFiltre
from backend.services.exceptions import ApiError, NotFoundError, message_erreur
from backend.services.template_editor import TemplateEditor
from backend.services.template_repository import TemplateRepository
from backend.utils.text_utils import format_date_fr

MESSAGE_LISTE = "Impossible de charger les modèles d'activité"


class EtatCatalogue(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    ERROR = "error"


@dataclass
class Notification:
    """Équivalent d'un toast"""
    titre: str
    description: str = ""
    variante: str = "default"


@dataclass
class LigneCatalogue:
    id: int
    nom: str
    code: str
    nb_poles: int
    cree_le: str
    is_active: bool

    @property
    def attenue(self) -> bool:
        """Les modèles désactivés restent listés mais en retrait"""
        return not self.is_active


class TemplateCatalog:
    """
    Une session de liste : l'état (filtres, page, résultats) appartient
    à l'instance, rien n'est partagé entre deux catalogues.
    """

    def __init__(
        self,
        repository: TemplateRepository,
        filtres: Optional[FiltresTemplates] = None,
        page_size: Optional[int] = None,
        debounce_ms: Optional[int] = None,
        notifier: Optional[Callable[[Notification], None]] = None,
    ):
        self.repository = repository
        self.filtres = filtres or FiltresTemplates()
        self.page_size = page_size or CatalogConfig.PAGE_SIZE
        self.debounce_ms = CatalogConfig.SEARCH_DEBOUNCE_MS if debounce_ms is None else debounce_ms
        self.notifier = notifier

        self.etat = EtatCatalogue.IDLE
        self.page = 1
        self.items: List[ActiviteTemplate] = []
        self.total_count = 0
        self.erreur: Optional[str] = None
        self.erreurs_lignes: Dict[int, str] = {}
        self.notifications: List[Notification] = []

        # Saisie affichée immédiatement ; self.filtres.search ne suit qu'après le délai
        self.recherche_saisie = self.filtres.search

        self.confirmation_id: Optional[int] = None
        self.editeur: Optional[TemplateEditor] = None
        self._edition_creation = False

        self._generation = 0
        self._page_invalide = False
        self._debounce: Optional[asyncio.TimerHandle] = None
        self._taches: Set[asyncio.Task] = set()
        self._ferme = False

    # ------------------------------------------------------------------
    # Pagination

    @property
    def total_pages(self) -> int:
        return max(1, -(-self.total_count // self.page_size))

    @property
    def has_prev(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    def resume(self) -> str:
        if not self.total_count:
            return "Aucun modèle d'activité"
        debut = (self.page - 1) * self.page_size + 1
        fin = min(self.page * self.page_size, self.total_count)
        return f"{debut}–{fin} sur {self.total_count} modèle(s)"

    # ------------------------------------------------------------------
    # Chargement

    async def charger(self, filtres: Optional[FiltresTemplates] = None, page: int = 1) -> None:
        """
        Charge une page. Seule la réponse de la requête la plus récente
        est appliquée ; les réponses plus anciennes sont ignorées.
        """
        if self._ferme:
            return
        if filtres is not None:
            self.filtres = filtres
        self._generation += 1
        generation = self._generation
        self.page = page
        self.etat = EtatCatalogue.LOADING
        self.erreur = None
        self._page_invalide = False

        try:
            resultat = await self.repository.list_templates(self.filtres, page, self.page_size)
        except ApiError as e:
            if self._perime(generation):
                return
            self.items = []
            self.total_count = 0
            self.erreur = message_erreur(e, MESSAGE_LISTE)
            self._page_invalide = isinstance(e, NotFoundError)
            self.etat = EtatCatalogue.ERROR
            logger.warning(f"Liste des modèles indisponible : {self.erreur}")
            return

        if self._perime(generation):
            return
        self.items = resultat.items
        self.total_count = resultat.total_count
        self.etat = EtatCatalogue.LOADED
        logger.debug(f"{len(self.items)} modèle(s) reçus, page {page}/{self.total_pages}")

    def _perime(self, generation: int) -> bool:
        if self._ferme or generation != self._generation:
            logger.debug(f"Réponse de liste périmée ignorée (requête {generation})")
            return True
        return False

    async def rafraichir(self) -> None:
        """Recharge la page courante (page précédente si elle n'existe plus)"""
        page = self.page
        await self.charger(page=page)
        if self.etat == EtatCatalogue.ERROR and self._page_invalide and page > 1:
            await self.charger(page=page - 1)

    async def page_suivante(self) -> None:
        await self.charger(page=self.page + 1)

    async def page_precedente(self) -> None:
        await self.charger(page=self.page - 1)

    async def aller_page(self, page: int) -> None:
        await self.charger(page=page)

    # ------------------------------------------------------------------
    # Filtres (tout changement ramène à la page 1)

    def saisir_recherche(self, texte: str) -> None:
        """
        Frappe dans le champ de recherche : la requête ne part qu'après
        debounce_ms sans nouvelle frappe. Doit être appelé depuis la
        boucle asyncio de l'interface.
        """
        self.recherche_saisie = texte
        self._annuler_debounce()
        loop = asyncio.get_running_loop()
        self._debounce = loop.call_later(self.debounce_ms / 1000, self._appliquer_recherche)

    def _appliquer_recherche(self) -> None:
        self._debounce = None
        if self._ferme:
            return
        self._planifier(self.appliquer_filtres(search=self.recherche_saisie))

    def _annuler_debounce(self) -> None:
        if self._debounce is not None:
            self._debounce.cancel()
            self._debounce = None

    async def appliquer_filtres(self, **changes) -> None:
        await self.charger(self.filtres.model_copy(update=changes), page=1)

    async def effacer_recherche(self) -> None:
        self._annuler_debounce()
        self.recherche_saisie = ""
        await self.appliquer_filtres(search="")

    async def definir_dates(self, created_after: Optional[date] = None, created_before: Optional[date] = None) -> None:
        await self.appliquer_filtres(created_after=created_after, created_before=created_before)

    async def effacer_dates(self) -> None:
        await self.appliquer_filtres(created_after=None, created_before=None)

    async def definir_statut(self, statut: StatutFiltre) -> None:
        await self.appliquer_filtres(statut=StatutFiltre(statut))

    # ------------------------------------------------------------------
    # Éditeur

    async def ouvrir_creation(self) -> TemplateEditor:
        self.fermer_edition()
        self._edition_creation = True
        self.editeur = TemplateEditor(self.repository, on_success=self._apres_enregistrement)
        await self.editeur.charger()
        return self.editeur

    async def ouvrir_edition(self, template_id: int) -> TemplateEditor:
        self.fermer_edition()
        self._edition_creation = False
        self.editeur = TemplateEditor(self.repository, on_success=self._apres_enregistrement)
        await self.editeur.charger(template_id)
        return self.editeur

    def fermer_edition(self) -> None:
        if self.editeur is not None:
            self.editeur.fermer()
            self.editeur = None

    def _apres_enregistrement(self, template: ActiviteTemplate) -> None:
        creation = self._edition_creation
        self.fermer_edition()
        if creation:
            self._notifier(Notification("Modèle créé"))
            self._planifier(self.charger(page=1))
        else:
            self._notifier(Notification("Modèle enregistré"))
            self._planifier(self.rafraichir())

    # ------------------------------------------------------------------
    # Désactivation / réactivation

    def demander_desactivation(self, template_id: int) -> None:
        self.confirmation_id = template_id

    def annuler_desactivation(self) -> None:
        self.confirmation_id = None

    async def confirmer_desactivation(self) -> bool:
        template_id = self.confirmation_id
        if template_id is None:
            raise RuntimeError("Aucune désactivation en attente de confirmation")
        try:
            await self.repository.deactivate_template(template_id)
        except ApiError as e:
            if self._ferme:
                return False
            message = message_erreur(e, "Impossible de désactiver.")
            self.erreurs_lignes[template_id] = message
            self._notifier(Notification("Erreur", message, "destructive"))
            return False

        if self._ferme:
            logger.debug(f"Désactivation du modèle {template_id} reçue après fermeture, ignorée")
            return True
        self.confirmation_id = None
        self.erreurs_lignes.pop(template_id, None)
        if self.editeur is not None and self.editeur.template_id == template_id:
            self.fermer_edition()
        self._notifier(Notification("Modèle désactivé", "Les activités déjà créées restent visibles."))
        await self.rafraichir()
        return True

    async def reactiver(self, template_id: int) -> bool:
        try:
            await self.repository.update_template(template_id, {"is_active": True})
        except ApiError as e:
            if self._ferme:
                return False
            message = message_erreur(e, "Impossible de réactiver.")
            self.erreurs_lignes[template_id] = message
            self._notifier(Notification("Erreur", message, "destructive"))
            return False

        if self._ferme:
            logger.debug(f"Réactivation du modèle {template_id} reçue après fermeture, ignorée")
            return True
        self.erreurs_lignes.pop(template_id, None)
        self._notifier(Notification(
            "Modèle réactivé",
            "Le modèle est à nouveau proposé pour les nouvelles activités.",
        ))
        await self.rafraichir()
        return True

    # ------------------------------------------------------------------
    # Affichage

    def lignes(self) -> List[LigneCatalogue]:
        return [
            LigneCatalogue(
                id=t.id,
                nom=t.nom,
                code=t.code,
                nb_poles=len(t.pole_ids),
                cree_le=format_date_fr(t.created_at),
                is_active=t.is_active,
            )
            for t in self.items
        ]

    def _notifier(self, notification: Notification) -> None:
        if self._ferme:
            return
        self.notifications.append(notification)
        if self.notifier:
            self.notifier(notification)

    # ------------------------------------------------------------------
    # Tâches en arrière-plan

    def _planifier(self, coro) -> None:
        tache = asyncio.ensure_future(coro)
        self._taches.add(tache)
        tache.add_done_callback(self._taches.discard)

    async def attendre(self) -> None:
        """Attend les rechargements déclenchés en arrière-plan"""
        while self._taches:
            await asyncio.gather(*list(self._taches))

    def fermer(self) -> None:
        """Abandon de la session : minuterie annulée, réponses en attente ignorées"""
        self._ferme = True
        self._annuler_debounce()
        self.fermer_edition()
        for tache in list(self._taches):
            tache.cancel()
