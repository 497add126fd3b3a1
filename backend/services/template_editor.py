"""
Éditeur de modèle d'activité

Gère un modèle comme un document unique : informations générales,
pôles assignés et liste ordonnée des champs personnalisés. Rien n'est
envoyé à l'API avant enregistrer() ; l'enregistrement remplace le
document complet.
"""

from enum import Enum
from typing import Any, Callable, Dict, List, Optional
from uuid import uuid4

from loguru import logger
from pydantic import Field

from backend.models.activite_template import ActiviteTemplate, ChampTemplate, Pole
from backend.models.champ_types import TypeChamp
from backend.services.exceptions import (
    ApiError,
    CodeVerrouilleError,
    NotFoundError,
    TemplateValidationError,
    message_erreur,
)
from backend.services.template_repository import TemplateRepository
from backend.utils.text_utils import slugify_code

MESSAGE_CHARGEMENT = "Impossible de charger le modèle"
MESSAGE_INTROUVABLE = "Ce modèle d'activité n'existe plus."
MESSAGE_ENREGISTREMENT = "Erreur lors de l'enregistrement du modèle"

CHAMPS_DOCUMENT = ("nom", "code", "description", "is_active", "ordre", "pole_ids")


class EtatEditeur(str, Enum):
    VIDE = "idle"
    CHARGEMENT = "loading"
    PRET = "ready"
    ECHEC_CHARGEMENT = "load_failed"
    ENREGISTREMENT = "saving"
    FERME = "closed"


class ChampBrouillon(ChampTemplate):
    """Champ en cours d'édition ; 'cle' est une identité locale stable"""
    cle: str = Field(default_factory=lambda: uuid4().hex)


class TemplateEditor:
    """Édition (création ou modification) d'un modèle d'activité"""

    def __init__(
        self,
        repository: TemplateRepository,
        on_success: Optional[Callable[[ActiviteTemplate], None]] = None,
    ):
        """
        Args:
            repository: Dépôt de modèles
            on_success: Appelé avec le modèle enregistré après un succès
        """
        self.repository = repository
        self.on_success = on_success

        self.template_id: Optional[int] = None
        self.template: Optional[ActiviteTemplate] = None
        self.etat = EtatEditeur.VIDE
        self.erreur: Optional[str] = None
        self.erreurs_validation: Dict[str, str] = {}
        self.poles: List[Pole] = []

        self.nom = ""
        self.code = ""
        self.description = ""
        self.is_active = True
        self.ordre = 0
        self.pole_ids: List[int] = []
        self.champs: List[ChampBrouillon] = []

    # ------------------------------------------------------------------
    # Cycle de vie

    @property
    def ferme(self) -> bool:
        return self.etat == EtatEditeur.FERME

    @property
    def mode_creation(self) -> bool:
        return self.template_id is None

    @property
    def code_modifiable(self) -> bool:
        """Le code devient non modifiable dès que le modèle est enregistré"""
        return self.template_id is None

    async def charger(self, template_id: Optional[int] = None) -> None:
        """
        Prépare le document : vide en création, hydraté depuis l'API sinon.

        Un échec de chargement est terminal pour la session : le formulaire
        n'est jamais présenté vide à la place du modèle demandé.
        """
        if self.etat == EtatEditeur.CHARGEMENT:
            raise RuntimeError("Chargement déjà en cours pour cet éditeur")
        if self.ferme:
            return

        self.template_id = template_id
        self.erreur = None
        if template_id is None:
            self._hydrater(ActiviteTemplate())
            self.etat = EtatEditeur.PRET
            return

        self.etat = EtatEditeur.CHARGEMENT
        logger.info(f"Chargement du modèle {template_id}")
        try:
            template = await self.repository.get_template(template_id)
        except ApiError as e:
            if self.ferme:
                return
            if isinstance(e, NotFoundError):
                self.erreur = MESSAGE_INTROUVABLE
            else:
                self.erreur = message_erreur(e, MESSAGE_CHARGEMENT)
            self.etat = EtatEditeur.ECHEC_CHARGEMENT
            logger.warning(f"Échec du chargement du modèle {template_id} : {self.erreur}")
            return

        if self.ferme:
            logger.debug(f"Modèle {template_id} reçu après fermeture de l'éditeur, ignoré")
            return
        self._hydrater(template)
        self.etat = EtatEditeur.PRET

    async def charger_poles(self) -> List[Pole]:
        """Liste des pôles pour le sélecteur ; vide si l'API ne répond pas"""
        try:
            poles = await self.repository.list_poles()
        except ApiError as e:
            logger.warning(f"Pôles indisponibles : {e}")
            poles = []
        if not self.ferme:
            self.poles = poles
        return poles

    def fermer(self) -> None:
        """Toute réponse encore attendue sera ignorée"""
        self.etat = EtatEditeur.FERME

    def _hydrater(self, template: ActiviteTemplate) -> None:
        self.template = template
        self.nom = template.nom
        self.code = template.code
        self.description = template.description or ""
        self.is_active = template.is_active
        self.ordre = template.ordre
        self.pole_ids = list(template.pole_ids)
        self.champs = [ChampBrouillon(**c.model_dump()) for c in template.champs_tries()]
        self._renumeroter()

    def _renumeroter(self) -> None:
        # ordre suit toujours la position dans la liste
        for i, c in enumerate(self.champs):
            c.ordre = i

    # ------------------------------------------------------------------
    # Informations générales

    def modifier(self, **changes: Any) -> None:
        """Met à jour nom, code, description, is_active, ordre ou pole_ids"""
        inconnus = set(changes) - set(CHAMPS_DOCUMENT)
        if inconnus:
            raise TypeError(f"Attribut(s) non modifiable(s) : {', '.join(sorted(inconnus))}")
        if "code" in changes and not self.code_modifiable and changes["code"] != self.code:
            raise CodeVerrouilleError("Le code d'un modèle enregistré ne peut pas être modifié")
        for key, value in changes.items():
            if key == "pole_ids":
                value = list(dict.fromkeys(int(p) for p in value))
            setattr(self, key, value)
            self.erreurs_validation.pop(key, None)

    # ------------------------------------------------------------------
    # Champs

    def _verifier_index(self, index: int) -> None:
        if not 0 <= index < len(self.champs):
            raise IndexError(f"Champ {index} hors limites (0..{len(self.champs) - 1})")

    def ajouter_champ(self) -> ChampBrouillon:
        champ = ChampBrouillon(
            type_champ=TypeChamp.TEXT,
            required=False,
            ordre=len(self.champs),
            options=[],
            is_active=True,
        )
        self.champs.append(champ)
        return champ

    def modifier_champ(self, index: int, **patch: Any) -> ChampBrouillon:
        """
        Fusionne 'patch' dans le champ à la position 'index'.

        Un nouvel 'ordre' déplace le champ à cette position (bornée à la
        liste) ; les autres champs sont renumérotés.
        """
        self._verifier_index(index)
        if "cle" in patch or "id" in patch:
            raise TypeError("L'identité d'un champ ne se modifie pas")
        ordre = patch.pop("ordre", None)
        data = self.champs[index].model_dump()
        data.update(patch)
        champ = ChampBrouillon(**data)
        self.champs[index] = champ
        if ordre is not None and ordre != index:
            self.deplacer_champ(index, min(max(int(ordre), 0), len(self.champs) - 1))
        return champ

    def supprimer_champ(self, index: int) -> None:
        self._verifier_index(index)
        del self.champs[index]
        self._renumeroter()

    def deplacer_champ(self, index: int, nouvel_index: int) -> None:
        """Déplace un champ puis renumérote l'ordre selon les positions"""
        self._verifier_index(index)
        self._verifier_index(nouvel_index)
        champ = self.champs.pop(index)
        self.champs.insert(nouvel_index, champ)
        self._renumeroter()

    def champ_editor(self, index: int):
        from backend.services.champ_editor import ChampEditor
        self._verifier_index(index)
        return ChampEditor(self, index)

    def doublons_noms(self) -> List[str]:
        """Noms de champ présents plusieurs fois (non bloquant)"""
        vus, doublons = set(), []
        for c in self.champs:
            nom = c.nom.strip()
            if nom and nom in vus and nom not in doublons:
                doublons.append(nom)
            vus.add(nom)
        return doublons

    # ------------------------------------------------------------------
    # Enregistrement

    def code_effectif(self) -> str:
        """Code saisi s'il existe, sinon dérivé du nom"""
        return self.code.strip() or slugify_code(self.nom)

    def valider(self) -> None:
        """Contrôles locaux avant tout appel à l'API"""
        if not self.nom.strip():
            raise TemplateValidationError("nom", "Le nom du modèle est obligatoire")
        if not self.code_effectif():
            raise TemplateValidationError("code", "Impossible de dériver un code à partir du nom : saisissez un code")

    def document(self) -> ActiviteTemplate:
        """
        Document envoyé à l'API : champs dans l'ordre de la liste,
        ordre renuméroté 0..N-1.
        """
        return ActiviteTemplate(
            id=self.template_id,
            nom=self.nom.strip(),
            code=self.code_effectif(),
            description=self.description.strip(),
            is_active=self.is_active,
            ordre=self.ordre,
            pole_ids=self.pole_ids,
            champs=[{**c.model_dump(), "ordre": i} for i, c in enumerate(self.champs)],
        )

    async def enregistrer(self) -> bool:
        """
        Valide puis crée ou met à jour le modèle.

        Returns:
            True si succès. En cas d'échec, la saisie est conservée et
            self.erreur contient le message à afficher.
        """
        if self.etat != EtatEditeur.PRET:
            raise RuntimeError(f"Enregistrement impossible dans l'état '{self.etat.value}'")

        self.erreur = None
        self.erreurs_validation = {}
        try:
            self.valider()
        except TemplateValidationError as e:
            self.erreur = e.message
            self.erreurs_validation[e.champ] = e.message
            return False

        doublons = self.doublons_noms()
        if doublons:
            logger.warning(f"Noms de champ en double : {', '.join(doublons)}")

        document = self.document()
        payload = document.to_payload()
        self.etat = EtatEditeur.ENREGISTREMENT
        try:
            if self.template_id is not None:
                saved = await self.repository.update_template(self.template_id, payload)
            else:
                saved = await self.repository.create_template(payload)
        except ApiError as e:
            if self.ferme:
                return False
            self.etat = EtatEditeur.PRET
            self.erreur = message_erreur(e, MESSAGE_ENREGISTREMENT)
            logger.warning(f"Échec de l'enregistrement du modèle '{document.code}' : {self.erreur}")
            return False

        if self.ferme:
            logger.debug(f"Modèle '{saved.code}' enregistré après fermeture de l'éditeur")
            return True

        cles = [c.cle for c in self.champs]
        self.template_id = saved.id
        self._hydrater(saved)
        if len(cles) == len(self.champs):
            for champ, cle in zip(self.champs, cles):
                champ.cle = cle
        self.etat = EtatEditeur.PRET
        logger.success(f"Modèle '{saved.code}' enregistré (ID: {saved.id})")
        if self.on_success:
            self.on_success(saved)
        return True
