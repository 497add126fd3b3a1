"""
Sous-éditeur d'un champ personnalisé.

Ne garde aucun état propre : chaque modification passe par
TemplateEditor.modifier_champ / supprimer_champ.
"""

from typing import TYPE_CHECKING, List, Optional

from backend.models.activite_template import OptionChoix
from backend.models.champ_types import choix_types, supporte_options

if TYPE_CHECKING:
    from backend.services.template_editor import ChampBrouillon, TemplateEditor


class ChampEditor:
    """Édition du champ à la position 'index' d'un TemplateEditor"""

    def __init__(self, editeur: "TemplateEditor", index: int):
        self.editeur = editeur
        self.index = index

    @property
    def champ(self) -> "ChampBrouillon":
        return self.editeur.champs[self.index]

    @property
    def options(self) -> List[OptionChoix]:
        return list(self.champ.options)

    @property
    def options_visibles(self) -> bool:
        """La sous-liste d'options n'est proposée que pour les types qui en portent"""
        return supporte_options(self.champ.type_champ)

    @staticmethod
    def types_disponibles():
        return choix_types()

    def modifier(self, **patch) -> "ChampBrouillon":
        return self.editeur.modifier_champ(self.index, **patch)

    def supprimer(self) -> None:
        self.editeur.supprimer_champ(self.index)

    # Options (value / label)

    def ajouter_option(self) -> None:
        self.modifier(options=self.options + [OptionChoix(value="", label="")])

    def modifier_option(self, i: int, value: Optional[str] = None, label: Optional[str] = None) -> None:
        options = self.options
        if not 0 <= i < len(options):
            raise IndexError(f"Option {i} hors limites")
        patch = {}
        if value is not None:
            patch["value"] = value
        if label is not None:
            patch["label"] = label
        options[i] = options[i].model_copy(update=patch)
        self.modifier(options=options)

    def supprimer_option(self, i: int) -> None:
        options = self.options
        if not 0 <= i < len(options):
            raise IndexError(f"Option {i} hors limites")
        del options[i]
        self.modifier(options=options)

    def doublons_options(self) -> List[str]:
        """Valeurs d'option présentes plusieurs fois (non bloquant)"""
        vus, doublons = set(), []
        for o in self.options:
            if o.value and o.value in vus and o.value not in doublons:
                doublons.append(o.value)
            vus.add(o.value)
        return doublons
