"""Tests de l'éditeur de modèle d'activité (création, champs, enregistrement)"""

import asyncio
import sys
from pathlib import Path

import pytest

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from backend.models.activite_template import ActiviteTemplate
from backend.models.champ_types import TypeChamp
from backend.services.exceptions import CodeVerrouilleError, TransientError, UnauthorizedError
from backend.services.memory_repository import MemoryTemplateRepository
from backend.services.template_editor import (
    MESSAGE_CHARGEMENT,
    MESSAGE_ENREGISTREMENT,
    MESSAGE_INTROUVABLE,
    EtatEditeur,
    TemplateEditor
)


class CountingRepository(MemoryTemplateRepository):
    """Compte les écritures envoyées au dépôt"""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.ecritures = 0

    async def create_template(self, document):
        self.ecritures += 1
        return await super().create_template(document)

    async def update_template(self, template_id, document):
        self.ecritures += 1
        return await super().update_template(template_id, document)


class ForbiddenRepository(MemoryTemplateRepository):
    async def create_template(self, document):
        raise UnauthorizedError(403)


class FailingLoadRepository(MemoryTemplateRepository):
    """get_template lève l'erreur donnée"""

    def __init__(self, erreur):
        super().__init__([_visite()])
        self.erreur = erreur

    async def get_template(self, template_id):
        raise self.erreur


def _visite():
    return ActiviteTemplate(
        id=1, nom="Visite", code="visite", pole_ids=[1],
        champs=[
            {"nom": "lieu", "label": "Lieu", "ordre": 0},
            {"nom": "motif", "label": "Motif", "type_champ": "choice", "ordre": 1,
             "options": [{"value": "a", "label": "A"}, {"value": "b", "label": "B"}, {"value": "c", "label": "C"}]},
        ],
    )


async def _editeur(repo, template_id=None, **kwargs):
    editeur = TemplateEditor(repo, **kwargs)
    await editeur.charger(template_id)
    return editeur


def test_create_mode_starts_empty():
    """En création, le document est vide et le code reste modifiable"""
    editeur = asyncio.run(_editeur(MemoryTemplateRepository()))
    assert editeur.etat == EtatEditeur.PRET
    assert editeur.mode_creation and editeur.code_modifiable
    assert (editeur.nom, editeur.code, editeur.champs, editeur.pole_ids) == ("", "", [], [])
    assert editeur.is_active is True
    print("✅ Test création vide OK")


def test_field_operations():
    """Ajout, mise à jour partielle, suppression ; index invalide rejeté"""
    editeur = asyncio.run(_editeur(MemoryTemplateRepository()))

    champ = editeur.ajouter_champ()
    assert champ.type_champ == TypeChamp.TEXT
    assert champ.required is False and champ.is_active is True
    assert champ.ordre == 0

    editeur.ajouter_champ()
    editeur.modifier_champ(1, nom="note", type_champ="number", required=True)
    assert editeur.champs[1].type_champ == TypeChamp.NUMBER
    assert editeur.champs[1].required is True
    assert editeur.champs[1].ordre == 1

    editeur.supprimer_champ(0)
    assert [c.nom for c in editeur.champs] == ["note"]

    with pytest.raises(IndexError):
        editeur.modifier_champ(5, nom="x")
    with pytest.raises(IndexError):
        editeur.supprimer_champ(-1)
    assert len(editeur.champs) == 1
    print("✅ Test opérations sur les champs OK")


def test_code_derived_from_name():
    """Code vide : dérivé du nom ; code saisi : prioritaire"""
    repo = MemoryTemplateRepository()

    async def scenario():
        editeur = await _editeur(repo)
        editeur.modifier(nom="Évaluation Grille")
        assert await editeur.enregistrer()
        assert editeur.code == "evaluation_grille"

        editeur = await _editeur(repo)
        editeur.modifier(nom="Évaluation Grille", code="grille_v2")
        assert await editeur.enregistrer()
        assert editeur.code == "grille_v2"

    asyncio.run(scenario())
    assert sorted(t.code for t in repo.all_templates()) == ["evaluation_grille", "grille_v2"]
    print("✅ Test dérivation du code OK")


def test_validation_blocks_without_api_call():
    """Nom vide ou code impossible à dériver : aucun appel au dépôt"""
    repo = CountingRepository()

    async def scenario():
        editeur = await _editeur(repo)
        assert await editeur.enregistrer() is False
        assert "nom" in editeur.erreurs_validation

        editeur.modifier(nom="!!!")
        assert await editeur.enregistrer() is False
        assert "code" in editeur.erreurs_validation
        assert editeur.etat == EtatEditeur.PRET

    asyncio.run(scenario())
    assert repo.ecritures == 0
    print("✅ Test validation locale OK")


def test_code_locked_once_saved():
    """Le code ne peut plus changer après chargement ou création"""
    repo = MemoryTemplateRepository([_visite()])

    async def scenario():
        editeur = await _editeur(repo, 1)
        assert not editeur.code_modifiable
        with pytest.raises(CodeVerrouilleError):
            editeur.modifier(code="autre")
        editeur.modifier(code="visite")

        nouveau = await _editeur(repo)
        nouveau.modifier(nom="Audit")
        assert await nouveau.enregistrer()
        assert not nouveau.code_modifiable
        with pytest.raises(CodeVerrouilleError):
            nouveau.modifier(code="audit_2")

    asyncio.run(scenario())
    print("✅ Test code verrouillé OK")


def test_unknown_attribute_rejected():
    editeur = asyncio.run(_editeur(MemoryTemplateRepository()))
    with pytest.raises(TypeError):
        editeur.modifier(created_at="2025-01-01")


def test_reorder_survives_round_trip():
    """Une permutation enregistrée est relue dans le même ordre"""
    repo = MemoryTemplateRepository()

    async def scenario():
        editeur = await _editeur(repo)
        editeur.modifier(nom="Suivi")
        for nom in ["a", "b", "c"]:
            editeur.ajouter_champ()
            editeur.modifier_champ(len(editeur.champs) - 1, nom=nom, label=nom.upper())
        editeur.deplacer_champ(2, 0)
        assert [c.ordre for c in editeur.champs] == [0, 1, 2]
        assert await editeur.enregistrer()

        relu = await _editeur(repo, editeur.template_id)
        return relu

    relu = asyncio.run(scenario())
    assert [c.nom for c in relu.champs] == ["c", "a", "b"]
    assert [c.ordre for c in relu.champs] == [0, 1, 2]
    print("✅ Test réordonnancement OK")


def test_order_edit_moves_field_in_list():
    """Un nouvel ordre déplace le champ ; le document suit la liste"""
    editeur = asyncio.run(_editeur(MemoryTemplateRepository()))
    for nom in ["x", "y", "z"]:
        editeur.ajouter_champ()
        editeur.modifier_champ(len(editeur.champs) - 1, nom=nom)

    editeur.modifier_champ(2, ordre=0)
    assert [(c.nom, c.ordre) for c in editeur.champs] == [("z", 0), ("x", 1), ("y", 2)]

    editeur.modifier_champ(0, ordre=99)
    assert [c.nom for c in editeur.champs] == ["x", "y", "z"]

    document = editeur.document()
    assert [(c.nom, c.ordre) for c in document.champs] == [("x", 0), ("y", 1), ("z", 2)]
    print("✅ Test déplacement par ordre OK")


def test_field_added_after_removals_stays_last():
    """Suppressions puis ajout : le nouveau champ reste en fin de liste"""
    repo = MemoryTemplateRepository([ActiviteTemplate(
        id=1, nom="Suivi", code="suivi",
        champs=[{"nom": "a", "ordre": 0}, {"nom": "b", "ordre": 1}, {"nom": "c", "ordre": 2}],
    )])

    async def scenario():
        editeur = await _editeur(repo, 1)
        editeur.supprimer_champ(0)
        editeur.supprimer_champ(0)
        assert [(c.nom, c.ordre) for c in editeur.champs] == [("c", 0)]
        editeur.ajouter_champ()
        editeur.modifier_champ(1, nom="d")
        assert await editeur.enregistrer()
        return await _editeur(repo, 1)

    relu = asyncio.run(scenario())
    assert [(c.nom, c.ordre) for c in relu.champs] == [("c", 0), ("d", 1)]
    print("✅ Test ajout après suppression OK")


def test_server_order_gaps_are_renumbered_on_load():
    """Ordres serveur non contigus : relus 0..N-1, un ajout va en fin"""
    repo = MemoryTemplateRepository([ActiviteTemplate(
        id=1, nom="Suivi", code="suivi",
        champs=[{"nom": "a", "ordre": 0}, {"nom": "b", "ordre": 10}],
    )])

    editeur = asyncio.run(_editeur(repo, 1))
    assert [(c.nom, c.ordre) for c in editeur.champs] == [("a", 0), ("b", 1)]
    editeur.ajouter_champ()
    editeur.modifier_champ(2, nom="nouveau")
    assert [c.nom for c in editeur.document().champs] == ["a", "b", "nouveau"]


def test_option_removal_round_trip():
    """Options [A, B, C] ajoutées puis B retirée : [A, C] après relecture"""
    repo = MemoryTemplateRepository()

    async def scenario():
        editeur = await _editeur(repo)
        editeur.modifier(nom="Entretien")
        editeur.ajouter_champ()
        sous = editeur.champ_editor(0)
        sous.modifier(nom="motif", type_champ=TypeChamp.CHOICE)
        assert sous.options_visibles
        for i, (value, label) in enumerate([("a", "A"), ("b", "B"), ("c", "C")]):
            sous.ajouter_option()
            sous.modifier_option(i, value=value, label=label)
        sous.supprimer_option(1)
        assert [o.value for o in sous.options] == ["a", "c"]
        assert await editeur.enregistrer()
        return await _editeur(repo, editeur.template_id)

    relu = asyncio.run(scenario())
    assert [(o.value, o.label) for o in relu.champs[0].options] == [("a", "A"), ("c", "C")]
    print("✅ Test suppression d'option OK")


def test_sub_editor_options():
    """Options visibles seulement pour 'choice' ; index invalide rejeté"""
    editeur = asyncio.run(_editeur(MemoryTemplateRepository()))
    editeur.ajouter_champ()
    sous = editeur.champ_editor(0)
    assert not sous.options_visibles
    assert len(sous.types_disponibles()) == len(TypeChamp)

    sous.modifier(type_champ=TypeChamp.CHOICE)
    assert sous.options_visibles
    sous.ajouter_option()
    sous.ajouter_option()
    sous.modifier_option(0, value="oui", label="Oui")
    sous.modifier_option(1, value="oui")
    assert [o.value for o in sous.options] == ["oui", "oui"]
    assert sous.doublons_options() == ["oui"]

    with pytest.raises(IndexError):
        sous.supprimer_option(2)
    with pytest.raises(IndexError):
        editeur.champ_editor(3)

    sous.supprimer()
    assert editeur.champs == []


def test_duplicate_names_do_not_block_save():
    repo = MemoryTemplateRepository()

    async def scenario():
        editeur = await _editeur(repo)
        editeur.modifier(nom="Doublons")
        for _ in range(2):
            editeur.ajouter_champ()
            editeur.modifier_champ(len(editeur.champs) - 1, nom="note")
        assert editeur.doublons_noms() == ["note"]
        return await editeur.enregistrer()

    assert asyncio.run(scenario()) is True


def test_conflict_keeps_detail_and_edits():
    """Code déjà pris : message de l'API affiché, saisie conservée"""
    repo = MemoryTemplateRepository([_visite()])

    async def scenario():
        editeur = await _editeur(repo)
        editeur.modifier(nom="Visite", description="Doublon")
        editeur.ajouter_champ()
        ok = await editeur.enregistrer()
        return editeur, ok

    editeur, ok = asyncio.run(scenario())
    assert ok is False
    assert editeur.erreur == "Un modèle d'activité avec ce code existe déjà."
    assert editeur.etat == EtatEditeur.PRET
    assert editeur.mode_creation
    assert (editeur.nom, editeur.description, len(editeur.champs)) == ("Visite", "Doublon", 1)
    assert len(repo.all_templates()) == 1
    print("✅ Test conflit OK")


def test_error_without_detail_uses_generic_message():
    async def scenario():
        editeur = await _editeur(ForbiddenRepository())
        editeur.modifier(nom="Audit")
        await editeur.enregistrer()
        return editeur

    editeur = asyncio.run(scenario())
    assert editeur.erreur == MESSAGE_ENREGISTREMENT
    assert editeur.nom == "Audit"


def test_success_callback_and_local_keys():
    """on_success reçoit le modèle ; les clés locales des champs survivent"""
    repo = MemoryTemplateRepository([_visite()])
    recus = []

    async def scenario():
        editeur = await _editeur(repo, 1, on_success=recus.append)
        cles = [c.cle for c in editeur.champs]
        editeur.modifier(description="Mise à jour")
        assert await editeur.enregistrer()
        return editeur, cles

    editeur, cles = asyncio.run(scenario())
    assert [t.description for t in recus] == ["Mise à jour"]
    assert [c.cle for c in editeur.champs] == cles
    assert all(c.id is not None for c in editeur.champs)


def test_missing_template_is_terminal():
    """Modèle introuvable : échec de chargement, jamais de formulaire vide"""
    async def scenario():
        editeur = await _editeur(MemoryTemplateRepository(), 42)
        assert editeur.etat == EtatEditeur.ECHEC_CHARGEMENT
        assert editeur.erreur == MESSAGE_INTROUVABLE
        with pytest.raises(RuntimeError):
            await editeur.enregistrer()

    asyncio.run(scenario())
    print("✅ Test modèle introuvable OK")


def test_forbidden_load_keeps_server_detail():
    """Accès refusé au chargement : échec terminal avec le message de l'API"""
    repo = FailingLoadRepository(UnauthorizedError(403, "Accès refusé"))
    editeur = asyncio.run(_editeur(repo, 1))
    assert editeur.etat == EtatEditeur.ECHEC_CHARGEMENT
    assert editeur.erreur == "Accès refusé"
    assert editeur.template is None
    assert (editeur.nom, editeur.champs) == ("", [])


def test_network_failure_on_load_uses_generic_message():
    """API injoignable au chargement : message générique, pas de formulaire vide"""
    repo = FailingLoadRepository(TransientError(0))

    async def scenario():
        editeur = await _editeur(repo, 1)
        assert editeur.etat == EtatEditeur.ECHEC_CHARGEMENT
        assert editeur.erreur == MESSAGE_CHARGEMENT
        with pytest.raises(RuntimeError):
            await editeur.enregistrer()

    asyncio.run(scenario())
    print("✅ Test échec de chargement OK")


def test_closed_editor_ignores_late_load():
    """Une réponse arrivée après fermeture n'est pas appliquée"""
    repo = MemoryTemplateRepository([_visite()], latence=0.05)

    async def scenario():
        editeur = TemplateEditor(repo)
        tache = asyncio.ensure_future(editeur.charger(1))
        await asyncio.sleep(0)
        assert editeur.etat == EtatEditeur.CHARGEMENT
        editeur.fermer()
        await tache
        return editeur

    editeur = asyncio.run(scenario())
    assert editeur.etat == EtatEditeur.FERME
    assert editeur.template is None
    assert editeur.nom == ""
    print("✅ Test fermeture OK")


if __name__ == "__main__":
    print("🧪 Tests éditeur de modèle")
    test_create_mode_starts_empty()
    test_field_operations()
    test_code_derived_from_name()
    test_validation_blocks_without_api_call()
    test_code_locked_once_saved()
    test_unknown_attribute_rejected()
    test_reorder_survives_round_trip()
    test_order_edit_moves_field_in_list()
    test_field_added_after_removals_stays_last()
    test_server_order_gaps_are_renumbered_on_load()
    test_option_removal_round_trip()
    test_sub_editor_options()
    test_duplicate_names_do_not_block_save()
    test_conflict_keeps_detail_and_edits()
    test_error_without_detail_uses_generic_message()
    test_success_callback_and_local_keys()
    test_missing_template_is_terminal()
    test_forbidden_load_keeps_server_detail()
    test_network_failure_on_load_uses_generic_message()
    test_closed_editor_ignores_late_load()
    print("✅ Tous les tests passés")
