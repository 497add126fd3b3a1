"""Tests pour les utilitaires texte"""

import sys
from datetime import date, datetime
from pathlib import Path

project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from backend.utils.text_utils import format_date_fr, slugify_code


def test_slugify_code():
    """Test de la dérivation du code à partir du nom"""
    assert slugify_code("Évaluation Grille") == "evaluation_grille"
    assert slugify_code("  Visite   de contrôle ") == "visite_de_controle"
    assert slugify_code("Réunion (CSE) n°2") == "reunion_cse_n2"
    assert slugify_code("Déjà-vu!") == "dejavu"
    assert slugify_code("") == ""
    print("✅ Test slugify_code OK")


def test_slugify_code_only_allowed_characters():
    """Le code ne contient que [a-z0-9_]"""
    import re
    for nom in ["Œuvre sociale", "Prêt à l'emploi", "ÂGE 2025 / Ñ", "tab\tet\nretour"]:
        code = slugify_code(nom)
        assert re.fullmatch(r"[a-z0-9_]*", code), code
    print("✅ Test slugify_code caractères OK")


def test_slugify_code_is_idempotent():
    """Un code déjà propre ne change pas"""
    code = slugify_code("Évaluation Grille")
    assert slugify_code(code) == code
    print("✅ Test slugify_code idempotent OK")


def test_format_date_fr():
    """Test du format de date court en français"""
    assert format_date_fr(date(2025, 2, 3)) == "3 févr. 2025"
    assert format_date_fr(datetime(2024, 8, 15, 10, 30)) == "15 août 2024"
    assert format_date_fr(None) == ""
    print("✅ Test format_date_fr OK")


if __name__ == "__main__":
    print("🧪 Tests utilitaires")
    test_slugify_code()
    test_slugify_code_only_allowed_characters()
    test_slugify_code_is_idempotent()
    test_format_date_fr()
    print("✅ Tous les tests passés")
