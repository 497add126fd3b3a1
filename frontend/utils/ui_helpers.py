# frontend/utils/ui_helpers.py
from __future__ import annotations
import asyncio
import streamlit as st
from typing import Iterable, Tuple

from backend.config import ApiConfig
from backend.models.activite_template import Pole
from backend.services.http_repository import HttpTemplateRepository
from backend.services.memory_repository import MemoryTemplateRepository


def page_header(title: str, *, icon: str | None = None, crumbs: Iterable[Tuple[str,str]] = ()):
    """
    Affiche un titre + un fil d'Ariane cohérent.
    - title : texte du titre (sans emoji pour éviter la double icône)
    - icon  : (option) emoji/icone à mettre avant le titre
    - crumbs: liste de tuples (label, page_path) ; si page_path == "" -> segment courant
    """
    st.markdown(
        ("#" if icon is None else f"# {icon}") + f" {title}" if not title.startswith("#") else title
    )
    if crumbs:
        parts = []
        for lbl, path in crumbs:
            if path:
                parts.append(f"[{lbl}]({path})")
            else:
                parts.append(f"**{lbl}**")
        st.caption(" · ".join(parts))
    st.divider()


@st.cache_resource
def _memory_repository() -> MemoryTemplateRepository:
    # Mode hors ligne : quelques pôles pour le sélecteur
    return MemoryTemplateRepository(poles=[
        Pole(id=1, nom="Juridique", code="JUR"),
        Pole(id=2, nom="Social", code="SOC"),
        Pole(id=3, nom="Formation", code="FOR"),
    ])


def get_repository():
    """Dépôt HTTP si API_URL est défini, sinon dépôt en mémoire partagé"""
    if ApiConfig.is_offline():
        return _memory_repository()
    return HttpTemplateRepository()


def run(coro):
    """Exécute une coroutine du moteur depuis un script Streamlit (synchrone)"""
    return asyncio.run(coro)
