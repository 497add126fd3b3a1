"""
Page d'accueil : modèles d'activité dynamiques
"""

import streamlit as st
from streamlit.errors import StreamlitAPIException
from pathlib import Path
import sys

# Ajouter le backend au path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from backend.config import ApiConfig, AppConfig, configure_logging
from backend.models.activite_template import FiltresTemplates, StatutFiltre
from backend.services.exceptions import ApiError
from frontend.utils.ui_helpers import get_repository, run

# Configuration de la page
st.set_page_config(
    page_title=AppConfig.APP_NAME,
    page_icon="🧩",
    layout="wide"
)

if "_logging" not in st.session_state:
    configure_logging()
    st.session_state._logging = True

# En-tête
st.title(f"🧩 {AppConfig.APP_NAME}")
st.markdown("**Définissez sans développement les activités proposées à chaque pôle**")

st.divider()

# Stats globales
repository = get_repository()


async def _compter():
    total = await repository.list_templates(FiltresTemplates(), 1, 1)
    actifs = await repository.list_templates(FiltresTemplates(statut=StatutFiltre.ACTIFS), 1, 1)
    return total.total_count, actifs.total_count


try:
    total_templates, active_templates = run(_compter())
except ApiError as e:
    st.warning(f"Statistiques indisponibles : {e}")
    total_templates, active_templates = "n/d", "n/d"

col1, col2, col3 = st.columns(3)

with col1:
    st.metric("Modèles créés", total_templates)

with col2:
    st.metric("Modèles actifs", active_templates)

with col3:
    st.metric("Source", "Mémoire (hors ligne)" if ApiConfig.is_offline() else "API")

st.divider()

# Guide rapide
st.header("Guide rapide")

st.markdown("""
### 🚀 Commencer

1. **🧩 Modèles d'activité** : créez un modèle, ajoutez ses champs, assignez-le aux pôles
2. Les requêtes d'un pôle proposent ensuite ce modèle comme type d'activité
3. Désactivez un modèle pour le retirer : les activités déjà créées restent visibles

### 🎨 Types de champ

Texte court, texte long, nombre, date, date et heure, oui / non, fichier, choix unique.
""")

# Footer
st.divider()
st.caption(f"{AppConfig.APP_NAME} v{AppConfig.VERSION}")

try:
    st.page_link("pages/1_🧩_Modeles_activite.py", label="Gérer les modèles d'activité", icon="🧩")
except StreamlitAPIException:
    st.info("🧩 Modèles d'activité : ouvrir via le menu latéral.")
