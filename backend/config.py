"""
Configuration centralisée du moteur de modèles d'activité.
Gère les variables d'environnement, les chemins et la journalisation.
"""

import os
import sys
from pathlib import Path
from dotenv import load_dotenv
from loguru import logger

# Chargement des variables d'environnement
load_dotenv()

# Chemins de base
PROJECT_ROOT = Path(__file__).parent.parent
BACKEND_DIR = PROJECT_ROOT / "backend"
FRONTEND_DIR = PROJECT_ROOT / "frontend"
LOGS_DIR = PROJECT_ROOT / "logs"


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "oui")


class ApiConfig:
    """Configuration de l'API REST (source de vérité des modèles)"""

    URL: str = os.getenv("API_URL", "http://127.0.0.1:8000/api")
    TOKEN: str = os.getenv("API_TOKEN", "")
    TIMEOUT: float = float(os.getenv("API_TIMEOUT", "30"))

    @classmethod
    def is_offline(cls) -> bool:
        """Sans URL d'API, l'interface travaille sur le dépôt en mémoire"""
        return not cls.URL.strip()


class CatalogConfig:
    """Configuration du catalogue de modèles"""

    PAGE_SIZE: int = int(os.getenv("CATALOG_PAGE_SIZE", "25"))
    SEARCH_DEBOUNCE_MS: int = int(os.getenv("CATALOG_SEARCH_DEBOUNCE_MS", "400"))


class AppConfig:
    """Configuration de l'application"""

    ENV: str = os.getenv("APP_ENV", "development")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Droit d'édition décidé par le service d'autorisation externe
    CAN_EDIT_TEMPLATES: bool = _env_bool("CAN_EDIT_TEMPLATES", "true")

    # Versions
    VERSION: str = "0.1.0"
    APP_NAME: str = "Modèles d'activité"

    @classmethod
    def is_production(cls) -> bool:
        return cls.ENV == "production"

    @classmethod
    def is_development(cls) -> bool:
        return cls.ENV == "development"


def configure_logging(level: str = None, log_to_file: bool = True) -> None:
    """
    Installe les sorties loguru (console + fichier journal tournant).

    Args:
        level: Niveau minimal (par défaut AppConfig.LOG_LEVEL)
        log_to_file: Écrire aussi dans logs/activites.log
    """
    level = level or AppConfig.LOG_LEVEL
    logger.remove()
    logger.add(sys.stderr, level=level)
    if log_to_file:
        LOGS_DIR.mkdir(exist_ok=True)
        logger.add(
            LOGS_DIR / "activites.log",
            level=level,
            rotation="5 MB",
            retention=5,
            encoding="utf-8",
        )
    logger.debug(f"Journalisation configurée (niveau {level})")


# Exports principaux
__all__ = ["ApiConfig", "CatalogConfig", "AppConfig", "configure_logging", "PROJECT_ROOT"]
