"""
Erreurs du moteur de modèles d'activité
"""

from typing import Any, Optional

MESSAGE_GENERIQUE = "Une erreur est survenue. Veuillez réessayer."


class TemplateValidationError(ValueError):
    """Erreur locale, détectée avant tout appel à l'API"""

    def __init__(self, champ: str, message: str):
        super().__init__(message)
        self.champ = champ
        self.message = message


class CodeVerrouilleError(ValueError):
    """Le code d'un modèle enregistré ne peut plus changer"""


class ApiError(Exception):
    """Erreur renvoyée par l'API (statut HTTP + 'detail' éventuel)"""

    def __init__(self, status: int, detail: Optional[str] = None, data: Any = None):
        super().__init__(detail or f"Erreur API ({status})")
        self.status = status
        self.detail = detail
        self.data = data

    @classmethod
    def from_response(cls, status: int, data: Any) -> "ApiError":
        """Choisit la sous-classe selon le statut et extrait 'detail'"""
        detail = None
        if isinstance(data, dict) and isinstance(data.get("detail"), str):
            detail = data["detail"]
        if status == 404:
            return NotFoundError(status, detail, data)
        if status in (401, 403):
            return UnauthorizedError(status, detail, data)
        if status in (400, 409, 422):
            return ConflictError(status, detail, data)
        if status >= 500:
            return TransientError(status, detail, data)
        return cls(status, detail, data)


class NotFoundError(ApiError):
    pass


class UnauthorizedError(ApiError):
    pass


class ConflictError(ApiError):
    pass


class TransientError(ApiError):
    """Réseau indisponible (status=0) ou erreur serveur 5xx"""


def message_erreur(err: BaseException, defaut: str = MESSAGE_GENERIQUE) -> str:
    """Message à afficher : 'detail' de l'API si présent, sinon le message générique"""
    if isinstance(err, ApiError):
        return err.detail or defaut
    if isinstance(err, TemplateValidationError):
        return err.message
    return defaut


__all__ = [
    "TemplateValidationError", "CodeVerrouilleError", "ApiError", "NotFoundError",
    "UnauthorizedError", "ConflictError", "TransientError", "message_erreur",
    "MESSAGE_GENERIQUE",
]
