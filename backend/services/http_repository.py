"""
Dépôt de modèles d'activité adossé à l'API REST.

Endpoints :
- GET/POST          /activite-templates/
- GET/PATCH/DELETE  /activite-templates/{id}/
- GET               /poles/
- GET               /requetes/{id}/activity-type-choices/
"""

from typing import Any, Dict, List, Optional

import httpx
from loguru import logger

from backend.config import ApiConfig
from backend.models.activite_template import ActiviteTemplate, FiltresTemplates, Pole, TemplatePage
from backend.models.formulaire import ChoixTypesActivite
from backend.services.exceptions import ApiError, TransientError

TEMPLATES_PATH = "/activite-templates/"


class HttpTemplateRepository:
    """Implémentation HTTP du contrat TemplateRepository"""

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            base_url: URL de l'API (défaut ApiConfig.URL)
            token: Jeton Bearer fourni par le service d'authentification
            timeout: Délai maximal par requête, en secondes
            transport: Transport httpx (tests : httpx.MockTransport)
        """
        self.base_url = (base_url if base_url is not None else ApiConfig.URL).rstrip("/")
        self.token = token if token is not None else ApiConfig.TOKEN
        self.timeout = timeout if timeout is not None else ApiConfig.TIMEOUT
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Any:
        url = f"{self.base_url}{path}"
        try:
            async with httpx.AsyncClient(transport=self._transport, timeout=self.timeout) as client:
                response = await client.request(method, url, params=params, json=json, headers=self._headers())
        except httpx.TransportError as e:
            logger.error(f"API injoignable ({method} {path}) : {e}")
            raise TransientError(0, None, None) from e

        if response.status_code == 204:
            return None

        try:
            data = response.json()
        except ValueError:
            data = {}

        if response.is_error:
            err = ApiError.from_response(response.status_code, data)
            logger.warning(f"{method} {path} -> {response.status_code} {err.detail or ''}".rstrip())
            raise err
        return data

    async def list_templates(self, filtres: FiltresTemplates, page: int, page_size: int) -> TemplatePage:
        params = {"page": page, "page_size": page_size, **filtres.to_params()}
        data = await self._request("GET", TEMPLATES_PATH, params=params)
        if isinstance(data, list):
            return TemplatePage(items=data, total_count=len(data))
        data = data or {}
        return TemplatePage(items=data.get("results") or [], total_count=data.get("count") or 0)

    async def get_template(self, template_id: int) -> ActiviteTemplate:
        data = await self._request("GET", f"{TEMPLATES_PATH}{template_id}/")
        return ActiviteTemplate(**data)

    async def create_template(self, document: Dict[str, Any]) -> ActiviteTemplate:
        data = await self._request("POST", TEMPLATES_PATH, json=document)
        template = ActiviteTemplate(**data)
        logger.success(f"Modèle créé : {template.code} (ID: {template.id})")
        return template

    async def update_template(self, template_id: int, document: Dict[str, Any]) -> ActiviteTemplate:
        data = await self._request("PATCH", f"{TEMPLATES_PATH}{template_id}/", json=document)
        logger.info(f"Modèle {template_id} mis à jour ({', '.join(sorted(document))})")
        return ActiviteTemplate(**data)

    async def deactivate_template(self, template_id: int) -> None:
        await self._request("DELETE", f"{TEMPLATES_PATH}{template_id}/")
        logger.info(f"Modèle {template_id} désactivé")

    async def list_poles(self) -> List[Pole]:
        data = await self._request("GET", "/poles/")
        items = data if isinstance(data, list) else (data or {}).get("results") or []
        return [Pole(**p) for p in items]

    async def get_activity_type_choices(self, requete_id: str) -> ChoixTypesActivite:
        """Types d'activité (et leurs champs) proposés au pôle d'une requête"""
        data = await self._request("GET", f"/requetes/{requete_id}/activity-type-choices/")
        return ChoixTypesActivite(**data)
