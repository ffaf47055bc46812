"""Generic REST control-plane adapter."""

from typing import Any, Dict, Optional
import requests
from ..utils.errors import PermanentProviderError, TransientProviderError
from ..utils.logging import get_logger
from .base import ProviderAdapter

logger = get_logger("provider.rest")

TRANSIENT_STATUS_CODES = frozenset({408, 425, 429, 500, 502, 503, 504})


class HttpProvider(ProviderAdapter):
    """
    Provider adapter for a REST control plane.
    
    Endpoints:
        POST   {base_url}/resources/{kind}         -> {"id": ...}
        GET    {base_url}/resources/{kind}/{id}    -> {"properties": {...}}
        PUT    {base_url}/resources/{kind}/{id}
        DELETE {base_url}/resources/{kind}/{id}
    
    Timeouts, connection errors, throttling and 5xx responses are transient;
    other 4xx responses are permanent.
    """
    
    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        token: Optional[str] = None,
        session: Optional[requests.Session] = None
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        if token:
            self.session.headers["Authorization"] = f"Bearer {token}"
    
    def create(self, kind: str, properties: Dict[str, Any]) -> str:
        response = self._request("POST", kind, json={"properties": properties})
        body = self._json(response, kind)
        external_id = body.get("id")
        if not external_id:
            raise PermanentProviderError(f"Create {kind} returned no 'id'", kind=kind)
        return str(external_id)
    
    def read(self, kind: str, external_id: str) -> Optional[Dict[str, Any]]:
        response = self._request("GET", kind, external_id, allow_not_found=True)
        if response is None:
            return None
        return self._json(response, kind).get("properties", {})
    
    def update(self, kind: str, external_id: str, properties: Dict[str, Any]) -> None:
        self._request("PUT", kind, external_id, json={"properties": properties})
    
    def delete(self, kind: str, external_id: str) -> None:
        self._request("DELETE", kind, external_id, allow_not_found=True)
    
    def _url(self, kind: str, external_id: Optional[str] = None) -> str:
        url = f"{self.base_url}/resources/{kind}"
        if external_id is not None:
            url += f"/{external_id}"
        return url
    
    def _request(
        self,
        method: str,
        kind: str,
        external_id: Optional[str] = None,
        allow_not_found: bool = False,
        **kwargs
    ) -> Optional[requests.Response]:
        url = self._url(kind, external_id)
        logger.debug(f"{method} {url}")
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except (requests.exceptions.Timeout, requests.exceptions.ConnectionError) as e:
            raise TransientProviderError(f"{method} {url} failed: {e}", kind=kind) from e
        except requests.exceptions.RequestException as e:
            raise PermanentProviderError(f"{method} {url} failed: {e}", kind=kind) from e
        
        if allow_not_found and response.status_code == 404:
            return None
        if response.status_code in TRANSIENT_STATUS_CODES:
            raise TransientProviderError(
                f"{method} {url} returned {response.status_code}", kind=kind
            )
        if response.status_code >= 400:
            raise PermanentProviderError(
                f"{method} {url} returned {response.status_code}: {response.text[:200]}", kind=kind
            )
        return response
    
    @staticmethod
    def _json(response: requests.Response, kind: str) -> Dict[str, Any]:
        try:
            body = response.json()
        except ValueError as e:
            raise PermanentProviderError(f"Invalid JSON from control plane: {e}", kind=kind) from e
        if not isinstance(body, dict):
            raise PermanentProviderError("Control plane response must be a JSON object", kind=kind)
        return body
