"""Shared plumbing for backends reached over plain HTTPS with httpx."""

import os
from typing import Any, Dict, Optional

import httpx

from .base import ProviderAdapter
from .errors import ErrorMapper


class HTTPProviderAdapter(ProviderAdapter):
    """
    Base class for REST backends without an official async SDK.

    Subclasses set ``provider_name``, ``api_key_env_var`` and ``base_url`` and
    override ``_auth_headers`` when the backend does not use bearer tokens.
    """

    provider_name: str = ""
    api_key_env_var: str = ""
    base_url: str = ""

    def __init__(self, api_key: Optional[str] = None, client: Optional[httpx.AsyncClient] = None):
        self._api_key = api_key or os.getenv(self.api_key_env_var)
        self._client: Optional[httpx.AsyncClient] = client

    def _auth_headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self._api_key}"}

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy initialization of the HTTP client."""
        if not self._api_key:
            raise ErrorMapper.missing_credentials(self.provider_name, self.api_key_env_var)
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers={"Content-Type": "application/json", **self._auth_headers()},
                timeout=httpx.Timeout(120.0, connect=10.0),
            )
        return self._client

    def is_available(self) -> bool:
        return bool(self._api_key)

    async def _post_json(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """POST ``payload`` and return the decoded JSON body; non-2xx raises httpx.HTTPStatusError."""
        response = await self.client.post(path, json=payload)
        response.raise_for_status()
        return response.json()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
