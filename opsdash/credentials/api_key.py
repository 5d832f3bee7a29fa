"""Static API key strategy."""

from __future__ import annotations

import httpx

from opsdash.errors import ConfigurationError

from .base import Credential


class ApiKeyProvider:
    """Embeds a static key as a query parameter; no exchange takes place."""

    name = "api_key"

    def __init__(self, api_key: str | None) -> None:
        self._api_key = api_key

    def check(self) -> None:
        if not self._api_key:
            raise ConfigurationError("GA4_API_KEY not set")

    async def acquire(self, http: httpx.AsyncClient) -> Credential:
        self.check()
        return Credential(token=self._api_key or "", kind="api_key")


__all__ = ["ApiKeyProvider"]
