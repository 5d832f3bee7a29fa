"""OAuth2 refresh-token grant."""

from __future__ import annotations

import logging
import time
from typing import Literal

import httpx

from opsdash.errors import ConfigurationError

from .base import Clock, Credential, TokenCache, credential_from_token_response

log = logging.getLogger(__name__)

ClientAuth = Literal["body", "basic"]


class RefreshTokenProvider:
    """Exchanges a long-lived refresh token for a short-lived access token.

    Client credentials travel in the form body by default. Identity providers
    that insist on HTTP Basic client authentication are served with
    ``client_auth="basic"``.
    """

    name = "refresh_token"

    def __init__(
        self,
        *,
        token_url: str,
        client_id: str | None,
        client_secret: str | None,
        refresh_token: str | None,
        client_auth: ClientAuth = "body",
        tenant_id: str | None = None,
        env_prefix: str = "GA4",
        cache: TokenCache | None = None,
        clock: Clock = time.time,
    ) -> None:
        self._token_url = token_url
        self._client_id = client_id
        self._client_secret = client_secret
        self._refresh_token = refresh_token
        self._client_auth = client_auth
        self._tenant_id = tenant_id
        self._env_prefix = env_prefix
        self._cache = cache
        self._clock = clock

    def check(self) -> None:
        required = {
            "CLIENT_ID": self._client_id,
            "CLIENT_SECRET": self._client_secret,
            "REFRESH_TOKEN": self._refresh_token,
        }
        missing = [f"{self._env_prefix}_{key}" for key, value in required.items() if not value]
        if missing:
            raise ConfigurationError(f"{', '.join(missing)} not set")

    async def acquire(self, http: httpx.AsyncClient) -> Credential:
        self.check()
        if self._cache is not None:
            cached = self._cache.get()
            if cached is not None:
                return cached

        data = {
            "grant_type": "refresh_token",
            "refresh_token": self._refresh_token or "",
        }
        auth: tuple[str, str] | None = None
        if self._client_auth == "basic":
            auth = (self._client_id or "", self._client_secret or "")
        else:
            data["client_id"] = self._client_id or ""
            data["client_secret"] = self._client_secret or ""

        log.debug("Refreshing access token at %s", self._token_url)
        response = await http.post(self._token_url, data=data, auth=auth)
        credential = credential_from_token_response(
            response, now=self._clock(), tenant_id=self._tenant_id
        )
        if self._cache is not None:
            self._cache.store(credential)
        return credential


__all__ = ["ClientAuth", "RefreshTokenProvider"]
