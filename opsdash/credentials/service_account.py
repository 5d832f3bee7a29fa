"""Service-account authentication via the OAuth2 JWT-bearer grant."""

from __future__ import annotations

import logging
import time

import httpx
import jwt
from pydantic import ValidationError

from opsdash.errors import ConfigurationError
from opsdash.models import ServiceAccountInfo

from .base import Clock, Credential, TokenCache, credential_from_token_response

log = logging.getLogger(__name__)

ANALYTICS_READONLY_SCOPE = "https://www.googleapis.com/auth/analytics.readonly"
JWT_BEARER_GRANT = "urn:ietf:params:oauth:grant-type:jwt-bearer"
ASSERTION_LIFETIME = 3600


def parse_service_account(raw: str | None) -> ServiceAccountInfo:
    """Validate the service-account key JSON supplied through configuration."""

    if not raw:
        raise ConfigurationError("GA4_SERVICE_ACCOUNT_JSON not set")
    try:
        return ServiceAccountInfo.model_validate_json(raw)
    except ValidationError as exc:
        raise ConfigurationError(
            "GA4_SERVICE_ACCOUNT_JSON is not a valid service-account key."
        ) from exc


def build_assertion(
    info: ServiceAccountInfo,
    *,
    now: int,
    scope: str = ANALYTICS_READONLY_SCOPE,
    audience: str | None = None,
) -> str:
    """Sign a one-hour RS256 assertion identifying the service account."""

    claims = {
        "iss": info.client_email,
        "scope": scope,
        "aud": audience or info.token_uri,
        "iat": now,
        "exp": now + ASSERTION_LIFETIME,
    }
    try:
        return jwt.encode(claims, info.private_key, algorithm="RS256", headers={"typ": "JWT"})
    except (ValueError, jwt.PyJWTError) as exc:
        raise ConfigurationError("Service-account private key could not be loaded.") from exc


class ServiceAccountProvider:
    """Signs a fresh assertion and trades it for an access token."""

    name = "service_account"

    def __init__(
        self,
        service_account_json: str | None,
        *,
        token_url: str | None = None,
        scope: str = ANALYTICS_READONLY_SCOPE,
        cache: TokenCache | None = None,
        clock: Clock = time.time,
    ) -> None:
        self._raw = service_account_json
        self._token_url = token_url
        self._scope = scope
        self._cache = cache
        self._clock = clock

    def check(self) -> None:
        parse_service_account(self._raw)

    async def acquire(self, http: httpx.AsyncClient) -> Credential:
        info = parse_service_account(self._raw)
        if self._cache is not None:
            cached = self._cache.get()
            if cached is not None:
                return cached

        token_url = self._token_url or info.token_uri
        now = self._clock()
        assertion = build_assertion(info, now=int(now), scope=self._scope, audience=token_url)

        log.debug("Exchanging assertion for %s at %s", info.client_email, token_url)
        response = await http.post(
            token_url,
            data={"grant_type": JWT_BEARER_GRANT, "assertion": assertion},
        )
        credential = credential_from_token_response(response, now=now)
        if self._cache is not None:
            self._cache.store(credential)
        return credential


__all__ = [
    "ANALYTICS_READONLY_SCOPE",
    "ASSERTION_LIFETIME",
    "JWT_BEARER_GRANT",
    "ServiceAccountProvider",
    "build_assertion",
    "parse_service_account",
]
