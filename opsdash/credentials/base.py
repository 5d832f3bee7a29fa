"""Credential values and the provider protocol shared by every strategy."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Callable, Literal, Mapping, Protocol

import httpx

from opsdash.errors import UpstreamAuthError

CredentialKind = Literal["bearer", "api_key", "client"]
Clock = Callable[[], float]

# Seconds shaved off an advertised token lifetime before it stops being reused.
EXPIRY_MARGIN = 60.0


@dataclass(frozen=True)
class Credential:
    """Opaque proof of identity presented to an upstream API."""

    token: str = field(repr=False)
    kind: CredentialKind = "bearer"
    expires_at: float | None = None
    tenant_id: str | None = None
    client: Any = field(default=None, repr=False, compare=False)

    def is_fresh(self, now: float, *, margin: float = EXPIRY_MARGIN) -> bool:
        return self.expires_at is not None and self.expires_at - margin > now

    def request_headers(self, tenant_header: str | None = None) -> dict[str, str]:
        headers: dict[str, str] = {}
        if self.kind == "bearer":
            headers["Authorization"] = f"Bearer {self.token}"
        if tenant_header and self.tenant_id:
            headers[tenant_header] = self.tenant_id
        return headers

    def query_params(self) -> dict[str, str]:
        if self.kind == "api_key":
            return {"key": self.token}
        return {}


class CredentialProvider(Protocol):
    """Produces a credential for a single upstream call."""

    name: str

    def check(self) -> None:
        """Raise ``ConfigurationError`` if required settings are absent."""
        ...

    async def acquire(self, http: httpx.AsyncClient) -> Credential:
        """Return a credential, exchanging secrets over ``http`` when required."""
        ...


class TokenCache:
    """Holds the last exchanged token until shortly before it expires."""

    def __init__(self, *, clock: Clock = time.time, margin: float = EXPIRY_MARGIN) -> None:
        self._clock = clock
        self._margin = margin
        self._credential: Credential | None = None

    def get(self) -> Credential | None:
        credential = self._credential
        if credential is not None and credential.is_fresh(self._clock(), margin=self._margin):
            return credential
        return None

    def store(self, credential: Credential) -> None:
        self._credential = credential

    def clear(self) -> None:
        self._credential = None


def credential_from_token_response(
    response: httpx.Response,
    *,
    now: float,
    tenant_id: str | None = None,
) -> Credential:
    """Turn an OAuth2 token endpoint response into a bearer credential."""

    if not response.is_success:
        raise UpstreamAuthError(
            f"Token exchange failed: {response.status_code} {response.text}",
            status_code=response.status_code,
            body=response.text,
        )

    try:
        payload = response.json()
    except ValueError as exc:
        raise UpstreamAuthError(
            "Token endpoint returned a non-JSON body.",
            status_code=response.status_code,
            body=response.text,
        ) from exc

    access_token = payload.get("access_token") if isinstance(payload, Mapping) else None
    if not access_token:
        raise UpstreamAuthError(
            "Access token missing in authentication response.",
            status_code=response.status_code,
        )

    expires_in = payload.get("expires_in")
    expires_at = now + float(expires_in) if isinstance(expires_in, (int, float)) else None
    return Credential(token=access_token, expires_at=expires_at, tenant_id=tenant_id)


__all__ = [
    "Clock",
    "Credential",
    "CredentialKind",
    "CredentialProvider",
    "TokenCache",
    "credential_from_token_response",
]
