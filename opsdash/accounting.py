"""Accounting upstream: one-shot authorization plus read-only resources."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import date
from typing import Any, Callable

import httpx

from .config import AccountingSettings
from .credentials import Credential, RefreshTokenProvider
from .credentials.base import Clock, credential_from_token_response
from .errors import ConfigurationError, NoTenantError, UpstreamAuthError, UpstreamRequestError

log = logging.getLogger(__name__)

XERO_AUTHORIZE_URL = "https://login.xero.com/identity/connect/authorize"
XERO_TOKEN_URL = "https://identity.xero.com/connect/token"
XERO_CONNECTIONS_URL = "https://api.xero.com/connections"
XERO_API_BASE = "https://api.xero.com/api.xro/2.0"
XERO_SCOPES = (
    "accounting.transactions.read accounting.reports.read "
    "accounting.settings.read offline_access"
)
TENANT_HEADER = "xero-tenant-id"


@dataclass(frozen=True)
class AuthorizationGrant:
    """Refresh token and tenant minted by a completed consent flow."""

    refresh_token: str
    tenant_id: str

    def to_payload(self) -> dict[str, str]:
        return {"refreshToken": self.refresh_token, "tenantId": self.tenant_id}


def _require_redirect_uri(settings: AccountingSettings, override: str | None) -> str:
    redirect_uri = override or settings.redirect_uri
    if not redirect_uri:
        raise ConfigurationError("XERO_REDIRECT_URI not set")
    return redirect_uri


def authorization_url(settings: AccountingSettings, redirect_uri: str | None = None) -> str:
    """Build the consent URL an administrator visits once.

    ``redirect_uri`` overrides the configured callback; the web app passes its
    own /oauth-callback URL when none is configured.
    """

    if not settings.client_id:
        raise ConfigurationError("XERO_CLIENT_ID not set")
    redirect_uri = _require_redirect_uri(settings, redirect_uri)
    url = httpx.URL(
        XERO_AUTHORIZE_URL,
        params={
            "response_type": "code",
            "client_id": settings.client_id,
            "redirect_uri": redirect_uri,
            "scope": XERO_SCOPES,
        },
    )
    return str(url)


class AccountingClient:
    """Client for the accounting API using a stored refresh token."""

    def __init__(
        self,
        settings: AccountingSettings,
        *,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Clock = time.time,
        today: Callable[[], date] = date.today,
    ) -> None:
        self._settings = settings
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)
        self._clock = clock
        self._today = today
        self._tokens = RefreshTokenProvider(
            token_url=XERO_TOKEN_URL,
            client_id=settings.client_id,
            client_secret=settings.client_secret,
            refresh_token=settings.refresh_token,
            client_auth="basic",
            tenant_id=settings.tenant_id,
            env_prefix="XERO",
            clock=clock,
        )

    async def __aenter__(self) -> "AccountingClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def exchange_code(self, code: str, redirect_uri: str | None = None) -> AuthorizationGrant:
        """Trade an authorization code for a refresh token and its tenant."""

        if not self._settings.client_id:
            raise ConfigurationError("XERO_CLIENT_ID not set")
        if not self._settings.client_secret:
            raise ConfigurationError("XERO_CLIENT_SECRET not set")
        redirect_uri = _require_redirect_uri(self._settings, redirect_uri)

        response = await self._client.post(
            XERO_TOKEN_URL,
            data={
                "grant_type": "authorization_code",
                "code": code,
                "redirect_uri": redirect_uri,
            },
            auth=(self._settings.client_id, self._settings.client_secret),
        )
        credential = credential_from_token_response(response, now=self._clock())
        refresh_token = response.json().get("refresh_token")
        if not refresh_token:
            raise UpstreamAuthError(
                "Refresh token missing in authorization response.",
                status_code=response.status_code,
            )

        tenant_id = await self._discover_tenant(credential)
        log.info("Authorization code exchanged for tenant %s", tenant_id)
        return AuthorizationGrant(refresh_token=refresh_token, tenant_id=tenant_id)

    async def _discover_tenant(self, credential: Credential) -> str:
        response = await self._client.get(
            XERO_CONNECTIONS_URL,
            headers={**credential.request_headers(), "Content-Type": "application/json"},
        )
        if not response.is_success:
            raise UpstreamAuthError(
                f"Connections fetch failed: {response.status_code}",
                status_code=response.status_code,
                body=response.text,
            )

        connections = response.json()
        if not isinstance(connections, list) or not connections:
            raise NoTenantError("No tenants found for this authorisation.")
        tenant_id = connections[0].get("tenantId") if isinstance(connections[0], dict) else None
        if not tenant_id:
            raise NoTenantError("First connection carries no tenant identifier.")
        return tenant_id

    async def _get(self, path: str, params: dict[str, str] | None = None) -> Any:
        if not self._settings.tenant_id:
            raise ConfigurationError("XERO_TENANT_ID not set")
        credential = await self._tokens.acquire(self._client)

        response = await self._client.get(
            f"{XERO_API_BASE}/{path}",
            params=params,
            headers={**credential.request_headers(TENANT_HEADER), "Accept": "application/json"},
        )
        if not response.is_success:
            raise UpstreamRequestError(path, response.status_code)
        return response.json()

    async def invoices(self, status: str | None = None) -> list[dict[str, Any]]:
        params = {"Statuses": status} if status else None
        payload = await self._get("Invoices", params)
        return payload.get("Invoices", [])

    async def accounts(self) -> list[dict[str, Any]]:
        payload = await self._get("Accounts")
        return payload.get("Accounts", [])

    async def balance_sheet(self, as_of: str | None = None) -> Any:
        return await self._get(
            "Reports/BalanceSheet", {"date": as_of or self._today().isoformat()}
        )

    async def profit_and_loss(
        self,
        from_date: str | None = None,
        to_date: str | None = None,
    ) -> Any:
        today = self._today()
        return await self._get(
            "Reports/ProfitAndLoss",
            {
                "fromDate": from_date or today.replace(month=1, day=1).isoformat(),
                "toDate": to_date or today.isoformat(),
            },
        )


__all__ = [
    "AccountingClient",
    "AuthorizationGrant",
    "XERO_SCOPES",
    "authorization_url",
]
