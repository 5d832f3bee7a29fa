"""Managed SDK client strategy."""

from __future__ import annotations

from typing import Any, Callable, Mapping

import httpx
from google.analytics.data_v1beta import BetaAnalyticsDataClient
from google.oauth2 import service_account

from .base import Credential
from .service_account import ANALYTICS_READONLY_SCOPE, parse_service_account

ClientFactory = Callable[[Mapping[str, Any]], Any]


def build_data_client(info: Mapping[str, Any]) -> BetaAnalyticsDataClient:
    credentials = service_account.Credentials.from_service_account_info(
        dict(info),
        scopes=[ANALYTICS_READONLY_SCOPE],
    )
    return BetaAnalyticsDataClient(credentials=credentials)


class AnalyticsClientProvider:
    """Hands the executor a ready-made reporting client.

    The SDK performs its own token exchange inside ``run_report`` so acquiring
    the credential and running the report happen in one client call.
    """

    name = "client"

    def __init__(
        self,
        service_account_json: str | None,
        *,
        client_factory: ClientFactory = build_data_client,
    ) -> None:
        self._raw = service_account_json
        self._client_factory = client_factory

    def check(self) -> None:
        parse_service_account(self._raw)

    async def acquire(self, http: httpx.AsyncClient) -> Credential:
        info = parse_service_account(self._raw)
        client = self._client_factory(info.model_dump(exclude_none=True))
        return Credential(token="", kind="client", client=client)


__all__ = ["AnalyticsClientProvider", "ClientFactory", "build_data_client"]
