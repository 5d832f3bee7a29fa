"""Pick the analytics credential strategy from the populated settings."""

from __future__ import annotations

import logging
import time

from opsdash.config import AnalyticsSettings
from opsdash.errors import ConfigurationError

from .api_key import ApiKeyProvider
from .base import Clock, CredentialProvider, TokenCache
from .client import AnalyticsClientProvider
from .refresh_token import RefreshTokenProvider
from .service_account import ServiceAccountProvider

log = logging.getLogger(__name__)

STRATEGIES = ("api_key", "refresh_token", "service_account", "client")


def infer_strategy(settings: AnalyticsSettings) -> str:
    """Return the strategy implied by which settings are populated."""

    if settings.service_account_json:
        return "service_account"
    if settings.client_id and settings.client_secret and settings.refresh_token:
        return "refresh_token"
    if settings.api_key:
        return "api_key"
    raise ConfigurationError(
        "No analytics credentials configured. Set GA4_SERVICE_ACCOUNT_JSON,"
        " GA4_CLIENT_ID/GA4_CLIENT_SECRET/GA4_REFRESH_TOKEN or GA4_API_KEY."
    )


def build_provider(
    name: str,
    settings: AnalyticsSettings,
    *,
    clock: Clock = time.time,
) -> CredentialProvider:
    cache = TokenCache(clock=clock) if settings.cache_tokens else None
    if name == "api_key":
        return ApiKeyProvider(settings.api_key)
    if name == "refresh_token":
        return RefreshTokenProvider(
            token_url=settings.token_url,
            client_id=settings.client_id,
            client_secret=settings.client_secret,
            refresh_token=settings.refresh_token,
            cache=cache,
            clock=clock,
        )
    if name == "service_account":
        return ServiceAccountProvider(
            settings.service_account_json,
            token_url=settings.token_url,
            cache=cache,
            clock=clock,
        )
    if name == "client":
        return AnalyticsClientProvider(settings.service_account_json)
    raise ConfigurationError(
        f"Unknown GA4_AUTH_STRATEGY '{name}'. Use: {' | '.join(STRATEGIES)}"
    )


def select_provider(
    settings: AnalyticsSettings,
    *,
    clock: Clock = time.time,
) -> CredentialProvider:
    """Build and validate the one credential provider this process will use."""

    name = settings.auth_strategy or infer_strategy(settings)
    provider = build_provider(name, settings, clock=clock)
    provider.check()
    log.info("Analytics credentials resolved with the %s strategy", provider.name)
    return provider


__all__ = ["STRATEGIES", "build_provider", "infer_strategy", "select_provider"]
