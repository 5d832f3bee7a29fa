"""Credential strategies for the analytics upstream."""

from .api_key import ApiKeyProvider
from .base import Credential, CredentialProvider, TokenCache
from .client import AnalyticsClientProvider
from .refresh_token import RefreshTokenProvider
from .selection import STRATEGIES, build_provider, infer_strategy, select_provider
from .service_account import ServiceAccountProvider, build_assertion, parse_service_account

__all__ = [
    "AnalyticsClientProvider",
    "ApiKeyProvider",
    "Credential",
    "CredentialProvider",
    "RefreshTokenProvider",
    "STRATEGIES",
    "ServiceAccountProvider",
    "TokenCache",
    "build_assertion",
    "build_provider",
    "infer_strategy",
    "parse_service_account",
    "select_provider",
]
