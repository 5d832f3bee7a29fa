"""Dashboard configuration resolved once at process start."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import BaseModel, ValidationError

from .errors import ConfigurationError
from .models import DashboardConfigFile

GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
ANALYTICS_API_BASE = "https://analyticsdata.googleapis.com/v1beta"
SHOPIFY_API_VERSION = "2024-01"
DEFAULT_HTTP_TIMEOUT = 30.0

ENV_PATTERNS = (
    re.compile(r"^\$\{env:(?P<name>[A-Z0-9_]+)\}$"),
    re.compile(r"^env:(?P<name>[A-Z0-9_]+)$"),
)
TRUTHY = ("true", "1", "yes", "on")


@dataclass(frozen=True)
class AnalyticsSettings:
    """Values used to authenticate against and query the analytics upstream."""

    property_id: str | None = None
    api_key: str | None = None
    client_id: str | None = None
    client_secret: str | None = None
    refresh_token: str | None = None
    service_account_json: str | None = None
    auth_strategy: str | None = None
    token_url: str = GOOGLE_TOKEN_URL
    api_base: str = ANALYTICS_API_BASE
    cache_tokens: bool = False

    def require_property_id(self) -> str:
        if not self.property_id:
            raise ConfigurationError("GA4_PROPERTY_ID not set")
        return self.property_id


@dataclass(frozen=True)
class AccountingSettings:
    """OAuth2 client registration and tenant binding for the accounting upstream."""

    client_id: str | None = None
    client_secret: str | None = None
    refresh_token: str | None = None
    tenant_id: str | None = None
    redirect_uri: str | None = None


@dataclass(frozen=True)
class CommerceSettings:
    """Store domain and admin token for the e-commerce upstream."""

    store_domain: str | None = None
    admin_token: str | None = None
    api_version: str = SHOPIFY_API_VERSION


# Environment variable consulted for each settings field.
ANALYTICS_ENV_KEYS = {
    "property_id": "GA4_PROPERTY_ID",
    "api_key": "GA4_API_KEY",
    "client_id": "GA4_CLIENT_ID",
    "client_secret": "GA4_CLIENT_SECRET",
    "refresh_token": "GA4_REFRESH_TOKEN",
    "service_account_json": "GA4_SERVICE_ACCOUNT_JSON",
    "auth_strategy": "GA4_AUTH_STRATEGY",
    "token_url": "GA4_TOKEN_URL",
    "api_base": "GA4_API_BASE",
    "cache_tokens": "GA4_TOKEN_CACHE",
}
ACCOUNTING_ENV_KEYS = {
    "client_id": "XERO_CLIENT_ID",
    "client_secret": "XERO_CLIENT_SECRET",
    "refresh_token": "XERO_REFRESH_TOKEN",
    "tenant_id": "XERO_TENANT_ID",
    "redirect_uri": "XERO_REDIRECT_URI",
}
COMMERCE_ENV_KEYS = {
    "store_domain": "SHOPIFY_STORE_DOMAIN",
    "admin_token": "SHOPIFY_ADMIN_TOKEN",
    "api_version": "SHOPIFY_API_VERSION",
}
TIMEOUT_ENV_KEY = "OPSDASH_HTTP_TIMEOUT"


@dataclass(frozen=True)
class DashboardSettings:
    """Configuration for every upstream the dashboard talks to."""

    analytics: AnalyticsSettings = field(default_factory=AnalyticsSettings)
    accounting: AccountingSettings = field(default_factory=AccountingSettings)
    commerce: CommerceSettings = field(default_factory=CommerceSettings)
    http_timeout: float = DEFAULT_HTTP_TIMEOUT

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "DashboardSettings":
        env = os.environ if env is None else env
        return cls._build(DashboardConfigFile(), env=env, source=None)

    @classmethod
    def from_file(
        cls, path: Path, env: Mapping[str, str] | None = None
    ) -> "DashboardSettings":
        """Load settings from YAML, falling back to the environment for unset fields."""

        env = os.environ if env is None else env
        payload = _load_raw_yaml(path)
        try:
            config = DashboardConfigFile.model_validate(payload)
        except ValidationError as exc:
            msg = f"Dashboard configuration validation failed for {path}"
            raise ConfigurationError(msg) from exc
        return cls._build(config, env=env, source=path)

    @classmethod
    def _build(
        cls,
        config: DashboardConfigFile,
        *,
        env: Mapping[str, str],
        source: Path | None,
    ) -> "DashboardSettings":
        analytics = _resolve_section(
            AnalyticsSettings, config.analytics, ANALYTICS_ENV_KEYS, env=env, source=source
        )
        accounting = _resolve_section(
            AccountingSettings, config.accounting, ACCOUNTING_ENV_KEYS, env=env, source=source
        )
        commerce = _resolve_section(
            CommerceSettings, config.commerce, COMMERCE_ENV_KEYS, env=env, source=source
        )

        timeout: Any = config.http_timeout
        if timeout is None:
            timeout = env.get(TIMEOUT_ENV_KEY) or DEFAULT_HTTP_TIMEOUT
        try:
            http_timeout = float(timeout)
        except ValueError as exc:
            raise ConfigurationError(f"{TIMEOUT_ENV_KEY} must be a number, got {timeout!r}") from exc

        return cls(
            analytics=analytics,
            accounting=accounting,
            commerce=commerce,
            http_timeout=http_timeout,
        )


def _expand_env_value(
    raw: str | None,
    *,
    field_name: str,
    env: Mapping[str, str],
    source: Path | None,
) -> str | None:
    if raw is None:
        return None

    text = raw.strip()
    if not text:
        return None

    for pattern in ENV_PATTERNS:
        match = pattern.match(text)
        if match:
            env_name = match.group("name")
            resolved = env.get(env_name)
            if resolved is None:
                msg = f"Environment variable '{env_name}' required by '{field_name}' is not set"
                if source is not None:
                    msg += f" ({source})"
                raise ConfigurationError(msg + ".")
            return resolved

    return text


def _resolve_section(
    settings_cls: type,
    section: BaseModel,
    env_keys: Mapping[str, str],
    *,
    env: Mapping[str, str],
    source: Path | None,
) -> Any:
    values: dict[str, Any] = {}
    for settings_field in fields(settings_cls):
        name = settings_field.name
        raw = getattr(section, name, None)

        if isinstance(raw, bool):
            values[name] = raw
            continue

        resolved = _expand_env_value(raw, field_name=name, env=env, source=source)
        if resolved is None:
            env_value = env.get(env_keys[name], "").strip()
            resolved = env_value or None
        if resolved is None:
            continue

        if settings_field.type in (bool, "bool"):
            values[name] = resolved.lower() in TRUTHY
        else:
            values[name] = resolved
    return settings_cls(**values)


def _load_raw_yaml(path: Path) -> dict:
    try:
        contents = path.read_text(encoding="utf-8")
    except OSError as exc:
        msg = f"Failed to read dashboard configuration: {path}"
        raise ConfigurationError(msg) from exc
    try:
        payload = yaml.safe_load(contents) or {}
    except yaml.YAMLError as exc:
        msg = f"Invalid YAML syntax in dashboard configuration: {path}"
        raise ConfigurationError(msg) from exc
    if not isinstance(payload, dict):
        msg = f"Expected mapping at dashboard configuration root: {path}"
        raise ConfigurationError(msg)
    return payload


__all__ = [
    "ANALYTICS_API_BASE",
    "AccountingSettings",
    "AnalyticsSettings",
    "CommerceSettings",
    "DashboardSettings",
    "GOOGLE_TOKEN_URL",
]
