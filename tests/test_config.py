import textwrap
from pathlib import Path

import pytest

from opsdash.config import DashboardSettings
from opsdash.errors import ConfigurationError


def test_from_env_reads_every_section() -> None:
    env = {
        "GA4_PROPERTY_ID": "123",
        "GA4_API_KEY": "key",
        "GA4_TOKEN_CACHE": "true",
        "XERO_CLIENT_ID": "xero-client",
        "XERO_TENANT_ID": "tenant",
        "SHOPIFY_STORE_DOMAIN": "shop.example.com",
        "SHOPIFY_ADMIN_TOKEN": "shpat",
        "OPSDASH_HTTP_TIMEOUT": "12.5",
    }

    settings = DashboardSettings.from_env(env)

    assert settings.analytics.property_id == "123"
    assert settings.analytics.api_key == "key"
    assert settings.analytics.cache_tokens is True
    assert settings.analytics.token_url == "https://oauth2.googleapis.com/token"
    assert settings.accounting.client_id == "xero-client"
    assert settings.accounting.redirect_uri is None
    assert settings.commerce.store_domain == "shop.example.com"
    assert settings.commerce.api_version == "2024-01"
    assert settings.http_timeout == 12.5


def test_from_env_treats_blank_values_as_unset() -> None:
    settings = DashboardSettings.from_env({"GA4_API_KEY": "   ", "GA4_TOKEN_CACHE": ""})

    assert settings.analytics.api_key is None
    assert settings.analytics.cache_tokens is False
    assert settings.http_timeout == 30.0


def test_from_env_rejects_non_numeric_timeout() -> None:
    with pytest.raises(ConfigurationError, match="OPSDASH_HTTP_TIMEOUT"):
        DashboardSettings.from_env({"OPSDASH_HTTP_TIMEOUT": "soon"})


def test_from_file_expands_placeholders_and_falls_back_to_env(tmp_path: Path) -> None:
    path = tmp_path / "dashboard.yaml"
    path.write_text(
        textwrap.dedent(
            """
            analytics:
              propertyId: "${env:CUSTOM_PROPERTY}"
              authStrategy: refresh_token
              clientId: env:CUSTOM_CLIENT
              cacheTokens: true
            commerce:
              storeDomain: shop.example.com
            httpTimeout: 5
            """
        ),
        encoding="utf-8",
    )
    env = {
        "CUSTOM_PROPERTY": "555",
        "CUSTOM_CLIENT": "client-from-placeholder",
        "GA4_CLIENT_SECRET": "secret-from-env",
        "SHOPIFY_ADMIN_TOKEN": "shpat",
    }

    settings = DashboardSettings.from_file(path, env)

    assert settings.analytics.property_id == "555"
    assert settings.analytics.auth_strategy == "refresh_token"
    assert settings.analytics.client_id == "client-from-placeholder"
    assert settings.analytics.client_secret == "secret-from-env"
    assert settings.analytics.cache_tokens is True
    assert settings.commerce.store_domain == "shop.example.com"
    assert settings.commerce.admin_token == "shpat"
    assert settings.http_timeout == 5.0


def test_unresolved_placeholder_raises(tmp_path: Path) -> None:
    path = tmp_path / "dashboard.yaml"
    path.write_text("analytics:\n  apiKey: ${env:MISSING_KEY}\n", encoding="utf-8")

    with pytest.raises(ConfigurationError, match="MISSING_KEY"):
        DashboardSettings.from_file(path, {})


def test_unknown_fields_are_rejected(tmp_path: Path) -> None:
    path = tmp_path / "dashboard.yaml"
    path.write_text("analytics:\n  propertyIdd: '1'\n", encoding="utf-8")

    with pytest.raises(ConfigurationError, match="validation failed"):
        DashboardSettings.from_file(path, {})


def test_unknown_strategy_in_file_is_rejected(tmp_path: Path) -> None:
    path = tmp_path / "dashboard.yaml"
    path.write_text("analytics:\n  authStrategy: telepathy\n", encoding="utf-8")

    with pytest.raises(ConfigurationError):
        DashboardSettings.from_file(path, {})


def test_invalid_yaml(tmp_path: Path) -> None:
    path = tmp_path / "dashboard.yaml"
    path.write_text("analytics: [unclosed\n", encoding="utf-8")

    with pytest.raises(ConfigurationError, match="Invalid YAML"):
        DashboardSettings.from_file(path, {})


def test_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigurationError, match="Failed to read"):
        DashboardSettings.from_file(tmp_path / "absent.yaml", {})
