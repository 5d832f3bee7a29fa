from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

AuthStrategyName = Literal["api_key", "refresh_token", "service_account", "client"]


class _SectionModel(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    @field_validator("*", mode="before")
    @classmethod
    def _normalize_optional(cls, value: object) -> object:
        if isinstance(value, str):
            normalized = value.strip()
            return normalized or None
        return value


class AnalyticsSourceConfig(_SectionModel):
    """Declarative configuration for the analytics reporting upstream."""

    property_id: str | None = Field(
        default=None,
        alias="propertyId",
        description="Analytics property identifier or environment placeholder.",
    )
    auth_strategy: AuthStrategyName | None = Field(
        default=None,
        alias="authStrategy",
        description="Force a credential strategy instead of inferring it from populated fields.",
    )
    api_key: str | None = Field(default=None, alias="apiKey")
    client_id: str | None = Field(default=None, alias="clientId")
    client_secret: str | None = Field(default=None, alias="clientSecret")
    refresh_token: str | None = Field(default=None, alias="refreshToken")
    service_account_json: str | None = Field(
        default=None,
        alias="serviceAccountJson",
        description="Raw service-account key JSON (client_email, private_key).",
    )
    token_url: str | None = Field(default=None, alias="tokenUrl")
    api_base: str | None = Field(default=None, alias="apiBase")
    cache_tokens: bool | None = Field(default=None, alias="cacheTokens")


class AccountingSourceConfig(_SectionModel):
    """Declarative configuration for the accounting upstream."""

    client_id: str | None = Field(default=None, alias="clientId")
    client_secret: str | None = Field(default=None, alias="clientSecret")
    refresh_token: str | None = Field(default=None, alias="refreshToken")
    tenant_id: str | None = Field(default=None, alias="tenantId")
    redirect_uri: str | None = Field(default=None, alias="redirectUri")


class CommerceSourceConfig(_SectionModel):
    """Declarative configuration for the e-commerce upstream."""

    store_domain: str | None = Field(default=None, alias="storeDomain")
    admin_token: str | None = Field(default=None, alias="adminToken")
    api_version: str | None = Field(default=None, alias="apiVersion")


class DashboardConfigFile(BaseModel):
    """Root of a dashboard YAML configuration file."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    analytics: AnalyticsSourceConfig = Field(default_factory=AnalyticsSourceConfig)
    accounting: AccountingSourceConfig = Field(default_factory=AccountingSourceConfig)
    commerce: CommerceSourceConfig = Field(default_factory=CommerceSourceConfig)
    http_timeout: float | None = Field(default=None, alias="httpTimeout", gt=0)


__all__ = [
    "AccountingSourceConfig",
    "AnalyticsSourceConfig",
    "AuthStrategyName",
    "CommerceSourceConfig",
    "DashboardConfigFile",
]
