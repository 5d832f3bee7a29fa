"""Pydantic models describing opsdash configuration objects."""

from .service_account import ServiceAccountInfo
from .settings import (
    AccountingSourceConfig,
    AnalyticsSourceConfig,
    AuthStrategyName,
    CommerceSourceConfig,
    DashboardConfigFile,
)

__all__ = [
    "AccountingSourceConfig",
    "AnalyticsSourceConfig",
    "AuthStrategyName",
    "CommerceSourceConfig",
    "DashboardConfigFile",
    "ServiceAccountInfo",
]
