"""opsdash package public interface."""

from .app import create_app
from .config import DashboardSettings
from .errors import (
    ConfigurationError,
    NoTenantError,
    UpstreamAuthError,
    UpstreamReportError,
    UpstreamRequestError,
)
from .reports import CATALOGUE, ReportResult, ReportSpec, normalize_rows, resolve_report
from .service import AnalyticsService

__all__ = [
    "AnalyticsService",
    "CATALOGUE",
    "ConfigurationError",
    "DashboardSettings",
    "NoTenantError",
    "ReportResult",
    "ReportSpec",
    "UpstreamAuthError",
    "UpstreamReportError",
    "UpstreamRequestError",
    "create_app",
    "normalize_rows",
    "resolve_report",
]
