"""Flask application factory for the dashboard API."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx
from flask import Flask, current_app, jsonify
from werkzeug.exceptions import MethodNotAllowed, NotFound

from .accounting import AccountingClient
from .commerce import CommerceClient
from .config import DashboardSettings
from .errors import ConfigurationError
from .service import AnalyticsService

log = logging.getLogger(__name__)

EXTENSION_KEY = "opsdash"


@dataclass
class DashboardState:
    """Per-process objects built once by :func:`create_app`."""

    settings: DashboardSettings
    analytics: AnalyticsService | None = None
    analytics_error: ConfigurationError | None = None
    transport: httpx.AsyncBaseTransport | None = None

    def analytics_service(self) -> AnalyticsService:
        if self.analytics is None:
            message = str(self.analytics_error) if self.analytics_error else "Analytics not configured"
            raise ConfigurationError(message)
        return self.analytics

    def accounting_client(self) -> AccountingClient:
        return AccountingClient(
            self.settings.accounting,
            timeout=self.settings.http_timeout,
            transport=self.transport,
        )

    def commerce_client(self) -> CommerceClient:
        return CommerceClient(
            self.settings.commerce,
            timeout=self.settings.http_timeout,
            transport=self.transport,
        )


def get_state() -> DashboardState:
    return current_app.extensions[EXTENSION_KEY]


def _build_state(
    settings: DashboardSettings,
    transport: httpx.AsyncBaseTransport | None,
) -> DashboardState:
    state = DashboardState(settings=settings, transport=transport)
    try:
        state.analytics = AnalyticsService.from_settings(settings, transport=transport)
    except ConfigurationError as exc:
        log.warning("Analytics reports unavailable: %s", exc)
        state.analytics_error = exc
    return state


def create_app(
    settings: DashboardSettings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
    test_config: dict[str, Any] | None = None,
) -> Flask:
    """Application factory for the dashboard API."""

    app = Flask(__name__)
    app.json.sort_keys = False  # type: ignore[attr-defined]
    if test_config is not None:
        app.config.from_mapping(test_config)

    settings = settings or DashboardSettings.from_env()
    app.extensions[EXTENSION_KEY] = _build_state(settings, transport)

    from .blueprints import accounting, analytics, commerce

    app.register_blueprint(analytics.bp)
    app.register_blueprint(accounting.bp)
    app.register_blueprint(commerce.bp)

    @app.errorhandler(MethodNotAllowed)
    def method_not_allowed(exc: MethodNotAllowed):
        return jsonify({"error": "Method not allowed"}), 405

    @app.errorhandler(NotFound)
    def not_found(exc: NotFound):
        return jsonify({"error": "Not found"}), 404

    return app


__all__ = ["DashboardState", "create_app", "get_state"]
