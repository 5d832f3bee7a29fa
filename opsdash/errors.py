"""Exceptions raised while talking to the upstream business APIs."""

from __future__ import annotations

from typing import Any


class ConfigurationError(RuntimeError):
    """Raised when required dashboard configuration is missing."""


class UpstreamAuthError(RuntimeError):
    """Raised when exchanging credentials with an identity provider fails."""

    def __init__(self, message: str, *, status_code: int | None = None, body: str = "") -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class UpstreamReportError(RuntimeError):
    """Raised when the analytics report call is rejected."""

    def __init__(self, status_code: int, body: Any) -> None:
        super().__init__(f"Analytics runReport failed {status_code}: {body!r}")
        self.status_code = status_code
        self.body = body


class UpstreamRequestError(RuntimeError):
    """Raised when an accounting or commerce resource call fails."""

    def __init__(self, resource: str, status_code: int) -> None:
        super().__init__(f"Upstream request for '{resource}' failed: {status_code}")
        self.resource = resource
        self.status_code = status_code


class NoTenantError(RuntimeError):
    """Raised when an authorization grant is not bound to any tenant."""


__all__ = [
    "ConfigurationError",
    "NoTenantError",
    "UpstreamAuthError",
    "UpstreamReportError",
    "UpstreamRequestError",
]
