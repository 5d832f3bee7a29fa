"""Analytics pipeline: acquire a credential, then run the report."""

from __future__ import annotations

import time
from typing import Any, Callable, Mapping

import httpx

from .config import DashboardSettings
from .credentials import CredentialProvider, select_provider
from .credentials.base import Clock
from .reports import ReportExecutor, ReportResult, ReportSpec, resolve_report, sum_metric

PostProcessor = Callable[[ReportResult], Mapping[str, Any]]


def _overview_totals(result: ReportResult) -> Mapping[str, Any]:
    return {"totalSessions": sum_metric(result.rows, "sessions")}


POST_PROCESSORS: Mapping[str, PostProcessor] = {
    "overview": _overview_totals,
}


class AnalyticsService:
    """Runs catalogue reports with one credential provider and one executor.

    A fresh ``httpx.AsyncClient`` is opened for every report so that each
    invocation shares nothing with the next beyond the provider's optional
    token cache.
    """

    def __init__(
        self,
        provider: CredentialProvider,
        executor: ReportExecutor,
        *,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._provider = provider
        self._executor = executor
        self._timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(
        cls,
        settings: DashboardSettings,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Clock = time.time,
    ) -> "AnalyticsService":
        analytics = settings.analytics
        property_id = analytics.require_property_id()
        provider = select_provider(analytics, clock=clock)
        executor = ReportExecutor(property_id, api_base=analytics.api_base)
        return cls(provider, executor, timeout=settings.http_timeout, transport=transport)

    @property
    def provider(self) -> CredentialProvider:
        return self._provider

    async def run(self, spec: ReportSpec) -> ReportResult:
        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as http:
            credential = await self._provider.acquire(http)
            return await self._executor.execute(http, spec, credential)

    async def report(self, spec: ReportSpec) -> dict[str, Any]:
        """Run ``spec`` and return the serialized payload with derived fields."""

        result = await self.run(spec)
        payload = result.to_payload()
        post_process = POST_PROCESSORS.get(spec.name)
        if post_process is not None:
            payload.update(post_process(result))
        return payload

    async def report_by_name(
        self,
        name: str | None,
        *,
        start: str | None = None,
        end: str | None = None,
    ) -> dict[str, Any]:
        return await self.report(resolve_report(name, start=start, end=end))


__all__ = ["AnalyticsService", "POST_PROCESSORS"]
