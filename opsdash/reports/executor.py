"""Run catalogue reports against the analytics Data API."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx
from google.analytics.data_v1beta.types import DateRange as ApiDateRange
from google.analytics.data_v1beta.types import Dimension, Metric, RunReportRequest
from google.api_core.exceptions import GoogleAPICallError
from google.auth.exceptions import RefreshError

from opsdash.config import ANALYTICS_API_BASE
from opsdash.credentials import Credential
from opsdash.errors import UpstreamAuthError, UpstreamReportError

from .catalogue import ReportSpec
from .normalize import ReportResult, build_result

log = logging.getLogger(__name__)

TENANT_HEADER = "X-Tenant-Id"


def _error_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return {}


def response_to_payload(response: Any) -> dict[str, Any]:
    """Convert an SDK ``RunReportResponse`` into the REST response shape."""

    rows = [
        {
            "dimensionValues": [{"value": value.value} for value in row.dimension_values],
            "metricValues": [{"value": value.value} for value in row.metric_values],
        }
        for row in response.rows
    ]
    return {"rows": rows, "rowCount": response.row_count}


class ReportExecutor:
    """Issues ``runReport`` for a property and normalizes the response."""

    def __init__(
        self,
        property_id: str,
        *,
        api_base: str = ANALYTICS_API_BASE,
        tenant_header: str = TENANT_HEADER,
    ) -> None:
        self._property_id = property_id
        self._api_base = api_base.rstrip("/")
        self._tenant_header = tenant_header

    @property
    def property_name(self) -> str:
        return f"properties/{self._property_id}"

    @property
    def endpoint(self) -> str:
        return f"{self._api_base}/{self.property_name}:runReport"

    async def execute(
        self,
        http: httpx.AsyncClient,
        spec: ReportSpec,
        credential: Credential,
    ) -> ReportResult:
        if credential.kind == "client":
            payload = await self._run_with_client(spec, credential.client)
        else:
            payload = await self._run_over_http(http, spec, credential)
        return build_result(spec, payload)

    async def _run_over_http(
        self,
        http: httpx.AsyncClient,
        spec: ReportSpec,
        credential: Credential,
    ) -> dict[str, Any]:
        response = await http.post(
            self.endpoint,
            params=credential.query_params(),
            headers=credential.request_headers(self._tenant_header),
            json=spec.request_body(),
        )
        if not response.is_success:
            raise UpstreamReportError(response.status_code, _error_body(response))

        try:
            payload = response.json()
        except ValueError as exc:
            raise UpstreamReportError(response.status_code, {}) from exc
        if not isinstance(payload, dict):
            raise UpstreamReportError(response.status_code, {})
        return payload

    async def _run_with_client(self, spec: ReportSpec, client: Any) -> dict[str, Any]:
        request = RunReportRequest(
            property=self.property_name,
            dimensions=[Dimension(name=name) for name in spec.dimensions],
            metrics=[Metric(name=name) for name in spec.metrics],
            date_ranges=[
                ApiDateRange(start_date=spec.date_range.start, end_date=spec.date_range.end)
            ],
        )
        # One client per credential; exiting it closes its transport.
        try:
            with client:
                response = await asyncio.to_thread(client.run_report, request)
        except RefreshError as exc:
            raise UpstreamAuthError(f"Service-account token refresh failed: {exc}") from exc
        except GoogleAPICallError as exc:
            status = exc.code if isinstance(exc.code, int) else 500
            raise UpstreamReportError(status, {"message": exc.message}) from exc
        return response_to_payload(response)


__all__ = ["ReportExecutor", "TENANT_HEADER", "response_to_payload"]
