"""E-commerce upstream: single-page reads from the store admin API."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Callable

import httpx

from .config import CommerceSettings
from .errors import ConfigurationError, UpstreamRequestError

DEFAULT_LIMIT = 50
REVENUE_PAGE_LIMIT = 250
REVENUE_LOOKBACK = timedelta(days=30)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _price(value: Any) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


class CommerceClient:
    """Client for the store admin REST API."""

    def __init__(
        self,
        settings: CommerceSettings,
        *,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
        now: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._settings = settings
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)
        self._now = now

    async def __aenter__(self) -> "CommerceClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    @property
    def base_url(self) -> str:
        if not self._settings.store_domain:
            raise ConfigurationError("SHOPIFY_STORE_DOMAIN not set")
        return f"https://{self._settings.store_domain}/admin/api/{self._settings.api_version}"

    async def _get(self, resource: str, params: dict[str, Any]) -> Any:
        if not self._settings.admin_token:
            raise ConfigurationError("SHOPIFY_ADMIN_TOKEN not set")
        response = await self._client.get(
            f"{self.base_url}/{resource}.json",
            params=params,
            headers={
                "X-Shopify-Access-Token": self._settings.admin_token,
                "Content-Type": "application/json",
            },
        )
        if not response.is_success:
            raise UpstreamRequestError(resource, response.status_code)
        return response.json()

    async def orders(self, limit: int = DEFAULT_LIMIT, status: str = "any") -> list[dict[str, Any]]:
        payload = await self._get("orders", {"limit": limit, "status": status})
        return payload.get("orders", [])

    async def products(self, limit: int = DEFAULT_LIMIT) -> list[dict[str, Any]]:
        payload = await self._get("products", {"limit": limit})
        return payload.get("products", [])

    async def today_order_count(self) -> int:
        midnight = self._now().replace(hour=0, minute=0, second=0, microsecond=0)
        payload = await self._get(
            "orders/count",
            {"status": "any", "created_at_min": midnight.isoformat()},
        )
        return int(payload.get("count", 0))

    async def revenue_metrics(self, since: str | None = None) -> dict[str, Any]:
        """Total and count of paid orders created since ``since`` (one page)."""

        created_at_min = since or (self._now() - REVENUE_LOOKBACK).isoformat()
        payload = await self._get(
            "orders",
            {
                "limit": REVENUE_PAGE_LIMIT,
                "status": "any",
                "financial_status": "paid",
                "created_at_min": created_at_min,
            },
        )
        orders = payload.get("orders", [])
        total = sum(_price(order.get("total_price")) for order in orders)
        return {"total": total, "count": len(orders)}


__all__ = ["CommerceClient"]
