"""Commerce blueprint: store orders, products and revenue."""

import asyncio
import logging
from typing import Any

from flask import Blueprint, jsonify, request

from opsdash.app import DashboardState, get_state
from opsdash.commerce import DEFAULT_LIMIT

from . import internal_error

log = logging.getLogger(__name__)

bp = Blueprint("commerce", __name__)

LOG_TAG = "[commerce api]"
RESOURCES = ("today-orders", "orders", "products", "revenue")


async def _fetch(state: DashboardState, resource: str, limit: int, args: dict[str, str]) -> Any:
    async with state.commerce_client() as client:
        if resource == "today-orders":
            return {"count": await client.today_order_count()}
        if resource == "orders":
            return {"orders": await client.orders(limit, args.get("status") or "any")}
        if resource == "products":
            return {"products": await client.products(limit)}
        return await client.revenue_metrics(args.get("since"))


@bp.route("/commerce", methods=["GET"])
def commerce():
    resource = request.args.get("resource")
    if resource not in RESOURCES:
        return jsonify({"error": f"Unknown resource. Use: {' | '.join(RESOURCES)}"}), 400

    raw_limit = request.args.get("limit")
    try:
        limit = int(raw_limit) if raw_limit else DEFAULT_LIMIT
    except ValueError:
        return jsonify({"error": "limit must be an integer"}), 400

    try:
        payload = asyncio.run(_fetch(get_state(), resource, limit, request.args.to_dict()))
    except Exception:
        log.exception("%s resource '%s' failed", LOG_TAG, resource)
        return internal_error()
    return jsonify(payload)
