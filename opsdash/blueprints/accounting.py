"""Accounting blueprint: one-shot authorization and resource reads."""

import asyncio
import logging
from typing import Any

from flask import Blueprint, jsonify, request, url_for

from opsdash.accounting import AuthorizationGrant, authorization_url
from opsdash.app import DashboardState, get_state

from . import internal_error

log = logging.getLogger(__name__)

bp = Blueprint("accounting", __name__)

LOG_TAG = "[accounting api]"
RESOURCES = ("invoices", "balance-sheet", "profit-loss", "accounts")


def _callback_url(state: DashboardState) -> str:
    return state.settings.accounting.redirect_uri or url_for(
        "accounting.oauth_callback", _external=True
    )


@bp.route("/authorize-url", methods=["GET"])
def authorize_url():
    try:
        state = get_state()
        url = authorization_url(state.settings.accounting, _callback_url(state))
    except Exception:
        log.exception("%s authorize-url failed", LOG_TAG)
        return internal_error()
    return jsonify({"url": url})


async def _exchange(state: DashboardState, code: str, redirect_uri: str) -> AuthorizationGrant:
    async with state.accounting_client() as client:
        return await client.exchange_code(code, redirect_uri)


@bp.route("/oauth-callback", methods=["GET"])
def oauth_callback():
    """Finish the consent flow and hand back the values to store as config."""
    code = request.args.get("code")
    if not code:
        return jsonify({"error": "Missing code parameter"}), 400

    try:
        state = get_state()
        grant = asyncio.run(_exchange(state, code, _callback_url(state)))
    except Exception:
        log.exception("%s oauth-callback failed", LOG_TAG)
        return internal_error()
    return jsonify(grant.to_payload())


async def _fetch(state: DashboardState, resource: str, args: dict[str, str]) -> Any:
    async with state.accounting_client() as client:
        if resource == "invoices":
            return {"invoices": await client.invoices(args.get("status"))}
        if resource == "balance-sheet":
            return await client.balance_sheet()
        if resource == "profit-loss":
            return await client.profit_and_loss(args.get("fromDate"), args.get("toDate"))
        return {"accounts": await client.accounts()}


@bp.route("/accounting", methods=["GET"])
def accounting():
    resource = request.args.get("resource")
    if resource not in RESOURCES:
        return jsonify({"error": f"Unknown resource. Use: {' | '.join(RESOURCES)}"}), 400

    try:
        payload = asyncio.run(_fetch(get_state(), resource, request.args.to_dict()))
    except Exception:
        log.exception("%s resource '%s' failed", LOG_TAG, resource)
        return internal_error()
    return jsonify(payload)
