"""Analytics blueprint: the catalogue report endpoint."""

import asyncio
import logging

from flask import Blueprint, jsonify, request

from opsdash.app import get_state
from opsdash.reports import UnknownReportError, resolve_report

from . import internal_error

log = logging.getLogger(__name__)

bp = Blueprint("analytics", __name__)

LOG_TAG = "[analytics api]"


@bp.route("/report", methods=["GET"])
def report():
    """Run one catalogue report for the requested date range.

    Unknown report names are rejected before any credential is acquired.
    Every other failure collapses to a generic 500 so upstream messages and
    configuration details never reach the caller.
    """
    name = request.args.get("report")
    try:
        spec = resolve_report(
            name,
            start=request.args.get("startDate"),
            end=request.args.get("endDate"),
        )
    except UnknownReportError as exc:
        return jsonify({"error": str(exc)}), 400

    try:
        service = get_state().analytics_service()
        payload = asyncio.run(service.report(spec))
    except Exception:
        log.exception("%s report '%s' failed", LOG_TAG, spec.name)
        return internal_error()

    return jsonify(payload)
