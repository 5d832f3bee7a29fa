"""HTTP blueprints for the dashboard API."""

from flask import jsonify

GENERIC_ERROR = {"error": "Internal server error"}


def internal_error():
    """Opaque 500 response; details go to the log only."""

    return jsonify(GENERIC_ERROR), 500


__all__ = ["GENERIC_ERROR", "internal_error"]
