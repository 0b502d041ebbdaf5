from __future__ import annotations

import hmac
from functools import wraps

from flask import current_app, jsonify, request

from ..core.exceptions import ConflictError, NotFoundError, ValidationError

API_KEY_HEADER = "X-API-Key"


def api_key_required(view):
    """Shared-secret guard for read endpoints used by the admin dashboard."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        expected = current_app.config.get("ADMIN_API_KEY") or ""
        provided = request.headers.get(API_KEY_HEADER, "")
        if not expected or not hmac.compare_digest(expected, provided):
            return jsonify({"message": "Not authorized"}), 403
        return view(*args, **kwargs)

    return wrapper


def domain_error_response(error: Exception):
    if isinstance(error, NotFoundError):
        return jsonify({"message": str(error)}), 404
    if isinstance(error, (ConflictError, ValidationError)):
        return jsonify({"message": str(error)}), 400
    raise error
