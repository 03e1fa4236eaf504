"""Request-scoped helpers shared by the JSON controllers."""
from __future__ import annotations

import logging
from functools import wraps

from flask import jsonify, request, session

from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from ..policy.model import Actor

logger = logging.getLogger(__name__)

SESSION_USER_KEY = "user_id"


def current_actor(container) -> Actor:
    """Resolve the actor once for this request from the session cookie."""
    return container.auth_service.resolve_actor(session.get(SESSION_USER_KEY))


def json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def error_response(exc: Exception):
    if isinstance(exc, AuthenticationError):
        return jsonify({"error": str(exc)}), 401
    if isinstance(exc, AuthorizationError):
        return jsonify({"error": str(exc), "reason": exc.reason.value}), 403
    if isinstance(exc, NotFoundError):
        return jsonify({"error": str(exc)}), 404
    if isinstance(exc, ConflictError):
        return jsonify({"error": str(exc)}), 409
    if isinstance(exc, ValidationError):
        return jsonify({"error": str(exc)}), 400
    raise exc


def json_endpoint(container):
    """Resolve the actor, run the view, and map domain errors to JSON responses.

    The wrapped view receives the actor as its first argument.
    """

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            try:
                actor = current_actor(container)
                return view(actor, *args, **kwargs)
            except (AuthenticationError, AuthorizationError, NotFoundError, ConflictError, ValidationError) as e:
                return error_response(e)
            except Exception:
                logger.exception("Unhandled error in %s %s", request.method, request.path)
                return jsonify({"error": "Internal server error"}), 500

        return wrapper

    return decorator


def query_int(name: str) -> int | None:
    raw = request.args.get(name)
    if raw in (None, ""):
        return None
    try:
        return int(raw)
    except ValueError:
        raise ValidationError(f"{name} must be an integer")
