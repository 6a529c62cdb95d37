from __future__ import annotations

import logging
from functools import wraps
from typing import Optional

from flask import jsonify, request, session

from ..core.enums import Role
from ..core.exceptions import (
    AuthorizationError,
    ConflictError,
    DomainError,
    NotFoundError,
    PersistenceError,
    RuleViolationError,
    ValidationError,
)
from ..users.model import Requester
from ..users.repository import UserRepository

logger = logging.getLogger(__name__)

STATUS_BY_ERROR = {
    NotFoundError: 404,
    AuthorizationError: 403,
    ValidationError: 400,
    ConflictError: 409,
    RuleViolationError: 422,
}


class Unauthenticated(Exception):
    pass


def error_response(kind: str, message: str, status: int):
    return jsonify({"success": False, "kind": kind, "message": message}), status


def current_requester(users: UserRepository) -> Requester:
    """Identity placed in the Flask session by the auth middleware.

    The role claim is trusted when present; otherwise it is looked up.
    """

    user_id = session.get("user_id")
    if user_id is None:
        raise Unauthenticated()

    role_claim = session.get("role")
    if role_claim:
        try:
            return Requester(user_id=str(user_id), role=Role(role_claim))
        except ValueError:
            raise Unauthenticated()

    user = users.get_by_id(str(user_id))
    if not user or not user.is_active:
        raise Unauthenticated()
    return Requester(user_id=user.user_id, role=user.role)


def json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def api_view(view):
    """Translate service exceptions into JSON error responses."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        try:
            return view(*args, **kwargs)
        except Unauthenticated:
            return error_response("unauthenticated", "Please sign in to continue", 401)
        except DomainError as e:
            status = next((code for cls, code in STATUS_BY_ERROR.items() if isinstance(e, cls)), 400)
            return error_response(e.kind, str(e), status)
        except PersistenceError:
            logger.exception("Storage failure in %s %s", request.method, request.path)
            return error_response(PersistenceError.kind, "Internal server error", 500)
        except Exception:
            logger.exception("Unhandled error in %s %s", request.method, request.path)
            return error_response("internal", "Internal server error", 500)

    return wrapper


def ok(data, status: int = 200, **extra):
    payload = {"success": True, "data": data}
    payload.update(extra)
    return jsonify(payload), status


def query_arg(name: str) -> Optional[str]:
    value = request.args.get(name)
    return value.strip() if value and value.strip() else None
