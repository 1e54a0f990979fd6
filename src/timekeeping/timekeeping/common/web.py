"""Helpers shared by the JSON controllers."""

from __future__ import annotations

import dataclasses
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any, List

from flask import Flask, jsonify, request, session

from ..core.exceptions import (
    AuthorizationError,
    DomainError,
    InsufficientBalanceError,
    NotFoundError,
    StateConflictError,
    ValidationError,
)
from .context import ActorContext
from .datetime_utils import now_local
from .results import BulkResult


_STATUS_CODES = (
    (ValidationError, 422),
    (NotFoundError, 404),
    (AuthorizationError, 403),
    (InsufficientBalanceError, 409),
    (StateConflictError, 409),
)


def to_jsonable(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_jsonable(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(k): to_jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_jsonable(v) for v in value]
    return value


def json_body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def id_list(data: dict, key: str) -> List[int]:
    raw = data.get(key)
    if not isinstance(raw, list) or not raw:
        raise ValidationError(f"{key} must be a non-empty list")
    try:
        return [int(v) for v in raw]
    except (TypeError, ValueError):
        raise ValidationError(f"{key} must contain integer ids")


def current_actor(employees) -> ActorContext:
    """Build the actor from the identity layer's session data."""

    if "user_id" not in session:
        raise AuthorizationError("Login required")
    user_id = int(session["user_id"])
    return ActorContext.from_roles(
        user_id=user_id,
        now=now_local(),
        roles=session.get("roles") or [],
        managed_departments=employees.managed_departments(user_id),
    )


def bulk_payload(result: BulkResult) -> dict:
    return {
        "succeeded": to_jsonable(result.succeeded),
        "failed": to_jsonable(result.failed),
    }


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(exc: DomainError):
        for exc_type, code in _STATUS_CODES:
            if isinstance(exc, exc_type):
                break
        else:
            code = 400
        return jsonify({"error": type(exc).__name__, "message": str(exc)}), code


def int_field(data: dict, key: str, *, required: bool = True):
    raw = data.get(key)
    if raw in (None, ""):
        if required:
            raise ValidationError(f"{key} is required")
        return None
    try:
        return int(raw)
    except (TypeError, ValueError):
        raise ValidationError(f"{key} must be an integer")
