"""Shared helpers for the JSON controllers."""

from __future__ import annotations

import logging
from dataclasses import fields, is_dataclass
from datetime import date, datetime
from enum import Enum
from functools import wraps
from typing import Optional

from flask import jsonify, request, session

from ..core.enums import Role
from ..core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    DomainError,
    NotFoundError,
    UpstreamError,
    ValidationError,
)
from .datetime_utils import parse_iso_date

logger = logging.getLogger(__name__)


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return jsonify({"success": False, "message": "Silakan login terlebih dahulu"}), 401
        return view(*args, **kwargs)

    return wrapper


def admin_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return jsonify({"success": False, "message": "Silakan login terlebih dahulu"}), 401
        if session.get("role") != Role.ADMIN.value:
            return jsonify({"success": False, "message": "Anda tidak memiliki akses"}), 403
        return view(*args, **kwargs)

    return wrapper


def current_user_id() -> int:
    return int(session["user_id"])


def current_role() -> Role:
    return Role(session.get("role", Role.EMPLOYEE.value))


def status_for(exc: DomainError) -> int:
    # Forbidden is both a conflict and an authorization error; 403 wins.
    if isinstance(exc, AuthorizationError):
        return 403
    if isinstance(exc, ValidationError):
        return 400
    if isinstance(exc, AuthenticationError):
        return 401
    if isinstance(exc, NotFoundError):
        return 404
    if isinstance(exc, ConflictError):
        return 409
    if isinstance(exc, UpstreamError):
        return 502
    return 400


def error_response(exc: Exception):
    if isinstance(exc, DomainError):
        body = {"success": False, "message": str(exc), "error": type(exc).__name__}
        if isinstance(exc, UpstreamError):
            body["retryable"] = True
        return jsonify(body), status_for(exc)

    logger.exception("Unhandled error while serving request")
    return jsonify({"success": False, "message": "Terjadi kesalahan sistem"}), 500


def serialize(value):
    """JSON-safe copy of dataclasses / enums / dates for jsonify."""
    if is_dataclass(value) and not isinstance(value, type):
        return {f.name: serialize(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: serialize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [serialize(v) for v in value]
    return value


def payload() -> dict:
    """JSON body or form fields of the current request."""
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    return request.form.to_dict()


def parse_optional_date(value) -> Optional[date]:
    value = (value or "").strip() if isinstance(value, str) else value
    if not value:
        return None
    return parse_iso_date(value)
