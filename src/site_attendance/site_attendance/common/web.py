"""Helpers shared by the Flask controllers: session guards, error mapping, JSON shaping."""
from __future__ import annotations

import dataclasses
from datetime import date, datetime, timedelta
from enum import Enum
from functools import wraps
from typing import Any, Mapping, Optional, Tuple

import structlog
from flask import jsonify, request, session

from ..core.enums import Role
from ..core.exceptions import (
    AuthorizationError,
    BusinessRuleError,
    DomainError,
    GeofenceRejectedError,
    NotFoundError,
    ValidationError,
)
from .civil_time import CivilClock
from .datetime_utils import now_utc, parse_iso_date

log = structlog.get_logger(__name__)


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return jsonify({"success": False, "message": "Please log in to continue"}), 401
        return view(*args, **kwargs)

    return wrapper


def admin_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return jsonify({"success": False, "message": "Please log in to continue"}), 401
        if session.get("role") != Role.ADMIN.value:
            return jsonify({"success": False, "message": "Administrators only"}), 403
        return view(*args, **kwargs)

    return wrapper


def current_user_id() -> int:
    return int(session["user_id"])


def handle_domain_error(e: DomainError):
    if isinstance(e, GeofenceRejectedError):
        return jsonify({"success": False, "message": str(e), "distance_m": e.distance_m, "radius_m": e.radius_m}), 403
    if isinstance(e, ValidationError):
        status = 400
    elif isinstance(e, NotFoundError):
        status = 404
    elif isinstance(e, AuthorizationError):
        status = 403
    elif isinstance(e, BusinessRuleError):
        status = 409
    else:
        status = 400
    log.info("request_refused", error=type(e).__name__, message=str(e), status=status)
    return jsonify({"success": False, "message": str(e)}), status


def to_json(value: Any) -> Any:
    """Dataclasses, enums and datetimes into JSON-ready values (ISO 8601 instants)."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_json(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Mapping):
        return {str(k): to_json(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_json(v) for v in value]
    return value


def json_body() -> dict:
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return {}
    return data


def report_window(args: Mapping[str, str], clock: CivilClock, *, default_days: int) -> Tuple[date, date]:
    """``from``/``to`` query arguments (YYYY-MM-DD); defaults to the last ``default_days`` civil days."""

    def _parse(name: str) -> Optional[date]:
        raw = (args.get(name) or "").strip()
        if not raw:
            return None
        try:
            return parse_iso_date(raw)
        except ValueError:
            raise ValidationError(f"Invalid date for '{name}' (YYYY-MM-DD)")

    end = _parse("to") or clock.civil_day(now_utc())
    start = _parse("from") or end - timedelta(days=max(int(default_days), 1) - 1)
    return start, end
