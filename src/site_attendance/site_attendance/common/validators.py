from __future__ import annotations

import math
from typing import Optional

from ..core.exceptions import ValidationError


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not value.strip():
        raise ValidationError(f"{field_name} is required")
    return value.strip()


def require_length(value: Optional[str], field_name: str, min_len: int, max_len: int) -> str:
    v = (value or "").strip()
    if len(v) < min_len:
        raise ValidationError(f"{field_name} must have at least {min_len} characters")
    if len(v) > max_len:
        raise ValidationError(f"{field_name} must have at most {max_len} characters")
    return v


def optional_text(value: Optional[str], field_name: str, max_len: int) -> Optional[str]:
    v = (value or "").strip()
    if not v:
        return None
    if len(v) > max_len:
        raise ValidationError(f"{field_name} must have at most {max_len} characters")
    return v


def require_number(value, field_name: str, *, minimum: float, maximum: float) -> float:
    try:
        n = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number")
    if not math.isfinite(n) or n < minimum or n > maximum:
        raise ValidationError(f"{field_name} must be between {minimum} and {maximum}")
    return n


def optional_number(value, field_name: str, *, minimum: float, maximum: float) -> Optional[float]:
    if value is None or value == "":
        return None
    return require_number(value, field_name, minimum=minimum, maximum=maximum)


def require_coordinates(lat, lng) -> tuple[float, float]:
    lat_f = require_number(lat, "Latitude", minimum=-90, maximum=90)
    lng_f = require_number(lng, "Longitude", minimum=-180, maximum=180)
    return lat_f, lng_f
