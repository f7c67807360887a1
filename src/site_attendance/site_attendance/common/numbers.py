from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Any


def to_float(value: Any, default: float = 0.0) -> float:
    """Lenient numeric read for optional DB/JSON fields (None, '', NaN -> default)."""
    if value is None or value == "":
        return default
    try:
        n = float(value)
    except (TypeError, ValueError):
        return default
    return n if math.isfinite(n) else default


def round_half_up(value: float, places: int) -> float:
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(repr(float(value))).quantize(quantum, rounding=ROUND_HALF_UP))


def round_money(value: float) -> float:
    """Currency and hour figures: 2 decimal places, half-up."""
    return round_half_up(value, 2)


def round_km(value: float) -> float:
    return round_half_up(value, 1)
