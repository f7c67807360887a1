"""Half-hour rounding used for pay computation only.

The rounded value is always derived on demand and never written back over the
stored timestamp.
"""
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from ..core.constants import ROUND_DOWN_BEFORE_MINUTE, ROUND_UP_FROM_MINUTE
from .civil_time import CivilClock, default_clock
from .datetime_utils import ensure_utc


def round_to_half_hour(instant: datetime, clock: Optional[CivilClock] = None) -> datetime:
    """Round to the nearest :00/:30 civil wall-clock boundary.

    minute < 15 -> :00, 15..44 -> :30, >= 45 -> next hour :00 (carries over days).
    """
    clock = clock or default_clock()
    instant = ensure_utc(instant).replace(second=0, microsecond=0)
    _, minute = clock.wall_clock(instant)

    if minute < ROUND_DOWN_BEFORE_MINUTE:
        delta = -minute
    elif minute < ROUND_UP_FROM_MINUTE:
        delta = 30 - minute
    else:
        delta = 60 - minute

    return instant + timedelta(minutes=delta)
