"""Civil-time adapter.

The single place that knows about the civil timezone. Every other module asks this
adapter for calendar days and wall-clock times instead of doing offset arithmetic.
"""
from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Tuple

import pytz

from ..core.constants import DEFAULT_CIVIL_TIMEZONE
from .datetime_utils import ensure_utc


class CivilClock:
    def __init__(self, tz_name: str = DEFAULT_CIVIL_TIMEZONE):
        self._tz = pytz.timezone(tz_name)
        self.tz_name = tz_name

    def local(self, instant: datetime) -> datetime:
        return ensure_utc(instant).astimezone(self._tz)

    def civil_day(self, instant: datetime) -> date:
        return self.local(instant).date()

    def wall_clock(self, instant: datetime) -> Tuple[int, int]:
        loc = self.local(instant)
        return loc.hour, loc.minute

    def offset_at(self, instant: datetime) -> timedelta:
        return self.local(instant).utcoffset() or timedelta(0)

    def to_instant(self, day: date, hour: int, minute: int) -> datetime:
        """UTC instant showing ``hour:minute`` on ``day`` in civil time.

        Projects the wall-clock value as if it were UTC, then corrects by the zone
        offset observed at the result; the second pass settles values next to a
        DST transition. Skipped wall-clock times land on the post-transition side
        (02:30 -> 03:30 summer time), repeated ones on the standard-time occurrence.
        """
        guess = datetime(day.year, day.month, day.day, hour, minute, tzinfo=pytz.UTC)
        instant = guess - self.offset_at(guess)
        return guess - self.offset_at(instant)

    def day_bounds(self, day: date) -> Tuple[datetime, datetime]:
        """Half-open ``[start, end)`` UTC interval covering the civil day."""
        return self.to_instant(day, 0, 0), self.to_instant(day + timedelta(days=1), 0, 0)


_default_clock: CivilClock | None = None


def default_clock() -> CivilClock:
    global _default_clock
    if _default_clock is None:
        _default_clock = CivilClock()
    return _default_clock
