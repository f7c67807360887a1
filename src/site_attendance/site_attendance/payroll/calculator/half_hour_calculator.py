from __future__ import annotations

from datetime import datetime
from typing import Optional, Tuple

from ...common.civil_time import CivilClock, default_clock
from ...common.rounding import round_to_half_hour
from .base import PayrollCalculator


class HalfHourPayrollCalculator(PayrollCalculator):
    """Standard rule: both ends rounded to the nearest half hour (civil time), not below 0."""

    def __init__(self, clock: Optional[CivilClock] = None):
        self._clock = clock or default_clock()

    def payable_bounds(self, arrival_at: datetime, departure_at: datetime) -> Tuple[datetime, datetime]:
        return (
            round_to_half_hour(arrival_at, self._clock),
            round_to_half_hour(departure_at, self._clock),
        )
