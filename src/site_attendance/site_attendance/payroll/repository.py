from __future__ import annotations

from datetime import date
from typing import Mapping, Protocol


class TripDistanceSource(Protocol):
    """Kilometres from the trip log, used only for days without manual km."""

    def km_by_day(self, worker_id: int, *, start: date, end: date) -> Mapping[date, float]:
        raise NotImplementedError
