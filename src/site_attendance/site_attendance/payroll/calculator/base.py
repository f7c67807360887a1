from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Tuple


class PayrollCalculator(ABC):
    """Calculator interface (Strategy Pattern for payroll)."""

    @abstractmethod
    def payable_bounds(self, arrival_at: datetime, departure_at: datetime) -> Tuple[datetime, datetime]:
        raise NotImplementedError

    def worked_minutes(self, arrival_at: datetime, departure_at: datetime) -> int:
        start, end = self.payable_bounds(arrival_at, departure_at)
        minutes = round((end - start).total_seconds() / 60)
        return max(int(minutes), 0)
