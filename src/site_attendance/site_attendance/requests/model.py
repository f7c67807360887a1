from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import CloseRequestStatus


@dataclass(frozen=True)
class CloseRequest:
    """A worker's request to record a departure they forgot to capture.

    ``arrival_at`` is the instant of the open ARRIVAL the request closes;
    ``reported_time`` is kept as the free text the worker typed.
    """

    request_id: int
    worker_id: int
    site_id: Optional[int]
    arrival_at: datetime
    reported_time: str
    forget_reason: str
    work_description: str
    status: CloseRequestStatus
    requested_at: datetime
    km: Optional[float] = None
    material_description: Optional[str] = None
    material_amount: Optional[float] = None
    decided_at: Optional[datetime] = None
    decided_by: Optional[int] = None
    departure_event_id: Optional[int] = None


@dataclass(frozen=True)
class NewCloseRequest:
    worker_id: int
    site_id: Optional[int]
    arrival_at: datetime
    reported_time: str
    forget_reason: str
    work_description: str
    requested_at: datetime
    km: Optional[float] = None
    material_description: Optional[str] = None
    material_amount: Optional[float] = None
