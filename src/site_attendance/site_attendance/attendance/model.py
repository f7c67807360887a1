from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import EventKind


@dataclass(frozen=True)
class AttendanceEvent:
    """Domain entity: one raw attendance event.

    Immutable once written, except for the repair job (instant correction), the
    worker or admin edit of free-text/amount fields (``edited_by``/``edited_at``)
    and the mark-paid audit.
    ``civil_day`` is a cache written at capture time and may be stale or empty.
    """

    event_id: int
    worker_id: int
    site_id: Optional[int]
    kind: EventKind
    occurred_at: datetime
    civil_day: Optional[date] = None

    work_description: Optional[str] = None
    km: Optional[float] = None
    offsite_reason: Optional[str] = None
    offsite_hours: Optional[float] = None
    material_description: Optional[str] = None
    material_amount: Optional[float] = None

    is_paid: bool = False
    paid_at: Optional[datetime] = None
    paid_by: Optional[int] = None
    edited_at: Optional[datetime] = None
    edited_by: Optional[int] = None

    lat: Optional[float] = None
    lng: Optional[float] = None
    accuracy_m: Optional[float] = None
    distance_m: Optional[int] = None


@dataclass(frozen=True)
class NewAttendanceEvent:
    """Write model for the event store."""

    worker_id: int
    site_id: Optional[int]
    kind: EventKind
    occurred_at: datetime
    civil_day: Optional[date] = None

    work_description: Optional[str] = None
    km: Optional[float] = None
    offsite_reason: Optional[str] = None
    offsite_hours: Optional[float] = None
    material_description: Optional[str] = None
    material_amount: Optional[float] = None

    lat: Optional[float] = None
    lng: Optional[float] = None
    accuracy_m: Optional[float] = None
    distance_m: Optional[int] = None


@dataclass(frozen=True)
class AttendanceState:
    """Whether the worker is currently on shift (latest ARRIVAL later than latest DEPARTURE)."""

    is_open: bool
    open_site_id: Optional[int] = None
    open_since: Optional[datetime] = None


EDITABLE_FIELDS = {
    EventKind.ARRIVAL: ("material_description", "material_amount"),
    EventKind.DEPARTURE: ("work_description", "km", "material_description", "material_amount"),
    EventKind.OFFSITE: ("offsite_reason", "offsite_hours", "material_description", "material_amount"),
}
