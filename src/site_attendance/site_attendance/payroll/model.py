from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from ..core.enums import MileageSource, RateSource


@dataclass(frozen=True)
class WorkSegment:
    """A priced arrival->departure interval. Pay always uses the rounded instants."""

    site_id: Optional[int]
    arrival_event_id: int
    departure_event_id: int
    arrival_at: datetime
    departure_at: datetime
    arrival_rounded: datetime
    departure_rounded: datetime
    minutes: int
    hourly_rate: float
    rate_source: RateSource
    pay: float
    work_description: Optional[str] = None

    @property
    def hours(self) -> float:
        return self.minutes / 60


@dataclass(frozen=True)
class OffsiteItem:
    """Self-reported off-site hours, paid as entered (never rounded)."""

    event_id: int
    site_id: Optional[int]
    reason: str
    hours: float
    hourly_rate: float
    rate_source: RateSource
    pay: float


@dataclass(frozen=True)
class MileageItem:
    event_id: Optional[int]
    site_id: Optional[int]
    km: float
    km_rate: float
    rate_source: RateSource
    pay: float
    source: MileageSource


@dataclass(frozen=True)
class MaterialItem:
    event_id: int
    site_id: Optional[int]
    description: str
    amount: float


@dataclass(frozen=True)
class DaySummary:
    """Read-model for one worker and one civil day.

    Line items keep full precision; the totals are rounded half-up for output
    (money and hours to 2 places, km to 1 place).
    """

    worker_id: int
    day: date
    segments: tuple[WorkSegment, ...]
    offsite_items: tuple[OffsiteItem, ...]
    mileage_items: tuple[MileageItem, ...]
    material_items: tuple[MaterialItem, ...]
    event_ids: tuple[int, ...]
    unpaid_event_ids: tuple[int, ...]

    work_hours: float
    offsite_hours: float
    hours: float
    hours_pay: float
    km: float
    km_pay: float
    km_source: MileageSource
    material: float
    total: float
    paid: bool

    first_arrival: Optional[datetime] = None
    last_departure: Optional[datetime] = None
    has_open_arrival: bool = False


@dataclass(frozen=True)
class SiteDay:
    day: date
    segments: tuple[WorkSegment, ...]
    offsite_items: tuple[OffsiteItem, ...]
    mileage_items: tuple[MileageItem, ...]
    material_items: tuple[MaterialItem, ...]
    km: float
    km_amount: float
    material_amount: float
    day_total: float


@dataclass(frozen=True)
class SiteSummary:
    """Per-site bucket (``site_id is None`` = unassigned) over a reporting window."""

    site_id: Optional[int]
    site_name: str
    days: tuple[SiteDay, ...]
    hours: float
    labor_amount: float
    offsite_hours: float
    offsite_amount: float
    km: float
    travel_amount: float
    material_amount: float
    total: float
