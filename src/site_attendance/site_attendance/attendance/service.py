from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional

import structlog

from ..common.civil_time import CivilClock, default_clock
from ..common.datetime_utils import ensure_utc, now_utc
from ..common.validators import optional_number, optional_text, require_coordinates, require_length, require_number
from ..core.constants import (
    MAX_KM,
    MAX_MATERIAL_AMOUNT,
    MAX_MATERIAL_DESCRIPTION,
    MAX_OFFSITE_HOURS,
    MAX_OFFSITE_REASON,
    MAX_WORK_DESCRIPTION,
)
from ..core.enums import EventKind, SiteStatus
from ..core.exceptions import AuthorizationError, BusinessRuleError, NotFoundError, ValidationError
from ..sites.geofence import GeofenceValidator
from ..sites.model import GeoPoint, Site
from ..sites.repository import SiteRepository
from ..workers.model import Worker
from ..workers.repository import WorkerRepository
from .model import EDITABLE_FIELDS, AttendanceEvent, AttendanceState, NewAttendanceEvent
from .repository import EventStore

log = structlog.get_logger(__name__)


def find_open_arrival(store: EventStore, worker_id: int) -> Optional[AttendanceEvent]:
    """The ARRIVAL of the worker's open shift, if any.

    A shift is open when the latest ARRIVAL is strictly later than the latest DEPARTURE.
    """
    latest_in = store.get_latest(worker_id, EventKind.ARRIVAL)
    if latest_in is None:
        return None
    latest_out = store.get_latest(worker_id, EventKind.DEPARTURE)
    if latest_out is not None and latest_out.occurred_at >= latest_in.occurred_at:
        return None
    return latest_in


def _offsite_hours(value) -> float:
    hours = require_number(value, "Off-site hours", minimum=0, maximum=MAX_OFFSITE_HOURS)
    if hours <= 0:
        raise ValidationError("Off-site hours must be greater than 0")
    return hours


_FIELD_RULES = {
    "work_description": lambda v: require_length(v, "Work description", 2, MAX_WORK_DESCRIPTION),
    "km": lambda v: optional_number(v, "Km", minimum=0, maximum=MAX_KM),
    "offsite_reason": lambda v: require_length(v, "Off-site reason", 2, MAX_OFFSITE_REASON),
    "offsite_hours": _offsite_hours,
    "material_description": lambda v: optional_text(v, "Material description", MAX_MATERIAL_DESCRIPTION),
    "material_amount": lambda v: optional_number(v, "Material amount", minimum=0, maximum=MAX_MATERIAL_AMOUNT),
}


class AttendanceService:
    """Event capture: ARRIVAL, DEPARTURE and OFFSITE entries of one worker."""

    def __init__(
        self,
        events: EventStore,
        workers: WorkerRepository,
        sites: SiteRepository,
        *,
        geofence: Optional[GeofenceValidator] = None,
        clock: Optional[CivilClock] = None,
    ):
        self._events = events
        self._workers = workers
        self._sites = sites
        self._geofence = geofence or GeofenceValidator()
        self._clock = clock or default_clock()

    def _get_active_worker(self, worker_id: int) -> Worker:
        worker = self._workers.get_by_id(int(worker_id))
        if not worker:
            raise NotFoundError("Worker not found")
        if not worker.is_active:
            raise BusinessRuleError("Worker account is inactive")
        return worker

    def _get_site(self, site_id: Optional[int]) -> Site:
        if site_id is None:
            raise ValidationError("Site is required")
        site = self._sites.get_by_id(int(site_id))
        if not site:
            raise NotFoundError("Site not found")
        return site

    @staticmethod
    def _point(point: GeoPoint) -> GeoPoint:
        lat, lng = require_coordinates(point.lat, point.lng)
        accuracy = optional_number(point.accuracy_m, "Accuracy", minimum=0, maximum=float("inf"))
        return GeoPoint(lat=lat, lng=lng, accuracy_m=accuracy)

    def get_state(self, worker_id: int) -> AttendanceState:
        open_in = find_open_arrival(self._events, int(worker_id))
        if open_in is None:
            return AttendanceState(is_open=False)
        return AttendanceState(is_open=True, open_site_id=open_in.site_id, open_since=open_in.occurred_at)

    def record_arrival(self, worker_id: int, site_id: int, point: GeoPoint, *, now: datetime | None = None) -> int:
        now = ensure_utc(now or now_utc())
        worker = self._get_active_worker(worker_id)
        site = self._get_site(site_id)
        if site.status == SiteStatus.ARCHIVED:
            raise BusinessRuleError("Site is archived")

        point = self._point(point)
        decision = self._geofence.require_inside(point, site)

        if find_open_arrival(self._events, worker.worker_id) is not None:
            raise BusinessRuleError("You are already on shift, record a departure first")

        event_id = self._events.append_guarded(
            NewAttendanceEvent(
                worker_id=worker.worker_id,
                site_id=site.site_id,
                kind=EventKind.ARRIVAL,
                occurred_at=now,
                civil_day=self._clock.civil_day(now),
                lat=point.lat,
                lng=point.lng,
                accuracy_m=point.accuracy_m,
                distance_m=decision.distance_m,
            ),
            expect_open=False,
        )
        if event_id is None:
            raise BusinessRuleError("You are already on shift, record a departure first")

        log.info("arrival_recorded", worker_id=worker.worker_id, site_id=site.site_id, event_id=event_id)
        return event_id

    def record_departure(
        self,
        worker_id: int,
        point: GeoPoint,
        *,
        work_description: str,
        site_id: Optional[int] = None,
        km=None,
        material_description: Optional[str] = None,
        material_amount=None,
        now: datetime | None = None,
    ) -> int:
        now = ensure_utc(now or now_utc())
        worker = self._get_active_worker(worker_id)

        open_in = find_open_arrival(self._events, worker.worker_id)
        if open_in is None:
            raise BusinessRuleError("No open arrival to close")

        site = self._get_site(site_id if site_id is not None else open_in.site_id)
        if site.status == SiteStatus.ARCHIVED:
            raise BusinessRuleError("Site is archived")
        if site.status == SiteStatus.PENDING:
            raise BusinessRuleError("Site is not approved yet")

        description = require_length(work_description, "Work description", 2, MAX_WORK_DESCRIPTION)
        km_value = optional_number(km, "Km", minimum=0, maximum=MAX_KM)
        material_text = optional_text(material_description, "Material description", MAX_MATERIAL_DESCRIPTION)
        material_value = optional_number(material_amount, "Material amount", minimum=0, maximum=MAX_MATERIAL_AMOUNT)

        point = self._point(point)
        decision = self._geofence.require_inside(point, site)

        event_id = self._events.append_guarded(
            NewAttendanceEvent(
                worker_id=worker.worker_id,
                site_id=site.site_id,
                kind=EventKind.DEPARTURE,
                occurred_at=now,
                civil_day=self._clock.civil_day(now),
                work_description=description,
                km=km_value,
                material_description=material_text,
                material_amount=material_value,
                lat=point.lat,
                lng=point.lng,
                accuracy_m=point.accuracy_m,
                distance_m=decision.distance_m,
            ),
            expect_open=True,
        )
        if event_id is None:
            raise BusinessRuleError("No open arrival to close")

        log.info("departure_recorded", worker_id=worker.worker_id, site_id=site.site_id, event_id=event_id)
        return event_id

    def record_offsite(
        self,
        worker_id: int,
        *,
        reason: str,
        hours,
        site_id: Optional[int] = None,
        material_description: Optional[str] = None,
        material_amount=None,
        now: datetime | None = None,
    ) -> int:
        """Off-site work is declared, not located: no geofence and no pairing."""
        now = ensure_utc(now or now_utc())
        worker = self._get_active_worker(worker_id)
        if site_id is not None:
            site = self._get_site(site_id)
            if site.status == SiteStatus.ARCHIVED:
                raise BusinessRuleError("Site is archived")

        event_id = self._events.append(
            NewAttendanceEvent(
                worker_id=worker.worker_id,
                site_id=int(site_id) if site_id is not None else None,
                kind=EventKind.OFFSITE,
                occurred_at=now,
                civil_day=self._clock.civil_day(now),
                offsite_reason=require_length(reason, "Off-site reason", 2, MAX_OFFSITE_REASON),
                offsite_hours=_offsite_hours(hours),
                material_description=optional_text(material_description, "Material description", MAX_MATERIAL_DESCRIPTION),
                material_amount=optional_number(material_amount, "Material amount", minimum=0, maximum=MAX_MATERIAL_AMOUNT),
            )
        )
        log.info("offsite_recorded", worker_id=worker.worker_id, site_id=site_id, event_id=event_id)
        return event_id

    def edit_event(
        self, worker_id: int, event_id: int, changes: Mapping[str, Any], *, now: datetime | None = None
    ) -> bool:
        """Worker edit of descriptive fields on their own unpaid event.

        Fields that do not apply to the event kind are ignored; instants, site and
        kind are never editable.
        """
        event = self._get_event(event_id)
        if event.worker_id != int(worker_id):
            raise AuthorizationError("You can only edit your own events")
        return self._apply_edit(event, changes, edited_by=int(worker_id), now=now)

    def admin_edit_event(
        self, event_id: int, changes: Mapping[str, Any], *, edited_by: int, now: datetime | None = None
    ) -> bool:
        """Administrator correction of any worker's unpaid event, same fields as the worker edit."""
        event = self._get_event(event_id)
        return self._apply_edit(event, changes, edited_by=int(edited_by), now=now)

    def _get_event(self, event_id: int) -> AttendanceEvent:
        event = self._events.get_by_id(int(event_id))
        if not event:
            raise NotFoundError("Event not found")
        return event

    def _apply_edit(
        self, event: AttendanceEvent, changes: Mapping[str, Any], *, edited_by: int, now: datetime | None
    ) -> bool:
        if event.is_paid:
            raise BusinessRuleError("Paid events can no longer be edited")

        allowed = EDITABLE_FIELDS.get(event.kind, ())
        cleaned = {name: _FIELD_RULES[name](changes[name]) for name in allowed if name in changes}
        if not cleaned:
            raise ValidationError("Nothing to update")

        ok = self._events.update_details(
            event.event_id, cleaned, edited_by=edited_by, edited_at=ensure_utc(now or now_utc())
        )
        if ok:
            log.info(
                "event_edited",
                worker_id=event.worker_id,
                event_id=event.event_id,
                edited_by=edited_by,
                fields=sorted(cleaned),
            )
        return ok
