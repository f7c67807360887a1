from __future__ import annotations

import re
from datetime import date, datetime
from typing import Optional, Sequence

import structlog

from ..attendance.model import NewAttendanceEvent
from ..attendance.repository import EventStore
from ..attendance.service import find_open_arrival
from ..common.civil_time import CivilClock, default_clock
from ..common.datetime_utils import ensure_utc, now_utc
from ..common.rounding import round_to_half_hour
from ..common.validators import optional_number, optional_text, require_length
from ..core.constants import (
    MAX_FORGET_REASON,
    MAX_KM,
    MAX_MATERIAL_AMOUNT,
    MAX_MATERIAL_DESCRIPTION,
    MAX_REPORTED_TIME,
    MAX_WORK_DESCRIPTION,
)
from ..core.enums import CloseRequestStatus, EventKind
from ..core.exceptions import BusinessRuleError, NotFoundError
from .model import CloseRequest, NewCloseRequest
from .repository import CloseRequestRepository

log = structlog.get_logger(__name__)

_HH_MM = re.compile(r"^(\d{1,2}):(\d{2})$")
_CZECH = re.compile(r"^(\d{1,2})\.\s*(\d{1,2})\.\s*(\d{4})?\s+(\d{1,2}):(\d{2})$")
_EMBEDDED_HH_MM = re.compile(r"(?<!\d)(\d{1,2}):(\d{2})(?!\d)")


def _valid_clock(hour: int, minute: int) -> bool:
    return 0 <= hour <= 23 and 0 <= minute <= 59


def parse_reported_time(text: Optional[str], *, arrival_at: datetime, clock: CivilClock) -> Optional[datetime]:
    """Interpret a worker-typed departure time; None when nothing usable is found.

    Accepted, in order: ``HH:MM`` on the arrival's civil day, an ISO date-time
    (naive values are civil wall-clock time), ``D.M.[YYYY] HH:MM`` and finally
    any ``HH:MM`` embedded in longer text.
    """
    s = (text or "").strip()
    if not s:
        return None
    arrival_day = clock.civil_day(arrival_at)

    m = _HH_MM.match(s)
    if m and _valid_clock(int(m.group(1)), int(m.group(2))):
        return clock.to_instant(arrival_day, int(m.group(1)), int(m.group(2)))

    try:
        parsed = datetime.fromisoformat(s)
    except ValueError:
        parsed = None
    if parsed is not None:
        if parsed.tzinfo is None:
            return clock.to_instant(parsed.date(), parsed.hour, parsed.minute)
        return ensure_utc(parsed)

    m = _CZECH.match(s)
    if m:
        day_n, month_n, year_s, hour, minute = m.groups()
        try:
            day = date(int(year_s) if year_s else arrival_day.year, int(month_n), int(day_n))
        except ValueError:
            day = None
        if day is not None and _valid_clock(int(hour), int(minute)):
            return clock.to_instant(day, int(hour), int(minute))

    for m in _EMBEDDED_HH_MM.finditer(s):
        if _valid_clock(int(m.group(1)), int(m.group(2))):
            return clock.to_instant(arrival_day, int(m.group(1)), int(m.group(2)))

    return None


class CloseRequestService:
    """Administrator-mediated closing of a shift whose departure was never captured."""

    def __init__(
        self,
        requests: CloseRequestRepository,
        events: EventStore,
        *,
        clock: Optional[CivilClock] = None,
    ):
        self._requests = requests
        self._events = events
        self._clock = clock or default_clock()

    def create(
        self,
        worker_id: int,
        *,
        reported_time: str,
        forget_reason: str,
        work_description: str,
        km=None,
        material_description: Optional[str] = None,
        material_amount=None,
        now: datetime | None = None,
    ) -> int:
        now = ensure_utc(now or now_utc())
        reported = require_length(reported_time, "Reported time", 2, MAX_REPORTED_TIME)
        reason = require_length(forget_reason, "Reason", 3, MAX_FORGET_REASON)
        description = require_length(work_description, "Work description", 3, MAX_WORK_DESCRIPTION)
        km_value = optional_number(km, "Km", minimum=0, maximum=MAX_KM)
        material_text = optional_text(material_description, "Material description", MAX_MATERIAL_DESCRIPTION)
        material_value = optional_number(material_amount, "Material amount", minimum=0, maximum=MAX_MATERIAL_AMOUNT)

        open_in = find_open_arrival(self._events, int(worker_id))
        if open_in is None:
            raise BusinessRuleError("You have no open shift to close")
        if self._requests.get_pending_for_worker(int(worker_id)) is not None:
            raise BusinessRuleError("A close request is already waiting for approval")

        request_id = self._requests.create(
            NewCloseRequest(
                worker_id=int(worker_id),
                site_id=open_in.site_id,
                arrival_at=open_in.occurred_at,
                reported_time=reported,
                forget_reason=reason,
                work_description=description,
                requested_at=now,
                km=km_value,
                material_description=material_text,
                material_amount=material_value,
            )
        )
        log.info("close_request_created", worker_id=worker_id, request_id=request_id)
        return request_id

    def resolve_departure_time(self, req: CloseRequest, *, override: Optional[str], now: datetime) -> datetime:
        """Parsed, rounded and clamped into ``[arrival, now]``."""
        source = (override or "").strip() or req.reported_time
        parsed = parse_reported_time(source, arrival_at=req.arrival_at, clock=self._clock)
        if parsed is None:
            log.warning("reported_time_unparseable", request_id=req.request_id, reported_time=source)
            parsed = now

        out = round_to_half_hour(parsed, self._clock)
        arrival_at = ensure_utc(req.arrival_at)
        if out < arrival_at:
            out = arrival_at
        # never later than the approval instant itself, even when rounding would go up
        if out > now:
            out = now
        return out

    def approve(
        self,
        request_id: int,
        *,
        decided_by: int,
        override_time: Optional[str] = None,
        now: datetime | None = None,
    ) -> Optional[int]:
        """Emit the synthetic DEPARTURE and close the request.

        Returns the new event id, or None when the request was already decided.
        A request whose ARRIVAL is no longer the worker's open one (the shift
        was closed or a newer ARRIVAL exists) is rejected instead and None is
        returned.
        """
        now = ensure_utc(now or now_utc())
        req = self.get(request_id)
        if req.status != CloseRequestStatus.PENDING:
            log.info("close_request_already_decided", request_id=req.request_id, status=req.status.value)
            return None

        open_in = find_open_arrival(self._events, req.worker_id)
        if open_in is None or ensure_utc(open_in.occurred_at) != ensure_utc(req.arrival_at):
            self._requests.reject(req.request_id, decided_by=int(decided_by), decided_at=now)
            log.warning(
                "close_request_stale",
                request_id=req.request_id,
                worker_id=req.worker_id,
                arrival_at=ensure_utc(req.arrival_at).isoformat(),
                open_arrival_id=open_in.event_id if open_in else None,
            )
            return None

        out = self.resolve_departure_time(req, override=override_time, now=now)
        departure_id = self._requests.approve_with_departure(
            req.request_id,
            NewAttendanceEvent(
                worker_id=req.worker_id,
                site_id=req.site_id,
                kind=EventKind.DEPARTURE,
                occurred_at=out,
                civil_day=self._clock.civil_day(out),
                work_description=req.work_description,
                km=req.km,
                material_description=req.material_description,
                material_amount=req.material_amount,
            ),
            decided_by=int(decided_by),
            decided_at=now,
        )
        if departure_id is None:
            log.info("close_request_not_applied", request_id=req.request_id)
            return None

        log.info(
            "close_request_approved",
            request_id=req.request_id,
            worker_id=req.worker_id,
            departure_event_id=departure_id,
            departure_at=out.isoformat(),
        )
        return departure_id

    def reject(self, request_id: int, *, decided_by: int, now: datetime | None = None) -> bool:
        now = ensure_utc(now or now_utc())
        req = self.get(request_id)
        ok = self._requests.reject(req.request_id, decided_by=int(decided_by), decided_at=now)
        if ok:
            log.info("close_request_rejected", request_id=req.request_id, decided_by=decided_by)
        return ok

    def get(self, request_id: int) -> CloseRequest:
        req = self._requests.get(int(request_id))
        if not req:
            raise NotFoundError("Close request not found")
        return req

    def list_pending(self) -> Sequence[CloseRequest]:
        return self._requests.list(status=CloseRequestStatus.PENDING, limit=500)

    def list_for_worker(self, worker_id: int) -> Sequence[CloseRequest]:
        return self._requests.list(worker_id=int(worker_id), limit=200)
