from __future__ import annotations

import dataclasses
from datetime import datetime

import pytest
import pytz

from src.site_attendance.site_attendance.attendance.model import AttendanceEvent
from src.site_attendance.site_attendance.common.civil_time import CivilClock
from src.site_attendance.site_attendance.core.enums import CloseRequestStatus, EventKind, SiteStatus
from src.site_attendance.site_attendance.requests.model import CloseRequest
from src.site_attendance.site_attendance.sites.model import Site
from src.site_attendance.site_attendance.workers.model import RateOverride, Worker

PRAGUE = pytz.timezone("Europe/Prague")

SITE_LAT = 50.0755
SITE_LNG = 14.4378


def local_instant(year, month, day, hour, minute, second=0) -> datetime:
    """UTC instant of a Prague wall-clock time."""
    return PRAGUE.localize(datetime(year, month, day, hour, minute, second)).astimezone(pytz.UTC)


class FakeEventStore:
    def __init__(self):
        self._events: dict[int, AttendanceEvent] = {}
        self._next_id = 1
        self.paid_calls = []

    # test helper
    def add(self, kind, occurred_at, *, worker_id=1, site_id=10, **fields) -> AttendanceEvent:
        e = AttendanceEvent(
            event_id=self._next_id,
            worker_id=worker_id,
            site_id=site_id,
            kind=kind,
            occurred_at=occurred_at,
            **fields,
        )
        self._events[e.event_id] = e
        self._next_id += 1
        return e

    def all(self) -> list[AttendanceEvent]:
        return sorted(self._events.values(), key=lambda e: (e.occurred_at, e.event_id))

    def get_by_id(self, event_id):
        return self._events.get(int(event_id))

    def get_latest(self, worker_id, kind):
        rows = [e for e in self.all() if e.worker_id == worker_id and e.kind == kind]
        return rows[-1] if rows else None

    def list_for_worker(self, worker_id, *, start, end):
        return [e for e in self.all() if e.worker_id == worker_id and start <= e.occurred_at < end]

    def list_by_kind_since(self, kind, since):
        return [e for e in self.all() if e.kind == kind and e.occurred_at >= since]

    def append(self, event):
        e = AttendanceEvent(event_id=self._next_id, **dataclasses.asdict(event))
        self._events[e.event_id] = e
        self._next_id += 1
        return e.event_id

    def append_guarded(self, event, *, expect_open):
        last_in = self.get_latest(event.worker_id, EventKind.ARRIVAL)
        last_out = self.get_latest(event.worker_id, EventKind.DEPARTURE)
        is_open = last_in is not None and (last_out is None or last_in.occurred_at > last_out.occurred_at)
        if is_open != expect_open:
            return None
        return self.append(event)

    def update_details(self, event_id, changes, *, edited_by, edited_at):
        e = self._events.get(int(event_id))
        if not e or e.is_paid:
            return False
        self._events[e.event_id] = dataclasses.replace(e, **dict(changes), edited_by=edited_by, edited_at=edited_at)
        return True

    def correct_instant(self, event_id, *, occurred_at, civil_day):
        e = self._events.get(int(event_id))
        if not e:
            return False
        self._events[e.event_id] = dataclasses.replace(e, occurred_at=occurred_at, civil_day=civil_day)
        return True

    def mark_paid(self, *, worker_id, event_ids, paid_by, paid_at):
        self.paid_calls.append(tuple(event_ids))
        rows = [self._events.get(int(i)) for i in event_ids]
        if any(e is None or e.is_paid or e.worker_id != worker_id for e in rows):
            return 0
        for e in rows:
            self._events[e.event_id] = dataclasses.replace(e, is_paid=True, paid_at=paid_at, paid_by=paid_by)
        return len(rows)


class FakeWorkerRepo:
    def __init__(self, workers, overrides=()):
        self._workers = {w.worker_id: w for w in workers}
        self._overrides = list(overrides)

    def get_by_id(self, worker_id):
        return self._workers.get(int(worker_id))

    def list_rate_overrides(self, worker_id):
        return [o for o in self._overrides if o.worker_id == worker_id]


class FakeSiteRepo:
    def __init__(self, sites):
        self._sites = {s.site_id: s for s in sites}

    def get_by_id(self, site_id):
        return self._sites.get(int(site_id))

    def get_names(self):
        return {s.site_id: s.name for s in self._sites.values()}


class FakeCloseRequestRepo:
    def __init__(self, events: FakeEventStore):
        self._events = events
        self._rows: dict[int, CloseRequest] = {}
        self._next_id = 1

    def create(self, request):
        rid = self._next_id
        self._next_id += 1
        self._rows[rid] = CloseRequest(request_id=rid, status=CloseRequestStatus.PENDING, **dataclasses.asdict(request))
        return rid

    # test helper
    def put(self, **fields) -> CloseRequest:
        rid = self._next_id
        self._next_id += 1
        defaults = dict(
            worker_id=1,
            site_id=10,
            reported_time="16:00",
            forget_reason="Battery died",
            work_description="Formwork",
            status=CloseRequestStatus.PENDING,
            requested_at=fields.get("arrival_at"),
        )
        defaults.update(fields)
        self._rows[rid] = CloseRequest(request_id=rid, **defaults)
        return self._rows[rid]

    def get(self, request_id):
        return self._rows.get(int(request_id))

    def get_pending_for_worker(self, worker_id):
        rows = [r for r in self._rows.values() if r.worker_id == worker_id and r.status == CloseRequestStatus.PENDING]
        return rows[-1] if rows else None

    def list(self, *, status=None, worker_id=None, limit=200):
        rows = [
            r
            for r in self._rows.values()
            if (status is None or r.status == status) and (worker_id is None or r.worker_id == worker_id)
        ]
        return rows[:limit]

    def list_with_arrival_since(self, since):
        return [r for r in self._rows.values() if r.arrival_at >= since]

    def approve_with_departure(self, request_id, departure, *, decided_by, decided_at):
        req = self._rows.get(int(request_id))
        if not req or req.status != CloseRequestStatus.PENDING:
            return None
        last_in = self._events.get_latest(req.worker_id, EventKind.ARRIVAL)
        last_out = self._events.get_latest(req.worker_id, EventKind.DEPARTURE)
        if last_in is None or last_in.occurred_at != req.arrival_at:
            return None
        if last_out is not None and last_out.occurred_at >= req.arrival_at:
            return None
        event_id = self._events.append(departure)
        self._rows[req.request_id] = dataclasses.replace(
            req,
            status=CloseRequestStatus.APPROVED,
            decided_by=decided_by,
            decided_at=decided_at,
            departure_event_id=event_id,
        )
        return event_id

    def reject(self, request_id, *, decided_by, decided_at):
        req = self._rows.get(int(request_id))
        if not req or req.status != CloseRequestStatus.PENDING:
            return False
        self._rows[req.request_id] = dataclasses.replace(
            req, status=CloseRequestStatus.REJECTED, decided_by=decided_by, decided_at=decided_at
        )
        return True


class FakeTrips:
    def __init__(self, km_by_day=None):
        self._km = dict(km_by_day or {})

    def km_by_day(self, worker_id, *, start, end):
        return {d: km for d, km in self._km.items() if start <= d <= end}


@pytest.fixture
def clock():
    return CivilClock("Europe/Prague")


@pytest.fixture
def at():
    return local_instant


@pytest.fixture
def events():
    return FakeEventStore()


@pytest.fixture
def workers():
    return FakeWorkerRepo(
        [
            Worker(worker_id=1, name="Jan", hourly_rate=250, km_rate=8),
            Worker(worker_id=2, name="Petr", hourly_rate=200, km_rate=5),
            Worker(worker_id=3, name="Karel", hourly_rate=220, km_rate=6, is_active=False),
        ],
        overrides=[RateOverride(worker_id=2, site_id=11, hourly_rate=320, km_rate=10)],
    )


@pytest.fixture
def sites():
    return FakeSiteRepo(
        [
            Site(site_id=10, name="Alpha", lat=SITE_LAT, lng=SITE_LNG, radius_m=200),
            Site(site_id=11, name="Beta", lat=49.1951, lng=16.6068, radius_m=0),
            Site(site_id=12, name="Candidate", lat=SITE_LAT, lng=SITE_LNG, radius_m=200, status=SiteStatus.PENDING),
            Site(site_id=13, name="Closed", lat=SITE_LAT, lng=SITE_LNG, radius_m=200, status=SiteStatus.ARCHIVED),
        ]
    )


@pytest.fixture
def close_requests(events):
    return FakeCloseRequestRepo(events)


@pytest.fixture
def trips():
    return FakeTrips()
