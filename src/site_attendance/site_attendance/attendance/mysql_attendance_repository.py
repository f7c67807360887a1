from __future__ import annotations

from datetime import date, datetime
from typing import Any, Mapping, Optional, Sequence

from ..common.datetime_utils import to_db_utc
from ..core.enums import EventKind
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, float_or_none, utc_or_none
from .model import EDITABLE_FIELDS, AttendanceEvent, NewAttendanceEvent
from .repository import EventStore

_COLUMNS = """
    event_id, worker_id, site_id, kind, occurred_at, civil_day,
    work_description, km, offsite_reason, offsite_hours,
    material_description, material_amount,
    is_paid, paid_at, paid_by, edited_at, edited_by, lat, lng, accuracy_m, distance_m
"""

_EDITABLE_COLUMNS = {name for names in EDITABLE_FIELDS.values() for name in names}


def _to_event(r: dict) -> AttendanceEvent:
    return AttendanceEvent(
        event_id=int(r["event_id"]),
        worker_id=int(r["worker_id"]),
        site_id=int(r["site_id"]) if r.get("site_id") is not None else None,
        kind=EventKind(r["kind"]),
        occurred_at=utc_or_none(r["occurred_at"]),
        civil_day=r.get("civil_day"),
        work_description=r.get("work_description"),
        km=float_or_none(r.get("km")),
        offsite_reason=r.get("offsite_reason"),
        offsite_hours=float_or_none(r.get("offsite_hours")),
        material_description=r.get("material_description"),
        material_amount=float_or_none(r.get("material_amount")),
        is_paid=bool(r.get("is_paid")),
        paid_at=utc_or_none(r.get("paid_at")),
        paid_by=r.get("paid_by"),
        edited_at=utc_or_none(r.get("edited_at")),
        edited_by=r.get("edited_by"),
        lat=r.get("lat"),
        lng=r.get("lng"),
        accuracy_m=r.get("accuracy_m"),
        distance_m=r.get("distance_m"),
    )


def insert_event(cur, event: NewAttendanceEvent) -> int:
    cur.execute(
        """
        INSERT INTO attendance_events(
            worker_id, site_id, kind, occurred_at, civil_day,
            work_description, km, offsite_reason, offsite_hours,
            material_description, material_amount,
            lat, lng, accuracy_m, distance_m
        )
        VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
        """,
        (
            int(event.worker_id),
            event.site_id,
            event.kind.value,
            to_db_utc(event.occurred_at),
            event.civil_day,
            event.work_description,
            event.km,
            event.offsite_reason,
            event.offsite_hours,
            event.material_description,
            event.material_amount,
            event.lat,
            event.lng,
            event.accuracy_m,
            event.distance_m,
        ),
    )
    return int(cur.lastrowid)


def latest_instants(cur, worker_id: int) -> tuple[Optional[datetime], Optional[datetime]]:
    """Latest ARRIVAL and DEPARTURE instants of one worker (aware UTC or None)."""
    cur.execute(
        """
        SELECT
            (SELECT MAX(occurred_at) FROM attendance_events WHERE worker_id=%s AND kind='ARRIVAL') AS last_in,
            (SELECT MAX(occurred_at) FROM attendance_events WHERE worker_id=%s AND kind='DEPARTURE') AS last_out
        """,
        (int(worker_id), int(worker_id)),
    )
    r = fetchone(cur) or {}
    return utc_or_none(r.get("last_in")), utc_or_none(r.get("last_out"))


class MySQLAttendanceRepository(EventStore):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, event_id: int) -> Optional[AttendanceEvent]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM attendance_events WHERE event_id=%s", (int(event_id),))
            r = fetchone(cur)
            return _to_event(r) if r else None

    def get_latest(self, worker_id: int, kind: EventKind) -> Optional[AttendanceEvent]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_events
                WHERE worker_id=%s AND kind=%s
                ORDER BY occurred_at DESC, event_id DESC
                LIMIT 1
                """,
                (int(worker_id), kind.value),
            )
            r = fetchone(cur)
            return _to_event(r) if r else None

    def list_for_worker(self, worker_id: int, *, start: datetime, end: datetime) -> Sequence[AttendanceEvent]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_events
                WHERE worker_id=%s AND occurred_at >= %s AND occurred_at < %s
                ORDER BY occurred_at ASC, event_id ASC
                """,
                (int(worker_id), to_db_utc(start), to_db_utc(end)),
            )
            return [_to_event(r) for r in fetchall(cur)]

    def list_by_kind_since(self, kind: EventKind, since: datetime) -> Sequence[AttendanceEvent]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM attendance_events
                WHERE kind=%s AND occurred_at >= %s
                ORDER BY occurred_at DESC
                """,
                (kind.value, to_db_utc(since)),
            )
            return [_to_event(r) for r in fetchall(cur)]

    def append(self, event: NewAttendanceEvent) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            return insert_event(cur, event)

    def append_guarded(self, event: NewAttendanceEvent, *, expect_open: bool) -> Optional[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            # Row lock on the worker serializes concurrent captures of the same worker.
            cur.execute("SELECT worker_id FROM workers WHERE worker_id=%s FOR UPDATE", (int(event.worker_id),))
            if not fetchone(cur):
                return None
            last_in, last_out = latest_instants(cur, event.worker_id)
            is_open = last_in is not None and (last_out is None or last_in > last_out)
            if is_open != expect_open:
                return None
            return insert_event(cur, event)

    def update_details(
        self, event_id: int, changes: Mapping[str, Any], *, edited_by: int, edited_at: datetime
    ) -> bool:
        cols = [c for c in changes if c in _EDITABLE_COLUMNS]
        if not cols:
            return False
        assignments = ", ".join(f"{c}=%s" for c in cols)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                UPDATE attendance_events
                SET {assignments}, edited_by=%s, edited_at=%s
                WHERE event_id=%s AND is_paid=0
                """,
                tuple(changes[c] for c in cols) + (int(edited_by), to_db_utc(edited_at), int(event_id)),
            )
            return cur.rowcount > 0

    def correct_instant(self, event_id: int, *, occurred_at: datetime, civil_day: Optional[date]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE attendance_events SET occurred_at=%s, civil_day=%s WHERE event_id=%s",
                (to_db_utc(occurred_at), civil_day, int(event_id)),
            )
            return cur.rowcount > 0

    def mark_paid(self, *, worker_id: int, event_ids: Sequence[int], paid_by: int, paid_at: datetime) -> int:
        ids = [int(i) for i in event_ids]
        if not ids:
            return 0
        placeholders = ",".join(["%s"] * len(ids))
        with db_cursor(self._conn_factory) as (conn, cur):
            cur.execute(
                f"""
                UPDATE attendance_events
                SET is_paid=1, paid_at=%s, paid_by=%s
                WHERE worker_id=%s AND is_paid=0 AND event_id IN ({placeholders})
                """,
                (to_db_utc(paid_at), int(paid_by), int(worker_id), *ids),
            )
            if cur.rowcount != len(ids):
                conn.rollback()
                return 0
            return len(ids)
