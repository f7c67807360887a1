from __future__ import annotations

from datetime import datetime
from typing import Optional, Sequence

from ..attendance.model import NewAttendanceEvent
from ..attendance.mysql_attendance_repository import insert_event, latest_instants
from ..common.datetime_utils import to_db_utc
from ..core.enums import CloseRequestStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, float_or_none, utc_or_none
from .model import CloseRequest, NewCloseRequest
from .repository import CloseRequestRepository

_COLUMNS = """
    request_id, worker_id, site_id, arrival_at, reported_time, forget_reason,
    work_description, km, material_description, material_amount,
    status, requested_at, decided_at, decided_by, departure_event_id
"""


def _to_request(r: dict) -> CloseRequest:
    return CloseRequest(
        request_id=int(r["request_id"]),
        worker_id=int(r["worker_id"]),
        site_id=int(r["site_id"]) if r.get("site_id") is not None else None,
        arrival_at=utc_or_none(r["arrival_at"]),
        reported_time=r["reported_time"],
        forget_reason=r["forget_reason"],
        work_description=r["work_description"],
        status=CloseRequestStatus(r["status"]),
        requested_at=utc_or_none(r["requested_at"]),
        km=float_or_none(r.get("km")),
        material_description=r.get("material_description"),
        material_amount=float_or_none(r.get("material_amount")),
        decided_at=utc_or_none(r.get("decided_at")),
        decided_by=r.get("decided_by"),
        departure_event_id=r.get("departure_event_id"),
    )


class MySQLRequestRepository(CloseRequestRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def create(self, request: NewCloseRequest) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO close_requests(
                    worker_id, site_id, arrival_at, reported_time, forget_reason,
                    work_description, km, material_description, material_amount,
                    status, requested_at
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(request.worker_id),
                    request.site_id,
                    to_db_utc(request.arrival_at),
                    request.reported_time,
                    request.forget_reason,
                    request.work_description,
                    request.km,
                    request.material_description,
                    request.material_amount,
                    CloseRequestStatus.PENDING.value,
                    to_db_utc(request.requested_at),
                ),
            )
            return int(cur.lastrowid)

    def get(self, request_id: int) -> Optional[CloseRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM close_requests WHERE request_id=%s", (int(request_id),))
            r = fetchone(cur)
            return _to_request(r) if r else None

    def get_pending_for_worker(self, worker_id: int) -> Optional[CloseRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM close_requests
                WHERE worker_id=%s AND status=%s
                ORDER BY requested_at DESC
                LIMIT 1
                """,
                (int(worker_id), CloseRequestStatus.PENDING.value),
            )
            r = fetchone(cur)
            return _to_request(r) if r else None

    def list(
        self,
        *,
        status: Optional[CloseRequestStatus] = None,
        worker_id: Optional[int] = None,
        limit: int = 200,
    ) -> Sequence[CloseRequest]:
        clauses = ["1=1"]
        params: list[object] = []

        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)
        if worker_id is not None:
            clauses.append("worker_id=%s")
            params.append(int(worker_id))

        where = " AND ".join(clauses)
        order = "ASC" if status == CloseRequestStatus.PENDING else "DESC"

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM close_requests
                WHERE {where}
                ORDER BY requested_at {order}
                LIMIT %s
                """,
                tuple(params + [int(limit)]),
            )
            return [_to_request(r) for r in fetchall(cur)]

    def list_with_arrival_since(self, since: datetime) -> Sequence[CloseRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM close_requests WHERE arrival_at >= %s ORDER BY arrival_at DESC",
                (to_db_utc(since),),
            )
            return [_to_request(r) for r in fetchall(cur)]

    def approve_with_departure(
        self,
        request_id: int,
        departure: NewAttendanceEvent,
        *,
        decided_by: int,
        decided_at: datetime,
    ) -> Optional[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT status, worker_id, arrival_at FROM close_requests WHERE request_id=%s FOR UPDATE",
                (int(request_id),),
            )
            r = fetchone(cur)
            if not r or r["status"] != CloseRequestStatus.PENDING.value:
                return None

            cur.execute("SELECT worker_id FROM workers WHERE worker_id=%s FOR UPDATE", (int(r["worker_id"]),))
            fetchone(cur)
            last_in, last_out = latest_instants(cur, r["worker_id"])
            arrival_at = utc_or_none(r["arrival_at"])
            if last_in != arrival_at or (last_out is not None and last_out >= arrival_at):
                return None

            event_id = insert_event(cur, departure)
            cur.execute(
                """
                UPDATE close_requests
                SET status=%s, decided_at=%s, decided_by=%s, departure_event_id=%s
                WHERE request_id=%s
                """,
                (
                    CloseRequestStatus.APPROVED.value,
                    to_db_utc(decided_at),
                    int(decided_by),
                    event_id,
                    int(request_id),
                ),
            )
            return event_id

    def reject(self, request_id: int, *, decided_by: int, decided_at: datetime) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE close_requests
                SET status=%s, decided_at=%s, decided_by=%s
                WHERE request_id=%s AND status=%s
                """,
                (
                    CloseRequestStatus.REJECTED.value,
                    to_db_utc(decided_at),
                    int(decided_by),
                    int(request_id),
                    CloseRequestStatus.PENDING.value,
                ),
            )
            return cur.rowcount > 0
