from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, float_or_none
from .model import RateOverride, Worker
from .repository import WorkerRepository


class MySQLWorkerRepository(WorkerRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, worker_id: int) -> Optional[Worker]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT worker_id, name, hourly_rate, km_rate, is_active FROM workers WHERE worker_id=%s",
                (int(worker_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return Worker(
                worker_id=int(r["worker_id"]),
                name=r["name"],
                hourly_rate=float_or_none(r.get("hourly_rate")),
                km_rate=float_or_none(r.get("km_rate")),
                is_active=bool(r.get("is_active", 1)),
            )

    def list_rate_overrides(self, worker_id: int) -> Sequence[RateOverride]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT worker_id, site_id, hourly_rate, km_rate
                FROM worker_site_rates
                WHERE worker_id=%s
                """,
                (int(worker_id),),
            )
            return [
                RateOverride(
                    worker_id=int(r["worker_id"]),
                    site_id=int(r["site_id"]),
                    hourly_rate=float(r["hourly_rate"]),
                    km_rate=float(r["km_rate"]),
                )
                for r in fetchall(cur)
            ]
