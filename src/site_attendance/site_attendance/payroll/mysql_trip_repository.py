from __future__ import annotations

from datetime import date
from typing import Mapping

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .repository import TripDistanceSource


class MySQLTripRepository(TripDistanceSource):
    """Per-day kilometre totals from the ``trip_logs`` table."""

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def km_by_day(self, worker_id: int, *, start: date, end: date) -> Mapping[date, float]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT civil_day, SUM(km) AS km
                FROM trip_logs
                WHERE worker_id=%s AND civil_day BETWEEN %s AND %s
                GROUP BY civil_day
                """,
                (int(worker_id), start, end),
            )
            return {r["civil_day"]: float(r["km"] or 0) for r in fetchall(cur)}
