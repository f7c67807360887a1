from __future__ import annotations

from typing import Mapping, Optional

from ..core.enums import SiteStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Site
from .repository import SiteRepository


class MySQLSiteRepository(SiteRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, site_id: int) -> Optional[Site]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT site_id, name, lat, lng, radius_m, status FROM sites WHERE site_id=%s",
                (int(site_id),),
            )
            r = fetchone(cur)
            if not r:
                return None
            return Site(
                site_id=int(r["site_id"]),
                name=r["name"],
                lat=float(r["lat"]),
                lng=float(r["lng"]),
                radius_m=int(r.get("radius_m") or 0),
                status=SiteStatus(r["status"]),
            )

    def get_names(self) -> Mapping[int, str]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT site_id, name FROM sites")
            return {int(r["site_id"]): r["name"] for r in fetchall(cur)}
