from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..common.datetime_utils import ensure_utc
from .connection import DatabaseConnection


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    """One transaction: commit when the block finishes, roll back and re-raise on error."""
    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def utc_or_none(value: Optional[datetime]) -> Optional[datetime]:
    """DATETIME columns hold naive UTC; hand them to the domain as aware UTC."""
    if value is None:
        return None
    return ensure_utc(value)


def float_or_none(value: Any) -> Optional[float]:
    # DECIMAL columns come back as decimal.Decimal
    if value is None:
        return None
    return float(value)
