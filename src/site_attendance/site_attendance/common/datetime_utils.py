from __future__ import annotations

from datetime import date, datetime

import pytz


def parse_iso_date(value: str) -> date:
    """Parse YYYY-MM-DD string into date."""
    return datetime.strptime(value, "%Y-%m-%d").date()


def now_utc() -> datetime:
    """Current instant (timezone-aware UTC).

    Note: Wrapped so tests can patch/mocked easier.
    """
    return datetime.now(pytz.UTC)


def ensure_utc(value: datetime) -> datetime:
    """Treat naive datetimes (as MySQL DATETIME columns return them) as UTC."""
    if value.tzinfo is None:
        return pytz.UTC.localize(value)
    return value.astimezone(pytz.UTC)


def to_db_utc(value: datetime) -> datetime:
    """Naive UTC datetime for storage in DATETIME columns."""
    return ensure_utc(value).replace(tzinfo=None)
