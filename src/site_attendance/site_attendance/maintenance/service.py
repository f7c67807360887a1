"""Repair of ARRIVAL instants shifted by about one hour.

An upstream defect stored some ARRIVALs one hour off. The instant the worker
saw is preserved on the close request created for that shift, so an ARRIVAL of
the same worker, site and civil day whose instant differs from it by
3500-3700 seconds is moved back onto the close request's instant.
"""
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional

import structlog

from ..attendance.repository import EventStore
from ..common.civil_time import CivilClock, default_clock
from ..common.datetime_utils import ensure_utc, now_utc
from ..core.constants import DEFAULT_REPAIR_WINDOW_DAYS, REPAIR_MAX_OFFSET_SECONDS, REPAIR_MIN_OFFSET_SECONDS
from ..core.enums import EventKind
from ..core.exceptions import ValidationError
from ..requests.repository import CloseRequestRepository

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class RepairReport:
    scanned: int
    matched: int
    fixed: int


class RepairService:
    def __init__(
        self,
        events: EventStore,
        requests: CloseRequestRepository,
        *,
        clock: Optional[CivilClock] = None,
        default_window_days: int = DEFAULT_REPAIR_WINDOW_DAYS,
    ):
        self._events = events
        self._requests = requests
        self._clock = clock or default_clock()
        self._default_window_days = int(default_window_days)

    def run(self, window_days: Optional[int] = None, *, now: datetime | None = None) -> RepairReport:
        window_days = self._default_window_days if window_days is None else int(window_days)
        if window_days <= 0:
            raise ValidationError("Repair window must be at least one day")

        now = ensure_utc(now or now_utc())
        since = now - timedelta(days=window_days)

        index: dict[tuple[int, Optional[int], date], list[datetime]] = defaultdict(list)
        for r in self._requests.list_with_arrival_since(since):
            arrival_at = ensure_utc(r.arrival_at)
            index[(r.worker_id, r.site_id, self._clock.civil_day(arrival_at))].append(arrival_at)

        scanned = matched = fixed = 0
        for e in self._events.list_by_kind_since(EventKind.ARRIVAL, since):
            if e.kind != EventKind.ARRIVAL:
                continue
            scanned += 1
            occurred_at = ensure_utc(e.occurred_at)
            candidates = index.get((e.worker_id, e.site_id, self._clock.civil_day(occurred_at)), [])

            best: Optional[datetime] = None
            best_gap = None
            for target in candidates:
                diff = abs((occurred_at - target).total_seconds())
                if REPAIR_MIN_OFFSET_SECONDS <= diff <= REPAIR_MAX_OFFSET_SECONDS:
                    gap = abs(diff - 3600)
                    if best_gap is None or gap < best_gap:
                        best, best_gap = target, gap
            if best is None:
                continue

            matched += 1
            if self._events.correct_instant(e.event_id, occurred_at=best, civil_day=self._clock.civil_day(best)):
                fixed += 1
                log.info(
                    "arrival_instant_repaired",
                    event_id=e.event_id,
                    worker_id=e.worker_id,
                    old=occurred_at.isoformat(),
                    new=best.isoformat(),
                )
            else:
                log.warning("arrival_repair_skipped", event_id=e.event_id, worker_id=e.worker_id)

        log.info("repair_finished", window_days=window_days, scanned=scanned, matched=matched, fixed=fixed)
        return RepairReport(scanned=scanned, matched=matched, fixed=fixed)
