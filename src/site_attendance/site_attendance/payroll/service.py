from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Optional

import structlog

from ..attendance.repository import EventStore
from ..common.civil_time import CivilClock, default_clock
from ..common.datetime_utils import now_utc
from ..core.constants import MAX_REPORT_DAYS
from ..core.exceptions import BusinessRuleError, NotFoundError, ValidationError
from ..sites.repository import SiteRepository
from ..workers.model import Worker
from ..workers.repository import WorkerRepository
from .aggregator import summarize_days, summarize_sites
from .calculator.base import PayrollCalculator
from .calculator.half_hour_calculator import HalfHourPayrollCalculator
from .model import DaySummary, SiteSummary
from .rates import RateResolver
from .repository import TripDistanceSource

log = structlog.get_logger(__name__)


class PayrollReportService:
    def __init__(
        self,
        events: EventStore,
        workers: WorkerRepository,
        sites: SiteRepository,
        *,
        trips: Optional[TripDistanceSource] = None,
        calculator: Optional[PayrollCalculator] = None,
        clock: Optional[CivilClock] = None,
    ):
        self._events = events
        self._workers = workers
        self._sites = sites
        self._trips = trips
        self._clock = clock or default_clock()
        self._calculator = calculator or HalfHourPayrollCalculator(self._clock)

    def _get_worker(self, worker_id: int) -> Worker:
        worker = self._workers.get_by_id(int(worker_id))
        if not worker:
            raise NotFoundError("Worker not found")
        return worker

    def build_day_summaries(self, worker_id: int, *, start: date, end: date) -> list[DaySummary]:
        """Priced days of one worker within ``[start, end]``, newest day first.

        Events are loaded with one civil day of margin on both sides so that a
        segment crossing midnight is paired before the window is cut.
        """
        if end < start:
            raise ValidationError("End date must not be before start date")
        if (end - start).days + 1 > MAX_REPORT_DAYS:
            raise ValidationError(f"Report window is limited to {MAX_REPORT_DAYS} days")

        worker = self._get_worker(worker_id)
        resolver = RateResolver(self._workers.list_rate_overrides(worker.worker_id))

        load_start, _ = self._clock.day_bounds(start - timedelta(days=1))
        _, load_end = self._clock.day_bounds(end + timedelta(days=1))
        events = self._events.list_for_worker(worker.worker_id, start=load_start, end=load_end)

        trip_km = {}
        if self._trips is not None:
            trip_km = self._trips.km_by_day(worker.worker_id, start=start, end=end)

        days = summarize_days(
            events,
            worker=worker,
            resolver=resolver,
            calculator=self._calculator,
            clock=self._clock,
            trip_km_by_day=trip_km,
        )
        out = [d for d in days if start <= d.day <= end]
        out.sort(key=lambda d: d.day, reverse=True)
        return out

    def build_site_summaries(self, worker_id: int, *, start: date, end: date) -> list[SiteSummary]:
        days = self.build_day_summaries(worker_id, start=start, end=end)
        return summarize_sites(days, self._sites.get_names())

    def mark_day_paid(self, worker_id: int, day: date, *, paid_by: int, now: datetime | None = None) -> int:
        """Mark every unpaid event of one civil day paid, all or nothing.

        Returns the number of events marked; 0 when the day was already fully paid.
        """
        now = now or now_utc()
        summary = next(iter(self.build_day_summaries(worker_id, start=day, end=day)), None)
        if summary is None or not summary.event_ids:
            raise BusinessRuleError("No attendance events for this day")
        if not summary.unpaid_event_ids:
            return 0

        marked = self._events.mark_paid(
            worker_id=int(worker_id),
            event_ids=summary.unpaid_event_ids,
            paid_by=int(paid_by),
            paid_at=now,
        )
        if marked != len(summary.unpaid_event_ids):
            log.warning(
                "mark_paid_conflict",
                worker_id=worker_id,
                day=day.isoformat(),
                expected=len(summary.unpaid_event_ids),
                marked=marked,
            )
            raise BusinessRuleError("The day changed while it was being marked paid, reload and try again")

        log.info("day_marked_paid", worker_id=worker_id, day=day.isoformat(), events=marked, paid_by=paid_by)
        return marked
