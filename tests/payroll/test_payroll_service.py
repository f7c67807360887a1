from datetime import date

import pytest

from src.site_attendance.site_attendance.attendance.service import AttendanceService
from src.site_attendance.site_attendance.core.enums import EventKind
from src.site_attendance.site_attendance.core.exceptions import BusinessRuleError, NotFoundError, ValidationError
from src.site_attendance.site_attendance.payroll.service import PayrollReportService
from src.site_attendance.site_attendance.sites.model import GeoPoint


@pytest.fixture
def service(events, workers, sites, trips, clock):
    return PayrollReportService(events, workers, sites, trips=trips, clock=clock)


def test_end_to_end_capture_and_day_total(events, workers, sites, service, clock, at):
    capture = AttendanceService(events, workers, sites, clock=clock)
    at_site = GeoPoint(lat=50.0755, lng=14.4378, accuracy_m=12)

    capture.record_arrival(1, 10, at_site, now=at(2026, 6, 10, 8, 7))
    capture.record_departure(
        1,
        at_site,
        work_description="Concrete pour",
        km=12,
        material_amount=150,
        now=at(2026, 6, 10, 16, 52),
    )

    (day,) = service.build_day_summaries(1, start=date(2026, 6, 10), end=date(2026, 6, 10))

    assert day.hours == 9.0
    assert day.hours_pay == 2250
    assert day.km_pay == 96
    assert day.material == 150
    assert day.total == 2496
    assert day.paid is False


def test_days_are_newest_first_and_cut_to_window(events, service, at):
    for d in (9, 10, 11, 12):
        events.add(EventKind.ARRIVAL, at(2026, 6, d, 8, 0))
        events.add(EventKind.DEPARTURE, at(2026, 6, d, 10, 0))

    days = service.build_day_summaries(1, start=date(2026, 6, 10), end=date(2026, 6, 11))

    assert [d.day for d in days] == [date(2026, 6, 11), date(2026, 6, 10)]


def test_segment_ending_after_window_is_still_paired(events, service, at):
    events.add(EventKind.ARRIVAL, at(2026, 6, 10, 22, 0))
    events.add(EventKind.DEPARTURE, at(2026, 6, 11, 2, 0))

    (day,) = service.build_day_summaries(1, start=date(2026, 6, 10), end=date(2026, 6, 10))

    assert day.work_hours == 4.0


def test_other_workers_events_are_ignored(events, service, at):
    events.add(EventKind.ARRIVAL, at(2026, 6, 10, 8, 0), worker_id=2)
    events.add(EventKind.DEPARTURE, at(2026, 6, 10, 12, 0), worker_id=2)

    assert service.build_day_summaries(1, start=date(2026, 6, 10), end=date(2026, 6, 10)) == []
    (day,) = service.build_day_summaries(2, start=date(2026, 6, 10), end=date(2026, 6, 10))
    assert day.hours_pay == 800


def test_trip_source_fills_days_without_manual_km(events, service, trips, at):
    trips._km[date(2026, 6, 10)] = 12.5
    events.add(EventKind.ARRIVAL, at(2026, 6, 10, 8, 0))
    events.add(EventKind.DEPARTURE, at(2026, 6, 10, 10, 0))

    (day,) = service.build_day_summaries(1, start=date(2026, 6, 10), end=date(2026, 6, 10))

    assert day.km == 12.5
    assert day.km_pay == 100


def test_site_summaries_use_site_names(events, service, at):
    events.add(EventKind.ARRIVAL, at(2026, 6, 10, 8, 0), site_id=10)
    events.add(EventKind.DEPARTURE, at(2026, 6, 10, 10, 0), site_id=10)

    (alpha,) = service.build_site_summaries(1, start=date(2026, 6, 10), end=date(2026, 6, 10))

    assert alpha.site_name == "Alpha"
    assert alpha.total == 500


def test_window_validation(service):
    with pytest.raises(ValidationError):
        service.build_day_summaries(1, start=date(2026, 6, 10), end=date(2026, 6, 9))
    with pytest.raises(ValidationError):
        service.build_day_summaries(1, start=date(2025, 1, 1), end=date(2026, 6, 9))


def test_unknown_worker(service):
    with pytest.raises(NotFoundError):
        service.build_day_summaries(99, start=date(2026, 6, 10), end=date(2026, 6, 10))


def test_mark_day_paid_marks_exactly_the_days_unpaid_events(events, service, at):
    a = events.add(EventKind.ARRIVAL, at(2026, 6, 10, 8, 0))
    d = events.add(EventKind.DEPARTURE, at(2026, 6, 10, 12, 0))
    other_day = events.add(EventKind.OFFSITE, at(2026, 6, 11, 9, 0), offsite_hours=1)

    marked = service.mark_day_paid(1, date(2026, 6, 10), paid_by=99, now=at(2026, 6, 20, 9, 0))

    assert marked == 2
    assert events.paid_calls == [(a.event_id, d.event_id)]
    assert events.get_by_id(a.event_id).paid_by == 99
    assert events.get_by_id(other_day.event_id).is_paid is False
    (day,) = service.build_day_summaries(1, start=date(2026, 6, 10), end=date(2026, 6, 10))
    assert day.paid is True


def test_mark_day_paid_skips_already_paid_events(events, service, at):
    events.add(EventKind.ARRIVAL, at(2026, 6, 10, 8, 0), is_paid=True)
    d = events.add(EventKind.DEPARTURE, at(2026, 6, 10, 12, 0))

    assert service.mark_day_paid(1, date(2026, 6, 10), paid_by=99) == 1
    assert events.paid_calls == [(d.event_id,)]
    assert service.mark_day_paid(1, date(2026, 6, 10), paid_by=99) == 0


def test_overnight_departure_is_paid_with_its_arrival_day(events, service, at):
    events.add(EventKind.ARRIVAL, at(2026, 6, 10, 22, 0))
    d = events.add(EventKind.DEPARTURE, at(2026, 6, 11, 2, 0))

    service.mark_day_paid(1, date(2026, 6, 10), paid_by=99)

    assert events.get_by_id(d.event_id).is_paid is True


def test_day_without_events_cannot_be_marked_paid(service):
    with pytest.raises(BusinessRuleError):
        service.mark_day_paid(1, date(2026, 6, 10), paid_by=99)


def test_mark_day_paid_fails_when_store_changed(events, service, at, monkeypatch):
    events.add(EventKind.ARRIVAL, at(2026, 6, 10, 8, 0))
    monkeypatch.setattr(events, "mark_paid", lambda **kwargs: 0)

    with pytest.raises(BusinessRuleError):
        service.mark_day_paid(1, date(2026, 6, 10), paid_by=99)
