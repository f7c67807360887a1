from datetime import date

from src.site_attendance.site_attendance.core.enums import EventKind, MileageSource, RateSource
from src.site_attendance.site_attendance.payroll.aggregator import summarize_days, summarize_sites
from src.site_attendance.site_attendance.payroll.calculator.half_hour_calculator import HalfHourPayrollCalculator
from src.site_attendance.site_attendance.payroll.rates import RateResolver
from src.site_attendance.site_attendance.workers.model import RateOverride, Worker

FOREMAN = Worker(worker_id=1, name="Jan", hourly_rate=300, km_rate=8)


def summarize(events, clock, *, worker=FOREMAN, overrides=(), trips=None):
    return summarize_days(
        events.all(),
        worker=worker,
        resolver=RateResolver(overrides),
        calculator=HalfHourPayrollCalculator(clock),
        clock=clock,
        trip_km_by_day=trips,
    )


def test_day_total_adds_segment_offsite_km_and_material(events, clock, at):
    events.add(EventKind.ARRIVAL, at(2026, 6, 10, 8, 5))
    events.add(EventKind.DEPARTURE, at(2026, 6, 10, 9, 55), km=10, material_amount=120, work_description="Rebar")
    events.add(EventKind.OFFSITE, at(2026, 6, 10, 11, 0), offsite_reason="Supplier", offsite_hours=1.5)

    (day,) = summarize(events, clock)

    assert day.day == date(2026, 6, 10)
    assert day.work_hours == 2.0
    assert day.offsite_hours == 1.5
    assert day.hours == 3.5
    assert day.hours_pay == 2.0 * 300 + 1.5 * 300
    assert day.km == 10 and day.km_pay == 80
    assert day.material == 120
    assert day.total == 2.0 * 300 + 1.5 * 300 + 10 * 8 + 120 == 1250


def test_segment_detail_keeps_raw_and_rounded_instants(events, clock, at):
    a = events.add(EventKind.ARRIVAL, at(2026, 6, 10, 8, 7))
    d = events.add(EventKind.DEPARTURE, at(2026, 6, 10, 16, 52))

    (day,) = summarize(events, clock)
    seg = day.segments[0]

    assert seg.arrival_at == a.occurred_at and seg.departure_at == d.occurred_at
    assert seg.arrival_rounded == at(2026, 6, 10, 8, 0)
    assert seg.departure_rounded == at(2026, 6, 10, 17, 0)
    assert seg.minutes == 540 and seg.hours == 9.0
    assert seg.rate_source == RateSource.DEFAULT
    assert day.first_arrival == at(2026, 6, 10, 8, 0)
    assert day.last_departure == at(2026, 6, 10, 17, 0)


def test_segment_shorter_than_rounding_pays_nothing(events, clock, at):
    events.add(EventKind.ARRIVAL, at(2026, 6, 10, 8, 5))
    events.add(EventKind.DEPARTURE, at(2026, 6, 10, 8, 10))

    (day,) = summarize(events, clock)

    assert day.segments[0].minutes == 0
    assert day.total == 0


def test_site_override_prices_segment_and_km(events, clock, at):
    events.add(EventKind.ARRIVAL, at(2026, 6, 10, 8, 0), site_id=11)
    events.add(EventKind.DEPARTURE, at(2026, 6, 10, 10, 0), site_id=11, km=5)

    (day,) = summarize(events, clock, overrides=[RateOverride(worker_id=1, site_id=11, hourly_rate=400, km_rate=12)])

    assert day.hours_pay == 800
    assert day.km_pay == 60
    assert day.segments[0].rate_source == RateSource.SITE


def test_overnight_segment_belongs_to_arrival_day(events, clock, at):
    events.add(EventKind.ARRIVAL, at(2026, 6, 10, 22, 10))
    events.add(EventKind.DEPARTURE, at(2026, 6, 11, 6, 20), km=4)

    days = summarize(events, clock)

    assert [d.day for d in days] == [date(2026, 6, 10)]
    assert days[0].work_hours == 8.5
    assert days[0].km == 4
    assert len(days[0].event_ids) == 2


def test_overnight_segment_across_fall_back_counts_the_extra_hour(events, clock, at):
    events.add(EventKind.ARRIVAL, at(2026, 10, 24, 22, 0))
    events.add(EventKind.DEPARTURE, at(2026, 10, 25, 6, 0))

    (day,) = summarize(events, clock)

    assert day.work_hours == 9.0


def test_paid_only_when_every_event_is_paid(events, clock, at):
    events.add(EventKind.ARRIVAL, at(2026, 6, 10, 8, 0), is_paid=True)
    events.add(EventKind.DEPARTURE, at(2026, 6, 10, 12, 0), is_paid=True)
    events.add(EventKind.OFFSITE, at(2026, 6, 11, 9, 0), offsite_hours=2, is_paid=True)
    events.add(EventKind.OFFSITE, at(2026, 6, 11, 10, 0), offsite_hours=1)

    first, second = summarize(events, clock)

    assert first.paid is True and first.unpaid_event_ids == ()
    assert second.paid is False and len(second.unpaid_event_ids) == 1


def test_offsite_defaults_and_zero_hours(events, clock, at):
    events.add(EventKind.OFFSITE, at(2026, 6, 10, 9, 0), offsite_reason="  ", offsite_hours=2, site_id=None)
    events.add(EventKind.OFFSITE, at(2026, 6, 10, 10, 0), offsite_reason="Nothing", offsite_hours=0)

    (day,) = summarize(events, clock)

    assert len(day.offsite_items) == 1
    assert day.offsite_items[0].reason == "Off-site work"
    assert day.offsite_hours == 2
    assert len(day.event_ids) == 2


def test_trip_km_fallback_only_without_manual_km(events, clock, at):
    events.add(EventKind.ARRIVAL, at(2026, 6, 10, 8, 0))
    events.add(EventKind.DEPARTURE, at(2026, 6, 10, 12, 0))
    events.add(EventKind.ARRIVAL, at(2026, 6, 11, 8, 0))
    events.add(EventKind.DEPARTURE, at(2026, 6, 11, 12, 0), km=7)

    trips = {date(2026, 6, 10): 25.0, date(2026, 6, 11): 40.0}
    first, second = summarize(events, clock, trips=trips)

    assert first.km_source == MileageSource.TRIPS
    assert first.km == 25 and first.km_pay == 200
    assert first.mileage_items[0].site_id is None
    assert second.km_source == MileageSource.MANUAL
    assert second.km == 7


def test_amounts_round_half_up_at_output(events, clock, at):
    worker = Worker(worker_id=1, name="Jan", hourly_rate=100.005, km_rate=0.125)
    events.add(EventKind.ARRIVAL, at(2026, 6, 10, 8, 0))
    events.add(EventKind.DEPARTURE, at(2026, 6, 10, 9, 0), km=0.25)

    (day,) = summarize(events, clock, worker=worker)

    assert day.hours_pay == 100.01
    assert day.km == 0.3


def test_open_arrival_is_flagged_on_its_day(events, clock, at):
    events.add(EventKind.ARRIVAL, at(2026, 6, 10, 8, 0))

    (day,) = summarize(events, clock)

    assert day.has_open_arrival
    assert day.segments == ()
    assert day.total == 0


def test_site_summaries_group_by_site(events, clock, at):
    events.add(EventKind.ARRIVAL, at(2026, 6, 10, 8, 0), site_id=10)
    events.add(EventKind.DEPARTURE, at(2026, 6, 10, 12, 0), site_id=10, km=10, material_amount=50)
    events.add(EventKind.ARRIVAL, at(2026, 6, 10, 13, 0), site_id=11)
    events.add(EventKind.DEPARTURE, at(2026, 6, 10, 15, 0), site_id=11)
    events.add(EventKind.OFFSITE, at(2026, 6, 10, 16, 0), site_id=11, offsite_hours=1)
    events.add(EventKind.ARRIVAL, at(2026, 6, 12, 8, 0), site_id=10)
    events.add(EventKind.DEPARTURE, at(2026, 6, 12, 9, 0), site_id=10)

    days = summarize(events, clock, trips={date(2026, 6, 12): 30})
    sites = summarize_sites(days, {10: "Zeta", 11: "Beta"})

    assert [s.site_name for s in sites] == ["Beta", "Zeta", "Unassigned"]
    beta, zeta, unassigned = sites

    assert beta.hours == 3 and beta.offsite_hours == 1
    assert beta.labor_amount == 900 and beta.offsite_amount == 300
    assert beta.total == 900

    assert [d.day for d in zeta.days] == [date(2026, 6, 12), date(2026, 6, 10)]
    assert zeta.hours == 5
    assert zeta.km == 10 and zeta.travel_amount == 80
    assert zeta.material_amount == 50
    assert zeta.total == 1500 + 80 + 50

    assert unassigned.site_id is None
    assert unassigned.km == 30 and unassigned.travel_amount == 240

    assert sum(s.total for s in sites) == sum(d.total for d in days)
