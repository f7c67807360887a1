"""Payroll aggregation: priced day-level and site-level summaries.

Every presentation surface (worker self-view, admin payouts, invoice) goes through
``summarize_days`` and, for per-site reporting, ``summarize_sites``.
"""
from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import Iterable, Mapping, Optional, Sequence

from ..attendance.model import AttendanceEvent
from ..attendance.segments import RawSegment, reconstruct, sort_events
from ..common.civil_time import CivilClock, default_clock
from ..common.numbers import round_km, round_money, to_float
from ..core.constants import DEFAULT_OFFSITE_REASON, UNASSIGNED_SITE_NAME
from ..core.enums import EventKind, MileageSource, RateSource
from ..workers.model import Worker
from .calculator.base import PayrollCalculator
from .calculator.half_hour_calculator import HalfHourPayrollCalculator
from .model import DaySummary, MaterialItem, MileageItem, OffsiteItem, SiteDay, SiteSummary, WorkSegment
from .rates import RateResolver


def price_segment(
    seg: RawSegment,
    *,
    worker: Worker,
    resolver: RateResolver,
    calculator: PayrollCalculator,
) -> WorkSegment:
    start, end = calculator.payable_bounds(seg.arrival.occurred_at, seg.departure.occurred_at)
    minutes = calculator.worked_minutes(seg.arrival.occurred_at, seg.departure.occurred_at)
    rate = resolver.resolve(worker, seg.site_id)
    return WorkSegment(
        site_id=seg.site_id,
        arrival_event_id=seg.arrival.event_id,
        departure_event_id=seg.departure.event_id,
        arrival_at=seg.arrival.occurred_at,
        departure_at=seg.departure.occurred_at,
        arrival_rounded=start,
        departure_rounded=end,
        minutes=minutes,
        hourly_rate=rate.hourly,
        rate_source=rate.source,
        pay=minutes / 60 * rate.hourly,
        work_description=seg.work_description,
    )


def price_offsite(e: AttendanceEvent, *, worker: Worker, resolver: RateResolver) -> Optional[OffsiteItem]:
    hours = to_float(e.offsite_hours)
    if hours <= 0:
        return None
    rate = resolver.resolve(worker, e.site_id)
    return OffsiteItem(
        event_id=e.event_id,
        site_id=e.site_id,
        reason=(e.offsite_reason or "").strip() or DEFAULT_OFFSITE_REASON,
        hours=hours,
        hourly_rate=rate.hourly,
        rate_source=rate.source,
        pay=hours * rate.hourly,
    )


def aggregate_day(
    day: date,
    *,
    worker: Worker,
    segments: Sequence[RawSegment],
    offsite_events: Sequence[AttendanceEvent],
    events: Sequence[AttendanceEvent],
    resolver: RateResolver,
    calculator: Optional[PayrollCalculator] = None,
    trip_km: float = 0.0,
    has_open_arrival: bool = False,
) -> DaySummary:
    """Price one civil day.

    ``events`` are all events bucketed into the day (they decide mileage, material
    and the paid flag); ``segments``/``offsite_events`` are the day's pairing result.
    """
    calculator = calculator or HalfHourPayrollCalculator()
    events = sort_events(events)

    work = [price_segment(s, worker=worker, resolver=resolver, calculator=calculator) for s in segments]
    offsite = [
        item
        for item in (price_offsite(e, worker=worker, resolver=resolver) for e in sort_events(offsite_events))
        if item is not None
    ]

    mileage: list[MileageItem] = []
    for e in events:
        if e.kind != EventKind.DEPARTURE:
            continue
        k = to_float(e.km)
        if k <= 0:
            continue
        rate = resolver.resolve(worker, e.site_id)
        mileage.append(
            MileageItem(
                event_id=e.event_id,
                site_id=e.site_id,
                km=k,
                km_rate=rate.km,
                rate_source=rate.source,
                pay=k * rate.km,
                source=MileageSource.MANUAL,
            )
        )

    km_source = MileageSource.MANUAL if mileage else MileageSource.NONE
    if not mileage and to_float(trip_km) > 0:
        default = resolver.resolve(worker, None)
        mileage.append(
            MileageItem(
                event_id=None,
                site_id=None,
                km=to_float(trip_km),
                km_rate=default.km,
                rate_source=RateSource.DEFAULT,
                pay=to_float(trip_km) * default.km,
                source=MileageSource.TRIPS,
            )
        )
        km_source = MileageSource.TRIPS

    material = [
        MaterialItem(
            event_id=e.event_id,
            site_id=e.site_id,
            description=(e.material_description or "").strip(),
            amount=to_float(e.material_amount),
        )
        for e in events
        if to_float(e.material_amount) > 0
    ]

    work_hours = sum(s.minutes for s in work) / 60
    offsite_hours = sum(o.hours for o in offsite)
    hours_pay = sum(s.pay for s in work) + sum(o.pay for o in offsite)
    km = sum(m.km for m in mileage)
    km_pay = sum(m.pay for m in mileage)
    material_total = sum(m.amount for m in material)

    first_in = next((e for e in events if e.kind == EventKind.ARRIVAL), None)
    last_out = next((e for e in reversed(events) if e.kind == EventKind.DEPARTURE), None)

    return DaySummary(
        worker_id=worker.worker_id,
        day=day,
        segments=tuple(work),
        offsite_items=tuple(offsite),
        mileage_items=tuple(mileage),
        material_items=tuple(material),
        event_ids=tuple(e.event_id for e in events),
        unpaid_event_ids=tuple(e.event_id for e in events if not e.is_paid),
        work_hours=round_money(work_hours),
        offsite_hours=round_money(offsite_hours),
        hours=round_money(work_hours + offsite_hours),
        hours_pay=round_money(hours_pay),
        km=round_km(km),
        km_pay=round_money(km_pay),
        km_source=km_source,
        material=round_money(material_total),
        total=round_money(hours_pay + km_pay + material_total),
        paid=bool(events) and all(e.is_paid for e in events),
        first_arrival=calculator.payable_bounds(first_in.occurred_at, first_in.occurred_at)[0] if first_in else None,
        last_departure=calculator.payable_bounds(last_out.occurred_at, last_out.occurred_at)[1] if last_out else None,
        has_open_arrival=has_open_arrival,
    )


def summarize_days(
    events: Iterable[AttendanceEvent],
    *,
    worker: Worker,
    resolver: RateResolver,
    calculator: Optional[PayrollCalculator] = None,
    clock: Optional[CivilClock] = None,
    trip_km_by_day: Optional[Mapping[date, float]] = None,
) -> list[DaySummary]:
    """Reconstruct one worker's stream and price every civil day with activity.

    A segment, and the DEPARTURE closing it, belongs to the civil day of its
    ARRIVAL; every other event belongs to the civil day of its own instant.
    Returned oldest day first.
    """
    clock = clock or default_clock()
    calculator = calculator or HalfHourPayrollCalculator(clock)
    trip_km_by_day = trip_km_by_day or {}
    events = sort_events(events)
    rec = reconstruct(events)

    day_of = {e.event_id: clock.civil_day(e.occurred_at) for e in events}
    segments_by_day: dict[date, list[RawSegment]] = defaultdict(list)
    for seg in rec.segments:
        d = day_of[seg.arrival.event_id]
        day_of[seg.departure.event_id] = d
        segments_by_day[d].append(seg)

    events_by_day: dict[date, list[AttendanceEvent]] = defaultdict(list)
    offsite_by_day: dict[date, list[AttendanceEvent]] = defaultdict(list)
    for e in events:
        events_by_day[day_of[e.event_id]].append(e)
    for e in rec.offsite_events:
        offsite_by_day[day_of[e.event_id]].append(e)

    open_day = day_of[rec.open_arrival.event_id] if rec.open_arrival else None

    return [
        aggregate_day(
            d,
            worker=worker,
            segments=segments_by_day.get(d, []),
            offsite_events=offsite_by_day.get(d, []),
            events=events_by_day[d],
            resolver=resolver,
            calculator=calculator,
            trip_km=to_float(trip_km_by_day.get(d)),
            has_open_arrival=(d == open_day),
        )
        for d in sorted(events_by_day)
    ]


def _site_day(day: date, segments, offsite, mileage, material) -> SiteDay:
    km_amount = sum(m.pay for m in mileage)
    material_amount = sum(m.amount for m in material)
    day_total = sum(s.pay for s in segments) + sum(o.pay for o in offsite) + km_amount + material_amount
    return SiteDay(
        day=day,
        segments=tuple(segments),
        offsite_items=tuple(offsite),
        mileage_items=tuple(mileage),
        material_items=tuple(material),
        km=round_km(sum(m.km for m in mileage)),
        km_amount=round_money(km_amount),
        material_amount=round_money(material_amount),
        day_total=round_money(day_total),
    )


def summarize_sites(days: Iterable[DaySummary], site_names: Mapping[int, str]) -> list[SiteSummary]:
    """Regroup day summaries per site.

    Segments go to their segment site, off-site items and material to the site of
    their event, manual km to the DEPARTURE's site and trip-log km to unassigned.
    """
    per_site: dict[Optional[int], list[SiteDay]] = defaultdict(list)

    for d in days:
        site_ids = (
            {s.site_id for s in d.segments}
            | {o.site_id for o in d.offsite_items}
            | {m.site_id for m in d.mileage_items}
            | {m.site_id for m in d.material_items}
        )
        for sid in site_ids:
            per_site[sid].append(
                _site_day(
                    d.day,
                    [s for s in d.segments if s.site_id == sid],
                    [o for o in d.offsite_items if o.site_id == sid],
                    [m for m in d.mileage_items if m.site_id == sid],
                    [m for m in d.material_items if m.site_id == sid],
                )
            )

    out: list[SiteSummary] = []
    for sid, site_days in per_site.items():
        segs = [s for sd in site_days for s in sd.segments]
        offs = [o for sd in site_days for o in sd.offsite_items]
        miles = [m for sd in site_days for m in sd.mileage_items]
        mats = [m for sd in site_days for m in sd.material_items]

        work_hours = sum(s.minutes for s in segs) / 60
        offsite_hours = sum(o.hours for o in offs)
        labor = sum(s.pay for s in segs)
        offsite_amount = sum(o.pay for o in offs)
        travel = sum(m.pay for m in miles)
        material_amount = sum(m.amount for m in mats)

        if sid is None:
            name = UNASSIGNED_SITE_NAME
        else:
            name = site_names.get(sid) or str(sid)

        out.append(
            SiteSummary(
                site_id=sid,
                site_name=name,
                days=tuple(sorted(site_days, key=lambda x: x.day, reverse=True)),
                hours=round_money(work_hours + offsite_hours),
                labor_amount=round_money(labor + offsite_amount),
                offsite_hours=round_money(offsite_hours),
                offsite_amount=round_money(offsite_amount),
                km=round_km(sum(m.km for m in miles)),
                travel_amount=round_money(travel),
                material_amount=round_money(material_amount),
                total=round_money(labor + offsite_amount + travel + material_amount),
            )
        )

    out.sort(key=lambda s: (s.site_id is None, s.site_name.lower()))
    return out
