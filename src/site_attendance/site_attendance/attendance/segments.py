"""Segment reconstruction: pair ARRIVAL/DEPARTURE events into work segments."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional

import structlog

from ..core.enums import EventKind
from .model import AttendanceEvent

log = structlog.get_logger(__name__)


@dataclass(frozen=True)
class RawSegment:
    """One ARRIVAL closed by the next DEPARTURE (not yet priced)."""

    arrival: AttendanceEvent
    departure: AttendanceEvent

    @property
    def site_id(self) -> Optional[int]:
        if self.arrival.site_id is not None:
            return self.arrival.site_id
        return self.departure.site_id

    @property
    def work_description(self) -> Optional[str]:
        return self.departure.work_description


@dataclass
class Reconstruction:
    segments: list[RawSegment] = field(default_factory=list)
    offsite_events: list[AttendanceEvent] = field(default_factory=list)
    open_arrival: Optional[AttendanceEvent] = None
    orphan_departures: list[AttendanceEvent] = field(default_factory=list)
    superseded_arrivals: list[AttendanceEvent] = field(default_factory=list)


def sort_events(events: Iterable[AttendanceEvent]) -> list[AttendanceEvent]:
    return sorted(events, key=lambda e: (e.occurred_at, e.event_id))


def reconstruct(events: Iterable[AttendanceEvent]) -> Reconstruction:
    """Scan one worker's events in ascending order.

    The last ARRIVAL before a DEPARTURE starts the segment; earlier unclosed
    ARRIVALs are dropped from pairing. A DEPARTURE with nothing to close is
    dropped from payroll and logged. OFFSITE events never take part in pairing.
    """
    out = Reconstruction()
    pending: Optional[AttendanceEvent] = None

    for e in sort_events(events):
        if e.kind == EventKind.ARRIVAL:
            if pending is not None:
                out.superseded_arrivals.append(pending)
                log.warning(
                    "arrival_superseded",
                    worker_id=pending.worker_id,
                    event_id=pending.event_id,
                    superseded_by=e.event_id,
                )
            pending = e
        elif e.kind == EventKind.DEPARTURE:
            if pending is None:
                out.orphan_departures.append(e)
                log.warning("orphan_departure_dropped", worker_id=e.worker_id, event_id=e.event_id)
                continue
            out.segments.append(RawSegment(arrival=pending, departure=e))
            pending = None
        elif e.kind == EventKind.OFFSITE:
            out.offsite_events.append(e)

    out.open_arrival = pending
    return out
