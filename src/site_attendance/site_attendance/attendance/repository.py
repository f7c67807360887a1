from __future__ import annotations

from datetime import date, datetime
from typing import Any, Mapping, Optional, Protocol, Sequence

from ..core.enums import EventKind
from .model import AttendanceEvent, NewAttendanceEvent


class EventStore(Protocol):
    """Read/write access to attendance events, implemented by the storage collaborator.

    Storage faults propagate unchanged; nothing here is retried.
    """

    def get_by_id(self, event_id: int) -> Optional[AttendanceEvent]:
        raise NotImplementedError

    def get_latest(self, worker_id: int, kind: EventKind) -> Optional[AttendanceEvent]:
        raise NotImplementedError

    def list_for_worker(self, worker_id: int, *, start: datetime, end: datetime) -> Sequence[AttendanceEvent]:
        """Events with ``start <= occurred_at < end``, ascending by instant."""

        raise NotImplementedError

    def list_by_kind_since(self, kind: EventKind, since: datetime) -> Sequence[AttendanceEvent]:
        raise NotImplementedError

    def append(self, event: NewAttendanceEvent) -> int:
        raise NotImplementedError

    def append_guarded(self, event: NewAttendanceEvent, *, expect_open: bool) -> Optional[int]:
        """Insert ``event`` only if the worker's open-shift state equals ``expect_open``.

        The state check and the insert run behind a per-worker serialization point,
        so two concurrent requests cannot both observe the same state. Returns the
        new id, or None when the state no longer matches.
        """

        raise NotImplementedError

    def update_details(
        self, event_id: int, changes: Mapping[str, Any], *, edited_by: int, edited_at: datetime
    ) -> bool:
        """Overwrite descriptive fields of an unpaid event and stamp the editor.

        Returns False when the event is missing or already paid.
        """

        raise NotImplementedError

    def correct_instant(self, event_id: int, *, occurred_at: datetime, civil_day: Optional[date]) -> bool:
        """Repair-only: overwrite the stored instant and its civil-day cache."""

        raise NotImplementedError

    def mark_paid(self, *, worker_id: int, event_ids: Sequence[int], paid_by: int, paid_at: datetime) -> int:
        """All-or-nothing: mark exactly ``event_ids`` paid if all are still unpaid.

        Returns ``len(event_ids)`` on success, 0 when anything changed underneath.
        """

        raise NotImplementedError
