from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol, Sequence

from ..attendance.model import NewAttendanceEvent
from ..core.enums import CloseRequestStatus
from .model import CloseRequest, NewCloseRequest


class CloseRequestRepository(Protocol):
    def create(self, request: NewCloseRequest) -> int:
        raise NotImplementedError

    def get(self, request_id: int) -> Optional[CloseRequest]:
        raise NotImplementedError

    def get_pending_for_worker(self, worker_id: int) -> Optional[CloseRequest]:
        raise NotImplementedError

    def list(
        self,
        *,
        status: Optional[CloseRequestStatus] = None,
        worker_id: Optional[int] = None,
        limit: int = 200,
    ) -> Sequence[CloseRequest]:
        """Pending lists are oldest first, everything else newest first."""

        raise NotImplementedError

    def list_with_arrival_since(self, since: datetime) -> Sequence[CloseRequest]:
        raise NotImplementedError

    def approve_with_departure(
        self,
        request_id: int,
        departure: NewAttendanceEvent,
        *,
        decided_by: int,
        decided_at: datetime,
    ) -> Optional[int]:
        """Atomically insert ``departure`` and flip a PENDING request to APPROVED.

        Runs behind the worker's serialization point and also requires the
        request's ARRIVAL to still be the worker's open one. Returns the new event
        id, or None when either check fails (nothing is written in that case).
        """

        raise NotImplementedError

    def reject(self, request_id: int, *, decided_by: int, decided_at: datetime) -> bool:
        """PENDING -> REJECTED; False when the request was not PENDING."""

        raise NotImplementedError
