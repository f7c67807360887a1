from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import RateOverride, Worker


class WorkerRepository(Protocol):
    """Repository interface for workers and their rate overrides.

    Services depend on this interface, not on a concrete database.
    """

    def get_by_id(self, worker_id: int) -> Optional[Worker]:
        raise NotImplementedError

    def list_rate_overrides(self, worker_id: int) -> Sequence[RateOverride]:
        raise NotImplementedError
