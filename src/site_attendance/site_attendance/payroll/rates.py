from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from ..common.numbers import to_float
from ..core.enums import RateSource
from ..workers.model import RateOverride, Worker


@dataclass(frozen=True)
class RateQuote:
    hourly: float
    km: float
    source: RateSource


class RateResolver:
    """Resolve hourly/km rates: worker+site override first, then the worker default."""

    def __init__(self, overrides: Iterable[RateOverride] = ()):
        self._overrides = {(o.worker_id, o.site_id): o for o in overrides}

    def resolve(self, worker: Worker, site_id: Optional[int]) -> RateQuote:
        if site_id is not None:
            o = self._overrides.get((worker.worker_id, site_id))
            if o is not None:
                return RateQuote(hourly=to_float(o.hourly_rate), km=to_float(o.km_rate), source=RateSource.SITE)
        return RateQuote(
            hourly=to_float(worker.hourly_rate),
            km=to_float(worker.km_rate),
            source=RateSource.DEFAULT,
        )
