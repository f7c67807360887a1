from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Worker:
    """Domain entity: a field worker with default pay rates.

    Missing default rates are a valid business state and price at zero.
    """

    worker_id: int
    name: str
    hourly_rate: Optional[float] = None
    km_rate: Optional[float] = None
    is_active: bool = True


@dataclass(frozen=True)
class RateOverride:
    """Worker-and-site-specific rates that take precedence over the worker default."""

    worker_id: int
    site_id: int
    hourly_rate: float
    km_rate: float
