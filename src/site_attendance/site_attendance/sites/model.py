from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import SiteStatus


@dataclass(frozen=True)
class GeoPoint:
    lat: float
    lng: float
    accuracy_m: Optional[float] = None


@dataclass(frozen=True)
class Site:
    """Domain entity: a construction site with a circular geofence.

    ``radius_m == 0`` disables geofencing for the site.
    """

    site_id: int
    name: str
    lat: float
    lng: float
    radius_m: int
    status: SiteStatus = SiteStatus.ACTIVE

    @property
    def center(self) -> GeoPoint:
        return GeoPoint(lat=self.lat, lng=self.lng)


@dataclass(frozen=True)
class GeofenceDecision:
    accepted: bool
    distance_m: int
