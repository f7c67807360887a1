from __future__ import annotations

from ..common.geo import haversine_distance
from ..core.exceptions import GeofenceRejectedError
from .model import GeoPoint, GeofenceDecision, Site


class GeofenceValidator:
    """Accept/reject a captured position against a site's circular geofence."""

    def validate(self, point: GeoPoint, site: Site) -> GeofenceDecision:
        distance = haversine_distance(point.lat, point.lng, site.lat, site.lng)
        radius = int(site.radius_m or 0)
        accepted = radius == 0 or distance <= radius
        return GeofenceDecision(accepted=accepted, distance_m=int(round(distance)))

    def require_inside(self, point: GeoPoint, site: Site) -> GeofenceDecision:
        decision = self.validate(point, site)
        if not decision.accepted:
            raise GeofenceRejectedError(decision.distance_m, int(site.radius_m))
        return decision
