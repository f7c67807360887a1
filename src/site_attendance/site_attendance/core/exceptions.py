class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class BusinessRuleError(DomainError):
    """Raised when a valid request is refused by an attendance rule (user-actionable)."""


class GeofenceRejectedError(BusinessRuleError):
    """Raised when a position is outside the site's geofence."""

    def __init__(self, distance_m: int, radius_m: int):
        super().__init__(f"Outside the site radius ({distance_m} m > {radius_m} m)")
        self.distance_m = distance_m
        self.radius_m = radius_m


class NotFoundError(DomainError):
    """Raised when a referenced worker, site, event or request does not exist."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""
