from __future__ import annotations

from enum import Enum


class EventKind(str, Enum):
    """Kind of a raw attendance event."""

    ARRIVAL = "ARRIVAL"
    DEPARTURE = "DEPARTURE"
    OFFSITE = "OFFSITE"


class SiteStatus(str, Enum):
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    ARCHIVED = "ARCHIVED"


class CloseRequestStatus(str, Enum):
    """Lifecycle of a "forgot to leave" request. APPROVED and REJECTED are terminal."""

    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class RateSource(str, Enum):
    SITE = "site"
    DEFAULT = "default"


class MileageSource(str, Enum):
    MANUAL = "manual"
    TRIPS = "trips"
    NONE = "none"


class Role(str, Enum):
    """Role stored in the session, used for authorization."""

    ADMIN = "admin"
    WORKER = "worker"
