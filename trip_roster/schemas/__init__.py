"""Public schema exports shared across API route modules."""

from trip_roster.schemas.errors import RosterErrorResponse
from trip_roster.schemas.health import HealthStatusResponse
from trip_roster.schemas.roster import (
    ApproveRequest,
    ApproveResponse,
    DropRequest,
    DropResponse,
    PromoteResponse,
    RandomizeResponse,
    ReadmitRequest,
)
from trip_roster.schemas.trips import (
    SignupListResponse,
    SignupRead,
    TripRead,
    TripResponse,
    TripsResponse,
)

__all__ = [
    "ApproveRequest",
    "ApproveResponse",
    "DropRequest",
    "DropResponse",
    "HealthStatusResponse",
    "PromoteResponse",
    "RandomizeResponse",
    "ReadmitRequest",
    "RosterErrorResponse",
    "SignupListResponse",
    "SignupRead",
    "TripRead",
    "TripResponse",
    "TripsResponse",
]
