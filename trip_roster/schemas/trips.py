"""Trip and signup payloads normalized from record-store rows."""

from __future__ import annotations

from pydantic import Field
from sqlmodel import SQLModel


class TripRead(SQLModel):
    """Trip details plus the capacity figures the roster engine reads."""

    id: str
    name: str | None = None
    trip_type: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    lead_name: str | None = None
    cost_per_person: float | None = None
    full: bool = False
    capacity: int = Field(default=0, description="Total roster capacity, including leads.")
    driver_slots: int = Field(default=0, description="Additional drivers required.")
    non_driver_capacity: int = Field(default=0, description="Non-driver roster slots.")


class SignupRead(SQLModel):
    """One participant's signup for a trip."""

    id: str
    trip_ids: list[str] = Field(default_factory=list)
    participant_name: str = "Unknown"
    is_driver: bool = False
    status: str = "UNKNOWN"
    email: str | None = None
    phone: str | None = None


class TripsResponse(SQLModel):
    """All trips known to the record store."""

    trips: list[TripRead]


class TripResponse(SQLModel):
    """Single trip lookup result."""

    trip: TripRead


class SignupListResponse(SQLModel):
    """Signups for one trip, partitioned by status category."""

    signups: list[SignupRead]
    roster: list[SignupRead]
    waitlist: list[SignupRead]
    dropped: list[SignupRead]
    driver_count: int = Field(description="Drivers currently on the roster.")
