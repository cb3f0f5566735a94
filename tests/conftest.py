# ruff: noqa: INP001
"""Pytest configuration shared across roster service tests."""

from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Deterministic defaults during import-time settings initialization,
# regardless of shell env or a developer's local `.env`.
os.environ["ENVIRONMENT"] = "test"
os.environ["ACCESS_TOKEN"] = ""
os.environ["AIRTABLE_API_KEY"] = "test-airtable-key"
os.environ["AIRTABLE_BASE_ID"] = "appTestBase"

from trip_roster.schemas.trips import SignupRead, TripRead  # noqa: E402
from trip_roster.services.roster.errors import UpstreamFailure  # noqa: E402


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeRecordStore:
    """In-memory record store with the same surface as the Airtable client."""

    def __init__(self, trips: list[TripRead], signups: list[SignupRead]) -> None:
        self.trips = {trip.id: trip for trip in trips}
        self.signups = {signup.id: signup for signup in signups}
        self.writes: list[tuple[str, str]] = []
        self.fail_on: set[str] = set()

    async def list_trips(self) -> list[TripRead]:
        return list(self.trips.values())

    async def get_trip(self, trip_id: str) -> TripRead:
        return self.trips[trip_id]

    async def list_signups_for_trip(self, trip_id: str) -> list[SignupRead]:
        return [signup for signup in self.signups.values() if trip_id in signup.trip_ids]

    async def update_signup_status(self, signup_id: str, status: str) -> SignupRead:
        if signup_id in self.fail_on:
            raise UpstreamFailure(f"Failed to update signup {signup_id}")
        self.writes.append((signup_id, status))
        current = self.signups[signup_id]
        updated = current.model_copy(update={"status": status})
        self.signups[signup_id] = updated
        return updated

    def status_of(self, signup_id: str) -> str:
        return self.signups[signup_id].status


def make_trip(
    trip_id: str = "recTrip1",
    *,
    capacity: int = 10,
    driver_slots: int = 3,
    non_driver_capacity: int | None = None,
) -> TripRead:
    return TripRead(
        id=trip_id,
        name="Desolation Wilderness Backpacking",
        capacity=capacity,
        driver_slots=driver_slots,
        non_driver_capacity=(
            capacity - driver_slots if non_driver_capacity is None else non_driver_capacity
        ),
    )


def make_signup(
    signup_id: str,
    *,
    driver: bool,
    status: str = "WAITLIST",
    trip_id: str = "recTrip1",
) -> SignupRead:
    return SignupRead(
        id=signup_id,
        trip_ids=[trip_id],
        participant_name=f"Participant {signup_id}",
        is_driver=driver,
        status=status,
    )


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()
