"""Single-participant promotion from the waitlist and re-admission of drops.

These checks always run against the trip's current signups, never against a
pending proposal. Within an eligible sub-list the first signup in waitlist
order is chosen.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from trip_roster.core.logging import get_logger
from trip_roster.services.roster.errors import (
    NoDriverSpots,
    NoDriversOnWaitlist,
    NoNonDriverSpots,
    NoNonDriversOnWaitlist,
    ParticipantNotFound,
    RosterFull,
    WaitlistEmpty,
)
from trip_roster.services.roster.status import (
    Rostered,
    StatusUpdate,
    classify,
    driver_count,
    format_status,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from trip_roster.schemas.trips import SignupRead, TripRead

logger = get_logger(__name__)


@dataclass(frozen=True)
class RosterCapacity:
    """Current roster occupancy measured against the trip's limits."""

    capacity: int
    driver_slots: int
    current_total: int
    current_drivers: int

    @classmethod
    def from_roster(cls, trip: TripRead, roster: Sequence[SignupRead]) -> RosterCapacity:
        return cls(
            capacity=trip.capacity,
            driver_slots=trip.driver_slots,
            current_total=len(roster),
            current_drivers=driver_count(roster),
        )

    @property
    def current_non_drivers(self) -> int:
        return self.current_total - self.current_drivers

    @property
    def non_driver_capacity(self) -> int:
        return self.capacity - self.driver_slots

    @property
    def driver_spots_available(self) -> int:
        return self.driver_slots - self.current_drivers

    @property
    def non_driver_spots_available(self) -> int:
        return self.non_driver_capacity - self.current_non_drivers

    @property
    def is_full(self) -> bool:
        return self.current_total >= self.capacity

    def as_details(self) -> dict[str, int]:
        return {
            "capacity": self.capacity,
            "current_total": self.current_total,
            "driver_slots": self.driver_slots,
            "current_drivers": self.current_drivers,
            "non_driver_capacity": self.non_driver_capacity,
            "current_non_drivers": self.current_non_drivers,
        }

    def ensure_not_full(self) -> None:
        if self.is_full:
            raise RosterFull(
                details=f"Roster is at capacity ({self.current_total}/{self.capacity})",
            )

    def ensure_driver_spot(self) -> None:
        if self.driver_spots_available <= 0:
            raise NoDriverSpots(
                details=(
                    f"All driver spots are filled ({self.current_drivers}/{self.driver_slots})"
                ),
            )

    def ensure_non_driver_spot(self) -> None:
        if self.non_driver_spots_available <= 0:
            raise NoNonDriverSpots(
                details=(
                    "All non-driver spots are filled "
                    f"({self.current_non_drivers}/{self.non_driver_capacity})"
                ),
            )


@dataclass(frozen=True)
class Promotion:
    """The signup chosen for the roster and the one write that puts them there."""

    signup: SignupRead
    update: StatusUpdate


def _promotion(signup: SignupRead) -> Promotion:
    return Promotion(
        signup=signup,
        update=StatusUpdate(signup.id, format_status(Rostered(is_driver=signup.is_driver))),
    )


def _capacity_and_waitlist(
    trip: TripRead,
    signups: Sequence[SignupRead],
) -> tuple[RosterCapacity, tuple[SignupRead, ...]]:
    partition = classify(signups)
    capacity = RosterCapacity.from_roster(trip, partition.roster)
    logger.debug(
        "roster.promote.capacity",
        extra={"trip_id": trip.id, **capacity.as_details()},
    )
    return capacity, partition.waitlist


def select_next(trip: TripRead, signups: Sequence[SignupRead]) -> Promotion:
    """Pick whoever best fits the open spots, preferring a driver when both are open."""
    capacity, waitlist = _capacity_and_waitlist(trip, signups)
    capacity.ensure_not_full()
    if not waitlist:
        raise WaitlistEmpty()

    waitlist_drivers = [signup for signup in waitlist if signup.is_driver]
    waitlist_non_drivers = [signup for signup in waitlist if not signup.is_driver]
    driver_open = capacity.driver_spots_available > 0
    non_driver_open = capacity.non_driver_spots_available > 0

    if driver_open and non_driver_open:
        if waitlist_drivers:
            return _promotion(waitlist_drivers[0])
        if waitlist_non_drivers:
            return _promotion(waitlist_non_drivers[0])
        raise WaitlistEmpty()
    if driver_open:
        if not waitlist_drivers:
            raise NoDriversOnWaitlist(
                details=(
                    f"{capacity.driver_spots_available} driver spots available "
                    "but no drivers on waitlist."
                ),
            )
        return _promotion(waitlist_drivers[0])
    if non_driver_open:
        if not waitlist_non_drivers:
            raise NoNonDriversOnWaitlist(
                details=(
                    f"{capacity.non_driver_spots_available} non-driver spots available "
                    "but no non-drivers on waitlist."
                ),
            )
        return _promotion(waitlist_non_drivers[0])
    # Under total capacity, yet both sub-capacities are used up.
    raise RosterFull(
        "No driver or non-driver spots available",
        details=capacity.as_details(),
    )


def select_driver(trip: TripRead, signups: Sequence[SignupRead]) -> Promotion:
    """Promote the first waitlisted driver into an open driver spot."""
    capacity, waitlist = _capacity_and_waitlist(trip, signups)
    capacity.ensure_not_full()
    capacity.ensure_driver_spot()
    for signup in waitlist:
        if signup.is_driver:
            return _promotion(signup)
    raise NoDriversOnWaitlist("No drivers on waitlist")


def select_non_driver(trip: TripRead, signups: Sequence[SignupRead]) -> Promotion:
    """Promote the first waitlisted non-driver into an open non-driver spot."""
    capacity, waitlist = _capacity_and_waitlist(trip, signups)
    capacity.ensure_not_full()
    capacity.ensure_non_driver_spot()
    for signup in waitlist:
        if not signup.is_driver:
            return _promotion(signup)
    raise NoNonDriversOnWaitlist("No non-drivers on waitlist")


def select_readmit(
    trip: TripRead,
    signups: Sequence[SignupRead],
    participant_id: str,
) -> Promotion:
    """Restore a specific participant, checking the sub-capacity for their role."""
    participant = next((signup for signup in signups if signup.id == participant_id), None)
    if participant is None:
        raise ParticipantNotFound(details={"participant_id": participant_id})

    partition = classify(signups)
    capacity = RosterCapacity.from_roster(trip, partition.roster)
    capacity.ensure_not_full()
    if participant.is_driver:
        capacity.ensure_driver_spot()
    else:
        capacity.ensure_non_driver_spot()
    return _promotion(participant)
