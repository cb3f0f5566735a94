"""Randomized roster allocation with driver/non-driver backfill."""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import TYPE_CHECKING

from trip_roster.services.roster.errors import EmptyPool, InvalidCapacity

if TYPE_CHECKING:
    from collections.abc import Sequence

    from trip_roster.schemas.trips import SignupRead


@dataclass(frozen=True)
class Allocation:
    """A candidate roster/waitlist split. Nothing has been written yet."""

    selected_drivers: tuple[SignupRead, ...]
    # Includes drivers backfilled into non-driver slots.
    selected_non_drivers: tuple[SignupRead, ...]
    backfilled: tuple[SignupRead, ...]
    waitlist: tuple[SignupRead, ...]

    @property
    def roster(self) -> tuple[SignupRead, ...]:
        return self.selected_drivers + self.selected_non_drivers

    @property
    def roster_ids(self) -> tuple[str, ...]:
        return tuple(signup.id for signup in self.roster)

    @property
    def waitlist_ids(self) -> tuple[str, ...]:
        return tuple(signup.id for signup in self.waitlist)


def propose_allocation(
    signups: Sequence[SignupRead],
    *,
    driver_slots: int,
    non_driver_slots: int,
    rng: random.Random | None = None,
) -> Allocation:
    """Randomly fill driver and non-driver slots from every signup on the trip.

    Current statuses are ignored: roster, waitlist, and dropped signups all
    compete. Each eligibility pool is shuffled independently. When the
    non-driver pool runs out, unselected drivers fill the remaining non-driver
    slots; driver slots are never filled from the non-driver pool.
    """
    driver_slots = max(0, driver_slots)
    non_driver_slots = max(0, non_driver_slots)
    if driver_slots == 0 and non_driver_slots == 0:
        raise InvalidCapacity()
    if not signups:
        raise EmptyPool()

    rng = rng or random.Random()
    drivers = [signup for signup in signups if signup.is_driver]
    non_drivers = [signup for signup in signups if not signup.is_driver]
    rng.shuffle(drivers)
    rng.shuffle(non_drivers)

    selected_drivers = drivers[:driver_slots]
    driver_overflow = drivers[driver_slots:]
    selected_non_drivers = non_drivers[:non_driver_slots]
    non_driver_overflow = non_drivers[non_driver_slots:]

    shortfall = non_driver_slots - len(selected_non_drivers)
    backfilled = driver_overflow[:shortfall] if shortfall > 0 else []
    driver_overflow = driver_overflow[len(backfilled):]

    return Allocation(
        selected_drivers=tuple(selected_drivers),
        selected_non_drivers=tuple(selected_non_drivers + backfilled),
        backfilled=tuple(backfilled),
        waitlist=tuple(driver_overflow + non_driver_overflow),
    )
