"""Signup status strings, their parsed form, and roster/waitlist classification.

The record store keeps a single free-text ``Status`` per signup that encodes
both the category and, for waitlisted people, their position:

- ``Selected (driver)`` / ``Selected (nondriver)`` (legacy ``ON TRIP``)
- ``Waitlist (driver) - 3`` / ``Waitlist (nondriver) - 1`` (legacy ``WAITLIST``)
- ``Dropped- 04/12/2025``

Inside the service, statuses are handled as ``SignupStatus`` values: rows are
parsed on read and updates are rendered with ``format_status`` on write. Values
outside the structured formats stay ``Legacy`` and are classified by
case-insensitive keyword so older hand-edited values keep working; "dropped"
wins over every other keyword.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from trip_roster.schemas.trips import SignupRead

ROSTER_DRIVER_STATUS = "Selected (driver)"
ROSTER_NON_DRIVER_STATUS = "Selected (nondriver)"
UNKNOWN_STATUS = "UNKNOWN"
DROP_DATE_FORMAT = "%m/%d/%Y"

_WAITLIST_PATTERN = re.compile(r"^waitlist \((driver|nondriver)\) - (\d+)$", re.IGNORECASE)
_DROPPED_PATTERN = re.compile(r"^dropped- (\d{2}/\d{2}/\d{4})$", re.IGNORECASE)


class StatusCategory(str, Enum):
    """Which partition of a trip's signups a status belongs to."""

    ROSTER = "roster"
    WAITLIST = "waitlist"
    DROPPED = "dropped"
    UNCLASSIFIED = "unclassified"


@dataclass(frozen=True)
class Rostered:
    is_driver: bool


@dataclass(frozen=True)
class Waitlisted:
    is_driver: bool
    position: int


@dataclass(frozen=True)
class Dropped:
    on: date


@dataclass(frozen=True)
class Legacy:
    """Any status not in one of the structured formats, kept verbatim."""

    raw: str


SignupStatus = Rostered | Waitlisted | Dropped | Legacy


@dataclass(frozen=True)
class StatusUpdate:
    """A single status write destined for the record store."""

    signup_id: str
    status: str


def categorize(raw: str | None) -> StatusCategory:
    """Classify a raw status string by keyword."""
    text = (raw or "").lower()
    if "dropped" in text:
        return StatusCategory.DROPPED
    if "selected" in text or "on trip" in text:
        return StatusCategory.ROSTER
    if "waitlist" in text:
        return StatusCategory.WAITLIST
    return StatusCategory.UNCLASSIFIED


def parse_status(raw: str | None) -> SignupStatus:
    """Parse a stored status string into its structured form."""
    text = (raw or "").strip()
    lowered = text.lower()
    if lowered == ROSTER_DRIVER_STATUS.lower():
        return Rostered(is_driver=True)
    if lowered == ROSTER_NON_DRIVER_STATUS.lower():
        return Rostered(is_driver=False)

    match = _WAITLIST_PATTERN.match(text)
    if match:
        return Waitlisted(
            is_driver=match.group(1).lower() == "driver",
            position=int(match.group(2)),
        )

    match = _DROPPED_PATTERN.match(text)
    if match:
        try:
            return Dropped(on=datetime.strptime(match.group(1), DROP_DATE_FORMAT).date())
        except ValueError:
            return Legacy(raw=text)

    return Legacy(raw=text or UNKNOWN_STATUS)


def format_status(value: SignupStatus) -> str:
    """Render a structured status in the record store's string format."""
    if isinstance(value, Rostered):
        return roster_status(is_driver=value.is_driver)
    if isinstance(value, Waitlisted):
        return waitlist_status(is_driver=value.is_driver, position=value.position)
    if isinstance(value, Dropped):
        return dropped_status(value.on)
    return value.raw


def category_of(value: SignupStatus) -> StatusCategory:
    if isinstance(value, Rostered):
        return StatusCategory.ROSTER
    if isinstance(value, Waitlisted):
        return StatusCategory.WAITLIST
    if isinstance(value, Dropped):
        return StatusCategory.DROPPED
    return categorize(value.raw)


def roster_status(*, is_driver: bool) -> str:
    return ROSTER_DRIVER_STATUS if is_driver else ROSTER_NON_DRIVER_STATUS


def waitlist_status(*, is_driver: bool, position: int) -> str:
    if position < 1:
        msg = f"Waitlist positions are 1-based, got {position}"
        raise ValueError(msg)
    role = "driver" if is_driver else "nondriver"
    return f"Waitlist ({role}) - {position}"


def dropped_status(on: date) -> str:
    return f"Dropped- {on.strftime(DROP_DATE_FORMAT)}"


@dataclass(frozen=True)
class Partition:
    """A trip's signups split by status category, in store order."""

    roster: tuple[SignupRead, ...]
    waitlist: tuple[SignupRead, ...]
    dropped: tuple[SignupRead, ...]


def classify(signups: Iterable[SignupRead]) -> Partition:
    """Split signups into roster, waitlist, and dropped partitions.

    Signups whose status matches none of the keywords are left out of all
    three partitions.
    """
    roster: list[SignupRead] = []
    waitlist: list[SignupRead] = []
    dropped: list[SignupRead] = []
    buckets = {
        StatusCategory.ROSTER: roster,
        StatusCategory.WAITLIST: waitlist,
        StatusCategory.DROPPED: dropped,
    }
    for signup in signups:
        bucket = buckets.get(category_of(parse_status(signup.status)))
        if bucket is not None:
            bucket.append(signup)
    return Partition(roster=tuple(roster), waitlist=tuple(waitlist), dropped=tuple(dropped))


def driver_count(signups: Iterable[SignupRead]) -> int:
    """Count driver-eligible signups in any subset."""
    return sum(1 for signup in signups if signup.is_driver)
