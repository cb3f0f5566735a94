"""Soft removal of a participant from a trip."""

from __future__ import annotations

from typing import TYPE_CHECKING

from trip_roster.services.roster.status import Dropped, StatusUpdate, format_status

if TYPE_CHECKING:
    from datetime import date


def drop_update(participant_id: str, *, today: date) -> StatusUpdate:
    """Rewrite the status to a date-stamped drop marker; the record is kept.

    Applies to roster and waitlist signups alike and never checks capacity.
    Dropping twice just restamps the date.
    """
    return StatusUpdate(participant_id, format_status(Dropped(on=today)))
