"""Request and response payloads for roster allocation endpoints."""

from __future__ import annotations

from pydantic import Field
from sqlmodel import SQLModel

from trip_roster.schemas.trips import SignupRead


class RandomizeResponse(SQLModel):
    """Proposed roster/waitlist split awaiting approval."""

    message: str
    proposed_roster: list[SignupRead]
    proposed_waitlist: list[SignupRead]
    roster_ids: list[str]
    waitlist_ids: list[str]
    expires_in_seconds: float = Field(
        description="Seconds until the pending proposal is discarded.",
    )


class ApproveRequest(SQLModel):
    """Roster and waitlist ids echoed back from a randomize response."""

    roster_ids: list[str]
    waitlist_ids: list[str]


class ApproveResponse(SQLModel):
    """Outcome of committing a proposal."""

    message: str
    updated_count: int


class PromoteResponse(SQLModel):
    """Participant moved onto the roster."""

    message: str
    promoted: SignupRead


class ReadmitRequest(SQLModel):
    """Dropped participant to restore to the roster."""

    participant_id: str = Field(min_length=1)


class DropRequest(SQLModel):
    """Participant to soft-remove from the trip."""

    participant_id: str = Field(min_length=1)
    participant_name: str | None = None


class DropResponse(SQLModel):
    """Result of a soft drop."""

    ok: bool
    message: str
