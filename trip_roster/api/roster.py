"""Roster allocation endpoints: randomize, approve, promote, re-admit, drop.

Randomize only computes a proposal. Nothing is written until the same roster
and waitlist ids are posted back to ``/approve`` within the proposal TTL.
"""

from __future__ import annotations

from fastapi import APIRouter

from trip_roster.api.deps import ACCESS_DEP, ROSTER_SERVICE_DEP
from trip_roster.schemas.errors import RosterErrorResponse
from trip_roster.schemas.roster import (
    ApproveRequest,
    ApproveResponse,
    DropRequest,
    DropResponse,
    PromoteResponse,
    RandomizeResponse,
    ReadmitRequest,
)
from trip_roster.services.roster import RosterService
from trip_roster.services.roster.service import PromotionResult

router = APIRouter(
    prefix="/trips/{trip_id}/roster",
    tags=["roster"],
    dependencies=[ACCESS_DEP],
    responses={
        400: {"model": RosterErrorResponse},
        404: {"model": RosterErrorResponse},
        502: {"model": RosterErrorResponse},
    },
)


def _promotion_response(result: PromotionResult, *, label: str) -> PromoteResponse:
    return PromoteResponse(
        message=f"Added {result.promoted.participant_name}{label} to roster",
        promoted=result.promoted,
    )


@router.post("/randomize", response_model=RandomizeResponse)
async def randomize_roster(
    trip_id: str,
    service: RosterService = ROSTER_SERVICE_DEP,
) -> RandomizeResponse:
    """Propose a random roster/waitlist split for approval."""
    proposed = await service.propose(trip_id)
    allocation = proposed.allocation
    return RandomizeResponse(
        message=(
            f"Randomized {len(allocation.roster)} participants to roster "
            f"({len(allocation.selected_drivers)} drivers, "
            f"{len(allocation.selected_non_drivers)} non-drivers). "
            "Click Approve to commit changes."
        ),
        proposed_roster=list(allocation.roster),
        proposed_waitlist=list(allocation.waitlist),
        roster_ids=list(allocation.roster_ids),
        waitlist_ids=list(allocation.waitlist_ids),
        expires_in_seconds=proposed.expires_in_seconds,
    )


@router.post("/approve", response_model=ApproveResponse)
async def approve_roster(
    trip_id: str,
    payload: ApproveRequest,
    service: RosterService = ROSTER_SERVICE_DEP,
) -> ApproveResponse:
    """Commit the pending proposal for the trip."""
    result = await service.approve(
        trip_id,
        roster_ids=payload.roster_ids,
        waitlist_ids=payload.waitlist_ids,
    )
    return ApproveResponse(
        message=(
            f"Successfully updated roster: {result.roster_count} on roster, "
            f"{result.waitlist_count} on waitlist"
        ),
        updated_count=result.updated_count,
    )


@router.post("/promote", response_model=PromoteResponse)
async def promote_next(
    trip_id: str,
    service: RosterService = ROSTER_SERVICE_DEP,
) -> PromoteResponse:
    """Move the best-fitting waitlisted participant onto the roster."""
    result = await service.promote_next(trip_id)
    return _promotion_response(result, label=" from waitlist")


@router.post("/promote-driver", response_model=PromoteResponse)
async def promote_driver(
    trip_id: str,
    service: RosterService = ROSTER_SERVICE_DEP,
) -> PromoteResponse:
    """Fill an open driver spot from the waitlist."""
    result = await service.promote_driver(trip_id)
    return _promotion_response(result, label=" (driver) from waitlist")


@router.post("/promote-non-driver", response_model=PromoteResponse)
async def promote_non_driver(
    trip_id: str,
    service: RosterService = ROSTER_SERVICE_DEP,
) -> PromoteResponse:
    """Fill an open non-driver spot from the waitlist."""
    result = await service.promote_non_driver(trip_id)
    return _promotion_response(result, label=" (non-driver) from waitlist")


@router.post("/readmit", response_model=PromoteResponse)
async def readmit_participant(
    trip_id: str,
    payload: ReadmitRequest,
    service: RosterService = ROSTER_SERVICE_DEP,
) -> PromoteResponse:
    """Restore a dropped participant if their spot type has room."""
    result = await service.readmit(trip_id, payload.participant_id)
    return PromoteResponse(
        message=f"Re-added {result.promoted.participant_name} to roster",
        promoted=result.promoted,
    )


@router.post("/drop", response_model=DropResponse)
async def drop_participant(
    trip_id: str,
    payload: DropRequest,
    service: RosterService = ROSTER_SERVICE_DEP,
) -> DropResponse:
    """Soft-drop a participant by stamping today's date into their status."""
    await service.drop(trip_id, payload.participant_id)
    name = payload.participant_name or "participant"
    return DropResponse(ok=True, message=f"Removed {name} from roster")
