"""Trip and signup read endpoints."""

from __future__ import annotations

from fastapi import APIRouter

from trip_roster.api.deps import ACCESS_DEP, ROSTER_SERVICE_DEP
from trip_roster.schemas.errors import RosterErrorResponse
from trip_roster.schemas.trips import SignupListResponse, TripResponse, TripsResponse
from trip_roster.services.roster import RosterService

router = APIRouter(
    prefix="/trips",
    tags=["trips"],
    dependencies=[ACCESS_DEP],
    responses={502: {"model": RosterErrorResponse}},
)


@router.get("", response_model=TripsResponse)
async def list_trips(service: RosterService = ROSTER_SERVICE_DEP) -> TripsResponse:
    """List every trip in the record store."""
    return TripsResponse(trips=await service.list_trips())


@router.get("/{trip_id}", response_model=TripResponse)
async def get_trip(trip_id: str, service: RosterService = ROSTER_SERVICE_DEP) -> TripResponse:
    """Fetch one trip with its capacity figures."""
    return TripResponse(trip=await service.get_trip(trip_id))


@router.get("/{trip_id}/signups", response_model=SignupListResponse)
async def list_signups(
    trip_id: str,
    service: RosterService = ROSTER_SERVICE_DEP,
) -> SignupListResponse:
    """List a trip's signups split into roster, waitlist, and dropped."""
    listing = await service.list_signups(trip_id)
    return SignupListResponse(
        signups=list(listing.signups),
        roster=list(listing.partition.roster),
        waitlist=list(listing.partition.waitlist),
        dropped=list(listing.partition.dropped),
        driver_count=listing.driver_count,
    )
