"""Request-level roster operations over the record store and proposal cache."""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from trip_roster.core.config import MAX_STORE_WRITE_CONCURRENCY
from trip_roster.core.logging import get_logger
from trip_roster.services.roster.allocator import Allocation, propose_allocation
from trip_roster.services.roster.committer import (
    apply_status_updates,
    build_status_updates,
    take_proposal,
)
from trip_roster.services.roster.drops import drop_update
from trip_roster.services.roster.promoter import (
    Promotion,
    select_driver,
    select_next,
    select_non_driver,
    select_readmit,
)
from trip_roster.services.roster.status import Partition, classify, driver_count

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from datetime import date

    from trip_roster.schemas.trips import SignupRead, TripRead
    from trip_roster.services.roster.proposals import ProposalCache

logger = get_logger(__name__)


class RecordStore(Protocol):
    """The four record-store operations the roster engine depends on."""

    async def list_trips(self) -> list[TripRead]: ...

    async def get_trip(self, trip_id: str) -> TripRead: ...

    async def list_signups_for_trip(self, trip_id: str) -> list[SignupRead]: ...

    async def update_signup_status(self, signup_id: str, status: str) -> SignupRead: ...


@dataclass(frozen=True)
class SignupListing:
    signups: tuple[SignupRead, ...]
    partition: Partition
    driver_count: int


@dataclass(frozen=True)
class ProposedAllocation:
    trip_id: str
    allocation: Allocation
    expires_in_seconds: float


@dataclass(frozen=True)
class ApprovalResult:
    trip_id: str
    roster_count: int
    waitlist_count: int
    updated_count: int


@dataclass(frozen=True)
class PromotionResult:
    promoted: SignupRead
    status: str


class RosterService:
    """Entry point for every roster operation the API exposes.

    Stateless between calls apart from the shared proposal cache.
    """

    def __init__(
        self,
        store: RecordStore,
        proposals: ProposalCache,
        *,
        today: Callable[[], date],
        rng: random.Random | None = None,
        write_concurrency: int = MAX_STORE_WRITE_CONCURRENCY,
    ) -> None:
        self.store = store
        self.proposals = proposals
        self._today = today
        self._rng = rng or random.Random()
        self._write_concurrency = write_concurrency

    async def list_trips(self) -> list[TripRead]:
        return await self.store.list_trips()

    async def get_trip(self, trip_id: str) -> TripRead:
        return await self.store.get_trip(trip_id)

    async def list_signups(self, trip_id: str) -> SignupListing:
        signups = tuple(await self.store.list_signups_for_trip(trip_id))
        partition = classify(signups)
        return SignupListing(
            signups=signups,
            partition=partition,
            driver_count=driver_count(partition.roster),
        )

    async def propose(self, trip_id: str) -> ProposedAllocation:
        """Compute a random roster/waitlist split and hold it for approval."""
        trip = await self.store.get_trip(trip_id)
        signups = await self.store.list_signups_for_trip(trip_id)
        allocation = propose_allocation(
            signups,
            driver_slots=trip.driver_slots,
            non_driver_slots=trip.non_driver_capacity,
            rng=self._rng,
        )
        self.proposals.put(
            trip_id,
            roster_ids=allocation.roster_ids,
            waitlist_ids=allocation.waitlist_ids,
        )
        logger.info(
            "roster.randomize.proposed",
            extra={
                "trip_id": trip_id,
                "drivers": len(allocation.selected_drivers),
                "non_drivers": len(allocation.selected_non_drivers),
                "backfilled": len(allocation.backfilled),
                "waitlist": len(allocation.waitlist),
            },
        )
        return ProposedAllocation(
            trip_id=trip_id,
            allocation=allocation,
            expires_in_seconds=self.proposals.ttl_seconds,
        )

    async def approve(
        self,
        trip_id: str,
        *,
        roster_ids: Sequence[str],
        waitlist_ids: Sequence[str],
    ) -> ApprovalResult:
        """Commit the pending proposal when the echoed ids match it.

        The proposal is consumed before the first write. If a write fails the
        trip has to be randomized again; writes that already landed stand.
        """
        take_proposal(self.proposals, trip_id, roster_ids=roster_ids, waitlist_ids=waitlist_ids)
        logger.info(
            "roster.approve.accepted",
            extra={
                "trip_id": trip_id,
                "roster_count": len(roster_ids),
                "waitlist_count": len(waitlist_ids),
            },
        )
        signups = await self.store.list_signups_for_trip(trip_id)
        updates = build_status_updates(roster_ids, waitlist_ids, signups)
        updated = await apply_status_updates(
            self.store,
            updates,
            concurrency=self._write_concurrency,
        )
        logger.info(
            "roster.approve.committed",
            extra={"trip_id": trip_id, "updated_count": updated},
        )
        return ApprovalResult(
            trip_id=trip_id,
            roster_count=len(roster_ids),
            waitlist_count=len(waitlist_ids),
            updated_count=updated,
        )

    async def _promote(
        self,
        trip_id: str,
        select: Callable[[TripRead, Sequence[SignupRead]], Promotion],
        *,
        action: str,
    ) -> PromotionResult:
        trip = await self.store.get_trip(trip_id)
        signups = await self.store.list_signups_for_trip(trip_id)
        promotion = select(trip, signups)
        updated = await self.store.update_signup_status(
            promotion.update.signup_id,
            promotion.update.status,
        )
        logger.info(
            f"roster.{action}.applied",
            extra={
                "trip_id": trip_id,
                "signup_id": promotion.signup.id,
                "status": promotion.update.status,
            },
        )
        return PromotionResult(promoted=updated, status=promotion.update.status)

    async def promote_next(self, trip_id: str) -> PromotionResult:
        return await self._promote(trip_id, select_next, action="promote")

    async def promote_driver(self, trip_id: str) -> PromotionResult:
        return await self._promote(trip_id, select_driver, action="promote_driver")

    async def promote_non_driver(self, trip_id: str) -> PromotionResult:
        return await self._promote(trip_id, select_non_driver, action="promote_non_driver")

    async def readmit(self, trip_id: str, participant_id: str) -> PromotionResult:
        def _select(trip: TripRead, signups: Sequence[SignupRead]) -> Promotion:
            return select_readmit(trip, signups, participant_id)

        return await self._promote(trip_id, _select, action="readmit")

    async def drop(self, trip_id: str, participant_id: str) -> SignupRead:
        """Soft-drop a participant. No capacity or existence check is made here."""
        update = drop_update(participant_id, today=self._today())
        updated = await self.store.update_signup_status(update.signup_id, update.status)
        logger.info(
            "roster.drop.applied",
            extra={"trip_id": trip_id, "signup_id": participant_id, "status": update.status},
        )
        return updated
