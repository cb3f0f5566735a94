"""Commit an approved proposal: validate it, number the waitlists, write statuses."""

from __future__ import annotations

import asyncio
import math
from typing import TYPE_CHECKING, Protocol

from trip_roster.core.config import MAX_STORE_WRITE_CONCURRENCY
from trip_roster.core.logging import get_logger
from trip_roster.services.roster.errors import (
    NoPendingProposal,
    ProposalMismatch,
    RosterError,
    UpstreamFailure,
)
from trip_roster.services.roster.status import (
    Rostered,
    StatusUpdate,
    Waitlisted,
    format_status,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from trip_roster.schemas.trips import SignupRead
    from trip_roster.services.roster.proposals import Proposal, ProposalCache

logger = get_logger(__name__)


class StatusWriter(Protocol):
    async def update_signup_status(self, signup_id: str, status: str) -> SignupRead: ...


def ttl_label(seconds: float) -> str:
    """Describe a proposal lifetime in whole minutes when it divides evenly."""
    if seconds >= 60 and seconds % 60 == 0:
        return f"{int(seconds // 60)} minute limit"
    return f"{math.ceil(seconds)} second limit"


def _same_members(supplied: Sequence[str], stored: Sequence[str]) -> bool:
    return len(supplied) == len(stored) and set(supplied) == set(stored)


def take_proposal(
    cache: ProposalCache,
    trip_id: str,
    *,
    roster_ids: Sequence[str],
    waitlist_ids: Sequence[str],
) -> Proposal:
    """Consume the trip's pending proposal if the supplied ids match it exactly.

    The entry is removed before any write is issued, so a duplicate approval
    fails with ``NoPendingProposal``. A mismatch leaves the entry in place.
    """

    def _matches(proposal: Proposal) -> bool:
        return _same_members(roster_ids, proposal.roster_ids) and _same_members(
            waitlist_ids, proposal.waitlist_ids
        )

    proposal, taken = cache.take_if_match(trip_id, _matches)
    if proposal is None:
        raise NoPendingProposal(
            details=(
                "Please randomize the roster first, or your proposal has expired "
                f"({ttl_label(cache.ttl_seconds)})"
            ),
        )
    if not taken:
        logger.warning("roster.approve.mismatch", extra={"trip_id": trip_id})
        raise ProposalMismatch(
            details=(
                "The roster/waitlist assignment does not match what was randomized. "
                "Please randomize again."
            ),
        )
    return proposal


def build_status_updates(
    roster_ids: Iterable[str],
    waitlist_ids: Iterable[str],
    signups: Iterable[SignupRead],
) -> list[StatusUpdate]:
    """Assign final statuses for an approved split.

    Roster ids become ``Selected (driver|nondriver)`` by driver flag. Waitlist
    ids are split by driver flag and numbered from 1 within each sub-queue,
    keeping the order they were supplied in. Ids that no longer exist on the
    trip are skipped.
    """
    by_id = {signup.id: signup for signup in signups}
    updates: list[StatusUpdate] = []
    missing: list[str] = []

    for signup_id in roster_ids:
        signup = by_id.get(signup_id)
        if signup is None:
            missing.append(signup_id)
            continue
        status = format_status(Rostered(is_driver=signup.is_driver))
        updates.append(StatusUpdate(signup_id, status))

    driver_queue: list[str] = []
    non_driver_queue: list[str] = []
    for signup_id in waitlist_ids:
        signup = by_id.get(signup_id)
        if signup is None:
            missing.append(signup_id)
            continue
        (driver_queue if signup.is_driver else non_driver_queue).append(signup_id)

    for is_driver, queue in ((True, driver_queue), (False, non_driver_queue)):
        for position, signup_id in enumerate(queue, start=1):
            status = format_status(Waitlisted(is_driver=is_driver, position=position))
            updates.append(StatusUpdate(signup_id, status))

    if missing:
        logger.warning("roster.approve.unknown_signups", extra={"signup_ids": missing})
    return updates


async def apply_status_updates(
    store: StatusWriter,
    updates: Sequence[StatusUpdate],
    *,
    concurrency: int = MAX_STORE_WRITE_CONCURRENCY,
) -> int:
    """Write every update with at most ``concurrency`` requests in flight.

    All writes are attempted even if some fail. Successful writes are not
    rolled back; a failure surfaces as ``UpstreamFailure`` with counts.
    """
    limit = max(1, min(concurrency, MAX_STORE_WRITE_CONCURRENCY))
    semaphore = asyncio.Semaphore(limit)

    async def _write(update: StatusUpdate) -> None:
        async with semaphore:
            await store.update_signup_status(update.signup_id, update.status)

    results = await asyncio.gather(
        *(_write(update) for update in updates),
        return_exceptions=True,
    )
    failures = [
        (update, result)
        for update, result in zip(updates, results, strict=True)
        if isinstance(result, Exception)
    ]
    if failures:
        applied = len(updates) - len(failures)
        logger.error(
            "roster.approve.partial_failure",
            extra={
                "applied": applied,
                "failed": len(failures),
                "failed_signup_ids": [update.signup_id for update, _ in failures],
            },
        )
        first_error = failures[0][1]
        message = (
            first_error.message
            if isinstance(first_error, RosterError)
            else "Failed to update signups"
        )
        raise UpstreamFailure(
            message,
            details={
                "applied": applied,
                "failed": len(failures),
                "failed_signup_ids": [update.signup_id for update, _ in failures],
            },
        ) from first_error
    return len(updates)
