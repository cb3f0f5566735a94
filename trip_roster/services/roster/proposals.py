"""In-memory cache of pending roster proposals, one per trip.

A proposal is written by a randomize call and consumed by the approval that
echoes back the same roster and waitlist ids. The cache is volatile: a restart
drops every pending proposal and the trip lead simply randomizes again.
"""

from __future__ import annotations

import asyncio
import threading
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

from trip_roster.core.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

logger = get_logger(__name__)

DEFAULT_PROPOSAL_TTL_SECONDS = 10 * 60
DEFAULT_SWEEP_INTERVAL_SECONDS = 60


@dataclass(frozen=True)
class Proposal:
    """Roster/waitlist ids computed by the allocator for one trip."""

    trip_id: str
    roster_ids: tuple[str, ...]
    waitlist_ids: tuple[str, ...]
    created_at: float

    def age(self, now: float) -> float:
        return now - self.created_at


class ProposalCache:
    """Thread-safe trip id -> proposal map with a fixed time-to-live.

    Every read and write goes through one lock, including the periodic sweep.
    ``clock`` returns seconds and defaults to ``time.monotonic``.
    """

    def __init__(
        self,
        *,
        ttl_seconds: float = DEFAULT_PROPOSAL_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, Proposal] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _is_expired(self, proposal: Proposal, now: float) -> bool:
        return proposal.age(now) > self.ttl_seconds

    def put(
        self,
        trip_id: str,
        *,
        roster_ids: Iterable[str],
        waitlist_ids: Iterable[str],
    ) -> Proposal:
        """Store a proposal, replacing any earlier one for the trip."""
        proposal = Proposal(
            trip_id=trip_id,
            roster_ids=tuple(roster_ids),
            waitlist_ids=tuple(waitlist_ids),
            created_at=self._clock(),
        )
        with self._lock:
            replaced = trip_id in self._entries
            self._entries[trip_id] = proposal
        logger.info(
            "roster.proposal.stored",
            extra={
                "trip_id": trip_id,
                "roster_count": len(proposal.roster_ids),
                "waitlist_count": len(proposal.waitlist_ids),
                "replaced": replaced,
            },
        )
        return proposal

    def get(self, trip_id: str) -> Proposal | None:
        """Return the live proposal for a trip; expired entries count as absent."""
        with self._lock:
            return self._get_locked(trip_id, self._clock())

    def _get_locked(self, trip_id: str, now: float) -> Proposal | None:
        proposal = self._entries.get(trip_id)
        if proposal is None:
            return None
        if self._is_expired(proposal, now):
            del self._entries[trip_id]
            return None
        return proposal

    def delete(self, trip_id: str) -> bool:
        with self._lock:
            return self._entries.pop(trip_id, None) is not None

    def take_if_match(
        self,
        trip_id: str,
        matches: Callable[[Proposal], bool],
    ) -> tuple[Proposal | None, bool]:
        """Atomically remove the trip's proposal when ``matches`` accepts it.

        Returns ``(proposal, taken)``. ``proposal`` is None when nothing live is
        cached; a rejected proposal stays in the cache.
        """
        with self._lock:
            proposal = self._get_locked(trip_id, self._clock())
            if proposal is None:
                return None, False
            if not matches(proposal):
                return proposal, False
            del self._entries[trip_id]
            return proposal, True

    def sweep_expired(self, now: float | None = None) -> int:
        """Drop every proposal older than the TTL. Returns how many were removed."""
        current = self._clock() if now is None else now
        with self._lock:
            expired = [
                trip_id
                for trip_id, proposal in self._entries.items()
                if self._is_expired(proposal, current)
            ]
            for trip_id in expired:
                del self._entries[trip_id]
        for trip_id in expired:
            logger.info("roster.proposal.expired", extra={"trip_id": trip_id})
        return len(expired)


async def run_proposal_sweeper(
    cache: ProposalCache,
    *,
    interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
) -> None:
    """Sweep expired proposals on a fixed interval until cancelled."""
    logger.info("roster.proposal.sweeper.started", extra={"interval_seconds": interval_seconds})
    try:
        while True:
            await asyncio.sleep(interval_seconds)
            removed = cache.sweep_expired()
            if removed:
                logger.debug("roster.proposal.sweeper.swept", extra={"removed": removed})
    finally:
        logger.info("roster.proposal.sweeper.stopped")
