"""Roster allocation engine: classification, randomized proposals, approval, promotion.

Prefer importing from this package when used by other modules.
"""

from trip_roster.services.roster.proposals import ProposalCache, run_proposal_sweeper
from trip_roster.services.roster.service import RecordStore, RosterService

__all__ = [
    "ProposalCache",
    "RecordStore",
    "RosterService",
    "run_proposal_sweeper",
]
