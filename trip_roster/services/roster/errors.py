"""Request-scoped errors raised by the roster allocation engine.

Each error carries a human-readable ``message``, optional structured
``details``, a machine-readable ``code``, and the HTTP status the API layer
answers with. None of them are retried internally.
"""

from __future__ import annotations

from fastapi import status


class RosterError(Exception):
    """Base class for allocation, approval, and promotion failures."""

    code = "roster_error"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Roster operation failed"

    def __init__(self, message: str | None = None, *, details: object | None = None) -> None:
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class InvalidCapacity(RosterError):
    code = "invalid_capacity"
    default_message = "Trip has no capacity defined for drivers or non-drivers"


class EmptyPool(RosterError):
    code = "empty_pool"
    default_message = "No participants signed up for this trip"


class RosterFull(RosterError):
    code = "roster_full"
    default_message = "Roster currently full!"


class NoDriverSpots(RosterError):
    code = "no_driver_spots"
    default_message = "No driver spots available"


class NoNonDriverSpots(RosterError):
    code = "no_non_driver_spots"
    default_message = "No non-driver spots available"


class WaitlistEmpty(RosterError):
    code = "waitlist_empty"
    default_message = "No participants on waitlist"


class NoDriversOnWaitlist(RosterError):
    code = "no_drivers_on_waitlist"
    default_message = "No drivers available on waitlist"


class NoNonDriversOnWaitlist(RosterError):
    code = "no_non_drivers_on_waitlist"
    default_message = "No non-drivers available on waitlist"


class ParticipantNotFound(RosterError):
    code = "participant_not_found"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Participant not found"


class NoPendingProposal(RosterError):
    code = "no_pending_proposal"
    default_message = "No pending randomization found"


class ProposalMismatch(RosterError):
    code = "proposal_mismatch"
    default_message = "Approval data does not match randomization"


class UpstreamFailure(RosterError):
    """A record-store call failed; already-applied writes are not rolled back."""

    code = "upstream_failure"
    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = "Record store request failed"
