"""Reusable FastAPI dependencies for the roster API.

The record-store client, proposal cache, and roster service are created once
in the application lifespan and kept on ``app.state``. Routes reach them only
through these providers, so tests can swap in fakes with
``app.dependency_overrides``.
"""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request, status

from trip_roster.core.auth import require_access
from trip_roster.services.roster import RosterService

ACCESS_DEP = Depends(require_access)


def get_roster_service(request: Request) -> RosterService:
    """Return the process-wide roster service."""
    service = getattr(request.app.state, "roster_service", None)
    if not isinstance(service, RosterService):
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Roster service is not initialized",
        )
    return service


ROSTER_SERVICE_DEP = Depends(get_roster_service)
