"""Shared-passphrase bearer authentication for the trip-lead API."""

from __future__ import annotations

from hmac import compare_digest

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from trip_roster.core.config import settings
from trip_roster.core.logging import get_logger

logger = get_logger(__name__)
security = HTTPBearer(auto_error=False)
SECURITY_DEP = Depends(security)


def _extract_bearer_token(credentials: HTTPAuthorizationCredentials | None) -> str | None:
    if credentials is None:
        return None
    if credentials.scheme.lower() != "bearer":
        return None
    token = credentials.credentials.strip()
    return token or None


def require_access(credentials: HTTPAuthorizationCredentials | None = SECURITY_DEP) -> None:
    """Reject requests that do not present the team passphrase.

    When ``ACCESS_TOKEN`` is unset the API is open (local development).
    """
    expected = settings.access_token.strip()
    if not expected:
        return
    token = _extract_bearer_token(credentials)
    if token is None or not compare_digest(token, expected):
        logger.info("auth.access.denied", extra={"token_present": token is not None})
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing access token",
            headers={"WWW-Authenticate": "Bearer"},
        )
