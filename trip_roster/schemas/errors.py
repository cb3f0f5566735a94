"""Structured error payload schemas used by API responses."""

from __future__ import annotations

from typing import Any

from pydantic import Field
from sqlmodel import SQLModel


class RosterErrorResponse(SQLModel):
    """Error envelope returned for rejected roster operations."""

    detail: str | dict[str, object] | list[object] = Field(
        description="Human-readable error message.",
        examples=["Roster currently full!", "No drivers available on waitlist"],
    )
    request_id: str | None = Field(
        default=None,
        description="Request correlation identifier injected by middleware.",
    )
    code: str | None = Field(
        default=None,
        description="Machine-readable error code.",
        examples=["roster_full", "proposal_mismatch", "upstream_failure"],
    )
    details: Any = Field(
        default=None,
        description="Optional structured context, such as current capacity figures.",
    )
