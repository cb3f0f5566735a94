"""Time helpers shared by services and the request pipeline."""

from __future__ import annotations

from datetime import date, datetime
from zoneinfo import ZoneInfo


def local_today(tz_name: str) -> date:
    """Return the current calendar date in the named timezone."""
    return datetime.now(ZoneInfo(tz_name)).date()
