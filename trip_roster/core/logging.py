"""Logging setup with text and JSON output modes.

Log calls across the service use dotted event names as the message and pass
structured context through ``extra``::

    logger.info("roster.proposal.stored", extra={"trip_id": trip_id})

Both formatters render any non-standard record attribute, so the context is
visible in either output mode.
"""

from __future__ import annotations

import json
import logging
import sys
import time
from datetime import UTC, datetime
from typing import Any

from trip_roster.core.config import settings

_RESERVED_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None)).keys()
) | {"message", "asctime"}

_ROOT_HANDLER_NAME = "trip_roster"


def _record_extras(record: logging.LogRecord) -> dict[str, Any]:
    return {
        key: value
        for key, value in record.__dict__.items()
        if key not in _RESERVED_RECORD_ATTRS and not key.startswith("_")
    }


def _format_value(value: object) -> str:
    text = str(value)
    if not text or any(ch.isspace() for ch in text) or "=" in text:
        return json.dumps(text, ensure_ascii=True)
    return text


class KeyValueFormatter(logging.Formatter):
    """Human-readable formatter that appends ``key=value`` context pairs."""

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        extras = _record_extras(record)
        if not extras:
            return base
        context = " ".join(f"{key}={_format_value(value)}" for key, value in extras.items())
        return f"{base} {context}"


class JsonFormatter(logging.Formatter):
    """One JSON object per line; extras are merged at the top level."""

    def __init__(self, *, use_utc: bool = False) -> None:
        super().__init__()
        self._use_utc = use_utc

    def format(self, record: logging.LogRecord) -> str:
        tz = UTC if self._use_utc else None
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=tz).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in _record_extras(record).items():
            payload[key] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str, ensure_ascii=True)


def _build_formatter(log_format: str, *, use_utc: bool) -> logging.Formatter:
    if log_format.strip().lower() == "json":
        return JsonFormatter(use_utc=use_utc)
    formatter = KeyValueFormatter("%(asctime)s %(levelname)s %(name)s %(message)s")
    if use_utc:
        formatter.converter = time.gmtime
    return formatter


def configure_logging(
    *,
    level: str | None = None,
    log_format: str | None = None,
    use_utc: bool | None = None,
) -> None:
    """Install a single stream handler on the root logger.

    Safe to call more than once; the previously installed handler is replaced.
    """
    effective_level = (level or settings.log_level).upper()
    formatter = _build_formatter(
        log_format or settings.log_format,
        use_utc=settings.log_use_utc if use_utc is None else use_utc,
    )

    root = logging.getLogger()
    for handler in list(root.handlers):
        if handler.get_name() == _ROOT_HANDLER_NAME:
            root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.set_name(_ROOT_HANDLER_NAME)
    handler.setFormatter(formatter)
    root.addHandler(handler)
    root.setLevel(effective_level)

    # httpx logs every request at INFO; only show those at DEBUG.
    httpx_level = root.level if root.level <= logging.DEBUG else logging.WARNING
    logging.getLogger("httpx").setLevel(httpx_level)


def get_logger(name: str) -> logging.Logger:
    """Return a module logger."""
    return logging.getLogger(name)
