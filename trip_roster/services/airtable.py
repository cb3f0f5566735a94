"""Airtable-backed record store for trips and signups.

Signups live in one table for every trip; each row links to its trip through
the "Trip LeadName" field, which despite its name holds trip record ids. The
API pages at 100 records and returns an ``offset`` cursor while more remain.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

import httpx

from trip_roster.core.logging import get_logger
from trip_roster.schemas.trips import SignupRead, TripRead
from trip_roster.services.roster.errors import UpstreamFailure
from trip_roster.services.roster.status import UNKNOWN_STATUS

logger = get_logger(__name__)

PAGE_SIZE = 100
_ERROR_BODY_LIMIT = 500

TRIP_FIELD_NAME = "Trip Name"
TRIP_FIELD_TYPE = "Type of Trip"
TRIP_FIELD_START = "Start Date"
TRIP_FIELD_END = "End Date"
TRIP_FIELD_LEAD = "Trip Lead Name"
TRIP_FIELD_COST = "Cost of Trip (per-person)"
TRIP_FIELD_FULL = "FULL"
TRIP_FIELD_CAPACITY = "Capacity (Including leads)"
TRIP_FIELD_DRIVER_SLOTS = "Additional Drivers Required"
TRIP_FIELD_NON_DRIVER_CAPACITY = "Non-Drivers Capacity"

SIGNUP_FIELD_NAME = "Slack Name Refined"
SIGNUP_FIELD_TRIPS = "Trip LeadName"
SIGNUP_FIELD_HAS_CAR = "Do you have a car? (from Slack Name)"
SIGNUP_FIELD_STATUS = "Status"
SIGNUP_FIELD_EMAIL = "Personal Email"
SIGNUP_FIELD_PHONE = "Emergency Contact Phone Number (from Participant Info)"


def _as_int(value: object) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        try:
            return int(float(value.strip()))
        except ValueError:
            return 0
    return 0


def _as_float(value: object) -> float | None:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip().lstrip("$"))
        except ValueError:
            return None
    return None


def _first_text(value: object) -> str | None:
    """Return the first non-blank string from a scalar or lookup (list) field."""
    items = value if isinstance(value, list) else [value]
    for item in items:
        if isinstance(item, str) and item.strip():
            return item.strip()
    return None


def _record_id(record: dict[str, Any]) -> str:
    record_id = record.get("id")
    if not isinstance(record_id, str) or not record_id:
        raise UpstreamFailure(
            "Record store returned a record without an id",
            details={"fields": sorted((record.get("fields") or {}).keys())},
        )
    return record_id


def normalize_trip(record: dict[str, Any]) -> TripRead:
    fields: dict[str, Any] = record.get("fields") or {}
    return TripRead(
        id=_record_id(record),
        name=_first_text(fields.get(TRIP_FIELD_NAME)),
        trip_type=_first_text(fields.get(TRIP_FIELD_TYPE)),
        start_date=_first_text(fields.get(TRIP_FIELD_START)),
        end_date=_first_text(fields.get(TRIP_FIELD_END)),
        lead_name=_first_text(fields.get(TRIP_FIELD_LEAD)),
        cost_per_person=_as_float(fields.get(TRIP_FIELD_COST)),
        full=bool(fields.get(TRIP_FIELD_FULL)),
        capacity=_as_int(fields.get(TRIP_FIELD_CAPACITY)),
        driver_slots=_as_int(fields.get(TRIP_FIELD_DRIVER_SLOTS)),
        non_driver_capacity=_as_int(fields.get(TRIP_FIELD_NON_DRIVER_CAPACITY)),
    )


def normalize_signup(record: dict[str, Any]) -> SignupRead:
    """Map a raw signup row onto the fields the roster engine reads.

    Driver eligibility comes from a lookup field on the participant record and
    is never written back.
    """
    fields: dict[str, Any] = record.get("fields") or {}
    trip_ids = fields.get(SIGNUP_FIELD_TRIPS)
    has_car = fields.get(SIGNUP_FIELD_HAS_CAR)
    return SignupRead(
        id=_record_id(record),
        trip_ids=[str(trip_id) for trip_id in trip_ids] if isinstance(trip_ids, list) else [],
        participant_name=_first_text(fields.get(SIGNUP_FIELD_NAME)) or "Unknown",
        is_driver=any(bool(item) for item in has_car) if isinstance(has_car, list) else False,
        status=fields.get(SIGNUP_FIELD_STATUS) or UNKNOWN_STATUS,
        email=_first_text(fields.get(SIGNUP_FIELD_EMAIL)),
        phone=_first_text(fields.get(SIGNUP_FIELD_PHONE)),
    )


class AirtableStore:
    """Async client for the trips and signups tables.

    Every failure (transport error or non-2xx response) is raised as
    ``UpstreamFailure``; nothing is retried here.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        api_url: str,
        api_key: str,
        base_id: str,
        trips_table: str,
        signups_table: str,
    ) -> None:
        self._client = client
        self._base_url = f"{api_url.rstrip('/')}/{base_id}"
        self._headers = {"Authorization": f"Bearer {api_key}"}
        self._trips_table = trips_table
        self._signups_table = signups_table

    def _table_url(self, table: str, record_id: str | None = None) -> str:
        url = f"{self._base_url}/{quote(table, safe='')}"
        if record_id is not None:
            url = f"{url}/{quote(record_id, safe='')}"
        return url

    async def _request(
        self,
        method: str,
        url: str,
        *,
        operation: str,
        params: dict[str, str] | None = None,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        try:
            response = await self._client.request(
                method,
                url,
                headers=self._headers,
                params=params,
                json=json,
            )
        except httpx.HTTPError as exc:
            logger.warning(
                "airtable.request.transport_error",
                extra={"operation": operation, "error": str(exc)},
            )
            raise UpstreamFailure(
                f"Failed to {operation}",
                details={"operation": operation, "error": str(exc)},
            ) from exc

        if response.is_error:
            body = response.text[:_ERROR_BODY_LIMIT]
            logger.warning(
                "airtable.request.failed",
                extra={
                    "operation": operation,
                    "status_code": response.status_code,
                    "body": body,
                },
            )
            raise UpstreamFailure(
                f"Failed to {operation}: {body}",
                details={
                    "operation": operation,
                    "status_code": response.status_code,
                },
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise UpstreamFailure(
                f"Failed to {operation}: response is not valid JSON",
                details={
                    "operation": operation,
                    "status_code": response.status_code,
                },
            ) from exc
        if not isinstance(payload, dict):
            raise UpstreamFailure(
                f"Failed to {operation}: unexpected response shape",
                details={"operation": operation},
            )
        return payload

    async def _list_records(self, table: str, *, operation: str) -> list[dict[str, Any]]:
        records: list[dict[str, Any]] = []
        offset: str | None = None
        pages = 0
        while True:
            params = {"pageSize": str(PAGE_SIZE)}
            if offset:
                params["offset"] = offset
            payload = await self._request(
                "GET",
                self._table_url(table),
                operation=operation,
                params=params,
            )
            pages += 1
            page = payload.get("records") or []
            if not isinstance(page, list) or not all(isinstance(item, dict) for item in page):
                raise UpstreamFailure(
                    f"Failed to {operation}: unexpected response shape",
                    details={"operation": operation},
                )
            records.extend(page)
            offset = payload.get("offset")
            if not offset:
                break
        logger.debug(
            "airtable.records.listed",
            extra={"table": table, "pages": pages, "count": len(records)},
        )
        return records

    async def list_trips(self) -> list[TripRead]:
        records = await self._list_records(self._trips_table, operation="fetch trips")
        return [normalize_trip(record) for record in records]

    async def get_trip(self, trip_id: str) -> TripRead:
        payload = await self._request(
            "GET",
            self._table_url(self._trips_table, trip_id),
            operation="fetch trip",
        )
        return normalize_trip(payload)

    async def list_signups_for_trip(self, trip_id: str) -> list[SignupRead]:
        records = await self._list_records(self._signups_table, operation="fetch signups")
        signups = [normalize_signup(record) for record in records]
        return [signup for signup in signups if trip_id in signup.trip_ids]

    async def update_signup_status(self, signup_id: str, status: str) -> SignupRead:
        payload = await self._request(
            "PATCH",
            self._table_url(self._signups_table, signup_id),
            operation="update signup",
            json={"fields": {SIGNUP_FIELD_STATUS: status}},
        )
        logger.info(
            "airtable.signup.status_updated",
            extra={"signup_id": signup_id, "status": status},
        )
        return normalize_signup(payload)
