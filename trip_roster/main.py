"""FastAPI application entrypoint and router wiring for the roster service."""

from __future__ import annotations

import asyncio
import contextlib
from contextlib import asynccontextmanager
from functools import partial
from typing import TYPE_CHECKING

import httpx
from fastapi import APIRouter, FastAPI, status
from fastapi.middleware.cors import CORSMiddleware

from trip_roster.api.roster import router as roster_router
from trip_roster.api.trips import router as trips_router
from trip_roster.core.config import settings
from trip_roster.core.error_handling import install_error_handling
from trip_roster.core.logging import configure_logging, get_logger
from trip_roster.core.time import local_today
from trip_roster.schemas.health import HealthStatusResponse
from trip_roster.services.airtable import AirtableStore
from trip_roster.services.roster import ProposalCache, RosterService, run_proposal_sweeper

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

configure_logging()
logger = get_logger(__name__)
OPENAPI_TAGS = [
    {
        "name": "health",
        "description": "Service liveness/readiness checks used by infrastructure checks.",
    },
    {
        "name": "trips",
        "description": "Trip lookup and signup listings partitioned by roster status.",
    },
    {
        "name": "roster",
        "description": (
            "Randomized roster proposals, approval, waitlist promotion, re-admission, "
            "and soft drops."
        ),
    },
]


def build_roster_service(client: httpx.AsyncClient) -> RosterService:
    """Wire the record store and proposal cache from settings."""
    store = AirtableStore(
        client,
        api_url=settings.airtable_api_url,
        api_key=settings.airtable_api_key,
        base_id=settings.airtable_base_id,
        trips_table=settings.airtable_trips_table,
        signups_table=settings.airtable_signups_table,
    )
    proposals = ProposalCache(ttl_seconds=settings.proposal_ttl_seconds)
    return RosterService(
        store,
        proposals,
        today=partial(local_today, settings.drop_date_timezone),
        write_concurrency=settings.store_write_concurrency,
    )


@asynccontextmanager
async def lifespan(fastapi_app: FastAPI) -> AsyncIterator[None]:
    """Create the store client and start the proposal sweeper."""
    logger.info(
        "app.lifecycle.starting environment=%s proposal_ttl_seconds=%s",
        settings.environment,
        settings.proposal_ttl_seconds,
    )
    if not settings.airtable_api_key or not settings.airtable_base_id:
        logger.warning("app.config.airtable_missing")
    async with httpx.AsyncClient(timeout=settings.airtable_timeout_seconds) as client:
        service = build_roster_service(client)
        fastapi_app.state.roster_service = service
        sweeper = asyncio.create_task(
            run_proposal_sweeper(
                service.proposals,
                interval_seconds=settings.proposal_sweep_interval_seconds,
            ),
        )
        logger.info("app.lifecycle.started")
        try:
            yield
        finally:
            sweeper.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await sweeper
            logger.info("app.lifecycle.stopped")


app = FastAPI(
    title="Trip Roster API",
    version="0.1.0",
    lifespan=lifespan,
    openapi_tags=OPENAPI_TAGS,
)

origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
if origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    logger.info("app.cors.enabled origins_count=%s", len(origins))
else:
    logger.info("app.cors.disabled")

install_error_handling(app)


@app.get(
    "/health",
    tags=["health"],
    response_model=HealthStatusResponse,
    summary="Health Check",
    description="Lightweight liveness check endpoint.",
    responses={
        status.HTTP_200_OK: {
            "description": "Service is alive.",
            "content": {"application/json": {"example": {"ok": True}}},
        }
    },
)
def health() -> HealthStatusResponse:
    """Lightweight liveness check endpoint."""
    return HealthStatusResponse(ok=True)


@app.get(
    "/healthz",
    tags=["health"],
    response_model=HealthStatusResponse,
    summary="Health Alias Check",
    description="Alias liveness check endpoint for platform compatibility.",
)
def healthz() -> HealthStatusResponse:
    """Alias liveness check endpoint for platform compatibility."""
    return HealthStatusResponse(ok=True)


@app.get(
    "/readyz",
    tags=["health"],
    response_model=HealthStatusResponse,
    summary="Readiness Check",
    description="Ready once the roster service has been wired in the lifespan.",
)
def readyz() -> HealthStatusResponse:
    """Readiness check endpoint for service orchestration checks."""
    service = getattr(app.state, "roster_service", None)
    return HealthStatusResponse(ok=isinstance(service, RosterService))


api_v1 = APIRouter(prefix="/api/v1")
api_v1.include_router(trips_router)
api_v1.include_router(roster_router)
app.include_router(api_v1)

logger.debug("app.routes.registered count=%s", len(app.routes))
