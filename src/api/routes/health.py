# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Liveness, readiness and status endpoints.

These routes are public. Readiness depends only on the store: derived
effects are best-effort, so a dispatcher that has failed effects is
reported but never takes the service out of rotation.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Any, Literal

from fastapi import APIRouter, Response, status
from pydantic import BaseModel

from src import __version__
from src.core.config import get_settings
from src.infrastructure.database.connection import check_database_connection
from src.infrastructure.events import get_dispatcher

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_started_at = time.monotonic()


class StoreStatus(BaseModel):
    """Result of a round trip to the store."""

    status: Literal["healthy", "unhealthy"]
    latency_ms: float | None = None


class HealthResponse(BaseModel):
    """Service status for operators."""

    status: Literal["healthy", "unhealthy"]
    timestamp: datetime
    version: str
    environment: str
    uptime_seconds: int
    database: StoreStatus
    dispatcher: dict[str, Any]


async def probe_store() -> StoreStatus:
    """Run a trivial query and time it."""
    started = time.perf_counter()
    if not await check_database_connection():
        logger.error("Store probe failed")
        return StoreStatus(status="unhealthy")
    return StoreStatus(
        status="healthy",
        latency_ms=round((time.perf_counter() - started) * 1000, 2),
    )


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Store status, effect counters and build information."""
    store = await probe_store()
    return HealthResponse(
        status=store.status,
        timestamp=datetime.now(timezone.utc),
        version=__version__,
        environment=get_settings().environment,
        uptime_seconds=int(time.monotonic() - _started_at),
        database=store,
        dispatcher=get_dispatcher().get_stats(),
    )


@router.get("/health/live")
async def liveness_check() -> dict[str, str]:
    return {"status": "alive"}


@router.get("/health/ready")
async def readiness_check(response: Response) -> dict[str, Any]:
    """200 when the store answers, 503 otherwise."""
    store = await probe_store()
    ready = store.status == "healthy"
    if not ready:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return {"ready": ready, "database": store.model_dump()}
