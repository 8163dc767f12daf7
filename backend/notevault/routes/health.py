"""
NoteVault Backend — Health Check Route
========================================

What:  Health check endpoint for monitoring and load balancer probes.
How:   Pings MongoDB through the request's NoteStore.
Who:   Called by Docker health checks, load balancers and monitoring.

Status levels:
    healthy:   MongoDB answers ping (HTTP 200)
    unhealthy: MongoDB unreachable (HTTP 503, stop routing traffic)
"""

import logging
import time

from fastapi import APIRouter, Depends, Response

from notevault import __version__
from notevault.database import get_note_store
from notevault.schemas.note import HealthResponse
from notevault.services.note_store import NoteStore

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(
    response: Response,
    store: NoteStore = Depends(get_note_store),
) -> HealthResponse:
    connected = await store.ping()
    if not connected:
        response.status_code = 503
        logger.warning("Health check: database unreachable")

    return HealthResponse(
        status="healthy" if connected else "unhealthy",
        version=__version__,
        database="connected" if connected else "disconnected",
        uptime_seconds=round(time.time() - _start_time, 2),
    )
