"""
NoteKeeper Backend: Health Check Route
=======================================

What:  GET /health for container probes and monitoring.
How:   Runs `SELECT 1` on the engine. The service is "healthy" only when
       the database answers; otherwise it reports "unhealthy" with
       database "disconnected". The endpoint itself always answers 200 so
       the report stays readable during an outage.
"""

import logging
import time

from fastapi import APIRouter
from sqlalchemy import text

from notekeeper import __version__
from notekeeper.database import get_engine
from notekeeper.schemas.health import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check() -> HealthResponse:
    db_status = "connected"
    overall = "healthy"

    try:
        async with get_engine().connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        logger.warning("Health check: database unreachable: %s", str(e))

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
