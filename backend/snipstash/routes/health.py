"""
SnipStash Backend - Health Check Route
======================================

What:  GET /health for Docker health checks and load balancer probes.
How:   Runs SELECT 1 against the store and reports uptime.

Status levels:
    - healthy:    store reachable
    - unhealthy:  store configured but unreachable
    - degraded:   store credentials missing (the landing page still works)

Always answers 200; probes read the `status` field.
"""

import logging
import time

from fastapi import APIRouter
from sqlalchemy import text

from snipstash import __version__
from snipstash.config import settings
from snipstash.database import get_engine
from snipstash.schemas.common import HealthResponse

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

    if not settings.store_configured:
        db_status = "unconfigured"
        overall = "degraded"
        logger.warning("Health check: store credentials %s", settings.store_credentials_status())
    else:
        try:
            async with get_engine().connect() as conn:
                await conn.execute(text("SELECT 1"))
        except Exception as e:
            db_status = "disconnected"
            overall = "unhealthy"
            logger.warning("Health check: store unreachable: %s", str(e))

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
