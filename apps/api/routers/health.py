"""Health check router: liveness + readiness.

Readiness pings the record store with a short timeout so a stalled
database cannot hang the probe.
"""

import asyncio

import structlog
from fastapi import APIRouter

from apps.api.core.auth import get_service_client
from apps.api.domains.batches.repository import BATCHES_TABLE

router = APIRouter(tags=["health"])
logger = structlog.get_logger()

STORE_TIMEOUT_SECONDS = 2


@router.get("/health")
async def health_liveness():
    """Liveness probe: returns 200 if the API process is running."""
    return {"status": "healthy", "service": "api"}


@router.get("/health/ready")
async def health_readiness():
    """Readiness probe: checks that Supabase answers a trivial query."""
    status = {
        "status": "healthy",
        "services": {
            "api": "up",
            "store": "unknown",
        },
    }

    try:
        client = get_service_client()
        query = client.table(BATCHES_TABLE).select("id").limit(1)

        loop = asyncio.get_running_loop()
        await asyncio.wait_for(
            loop.run_in_executor(None, query.execute),
            timeout=STORE_TIMEOUT_SECONDS,
        )
        status["services"]["store"] = "up"
    except asyncio.TimeoutError:
        status["services"]["store"] = "timeout"
        status["status"] = "degraded"
        logger.warning("store_health_timeout", timeout_s=STORE_TIMEOUT_SECONDS)
    except Exception as e:
        status["services"]["store"] = "down"
        status["status"] = "degraded"
        logger.warning("store_health_failed", error=str(e))

    return status
