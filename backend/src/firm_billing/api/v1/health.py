"""Health check endpoints for liveness and readiness probes."""
from datetime import datetime

import structlog
from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from firm_billing.api.deps import get_db

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get("/health", status_code=status.HTTP_200_OK, tags=["Health"])
async def health_check() -> dict[str, str]:
    """
    Liveness probe.

    Returns basic health status if the service is alive (process running).
    Does not check external dependencies.
    """
    return {
        "status": "healthy",
        "timestamp": datetime.utcnow().isoformat(),
        "version": "0.1.0",
    }


@router.get("/health/ready", tags=["Health"])
async def readiness_check(db: AsyncSession = Depends(get_db)) -> JSONResponse:
    """
    Readiness probe.

    Returns 200 only if the database answers a trivial query.
    """
    checks = {"database": "unknown"}
    ready = True

    try:
        await db.execute(text("SELECT 1"))
        checks["database"] = "connected"
    except Exception as exc:
        logger.error("database_health_check_failed", error=str(exc))
        checks["database"] = "disconnected"
        ready = False

    status_code = status.HTTP_200_OK if ready else status.HTTP_503_SERVICE_UNAVAILABLE

    return JSONResponse(
        status_code=status_code,
        content={
            "ready": ready,
            "checks": checks,
            "timestamp": datetime.utcnow().isoformat(),
        },
    )
