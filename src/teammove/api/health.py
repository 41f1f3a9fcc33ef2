# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Health check and metrics endpoints

K8s-standard probes:
- /health/live  - Liveness probe (process alive)
- /health/ready - Readiness probe (database reachable)
"""

from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from teammove.config import settings
from teammove.database import get_db
from teammove.logging_config import get_logger
from teammove.middleware.metrics import get_metrics

logger = get_logger(__name__)

router = APIRouter(tags=["Health"])


class HealthCheck(BaseModel):
    """Health check response model."""
    status: str
    version: str
    timestamp: str
    checks: Optional[dict] = None


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


@router.get("/health", response_model=HealthCheck)
async def health():
    return HealthCheck(status="healthy", version=settings.version, timestamp=_now())


@router.get("/health/live", response_model=HealthCheck)
async def liveness():
    """Liveness probe - process is alive."""
    return HealthCheck(status="healthy", version=settings.version, timestamp=_now())


@router.get("/health/ready", response_model=HealthCheck)
async def readiness(db: AsyncSession = Depends(get_db)):
    """Readiness probe - ready to accept traffic.

    Returns 503 when the database does not answer.
    """
    checks = {}
    try:
        await db.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as e:
        logger.warning("readiness_database_failed", error=str(e))
        checks["database"] = f"error: {str(e)}"
        body = HealthCheck(
            status="unhealthy", version=settings.version, timestamp=_now(), checks=checks
        )
        return JSONResponse(status_code=503, content=body.model_dump())

    return HealthCheck(status="healthy", version=settings.version, timestamp=_now(), checks=checks)


@router.get("/metrics", include_in_schema=False)
async def metrics():
    return get_metrics()
