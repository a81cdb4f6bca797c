"""
Health check endpoints
"""

from typing import Any
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import text

from waitlist_lottery.core.database import get_session
from waitlist_lottery.config import settings
from waitlist_lottery.schemas.response import HealthResponse

router = APIRouter()


@router.get("/live", response_model=HealthResponse)
async def liveness() -> Any:
    """
    Liveness probe
    """
    return HealthResponse(status="alive", version=settings.APP_VERSION)


@router.get("/ready", response_model=HealthResponse)
async def readiness(db: AsyncSession = Depends(get_session)) -> Any:
    """
    Readiness probe - checks the database
    """
    result = await db.execute(text("SELECT 1"))
    healthy = result.scalar() == 1
    return HealthResponse(
        status="ready" if healthy else "not ready",
        version=settings.APP_VERSION,
        services={"database": "up" if healthy else "down"}
    )
