"""Health check endpoints."""

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.logging_config import get_logger

logger = get_logger(__name__)
router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
async def health_check() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}


@router.get("/ready", status_code=status.HTTP_200_OK)
async def readiness_check(request: Request, db: AsyncSession = Depends(get_db)):
    """Readiness check: database reachable, plus expiry sweeper metrics."""
    sweeper = getattr(request.app.state, "expiry_sweeper", None)
    sweeper_metrics = sweeper.get_metrics() if sweeper is not None else None

    try:
        await db.execute(text("SELECT 1"))
    except Exception as e:
        logger.error("readiness_check_failed", error=str(e))
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content={"status": "unavailable", "database": "error"},
        )

    return {"status": "ready", "database": "ok", "expiry_sweeper": sweeper_metrics}
