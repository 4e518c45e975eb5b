"""Health check endpoint.

Reports whether the server is up and whether its dependencies
(database, Redis) are reachable, plus live hub counters.
"""

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from tablecall import __version__
from tablecall.db.engine import get_db
from tablecall.realtime.hub import NotificationHub, get_hub

router = APIRouter()


@router.get("/health")
async def health_check(
    db: AsyncSession = Depends(get_db),
    hub: NotificationHub = Depends(get_hub),
):
    """Check server health and dependency connectivity."""
    checks = {"server": "ok", "version": __version__}

    try:
        await db.execute(text("SELECT 1"))
        checks["database"] = "ok"
    except Exception as e:
        checks["database"] = f"error: {e}"

    # Redis is optional (rate limiting only)
    try:
        from tablecall.db.redis import get_redis

        await get_redis().ping()
        checks["redis"] = "ok"
    except Exception as e:
        checks["redis"] = f"unavailable: {e}"

    status = "healthy" if checks["database"] == "ok" else "degraded"
    return {"status": status, **checks, "hub": hub.stats()}
