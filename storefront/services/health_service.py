import logging
import os
import time

from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.cache import get_redis
from storefront.core.config import settings
from storefront.services.scheduler import get_scheduler_health

logger = logging.getLogger(__name__)

APP_VERSION = os.environ.get("APP_VERSION", "dev")


async def check_database(db: AsyncSession) -> dict:
    """Check database connectivity and measure latency."""
    try:
        start = time.monotonic()
        await db.execute(text("SELECT 1"))
        latency_ms = round((time.monotonic() - start) * 1000)
        return {"status": "up", "latency_ms": latency_ms}
    except Exception:
        logger.exception("Database health check failed")
        return {"status": "down"}


async def check_redis() -> dict:
    try:
        start = time.monotonic()
        await get_redis().ping()
        latency_ms = round((time.monotonic() - start) * 1000)
        return {"status": "up", "latency_ms": latency_ms}
    except (RedisError, OSError):
        logger.warning("Redis health check failed")
        return {"status": "down"}


def check_configured(value: str) -> dict:
    return {"status": "configured" if value else "not_configured"}


async def get_basic_health(db: AsyncSession) -> tuple[dict, int]:
    """Database-only check. Returns (response_body, status_code)."""
    db_status = await check_database(db)
    overall = "healthy" if db_status["status"] == "up" else "unhealthy"
    return {"status": overall}, 200 if overall == "healthy" else 503


async def get_detailed_health(db: AsyncSession) -> dict:
    checks = {
        "database": await check_database(db),
        "cache": await check_redis(),
        "scheduler": get_scheduler_health(),
        "carrier": check_configured(settings.delhivery_token),
        "payments": check_configured(settings.razorpay_key_id and settings.razorpay_key_secret),
        "smtp": check_configured(settings.smtp_host),
    }

    if checks["database"]["status"] != "up":
        overall = "unhealthy"
    elif checks["cache"]["status"] != "up":
        overall = "degraded"
    else:
        overall = "healthy"

    return {"status": overall, "version": APP_VERSION, "checks": checks}
