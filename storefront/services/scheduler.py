"""Background scheduler: one asyncio loop for every periodic job.

Schedule:
  - Carrier poll:    every ``carrier_poll_interval_minutes`` (default hourly)
  - Payment timeout: every minute, cancels unpaid orders past their window
"""

import asyncio
import logging
import time
from datetime import datetime, timezone

from storefront.core.config import settings
from storefront.core.database import async_session_factory

logger = logging.getLogger(__name__)

_scheduler_task: asyncio.Task | None = None
_last_heartbeat: float = 0.0

_last_run: dict[str, str] = {}


def _should_run(task_name: str, run_key: str) -> bool:
    """Return True if this task+key hasn't run yet, and mark it as run."""
    if _last_run.get(task_name) == run_key:
        return False
    _last_run[task_name] = run_key
    return True


def _interval_key(now: datetime, minutes: int) -> str:
    """Bucket ``now`` into consecutive windows of ``minutes`` since midnight UTC."""
    minutes = max(minutes, 1)
    slot = (now.hour * 60 + now.minute) // minutes
    return f"{now.strftime('%Y-%m-%d')}#{slot}"


async def _run_carrier_poll(now: datetime) -> None:
    from storefront.integrations.delhivery.client import delhivery_client
    if not delhivery_client.is_configured:
        return

    if not _should_run("carrier_poll", _interval_key(now, settings.carrier_poll_interval_minutes)):
        return

    from storefront.integrations.delhivery.sync import poll_active_shipments

    async with async_session_factory() as db:
        try:
            stats = await poll_active_shipments(db)
            await db.commit()
            logger.info("Scheduled carrier poll result: %s", stats)
        except Exception:
            await db.rollback()
            raise


async def _run_payment_timeout(now: datetime) -> None:
    if not _should_run("payment_timeout", now.strftime("%Y-%m-%dT%H:%M")):
        return

    from storefront.services.order_service import expire_unpaid_orders

    async with async_session_factory() as db:
        try:
            await expire_unpaid_orders(db)
            await db.commit()
        except Exception:
            await db.rollback()
            raise


ALL_TASKS = [
    ("carrier_poll", _run_carrier_poll),
    ("payment_timeout", _run_payment_timeout),
]


async def run_due_tasks(now: datetime) -> None:
    for task_name, task_fn in ALL_TASKS:
        try:
            await task_fn(now)
        except Exception:
            logger.exception("Scheduler task '%s' failed", task_name)


async def _scheduler_loop() -> None:
    """Checks every 60s which tasks are due."""
    global _last_heartbeat
    while True:
        await asyncio.sleep(60)
        _last_heartbeat = time.monotonic()
        await run_due_tasks(datetime.now(timezone.utc))


def start_scheduler() -> None:
    global _scheduler_task
    if _scheduler_task is None or _scheduler_task.done():
        _scheduler_task = asyncio.create_task(_scheduler_loop())
        logger.info(
            "Scheduler started (carrier poll every %d min, payment timeout every minute)",
            settings.carrier_poll_interval_minutes,
        )


def get_scheduler_health() -> dict:
    """Scheduler state from heartbeat recency. Older than 70s means stalled."""
    if _scheduler_task is None:
        return {"status": "not_started"}
    if _scheduler_task.done():
        return {"status": "stopped"}
    if _last_heartbeat == 0.0:
        return {"status": "starting"}
    elapsed = time.monotonic() - _last_heartbeat
    if elapsed > 70:
        return {"status": "stale", "last_heartbeat_secs_ago": round(elapsed)}
    return {"status": "healthy", "last_heartbeat_secs_ago": round(elapsed)}


def stop_scheduler() -> None:
    global _scheduler_task
    if _scheduler_task and not _scheduler_task.done():
        _scheduler_task.cancel()
        _scheduler_task = None
        logger.info("Scheduler stopped")
