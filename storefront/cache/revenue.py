"""Per-brand revenue events, one Redis list per brand and day.

Events are appended as JSON under ``revenue::{brand}::{YYYY-MM-DD}``.
"""

import json
import logging
from datetime import date, datetime, timedelta, timezone
from typing import Literal
from uuid import UUID

from pydantic import BaseModel

from storefront.cache.base import RedisCache
from storefront.models.dto.analytics import RevenueDay, RevenueResponse, RevenueStats

logger = logging.getLogger(__name__)

RETENTION_DAYS = 400


class RevenueEvent(BaseModel):
    order_id: UUID
    amount: int
    payment_id: str | None = None
    refund_id: str | None = None
    type: Literal["payment", "refund"] = "payment"
    success: bool = True


def revenue_key(brand_id: UUID, day: date) -> str:
    return f"revenue::{brand_id}::{day.isoformat()}"


def summarize_day(day: date, events: list[RevenueEvent]) -> RevenueDay:
    payments = sum(e.amount for e in events if e.type == "payment" and e.success)
    refunds = sum(e.amount for e in events if e.type == "refund" and e.success)
    orders = len({e.order_id for e in events if e.type == "payment" and e.success})
    return RevenueDay(
        date=day.isoformat(),
        payments=payments,
        refunds=refunds,
        revenue=payments - refunds,
        orders=orders,
    )


def compute_stats(current: list[RevenueDay], previous: list[RevenueDay]) -> RevenueStats:
    gross = sum(d.payments for d in current)
    net = sum(d.revenue for d in current)
    orders = sum(d.orders for d in current)
    previous_net = sum(d.revenue for d in previous)
    change = None
    if previous_net:
        change = round((net - previous_net) / abs(previous_net) * 100, 2)
    return RevenueStats(
        gross_revenue=gross,
        net_revenue=net,
        total_orders=orders,
        average_order_value=gross // orders if orders else 0,
        change_percent=change,
    )


class RevenueTracker(RedisCache):
    async def track(self, brand_id: UUID, event: RevenueEvent, day: date | None = None) -> None:
        key = revenue_key(brand_id, day or datetime.now(timezone.utc).date())
        await self.redis.rpush(key, event.model_dump_json())
        await self.redis.expire(key, RETENTION_DAYS * 24 * 60 * 60)

    async def _events(self, brand_id: UUID, day: date) -> list[RevenueEvent]:
        raw = await self.redis.lrange(revenue_key(brand_id, day), 0, -1)
        events = []
        for value in raw:
            try:
                events.append(RevenueEvent.model_validate(json.loads(value)))
            except (ValueError, TypeError):
                logger.warning("Skipping malformed revenue event for brand %s on %s", brand_id, day)
        return events

    async def retrieve_by_range(
        self, brand_id: UUID, n_days: int, end: date | None = None
    ) -> list[RevenueDay]:
        end = end or datetime.now(timezone.utc).date()
        days = [end - timedelta(days=offset) for offset in range(n_days - 1, -1, -1)]
        return [summarize_day(day, await self._events(brand_id, day)) for day in days]

    async def report(self, brand_id: UUID, n_days: int) -> RevenueResponse:
        today = datetime.now(timezone.utc).date()
        current = await self.retrieve_by_range(brand_id, n_days, end=today)
        previous = await self.retrieve_by_range(
            brand_id, n_days, end=today - timedelta(days=n_days)
        )
        return RevenueResponse(days=current, stats=compute_stats(current, previous))


revenue_tracker = RevenueTracker()
