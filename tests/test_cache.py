import json
import uuid
from datetime import date, timedelta

from storefront.cache.cart import UserCartCache, build_cart_item, cart_key, sort_cart_items
from storefront.cache.revenue import (
    RevenueEvent,
    RevenueTracker,
    compute_stats,
    revenue_key,
    summarize_day,
)
from storefront.models.dto.analytics import RevenueDay
from tests.conftest import result_of
from tests.factories import NOW, make_cart_item, make_product, make_variant


def _cached(user_id, *, created_offset=0, status=True, size=None, color=None):
    product = make_product()
    item = make_cart_item(user_id=user_id, product_id=product.id, status=status, size=size, color=color)
    item.created_at = NOW + timedelta(minutes=created_offset)
    return build_cart_item(item, product, None)


class TestCartKey:
    def test_user_prefix(self):
        uid = uuid.uuid4()
        assert cart_key(uid) == f"cart:{uid}"

    def test_full_key(self):
        uid, pid = uuid.uuid4(), uuid.uuid4()
        assert cart_key(uid, pid, "M", "Blue") == f"cart:{uid}:{pid}:M:Blue"

    def test_unset_options_keep_their_position(self):
        uid, pid = uuid.uuid4(), uuid.uuid4()
        assert cart_key(uid, pid) == f"cart:{uid}:{pid}:-:-"
        assert cart_key(uid, pid, color="Red") == f"cart:{uid}:{pid}:-:Red"

    def test_size_and_color_do_not_collide(self):
        uid, pid = uuid.uuid4(), uuid.uuid4()
        assert cart_key(uid, pid, size="M") != cart_key(uid, pid, color="M")


class TestSortCartItems:
    def test_active_first_then_newest(self):
        uid = uuid.uuid4()
        old_active = _cached(uid, created_offset=0)
        new_active = _cached(uid, created_offset=10)
        new_inactive = _cached(uid, created_offset=20, status=False)

        ordered = sort_cart_items([old_active, new_inactive, new_active])
        assert ordered == [new_active, old_active, new_inactive]


class TestBuildCartItem:
    def test_variant_price_wins(self):
        product = make_product(price=100000, has_variants=True)
        variant = make_variant(product=product, price=120000, quantity=2)
        item = make_cart_item(user_id=uuid.uuid4(), product_id=product.id, size="M", color="Blue")

        cached = build_cart_item(item, product, variant)
        assert cached.unit_price == 120000
        assert cached.variant_quantity == 2
        assert cached.product.is_purchasable is True


class TestUserCartCache:
    async def test_rebuilds_on_count_mismatch(self, mock_db, fake_redis):
        uid = uuid.uuid4()
        product = make_product()
        row = (make_cart_item(user_id=uid, product_id=product.id), product, None)
        mock_db.execute.side_effect = [result_of(scalar=1), result_of(rows=[row])]

        items = await UserCartCache(fake_redis).get(mock_db, uid)
        assert [i.product_id for i in items] == [product.id]
        assert await fake_redis.get(cart_key(uid, product.id)) is not None

    async def test_reads_cache_when_in_sync(self, mock_db, fake_redis):
        uid = uuid.uuid4()
        cache = UserCartCache(fake_redis)
        cached = _cached(uid)
        await cache.add(cached)
        mock_db.execute.return_value = result_of(scalar=1)

        items = await cache.get(mock_db, uid)
        assert items == [cached]
        assert mock_db.execute.await_count == 1

    async def test_stale_keys_are_dropped(self, mock_db, fake_redis):
        uid = uuid.uuid4()
        cache = UserCartCache(fake_redis)
        await cache.add(_cached(uid))
        await cache.add(_cached(uid))
        mock_db.execute.side_effect = [result_of(scalar=0), result_of(rows=[])]

        assert await cache.get(mock_db, uid) == []
        assert await fake_redis.keys(f"cart:{uid}:*") == []

    async def test_get_product_hits_cache(self, mock_db, fake_redis):
        uid = uuid.uuid4()
        cache = UserCartCache(fake_redis)
        cached = _cached(uid, size="L")
        await cache.add(cached)

        found = await cache.get_product(mock_db, uid, cached.product_id, size="L")
        assert found == cached
        mock_db.execute.assert_not_awaited()

    async def test_get_product_miss_loads_row(self, mock_db, fake_redis):
        uid = uuid.uuid4()
        product = make_product()
        row = (make_cart_item(user_id=uid, product_id=product.id, quantity=3), product, None)
        mock_db.execute.return_value = result_of(first=row)

        found = await UserCartCache(fake_redis).get_product(mock_db, uid, product.id)
        assert found.quantity == 3
        assert await fake_redis.get(cart_key(uid, product.id)) is not None

    async def test_drop_only_touches_one_user(self, fake_redis):
        cache = UserCartCache(fake_redis)
        mine, theirs = uuid.uuid4(), uuid.uuid4()
        await cache.add(_cached(mine))
        await cache.add(_cached(theirs))

        await cache.drop(mine)
        assert await fake_redis.keys(f"cart:{mine}:*") == []
        assert len(await fake_redis.keys(f"cart:{theirs}:*")) == 1


class TestRevenueSummaries:
    def test_summarize_day(self):
        order_a, order_b = uuid.uuid4(), uuid.uuid4()
        events = [
            RevenueEvent(order_id=order_a, amount=100000),
            RevenueEvent(order_id=order_b, amount=50000),
            RevenueEvent(order_id=uuid.uuid4(), amount=70000, success=False),
            RevenueEvent(order_id=order_b, amount=50000, type="refund", refund_id="rfnd_1"),
        ]
        day = summarize_day(date(2026, 3, 1), events)
        assert day.date == "2026-03-01"
        assert day.payments == 150000
        assert day.refunds == 50000
        assert day.revenue == 100000
        assert day.orders == 2

    def test_compute_stats(self):
        current = [RevenueDay(date="d", payments=300000, refunds=0, revenue=300000, orders=3)]
        previous = [RevenueDay(date="d", payments=200000, refunds=0, revenue=200000, orders=2)]
        stats = compute_stats(current, previous)
        assert stats.gross_revenue == 300000
        assert stats.average_order_value == 100000
        assert stats.change_percent == 50.0

    def test_no_previous_revenue(self):
        stats = compute_stats([], [])
        assert stats.total_orders == 0
        assert stats.average_order_value == 0
        assert stats.change_percent is None


class TestRevenueTracker:
    async def test_track_and_report(self, fake_redis):
        tracker = RevenueTracker(fake_redis)
        brand = uuid.uuid4()
        await tracker.track(brand, RevenueEvent(order_id=uuid.uuid4(), amount=120000))
        await tracker.track(brand, RevenueEvent(order_id=uuid.uuid4(), amount=80000))

        report = await tracker.report(brand, 7)
        assert len(report.days) == 7
        assert report.days[-1].payments == 200000
        assert report.stats.total_orders == 2
        assert all(ttl > 0 for ttl in fake_redis.ttls.values())

    async def test_brands_are_isolated(self, fake_redis):
        tracker = RevenueTracker(fake_redis)
        await tracker.track(uuid.uuid4(), RevenueEvent(order_id=uuid.uuid4(), amount=1000))

        report = await tracker.report(uuid.uuid4(), 1)
        assert report.days[0].payments == 0

    async def test_malformed_events_are_skipped(self, fake_redis):
        tracker = RevenueTracker(fake_redis)
        brand = uuid.uuid4()
        day = date(2026, 3, 1)
        good = RevenueEvent(order_id=uuid.uuid4(), amount=5000).model_dump_json()
        await fake_redis.rpush(revenue_key(brand, day), "not json", json.dumps({"amount": 1}), good)

        days = await tracker.retrieve_by_range(brand, 1, end=day)
        assert days[0].payments == 5000
