import fnmatch
import uuid
from datetime import datetime, timedelta, timezone

from storefront.integrations.delhivery.client import DelhiveryPackage
from storefront.integrations.razorpay.client import GatewayOrder, GatewayRefund
from storefront.models.orm.address import Address
from storefront.models.orm.cart_item import CartItem
from storefront.models.orm.coupon import Coupon
from storefront.models.orm.order import Order, OrderItem, OrderShipment
from storefront.models.orm.product import Product, ProductVariant
from storefront.models.orm.user import User

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def make_user(
    *,
    user_id=None,
    email="user@example.com",
    first_name="Test",
    last_name="User",
    role="customer",
    brand_id=None,
    is_active=True,
):
    return User(
        id=user_id or uuid.uuid4(),
        email=email,
        first_name=first_name,
        last_name=last_name,
        phone=None,
        avatar_url=None,
        role=role,
        brand_id=brand_id,
        is_active=is_active,
        created_at=NOW,
        updated_at=NOW,
    )


def make_product(
    *,
    product_id=None,
    brand_id=None,
    title="Linen Shirt",
    price=149900,
    quantity=10,
    has_variants=False,
    is_published=True,
    verification_status="approved",
    is_deleted=False,
):
    return Product(
        id=product_id or uuid.uuid4(),
        brand_id=brand_id or uuid.uuid4(),
        category_id=None,
        title=title,
        slug=f"{title.lower().replace(' ', '-')}-abc123",
        description=None,
        image_url="/uploads/media/shirt.jpg",
        price=price,
        compare_at_price=None,
        sku=None,
        native_sku=f"SF-{uuid.uuid4().hex[:10].upper()}",
        quantity=quantity,
        has_variants=has_variants,
        is_available=True,
        is_active=True,
        is_published=is_published,
        is_deleted=is_deleted,
        verification_status=verification_status,
        is_featured_women=False,
        is_featured_men=False,
        created_at=NOW,
        updated_at=NOW,
    )


def make_variant(*, product, size="M", color="Blue", price=159900, quantity=5):
    return ProductVariant(
        id=uuid.uuid4(),
        product_id=product.id,
        size=size,
        color=color,
        sku=None,
        native_sku=f"SF-{uuid.uuid4().hex[:10].upper()}",
        price=price,
        compare_at_price=None,
        quantity=quantity,
        is_deleted=False,
    )


def make_cart_item(*, user_id, product_id, quantity=1, size=None, color=None, status=True):
    return CartItem(
        id=uuid.uuid4(),
        user_id=user_id,
        product_id=product_id,
        size=size,
        color=color,
        quantity=quantity,
        status=status,
        created_at=NOW,
        updated_at=NOW,
    )


def make_address(*, user_id, address_id=None, alias="Home", type="home", is_primary=True):
    return Address(
        id=address_id or uuid.uuid4(),
        user_id=user_id,
        alias=alias,
        alias_slug=alias.lower(),
        type=type,
        is_primary=is_primary,
        full_name="Test User",
        street="12 MG Road",
        city="Bengaluru",
        state="Karnataka",
        zip="560001",
        phone="+919876543210",
        created_at=NOW,
        updated_at=NOW,
    )


def make_coupon(
    *,
    code="WELCOME10",
    discount_type="percentage",
    discount_value=10,
    min_order_amount=0,
    max_discount_amount=None,
    max_uses=0,
    uses=0,
    is_active=True,
    expires_at=None,
):
    return Coupon(
        code=code,
        description="Welcome offer",
        discount_type=discount_type,
        discount_value=discount_value,
        min_order_amount=min_order_amount,
        max_discount_amount=max_discount_amount,
        category_id=None,
        max_uses=max_uses,
        uses=uses,
        is_active=is_active,
        expires_at=expires_at or datetime.now(timezone.utc) + timedelta(days=30),
        created_at=NOW,
        updated_at=NOW,
    )


def make_order_item(*, product, quantity=1, price=None, size=None, color=None):
    return OrderItem(
        id=uuid.uuid4(),
        product_id=product.id,
        brand_id=product.brand_id,
        size=size,
        color=color,
        quantity=quantity,
        price=price if price is not None else product.price,
    )


def make_order(
    *,
    user_id,
    items=None,
    order_id=None,
    status="pending",
    payment_status="pending",
    payment_id=None,
    coupon_code=None,
    shipment=None,
):
    items = items or []
    item_amount = sum(i.price * i.quantity for i in items)
    return Order(
        id=order_id or uuid.uuid4(),
        user_id=user_id,
        address_id=uuid.uuid4(),
        receipt_id="SF260301ABCD1234",
        status=status,
        payment_status=payment_status,
        payment_method=None,
        payment_id=payment_id,
        gateway_order_id=f"order_{uuid.uuid4().hex[:14]}",
        refund_id=None,
        coupon_code=coupon_code,
        total_items=sum(i.quantity for i in items),
        item_amount=item_amount,
        delivery_amount=0,
        discount_amount=0,
        total_amount=item_amount,
        payment_expires_at=NOW + timedelta(minutes=15),
        cancellation_reason=None,
        cancelled_at=None,
        created_at=NOW,
        updated_at=NOW,
        items=items,
        shipment=shipment,
    )


def make_shipment(*, order_id=None, awb_number="1234567890", status="pending"):
    return OrderShipment(
        id=uuid.uuid4(),
        order_id=order_id or uuid.uuid4(),
        awb_number=awb_number,
        courier_name="Delhivery",
        status=status,
        tracking_payload=None,
        created_at=NOW,
        updated_at=NOW,
    )


def make_package(awb_number="1234567890", scans=("Manifested", "In Transit")):
    scan_list = [{"ScanDetail": {"Scan": s, "ScannedLocation": "Bengaluru_Hub"}} for s in scans]
    payload = {"ShipmentData": [{"Shipment": {"AWB": awb_number, "Scans": scan_list}}]}
    return DelhiveryPackage(awb_number=awb_number, payload=payload, scans=scan_list)


# ── Test doubles ─────────────────────────────────────────────────────────────


class _FakePipeline:
    def __init__(self, redis: "FakeRedis"):
        self._redis = redis
        self._ops: list[tuple[str, str, int | None]] = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    def set(self, key, value, ex=None):
        self._ops.append((key, value, ex))
        return self

    async def execute(self):
        for key, value, ex in self._ops:
            await self._redis.set(key, value, ex=ex)
        self._ops.clear()


class FakeRedis:
    """In-memory stand-in for the subset of redis.asyncio.Redis the caches use."""

    def __init__(self):
        self.values: dict[str, str] = {}
        self.lists: dict[str, list[str]] = {}
        self.ttls: dict[str, int] = {}

    async def keys(self, pattern):
        return [k for k in (*self.values, *self.lists) if fnmatch.fnmatchcase(k, pattern)]

    async def get(self, key):
        return self.values.get(key)

    async def mget(self, keys):
        return [self.values.get(k) for k in keys]

    async def set(self, key, value, ex=None):
        if isinstance(value, bytes):
            value = value.decode()
        self.values[key] = value
        if ex is not None:
            self.ttls[key] = ex
        return True

    async def delete(self, *keys):
        removed = 0
        for key in keys:
            if self.values.pop(key, None) is not None or self.lists.pop(key, None) is not None:
                removed += 1
        return removed

    async def rpush(self, key, *values):
        self.lists.setdefault(key, []).extend(values)
        return len(self.lists[key])

    async def lrange(self, key, start, end):
        items = self.lists.get(key, [])
        return items[start:] if end == -1 else items[start:end + 1]

    async def expire(self, key, seconds):
        self.ttls[key] = seconds
        return True

    async def ping(self):
        return True

    def pipeline(self, transaction=True):
        return _FakePipeline(self)


class FakeRazorpayClient:
    """Test double for RazorpayClient."""

    def __init__(self, *, fail_orders=False, fail_refunds=False):
        self.fail_orders = fail_orders
        self.fail_refunds = fail_refunds
        self.orders: list[GatewayOrder] = []
        self.refunds: list[GatewayRefund] = []

    @property
    def is_configured(self) -> bool:
        return True

    @property
    def key_id(self) -> str:
        return "rzp_test_key"

    async def create_order(self, amount, receipt, notes=None):
        if self.fail_orders:
            return None
        order = GatewayOrder(
            id=f"order_{len(self.orders) + 1:014d}",
            amount=amount, currency="INR", receipt=receipt, status="created",
        )
        self.orders.append(order)
        return order

    async def refund(self, payment_id, amount):
        if self.fail_refunds:
            return None
        refund = GatewayRefund(
            id=f"rfnd_{len(self.refunds) + 1:014d}",
            payment_id=payment_id, amount=amount, status="processed",
        )
        self.refunds.append(refund)
        return refund
