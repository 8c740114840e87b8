"""Checkout, payment capture, cancellation and the unpaid-order timer.

Stock is only decremented once the gateway confirms a payment. An order
that is still unpaid when its payment window closes is cancelled by
``expire_unpaid_orders``; a payment that lands after that point is refunded.
"""

import csv
import io
import json
import logging
import secrets
from collections import defaultdict
from datetime import datetime, timedelta, timezone
from uuid import UUID

import sqlalchemy as sa
from sqlalchemy import and_, delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from storefront.cache.cart import cart_cache, cart_rows_stmt
from storefront.cache.revenue import RevenueEvent, revenue_tracker
from storefront.core.config import settings
from storefront.core.exceptions import (
    BadRequestError,
    InvalidStatusTransitionError,
    NotFoundError,
    PaymentGatewayError,
    ensure_owner,
)
from storefront.core.search import ilike_escape
from storefront.core.security import verify_signature
from storefront.integrations.razorpay.client import razorpay_client
from storefront.mappers.order import order_item_to_dict, order_to_dict, order_to_export_row
from storefront.models.dto.order import OrderCreate, PaymentVerify, ShipmentAssign
from storefront.models.orm.address import Address
from storefront.models.orm.cart_item import CartItem
from storefront.models.orm.order import Order, OrderItem, OrderShipment
from storefront.models.orm.product import Product, ProductVariant
from storefront.models.orm.user import User
from storefront.notifications.service import notify_order_event
from storefront.services import coupon_service

logger = logging.getLogger(__name__)

VALID_TRANSITIONS: dict[str, set[str]] = {
    "pending": {"processing", "cancelled"},
    "processing": {"shipped", "cancelled"},
    "shipped": {"delivered", "cancelled"},
    "delivered": set(),
    "cancelled": set(),
}

USER_CANCELLABLE = ("pending", "processing")

EXPORT_FIELDS = [
    "receipt_id", "order_id", "created_at", "customer_name", "customer_email",
    "customer_phone", "shipping_address", "items", "total_items", "item_amount",
    "delivery_amount", "discount_amount", "total_amount", "coupon_code", "status",
    "payment_status", "payment_id", "shipment_status", "awb_number",
]


def generate_receipt_id() -> str:
    return f"SF{datetime.now(timezone.utc):%y%m%d}{secrets.token_hex(4).upper()}"


def compute_delivery_amount(item_amount: int) -> int:
    return 0 if item_amount >= settings.free_delivery_threshold else settings.delivery_fee


def transition(order: Order, new_status: str) -> None:
    allowed = VALID_TRANSITIONS.get(order.status, set())
    if new_status not in allowed:
        raise InvalidStatusTransitionError(order.status, new_status, allowed)
    order.status = new_status


def _line_price(product: Product, variant: ProductVariant | None) -> int | None:
    if variant is not None and variant.price is not None:
        return variant.price
    return product.price


def _line_stock(product: Product, variant: ProductVariant | None) -> int:
    if variant is not None:
        return variant.quantity
    return product.quantity or 0


def _brand_amounts(items: list[OrderItem]) -> dict[UUID, int]:
    amounts: dict[UUID, int] = defaultdict(int)
    for item in items:
        amounts[item.brand_id] += item.price * item.quantity
    return amounts


async def _track_revenue(
    order: Order, *, kind: str, success: bool = True, refund_id: str | None = None
) -> None:
    """Append one revenue event per brand on the order. Failures are logged only."""
    for brand_id, amount in _brand_amounts(order.items).items():
        try:
            await revenue_tracker.track(brand_id, RevenueEvent(
                order_id=order.id,
                amount=amount,
                payment_id=order.payment_id,
                refund_id=refund_id,
                type=kind,
                success=success,
            ))
        except Exception:
            logger.exception("Failed to track %s revenue for order %s", kind, order.id)


def _order_query():
    return select(Order).options(selectinload(Order.items), selectinload(Order.shipment))


async def _get_owned_order(db: AsyncSession, user_id: UUID, order_id: UUID) -> Order:
    result = await db.execute(_order_query().where(Order.id == order_id).with_for_update())
    order = result.scalar_one_or_none()
    if not order or order.user_id != user_id:
        raise NotFoundError("Order not found")
    return order


# ── Checkout ────────────────────────────────────────────────────────────────


async def create_order(
    db: AsyncSession, caller_id: UUID, user_id: UUID, data: OrderCreate
) -> Order:
    """Turn the user's selected cart lines into a pending order with a gateway order."""
    ensure_owner(caller_id, user_id)

    result = await db.execute(cart_rows_stmt(user_id).where(CartItem.status.is_(True)))
    rows = result.all()
    if not rows:
        raise BadRequestError("Your cart is empty")

    items: list[OrderItem] = []
    for cart_item, product, variant in rows:
        if not product.is_purchasable:
            raise BadRequestError(f"'{product.title}' is no longer available")
        if (cart_item.size or cart_item.color) and variant is None:
            raise BadRequestError(f"The selected variant of '{product.title}' is no longer available")
        price = _line_price(product, variant)
        if price is None:
            raise BadRequestError(f"'{product.title}' has no price")
        if cart_item.quantity > _line_stock(product, variant):
            raise BadRequestError(f"Not enough stock available for '{product.title}'")
        items.append(OrderItem(
            product_id=product.id,
            brand_id=product.brand_id,
            size=cart_item.size,
            color=cart_item.color,
            quantity=cart_item.quantity,
            price=price,
        ))

    address = await db.get(Address, data.address_id)
    if not address or address.user_id != user_id:
        raise NotFoundError("Address not found")

    item_amount = sum(i.price * i.quantity for i in items)
    discount = 0
    coupon_code = None
    if data.coupon_code:
        coupon, discount = await coupon_service.validate_coupon(db, data.coupon_code, item_amount)
        coupon_code = coupon.code

    delivery = compute_delivery_amount(item_amount)
    total = item_amount - discount + delivery
    receipt_id = generate_receipt_id()

    gateway_order = await razorpay_client.create_order(
        total, receipt_id, notes={"user_id": str(user_id)}
    )
    if not gateway_order:
        raise PaymentGatewayError("Could not start the payment, please try again")

    order = Order(
        user_id=user_id,
        address_id=address.id,
        receipt_id=receipt_id,
        status="pending",
        payment_status="pending",
        gateway_order_id=gateway_order.id,
        coupon_code=coupon_code,
        total_items=sum(i.quantity for i in items),
        item_amount=item_amount,
        delivery_amount=delivery,
        discount_amount=discount,
        total_amount=total,
        payment_expires_at=(
            datetime.now(timezone.utc) + timedelta(minutes=settings.payment_timeout_minutes)
        ),
        items=items,
    )
    db.add(order)
    await db.flush()

    logger.info(
        "Order %s created for user %s (%d items, total %d)",
        receipt_id, user_id, order.total_items, total,
    )
    return order


# ── Payment ─────────────────────────────────────────────────────────────────


async def _refund(db: AsyncSession, order: Order) -> None:
    order.payment_status = "refund_pending"
    refund = None
    if order.payment_id:
        refund = await razorpay_client.refund(order.payment_id, order.total_amount)

    if refund:
        order.payment_status = "refunded"
        order.refund_id = refund.id
        await _track_revenue(order, kind="refund", refund_id=refund.id)
        logger.info("Refunded order %s (refund %s)", order.receipt_id, refund.id)
    else:
        order.payment_status = "refund_failed"
        logger.error("Refund failed for order %s, manual follow-up needed", order.receipt_id)
    await db.flush()


async def _find_variant(db: AsyncSession, item: OrderItem) -> ProductVariant | None:
    if item.size is None and item.color is None:
        return None
    result = await db.execute(
        select(ProductVariant)
        .where(
            ProductVariant.product_id == item.product_id,
            ProductVariant.size.is_not_distinct_from(item.size),
            ProductVariant.color.is_not_distinct_from(item.color),
            ProductVariant.is_deleted.is_(False),
        )
        .with_for_update()
    )
    return result.scalar_one_or_none()


async def _reserve_stock(db: AsyncSession, order: Order) -> bool:
    """Decrement stock for every line, or touch nothing when any line is short."""
    stock_rows = []
    for item in order.items:
        product = await db.get(Product, item.product_id, with_for_update=True)
        variant = await _find_variant(db, item)
        if product is None or ((item.size or item.color) and variant is None):
            return False
        if item.quantity > _line_stock(product, variant):
            return False
        stock_rows.append((item, product, variant))

    for item, product, variant in stock_rows:
        if variant is not None:
            variant.quantity -= item.quantity
        else:
            product.quantity = (product.quantity or 0) - item.quantity
    return True


async def _restore_stock(db: AsyncSession, order: Order) -> None:
    for item in order.items:
        variant = await _find_variant(db, item)
        if variant is not None:
            variant.quantity += item.quantity
            continue
        product = await db.get(Product, item.product_id, with_for_update=True)
        if product is not None and product.quantity is not None:
            product.quantity += item.quantity


async def _clear_purchased_lines(db: AsyncSession, order: Order) -> None:
    await db.execute(
        delete(CartItem).where(
            CartItem.user_id == order.user_id,
            or_(*(
                and_(
                    CartItem.product_id == item.product_id,
                    CartItem.size.is_not_distinct_from(item.size),
                    CartItem.color.is_not_distinct_from(item.color),
                )
                for item in order.items
            )),
        )
    )
    await cart_cache.drop(order.user_id)


async def handle_payment_captured(
    db: AsyncSession, order: Order, payment_id: str, payment_method: str | None = None
) -> Order:
    """Settle a captured payment. Safe to call twice for the same order."""
    if order.payment_status != "pending":
        logger.info("Order %s already settled (%s)", order.receipt_id, order.payment_status)
        return order

    order.payment_id = payment_id
    order.payment_method = payment_method or order.payment_method
    order.payment_expires_at = None
    await _track_revenue(order, kind="payment")
    user = await db.get(User, order.user_id)

    if order.status == "cancelled" or not await _reserve_stock(db, order):
        order.status = "cancelled"
        order.cancelled_at = order.cancelled_at or datetime.now(timezone.utc)
        order.cancellation_reason = (
            order.cancellation_reason or "Some items went out of stock before the payment completed"
        )
        await _refund(db, order)
        await notify_order_event(user, order, "cancelled", reason=order.cancellation_reason)
        return order

    transition(order, "processing")
    order.payment_status = "paid"
    await _clear_purchased_lines(db, order)
    if order.coupon_code:
        await coupon_service.increment_usage(db, order.coupon_code)
    await db.flush()

    logger.info("Payment %s captured for order %s", payment_id, order.receipt_id)
    await notify_order_event(user, order, "confirmed")
    return order


async def handle_payment_failed(
    db: AsyncSession, order: Order, payment_id: str | None
) -> Order:
    if order.payment_status != "pending":
        return order
    order.payment_status = "failed"
    order.payment_id = payment_id
    await db.flush()
    await _track_revenue(order, kind="payment", success=False)
    logger.info("Payment failed for order %s", order.receipt_id)
    await notify_order_event(await db.get(User, order.user_id), order, "payment_failed")
    return order


async def verify_payment(
    db: AsyncSession, caller_id: UUID, user_id: UUID, data: PaymentVerify
) -> Order:
    """Client-side confirmation after the checkout widget reports success."""
    ensure_owner(caller_id, user_id)

    result = await db.execute(
        _order_query().where(Order.gateway_order_id == data.gateway_order_id).with_for_update()
    )
    order = result.scalar_one_or_none()
    if not order or order.user_id != user_id:
        raise NotFoundError("Order not found")

    message = f"{order.gateway_order_id}|{data.payment_id}"
    if not verify_signature(settings.razorpay_key_secret, message, data.signature):
        raise BadRequestError("Invalid payment signature")

    return await handle_payment_captured(db, order, data.payment_id)


async def handle_webhook(db: AsyncSession, body: bytes, signature: str | None) -> str:
    """Process a gateway webhook. Returns the handled event name, or "ignored"."""
    if not verify_signature(settings.razorpay_webhook_secret, body, signature):
        raise BadRequestError("Invalid webhook signature")

    try:
        event = json.loads(body)
    except ValueError:
        raise BadRequestError("Invalid webhook payload") from None

    name = event.get("event")
    if name not in ("payment.captured", "payment.failed"):
        logger.info("Ignoring payment webhook event %s", name)
        return "ignored"

    entity = event.get("payload", {}).get("payment", {}).get("entity", {})
    gateway_order_id = entity.get("order_id")
    result = await db.execute(
        _order_query().where(Order.gateway_order_id == gateway_order_id).with_for_update()
    )
    order = result.scalar_one_or_none()
    if not order:
        logger.warning("Webhook %s for unknown gateway order %s", name, gateway_order_id)
        return "ignored"

    if name == "payment.captured":
        await handle_payment_captured(db, order, entity.get("id"), entity.get("method"))
    else:
        await handle_payment_failed(db, order, entity.get("id"))
    return name


# ── Cancellation ────────────────────────────────────────────────────────────


async def cancel_order(
    db: AsyncSession,
    caller_id: UUID,
    user_id: UUID,
    order_id: UUID,
    reason: str | None = None,
) -> Order:
    ensure_owner(caller_id, user_id)
    order = await _get_owned_order(db, user_id, order_id)

    if order.status not in USER_CANCELLABLE:
        raise BadRequestError("Only pending or processing orders can be cancelled")

    transition(order, "cancelled")
    order.cancellation_reason = reason
    order.cancelled_at = datetime.now(timezone.utc)
    if order.shipment is not None:
        order.shipment.status = "cancelled"

    if order.payment_status == "paid":
        await _restore_stock(db, order)
        await _refund(db, order)
    await db.flush()

    await notify_order_event(await db.get(User, user_id), order, "cancelled", reason=reason)
    return order


async def expire_unpaid_orders(db: AsyncSession) -> int:
    """Cancel orders whose payment window closed without a captured payment."""
    result = await db.execute(
        select(Order).where(
            Order.status == "pending",
            Order.payment_status == "pending",
            Order.payment_expires_at.is_not(None),
            Order.payment_expires_at < func.now(),
        ).with_for_update(skip_locked=True)
    )
    orders = list(result.scalars().all())
    now = datetime.now(timezone.utc)
    for order in orders:
        order.status = "cancelled"
        order.cancelled_at = now
        order.cancellation_reason = "Payment window expired"
    if orders:
        await db.flush()
        logger.info("Expired %d unpaid orders", len(orders))
    return len(orders)


# ── Reads ───────────────────────────────────────────────────────────────────


async def _serialize(db: AsyncSession, orders: list[Order]) -> list[dict]:
    product_ids = {item.product_id for o in orders for item in o.items}
    titles: dict[UUID, str] = {}
    if product_ids:
        result = await db.execute(
            select(Product.id, Product.title).where(Product.id.in_(product_ids))
        )
        titles = {pid: title for pid, title in result.all()}

    return [
        order_to_dict(
            order,
            [order_item_to_dict(i, titles.get(i.product_id)) for i in order.items],
            order.shipment,
        )
        for order in orders
    ]


async def get_orders_for_user(
    db: AsyncSession,
    caller_id: UUID,
    user_id: UUID,
    *,
    page: int = 1,
    per_page: int = 20,
) -> tuple[list[dict], int]:
    ensure_owner(caller_id, user_id)
    total = (
        await db.execute(select(func.count()).select_from(Order).where(Order.user_id == user_id))
    ).scalar() or 0
    result = await db.execute(
        _order_query()
        .where(Order.user_id == user_id)
        .order_by(Order.created_at.desc())
        .offset((page - 1) * per_page)
        .limit(per_page)
    )
    return await _serialize(db, list(result.scalars().all())), total


async def get_order(db: AsyncSession, caller_id: UUID, user_id: UUID, order_id: UUID) -> dict:
    ensure_owner(caller_id, user_id)
    result = await db.execute(_order_query().where(Order.id == order_id))
    order = result.scalar_one_or_none()
    if not order or order.user_id != user_id:
        raise NotFoundError("Order not found")
    return (await _serialize(db, [order]))[0]


async def get_order_by_id(db: AsyncSession, order_id: UUID) -> dict:
    result = await db.execute(_order_query().where(Order.id == order_id))
    order = result.scalar_one_or_none()
    if not order:
        raise NotFoundError("Order not found")
    return (await _serialize(db, [order]))[0]


def _admin_conditions(
    *,
    status: str | None,
    payment_status: str | None,
    q: str | None,
    date_from: datetime | None,
    date_to: datetime | None,
) -> list:
    conditions = []
    if status:
        conditions.append(Order.status == status)
    if payment_status:
        conditions.append(Order.payment_status == payment_status)
    if date_from:
        conditions.append(Order.created_at >= date_from)
    if date_to:
        conditions.append(Order.created_at <= date_to)
    if q:
        pattern = ilike_escape(q)
        user_subq = select(User.id).where(
            or_(
                User.email.ilike(pattern),
                User.first_name.ilike(pattern),
                User.last_name.ilike(pattern),
            )
        ).scalar_subquery()
        conditions.append(or_(
            Order.user_id.in_(user_subq),
            Order.receipt_id.ilike(pattern),
            func.cast(Order.id, sa.String).ilike(pattern),
        ))
    return conditions


async def list_orders(
    db: AsyncSession,
    *,
    status: str | None = None,
    payment_status: str | None = None,
    q: str | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    sort: str | None = None,
    page: int = 1,
    per_page: int = 20,
) -> tuple[list[dict], int]:
    conditions = _admin_conditions(
        status=status, payment_status=payment_status, q=q,
        date_from=date_from, date_to=date_to,
    )
    total = (
        await db.execute(select(func.count()).select_from(Order).where(*conditions))
    ).scalar() or 0

    order_clause = Order.created_at.desc()
    if sort == "oldest":
        order_clause = Order.created_at.asc()
    elif sort == "total_asc":
        order_clause = Order.total_amount.asc()
    elif sort == "total_desc":
        order_clause = Order.total_amount.desc()

    result = await db.execute(
        _order_query()
        .where(*conditions)
        .order_by(order_clause)
        .offset((page - 1) * per_page)
        .limit(per_page)
    )
    return await _serialize(db, list(result.scalars().all())), total


async def assign_shipment(db: AsyncSession, order_id: UUID, data: ShipmentAssign) -> Order:
    """Attach a carrier waybill to a paid order and mark it shipped."""
    result = await db.execute(_order_query().where(Order.id == order_id).with_for_update())
    order = result.scalar_one_or_none()
    if not order:
        raise NotFoundError("Order not found")
    if order.payment_status != "paid":
        raise BadRequestError("Only paid orders can be shipped")

    transition(order, "shipped")
    if order.shipment is None:
        order.shipment = OrderShipment(
            awb_number=data.awb_number,
            courier_name=data.courier_name,
            status="pending",
        )
    else:
        order.shipment.awb_number = data.awb_number
        order.shipment.courier_name = data.courier_name
        order.shipment.status = "pending"
    await db.flush()
    return order


async def export_orders_csv(
    db: AsyncSession,
    *,
    status: str | None = None,
    payment_status: str | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
) -> str:
    MAX_EXPORT_ROWS = 10000
    conditions = _admin_conditions(
        status=status, payment_status=payment_status, q=None,
        date_from=date_from, date_to=date_to,
    )
    result = await db.execute(
        _order_query()
        .where(*conditions)
        .order_by(Order.created_at.desc())
        .limit(MAX_EXPORT_ROWS)
    )
    orders = list(result.scalars().all())

    user_ids = {o.user_id for o in orders}
    address_ids = {o.address_id for o in orders}
    users: dict[UUID, User] = {}
    addresses: dict[UUID, Address] = {}
    if user_ids:
        users = {
            u.id: u for u in (
                await db.execute(select(User).where(User.id.in_(user_ids)))
            ).scalars().all()
        }
    if address_ids:
        addresses = {
            a.id: a for a in (
                await db.execute(select(Address).where(Address.id.in_(address_ids)))
            ).scalars().all()
        }
    serialized = await _serialize(db, orders)

    output = io.StringIO()
    writer = csv.DictWriter(output, fieldnames=EXPORT_FIELDS)
    writer.writeheader()
    for order, data in zip(orders, serialized):
        writer.writerow(order_to_export_row(
            order,
            users.get(order.user_id),
            addresses.get(order.address_id),
            data["items"],
            order.shipment,
        ))
    return output.getvalue()
