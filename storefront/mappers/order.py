from storefront.models.orm.address import Address
from storefront.models.orm.order import Order, OrderItem, OrderShipment
from storefront.models.orm.user import User


def order_item_to_dict(item: OrderItem, product_title: str | None) -> dict:
    return {
        "id": item.id,
        "product_id": item.product_id,
        "product_title": product_title,
        "brand_id": item.brand_id,
        "size": item.size,
        "color": item.color,
        "quantity": item.quantity,
        "price": item.price,
    }


def shipment_to_dict(shipment: OrderShipment | None) -> dict | None:
    if shipment is None:
        return None
    return {
        "awb_number": shipment.awb_number,
        "courier_name": shipment.courier_name,
        "status": shipment.status,
        "updated_at": shipment.updated_at,
    }


def order_to_dict(
    order: Order,
    items: list[dict],
    shipment: OrderShipment | None = None,
) -> dict:
    return {
        "id": order.id,
        "user_id": order.user_id,
        "address_id": order.address_id,
        "receipt_id": order.receipt_id,
        "status": order.status,
        "payment_status": order.payment_status,
        "payment_method": order.payment_method,
        "payment_id": order.payment_id,
        "gateway_order_id": order.gateway_order_id,
        "coupon_code": order.coupon_code,
        "total_items": order.total_items,
        "item_amount": order.item_amount,
        "delivery_amount": order.delivery_amount,
        "discount_amount": order.discount_amount,
        "total_amount": order.total_amount,
        "payment_expires_at": order.payment_expires_at,
        "cancellation_reason": order.cancellation_reason,
        "cancelled_at": order.cancelled_at,
        "items": items,
        "shipment": shipment_to_dict(shipment),
        "created_at": order.created_at,
        "updated_at": order.updated_at,
    }


def _format_address(address: Address | None) -> str:
    if not address:
        return ""
    return ", ".join(
        part for part in (
            address.full_name, address.street, address.city, address.state, address.zip
        ) if part
    )


def order_to_export_row(
    order: Order,
    user: User | None,
    address: Address | None,
    items: list[dict],
    shipment: OrderShipment | None,
) -> dict:
    """Flatten an order into one row of the compliance CSV export."""
    return {
        "receipt_id": order.receipt_id,
        "order_id": str(order.id),
        "created_at": order.created_at.isoformat() if order.created_at else "",
        "customer_name": user.display_name if user else "",
        "customer_email": user.email if user else "",
        "customer_phone": (user.phone or "") if user else "",
        "shipping_address": _format_address(address),
        "items": "; ".join(
            f"{i['product_title'] or i['product_id']}"
            f"{' / ' + i['size'] if i['size'] else ''}"
            f"{' / ' + i['color'] if i['color'] else ''} x{i['quantity']}"
            for i in items
        ),
        "total_items": order.total_items,
        "item_amount": order.item_amount,
        "delivery_amount": order.delivery_amount,
        "discount_amount": order.discount_amount,
        "total_amount": order.total_amount,
        "coupon_code": order.coupon_code or "",
        "status": order.status,
        "payment_status": order.payment_status,
        "payment_id": order.payment_id or "",
        "shipment_status": shipment.status if shipment else "",
        "awb_number": (shipment.awb_number or "") if shipment else "",
    }
