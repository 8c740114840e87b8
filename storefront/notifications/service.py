import logging

from storefront.models.orm.order import Order
from storefront.models.orm.user import User
from storefront.notifications.email import send_order_email

logger = logging.getLogger(__name__)


async def notify_order_event(user: User | None, order: Order, event: str, **extra) -> bool:
    """Email the order's customer about a lifecycle event. Never raises."""
    if not user or not user.email:
        return False
    try:
        return await send_order_email(user.email, user.display_name, order, event, **extra)
    except Exception:
        logger.exception("Failed to send %s email for order %s", event, order.id)
        return False
