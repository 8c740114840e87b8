"""Customer order emails.

Each order event maps to one Jinja2 template and subject line. Messages carry
a short plain-text summary with the rendered HTML as the alternative part and
are sent once over SMTP; a failed send is logged and reported as ``False``.
"""
import logging
from email.message import EmailMessage
from email.utils import formataddr
from pathlib import Path

import aiosmtplib
from jinja2 import Environment, FileSystemLoader

from storefront.core.config import settings
from storefront.models.orm.order import Order

logger = logging.getLogger(__name__)

_jinja_env = Environment(
    loader=FileSystemLoader(str(Path(__file__).parent / "templates")),
    autoescape=True,
)

SMTP_TIMEOUT_SECONDS = 30

# event -> (template, subject)
ORDER_EMAILS: dict[str, tuple[str, str]] = {
    "confirmed": ("order_confirmed.html", "We received your order #{receipt}"),
    "cancelled": ("order_cancelled.html", "Your order #{receipt} was cancelled"),
    "delivered": ("order_delivered.html", "Your order #{receipt} has been delivered!"),
    "payment_failed": ("payment_failed.html", "Payment for order #{receipt} failed"),
}


def order_context(customer_name: str, order: Order, **extra) -> dict:
    return {
        "customer_name": customer_name,
        "receipt_id": order.receipt_id,
        "status": order.status,
        "payment_status": order.payment_status,
        "item_amount": order.item_amount,
        "delivery_amount": order.delivery_amount,
        "discount_amount": order.discount_amount or 0,
        "total_amount": order.total_amount,
        "company_name": settings.company_name,
        "frontend_url": settings.frontend_url,
        **extra,
    }


def _plain_summary(subject: str, context: dict) -> str:
    lines = [
        f"Hi {context['customer_name']},",
        "",
        f"{subject}.",
        f"Order total: Rs. {context['total_amount'] / 100:.2f}",
    ]
    if context.get("reason"):
        lines.append(f"Reason: {context['reason']}")
    if context.get("awb_number"):
        lines.append(f"Waybill: {context['awb_number']}")
    lines += ["", f"{context['frontend_url']}/orders", context["company_name"]]
    return "\n".join(lines)


def render_order_email(
    to: str, customer_name: str, order: Order, event: str, **extra
) -> EmailMessage:
    """Build the message for ``event``. Raises KeyError for an unknown event."""
    template_name, subject = ORDER_EMAILS[event]
    subject = subject.format(receipt=order.receipt_id)
    context = order_context(customer_name, order, **extra)

    message = EmailMessage()
    # Header assignment rejects CR/LF, so a tampered recipient cannot inject headers
    message["From"] = formataddr((settings.company_name, settings.smtp_from_address))
    message["To"] = to
    message["Subject"] = subject
    message.set_content(_plain_summary(subject, context))
    message.add_alternative(_jinja_env.get_template(template_name).render(**context), subtype="html")
    return message


async def send_order_email(
    to: str, customer_name: str, order: Order, event: str, **extra
) -> bool:
    if not settings.smtp_host or not settings.smtp_from_address:
        logger.debug("SMTP not configured, skipping %s email for order %s", event, order.receipt_id)
        return False

    message = render_order_email(to, customer_name, order, event, **extra)
    port = settings.smtp_port
    try:
        await aiosmtplib.send(
            message,
            hostname=settings.smtp_host,
            port=port,
            username=settings.smtp_username or None,
            password=settings.smtp_password or None,
            start_tls=settings.smtp_use_tls and port != 465,
            use_tls=port == 465,
            timeout=SMTP_TIMEOUT_SECONDS,
        )
    except (aiosmtplib.SMTPException, OSError):
        logger.exception("Failed to send %s email for order %s", event, order.receipt_id)
        return False

    logger.info("Sent %s email for order %s", event, order.receipt_id)
    return True
