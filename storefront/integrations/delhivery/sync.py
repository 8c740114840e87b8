"""Delhivery shipment polling, run by the scheduler and the cron endpoint.

Each shipment is committed as soon as it is handled, so a run that stops
early keeps the shipments already processed.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from storefront.audit.service import write_audit_log
from storefront.integrations.delhivery.client import (
    TERMINAL_SHIPMENT_STATUSES,
    CarrierResponseError,
    DelhiveryPackage,
    delhivery_client,
    map_carrier_status,
)
from storefront.models.orm.order import Order, OrderShipment
from storefront.models.orm.user import User
from storefront.notifications.service import notify_order_event

logger = logging.getLogger(__name__)

# Shipment status -> order status it drives
ORDER_STATUS_FOR_SHIPMENT = {
    "delivered": "delivered",
    "rto_delivered": "cancelled",
}


async def _apply_package(
    db: AsyncSession, shipment: OrderShipment, package: DelhiveryPackage
) -> str | None:
    """Store the carrier payload and move the shipment/order forward.

    Returns the new shipment status when it changed, else None.
    """
    shipment.tracking_payload = package.payload

    new_status = map_carrier_status(package.latest_scan, shipment.status)
    if new_status == shipment.status:
        return None

    previous = shipment.status
    shipment.status = new_status
    order: Order = shipment.order

    order_status = ORDER_STATUS_FOR_SHIPMENT.get(new_status)
    if order_status and order.status != order_status:
        order.status = order_status
        if order_status == "cancelled":
            order.cancellation_reason = "Returned to origin by the carrier"

    await write_audit_log(
        db,
        user_id=None,
        action="shipment.status_changed",
        resource_type="order",
        resource_id=order.id,
        details={
            "awb_number": shipment.awb_number,
            "from": previous,
            "to": new_status,
            "scan": package.latest_scan,
        },
    )
    return new_status


async def _notify_delivered(db: AsyncSession, shipment: OrderShipment) -> None:
    order = shipment.order
    await notify_order_event(
        await db.get(User, order.user_id),
        order,
        "delivered",
        awb_number=shipment.awb_number,
        courier_name=shipment.courier_name,
    )


async def poll_active_shipments(db: AsyncSession) -> dict:
    """Refresh every non-terminal shipment from the carrier.

    Transport failures skip the shipment. An unparseable carrier response
    ends the run: later shipments are left for the next poll and the stats
    carry ``aborted``.
    """
    if not delhivery_client.is_configured:
        return {"skipped": True}

    result = await db.execute(
        select(OrderShipment)
        .options(selectinload(OrderShipment.order))
        .where(
            OrderShipment.awb_number.is_not(None),
            OrderShipment.status.not_in(TERMINAL_SHIPMENT_STATUSES),
        )
    )
    shipments = list(result.scalars().all())

    stats = {
        "checked": len(shipments), "updated": 0, "delivered": 0, "failed": 0, "aborted": False,
    }
    for shipment in shipments:
        try:
            package = await delhivery_client.get_package(shipment.awb_number)
        except CarrierResponseError:
            logger.exception("Aborting carrier poll at waybill %s", shipment.awb_number)
            stats["aborted"] = True
            break
        if package is None:
            stats["failed"] += 1
            continue
        if not package.scans:
            logger.debug("No scans yet for waybill %s", shipment.awb_number)
            continue

        new_status = await _apply_package(db, shipment, package)
        await db.commit()
        if new_status:
            stats["updated"] += 1
            if new_status == "delivered":
                stats["delivered"] += 1
                await _notify_delivered(db, shipment)

    logger.info(
        "Carrier poll complete: %d checked, %d updated, %d delivered, %d failed%s",
        stats["checked"], stats["updated"], stats["delivered"], stats["failed"],
        " (aborted)" if stats["aborted"] else "",
    )
    return stats
