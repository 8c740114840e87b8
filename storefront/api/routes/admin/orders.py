from datetime import date, datetime
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.dependencies.auth import require_admin
from storefront.api.dependencies.database import get_db
from storefront.audit.service import audit_context, write_audit_log
from storefront.core.exceptions import BadRequestError
from storefront.models.dto.order import OrderListResponse, OrderResponse, ShipmentAssign
from storefront.models.orm.order import ORDER_STATUSES, PAYMENT_STATUSES
from storefront.models.orm.user import User
from storefront.services import order_service

router = APIRouter(prefix="/orders", tags=["admin-orders"])


def _check_filters(status: str | None, payment_status: str | None) -> None:
    if status and status not in ORDER_STATUSES:
        raise BadRequestError(f"Invalid status. Must be one of: {', '.join(ORDER_STATUSES)}")
    if payment_status and payment_status not in PAYMENT_STATUSES:
        raise BadRequestError(
            f"Invalid payment status. Must be one of: {', '.join(PAYMENT_STATUSES)}"
        )


@router.get("", response_model=OrderListResponse)
async def list_all_orders(
    status: str | None = None,
    payment_status: str | None = None,
    q: str | None = Query(None, max_length=200),
    sort: str | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
):
    _check_filters(status, payment_status)
    items, total = await order_service.list_orders(
        db,
        status=status,
        payment_status=payment_status,
        q=q,
        sort=sort,
        date_from=date_from,
        date_to=date_to,
        page=page,
        per_page=per_page,
    )
    return {"items": items, "total": total, "page": page, "per_page": per_page}


@router.get("/export/csv")
async def export_orders(
    request: Request,
    status: str | None = None,
    payment_status: str | None = None,
    date_from: datetime | None = None,
    date_to: datetime | None = None,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
):
    _check_filters(status, payment_status)
    csv_content = await order_service.export_orders_csv(
        db,
        status=status,
        payment_status=payment_status,
        date_from=date_from,
        date_to=date_to,
    )

    ip, ua = audit_context(request)
    await write_audit_log(
        db, user_id=admin.id, action="admin.orders.exported",
        resource_type="order",
        details={
            "status": status,
            "payment_status": payment_status,
            "date_from": date_from.isoformat() if date_from else None,
            "date_to": date_to.isoformat() if date_to else None,
        },
        ip_address=ip, user_agent=ua,
    )

    filename = f"orders_{date.today().isoformat()}.csv"
    return StreamingResponse(
        iter([csv_content]),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: UUID,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
):
    return await order_service.get_order_by_id(db, order_id)


@router.put("/{order_id}/shipment", response_model=OrderResponse)
async def assign_shipment(
    order_id: UUID,
    body: ShipmentAssign,
    request: Request,
    db: AsyncSession = Depends(get_db),
    admin: User = Depends(require_admin),
):
    await order_service.assign_shipment(db, order_id, body)
    ip, ua = audit_context(request)
    await write_audit_log(
        db, user_id=admin.id, action="admin.order.shipment_assigned",
        resource_type="order", resource_id=order_id,
        details={"awb_number": body.awb_number, "courier_name": body.courier_name},
        ip_address=ip, user_agent=ua,
    )
    return await order_service.get_order_by_id(db, order_id)
