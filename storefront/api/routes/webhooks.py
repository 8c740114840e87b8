from fastapi import APIRouter, Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.dependencies.database import get_db
from storefront.models.dto import DetailResponse
from storefront.services import order_service

router = APIRouter(prefix="/webhooks", tags=["webhooks"])


@router.post("/payments", response_model=DetailResponse)
async def payment_webhook(
    request: Request,
    x_razorpay_signature: str | None = Header(None),
    db: AsyncSession = Depends(get_db),
):
    body = await request.body()
    handled = await order_service.handle_webhook(db, body, x_razorpay_signature)
    return {"detail": handled}
