import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.dependencies.auth import verify_cron_secret
from storefront.api.dependencies.database import get_db
from storefront.integrations.delhivery.sync import poll_active_shipments
from storefront.models.dto.common import CountResponse
from storefront.services import order_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/cron", tags=["cron"], dependencies=[Depends(verify_cron_secret)]
)


@router.get("/carrier-poll")
async def carrier_poll(db: AsyncSession = Depends(get_db)) -> dict:
    return await poll_active_shipments(db)


@router.get("/expire-payments", response_model=CountResponse)
async def expire_payments(db: AsyncSession = Depends(get_db)):
    return {"count": await order_service.expire_unpaid_orders(db)}
