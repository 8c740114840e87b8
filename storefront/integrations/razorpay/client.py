import asyncio
import logging
from dataclasses import dataclass

import httpx

from storefront.core.config import settings

logger = logging.getLogger(__name__)

RAZORPAY_API_BASE = "https://api.razorpay.com/v1"


@dataclass
class GatewayOrder:
    id: str
    amount: int
    currency: str
    receipt: str
    status: str


@dataclass
class GatewayRefund:
    id: str
    payment_id: str
    amount: int
    status: str


class RazorpayClient:
    def __init__(self) -> None:
        self._key_id = settings.razorpay_key_id
        self._key_secret = settings.razorpay_key_secret

    @property
    def is_configured(self) -> bool:
        return bool(self._key_id and self._key_secret)

    @property
    def key_id(self) -> str:
        return self._key_id

    async def _post(self, path: str, payload: dict) -> dict | None:
        """POST helper with retries. Returns the decoded body or None on failure."""
        for attempt in range(3):
            try:
                async with httpx.AsyncClient(
                    timeout=15.0, auth=(self._key_id, self._key_secret)
                ) as client:
                    resp = await client.post(f"{RAZORPAY_API_BASE}{path}", json=payload)

                if resp.status_code == 429 and attempt < 2:
                    wait = 2 ** attempt
                    logger.warning("Razorpay rate limit, retrying in %ds", wait)
                    await asyncio.sleep(wait)
                    continue

                if resp.status_code >= 400:
                    logger.error(
                        "Razorpay POST %s failed (%d): %s",
                        path, resp.status_code, resp.text[:500],
                    )
                    return None

                return resp.json()

            except httpx.TimeoutException:
                logger.warning("Razorpay POST %s timeout (attempt %d)", path, attempt + 1)
                if attempt < 2:
                    await asyncio.sleep(2 ** attempt)
            except (httpx.HTTPError, ValueError):
                logger.exception("Razorpay POST %s error", path)
                return None

        return None

    async def create_order(
        self, amount: int, receipt: str, notes: dict | None = None
    ) -> GatewayOrder | None:
        """Register an order with the gateway. ``amount`` is in paise."""
        body = await self._post("/orders", {
            "amount": amount,
            "currency": "INR",
            "receipt": receipt,
            "notes": notes or {},
        })
        if not body or "id" not in body:
            return None
        return GatewayOrder(
            id=body["id"],
            amount=body.get("amount", amount),
            currency=body.get("currency", "INR"),
            receipt=body.get("receipt", receipt),
            status=body.get("status", "created"),
        )

    async def refund(self, payment_id: str, amount: int) -> GatewayRefund | None:
        body = await self._post(f"/payments/{payment_id}/refund", {"amount": amount})
        if not body or "id" not in body:
            return None
        return GatewayRefund(
            id=body["id"],
            payment_id=body.get("payment_id", payment_id),
            amount=body.get("amount", amount),
            status=body.get("status", "processed"),
        )


razorpay_client = RazorpayClient()
