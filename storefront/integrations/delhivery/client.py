import logging
from dataclasses import dataclass, field

import httpx

from storefront.core.config import settings

logger = logging.getLogger(__name__)

# Delhivery scan text -> our shipment status
DELHIVERY_TO_INTERNAL: dict[str, str] = {
    "Manifested": "pending",
    "Pickup Exception": "pickup_exception",
    "Pickup Scheduled": "pickup_scheduled",
    "Picked Up": "pickup_completed",
    "In Transit": "in_transit",
    "Out For Delivery": "out_for_delivery",
    "Delivered": "delivered",
    "RTO Initiated": "rto_initiated",
    "RTO Delivered": "rto_delivered",
    "Undelivered": "failed",
    "Cancelled": "cancelled",
}

TERMINAL_SHIPMENT_STATUSES = ("delivered", "rto_delivered", "cancelled")


def map_carrier_status(scan: str | None, previous: str) -> str:
    """Translate a carrier scan into a shipment status. Unknown scans keep ``previous``."""
    if not scan:
        return previous
    return DELHIVERY_TO_INTERNAL.get(scan.strip(), previous)


class CarrierResponseError(Exception):
    """The carrier answered with a body we cannot parse."""


@dataclass
class DelhiveryPackage:
    awb_number: str
    payload: dict
    scans: list[dict] = field(default_factory=list)

    @property
    def latest_scan(self) -> str | None:
        if not self.scans:
            return None
        detail = self.scans[-1].get("ScanDetail") or {}
        scan = detail.get("Scan")
        return scan.strip() if isinstance(scan, str) else None


class DelhiveryClient:
    def __init__(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._base_url = settings.delhivery_base_url.rstrip("/")
        self._token = settings.delhivery_token
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self._token)

    def _headers(self) -> dict[str, str]:
        return {"Accept": "application/json"}

    async def get_package(self, awb_number: str) -> DelhiveryPackage | None:
        """Fetch tracking for one waybill with a single request.

        Returns None on transport failure or carrier error status, the poll
        picks the waybill up again on its next run. Raises
        CarrierResponseError when the body is not JSON.
        """
        url = f"{self._base_url}/api/v1/packages/json"
        params = {"waybill": awb_number, "token": self._token}

        try:
            async with httpx.AsyncClient(timeout=15.0, transport=self._transport) as client:
                resp = await client.get(url, params=params, headers=self._headers())
        except httpx.HTTPError as exc:
            logger.warning("Delhivery request for %s failed: %s", awb_number, exc)
            return None

        if resp.status_code >= 400:
            logger.error(
                "Delhivery tracking for %s failed (%d): %s",
                awb_number, resp.status_code, resp.text[:500],
            )
            return None

        try:
            body = resp.json()
        except ValueError as exc:
            raise CarrierResponseError(
                f"Delhivery returned a non-JSON body for waybill {awb_number}"
            ) from exc

        return self._parse_package(awb_number, body)

    def _parse_package(self, awb_number: str, body: dict) -> DelhiveryPackage:
        scans: list[dict] = []
        shipment_data = body.get("ShipmentData") if isinstance(body, dict) else None
        if shipment_data:
            shipment = shipment_data[0].get("Shipment") or {}
            scans = shipment.get("Scans") or []
        return DelhiveryPackage(
            awb_number=awb_number,
            payload=body if isinstance(body, dict) else {"raw": body},
            scans=scans,
        )


delhivery_client = DelhiveryClient()
