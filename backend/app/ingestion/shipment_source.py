"""
Logistics platform client — daily shipment listing and per-shipment lookups.

Three endpoints, all bearer-authenticated:

    POST daily-shipments   {"fromdate": "DD-MM-YYYY", "todate": "DD-MM-YYYY"}
    GET  shipment          ?AWB=<awb>
    GET  customer          ?Customer_Id=<id>   → [info, addresses]

The listing endpoint sometimes answers with a text body of the form
``Customer Shipment Count N [ ... ]``; the JSON array is cut out of it.
"""

from __future__ import annotations

import json
from typing import Any

import httpx

from app.core.config import settings
from app.core.logging import get_logger
from app.pipeline.errors import ShipmentSourceError
from app.pipeline.models import CustomerDetail, ShipmentDetail

logger = get_logger(__name__)

AWB_FIELD = "full_awb_number"


def parse_listing(body: Any) -> list[str]:
    """
    Extract AWB numbers from a listing response, preserving order.

    Accepts an already-decoded list or the raw text form with a count prefix.
    Entries without an AWB are dropped.
    """
    if isinstance(body, (str, bytes)):
        text = body.decode() if isinstance(body, bytes) else body
        start = text.find("[")
        if start == -1:
            return []
        body = json.loads(text[start:])

    if not isinstance(body, list):
        raise ValueError(f"Unexpected listing body type: {type(body).__name__}")

    awbs: list[str] = []
    for item in body:
        if isinstance(item, dict) and item.get(AWB_FIELD):
            awbs.append(str(item[AWB_FIELD]))
    return awbs


class LogisticsShipmentSource:
    """Reads shipments and customers from the logistics platform."""

    def __init__(
        self,
        listing_url: str | None = None,
        shipment_url: str | None = None,
        customer_url: str | None = None,
        bearer_token: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.listing_url = listing_url or settings.LOGISTICS_DAILY_SHIPMENTS_URL
        self.shipment_url = shipment_url or settings.LOGISTICS_SHIPMENT_URL
        self.customer_url = customer_url or settings.LOGISTICS_CUSTOMER_URL
        self.bearer_token = bearer_token if bearer_token is not None else settings.LOGISTICS_BEARER_TOKEN
        self.timeout = timeout or settings.LOGISTICS_TIMEOUT_SECONDS
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout,
            transport=self._transport,
            headers={
                "Authorization": f"Bearer {self.bearer_token}",
                "Content-Type": "application/json",
            },
        )

    # ─── Listing ───────────────────────────────────────

    async def list_shipments(self, from_date: str, to_date: str | None = None) -> list[str]:
        """
        AWB numbers shipped between two ``DD-MM-YYYY`` dates (inclusive).

        Raises:
            ShipmentSourceError: transport failure, error status or unreadable body.
        """
        to_date = to_date or from_date
        logger.info("Fetching daily shipments", from_date=from_date, to_date=to_date)

        try:
            async with self._client() as client:
                response = await client.post(
                    self.listing_url,
                    json={"fromdate": from_date, "todate": to_date},
                )
                response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise ShipmentSourceError(
                f"Shipment listing returned {exc.response.status_code}",
                status_code=exc.response.status_code,
                details={"from_date": from_date, "to_date": to_date},
            ) from exc
        except httpx.HTTPError as exc:
            raise ShipmentSourceError(
                f"Shipment listing failed: {exc}",
                details={"from_date": from_date, "to_date": to_date},
            ) from exc

        try:
            awbs = parse_listing(_decode(response))
        except ValueError as exc:
            raise ShipmentSourceError(
                f"Shipment listing body could not be parsed: {exc}",
                status_code=response.status_code,
                details={"from_date": from_date, "body": response.text[:500]},
            ) from exc

        logger.info("Daily shipments fetched", from_date=from_date, count=len(awbs))
        return awbs

    # ─── Lookups ───────────────────────────────────────

    async def get_detail(self, awb: str) -> ShipmentDetail:
        """
        Full shipment record for one AWB.

        Raises:
            ShipmentSourceError: the lookup failed or the record is unusable.
        """
        try:
            async with self._client() as client:
                response = await client.get(self.shipment_url, params={"AWB": awb})
                response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            status_code = exc.response.status_code if isinstance(exc, httpx.HTTPStatusError) else None
            raise ShipmentSourceError(
                f"Failed to fetch shipment details for AWB {awb}: {exc}",
                status_code=status_code,
                details={"awb": awb},
            ) from exc

        if isinstance(data, list):
            data = data[0] if data else None
        if not isinstance(data, dict):
            raise ShipmentSourceError(
                f"Shipment details for AWB {awb} are empty",
                details={"awb": awb},
            )

        data.setdefault("Name", awb)
        try:
            return ShipmentDetail.model_validate(data)
        except ValueError as exc:
            raise ShipmentSourceError(
                f"Shipment details for AWB {awb} are malformed: {exc}",
                details={"awb": awb},
            ) from exc

    async def get_customer(self, customer_id: str | None) -> CustomerDetail | None:
        """Customer info and addresses; None when unknown or the lookup fails."""
        if not customer_id:
            return None

        try:
            async with self._client() as client:
                response = await client.get(self.customer_url, params={"Customer_Id": customer_id})
                response.raise_for_status()
            return CustomerDetail.from_api(response.json())
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Customer lookup failed", customer_id=customer_id, error=str(exc))
            return None


def _decode(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text
