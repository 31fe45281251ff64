"""HTTP client for the underwriting partner's policy issuance API."""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any

import httpx

from app.core.config import settings
from app.core.logging import get_logger
from app.pipeline.errors import UnderwritingNetworkError, UnderwritingPartnerError
from app.pipeline.models import UnderwritingPayload, UnderwritingResult

logger = get_logger(__name__)


class UnderwritingClient:
    """
    Submits one shipment payload per call.

    No retries: a failed call fails that shipment only, and the next
    scheduled run is the retry.
    """

    def __init__(
        self,
        endpoint: str | None = None,
        bearer_token: str | None = None,
        currency: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.endpoint = endpoint or settings.UNDERWRITING_API_URL
        self.bearer_token = bearer_token if bearer_token is not None else settings.UNDERWRITING_BEARER_TOKEN
        self.currency = currency or settings.LOCAL_CURRENCY
        self.timeout = timeout or settings.UNDERWRITING_TIMEOUT_SECONDS
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.bearer_token}",
            "Content-Type": "application/json",
        }

    async def submit(self, payload: UnderwritingPayload) -> UnderwritingResult:
        """
        POST the payload and translate the partner's answer.

        Raises:
            UnderwritingNetworkError: transport failure or timeout.
            UnderwritingPartnerError: non-2xx status or a body that is not a JSON object.
        """
        awb = payload.shipment.awb
        body = payload.to_request()

        logger.info("Submitting shipment to underwriting partner", awb=awb, endpoint=self.endpoint)
        logger.debug("Underwriting payload", awb=awb, payload=body)

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(self.endpoint, headers=self._headers(), json=body)
        except httpx.HTTPError as exc:
            raise UnderwritingNetworkError(
                f"Underwriting API unreachable: {exc}",
                details={"awb": awb, "endpoint": self.endpoint},
            ) from exc

        if response.is_error:
            logger.warning(
                "Underwriting partner returned an error",
                awb=awb,
                status_code=response.status_code,
                body=response.text[:500],
            )
            raise UnderwritingPartnerError(
                f"Underwriting API returned {response.status_code}",
                status_code=response.status_code,
                response_body=response.text,
                details={"awb": awb},
            )

        try:
            data = response.json()
        except ValueError as exc:
            raise UnderwritingPartnerError(
                "Underwriting API returned a non-JSON body",
                status_code=response.status_code,
                response_body=response.text,
                details={"awb": awb},
            ) from exc

        if not isinstance(data, dict):
            raise UnderwritingPartnerError(
                "Underwriting API returned an unexpected body",
                status_code=response.status_code,
                response_body=response.text,
                details={"awb": awb},
            )

        result = self._to_result(awb, data)
        logger.info(
            "Underwriting response received",
            awb=awb,
            status=result.status,
            policy_id=result.policy_id,
            success=result.is_success,
        )
        return result

    def _to_result(self, awb: str, data: dict[str, Any]) -> UnderwritingResult:
        policy_id = data.get("policyId")
        document_url = data.get("pdfUrl") or data.get("documentUrl")
        return UnderwritingResult(
            shipment_id=awb,
            status=str(data["status"]) if data.get("status") is not None else None,
            policy_id=str(policy_id) if policy_id else None,
            amount=_as_decimal(data.get("amount")),
            currency=self.currency,
            document_url=str(document_url) if document_url else None,
            raw=data,
        )


def _as_decimal(value: Any) -> Decimal | None:
    if value is None or value == "":
        return None
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return None
