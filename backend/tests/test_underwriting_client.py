import json
from decimal import Decimal

import httpx
import pytest

from app.pipeline.errors import UnderwritingNetworkError, UnderwritingPartnerError
from app.submission.payload_builder import StaticCarrierPayloadBuilder
from app.submission.underwriting_client import UnderwritingClient

from fakes import make_customer, make_shipment

ENDPOINT = "https://partner.test/v1/policies"


def _payload():
    return StaticCarrierPayloadBuilder(source_country="IN", currency="INR").build(
        make_shipment("AWB42"), make_customer()
    )


def _client(handler) -> UnderwritingClient:
    return UnderwritingClient(
        endpoint=ENDPOINT,
        bearer_token="secret",
        currency="INR",
        timeout=5,
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
async def test_success_response_is_mapped():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(
            200,
            json={"status": "success", "policyId": "POL-9", "amount": 125.5, "pdfUrl": "https://docs/p.pdf"},
        )

    result = await _client(handler).submit(_payload())

    assert seen["auth"] == "Bearer secret"
    assert seen["body"]["shipment"]["awb"] == "AWB42"
    assert result.is_success
    assert result.shipment_id == "AWB42"
    assert result.policy_id == "POL-9"
    assert result.amount == Decimal("125.5")
    assert result.currency == "INR"
    assert result.document_url == "https://docs/p.pdf"


@pytest.mark.asyncio
async def test_failed_status_is_not_success():
    def handler(request):
        return httpx.Response(200, json={"status": "failed", "message": "declined"})

    result = await _client(handler).submit(_payload())

    assert not result.is_success
    assert result.policy_id is None
    assert result.raw["message"] == "declined"


@pytest.mark.asyncio
async def test_error_status_raises_partner_error():
    def handler(request):
        return httpx.Response(500, text="upstream down")

    with pytest.raises(UnderwritingPartnerError) as exc_info:
        await _client(handler).submit(_payload())

    assert exc_info.value.status_code == 500
    assert exc_info.value.response_body == "upstream down"


@pytest.mark.asyncio
async def test_non_json_body_raises_partner_error():
    def handler(request):
        return httpx.Response(200, text="<html>gateway</html>")

    with pytest.raises(UnderwritingPartnerError):
        await _client(handler).submit(_payload())


@pytest.mark.asyncio
async def test_transport_failure_raises_network_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(UnderwritingNetworkError):
        await _client(handler).submit(_payload())
