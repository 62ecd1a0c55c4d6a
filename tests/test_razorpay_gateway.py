import base64
import json

import httpx
import pytest

from staymarket.core.exceptions import GatewayOrderFailed
from staymarket.gateways.razorpay import RazorpayGateway, compute_signature
from staymarket.services.gateway_service import GatewayService

API_URL = "https://razorpay.test/v1"


def gateway_with(handler) -> RazorpayGateway:
    return RazorpayGateway(
        key_id="rzp_test_key",
        key_secret="rzp_test_secret",
        api_url=API_URL,
        transport=httpx.MockTransport(handler),
    )


async def test_create_order_posts_minor_units_with_basic_auth():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["auth"] = request.headers["authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"id": "order_abc", "status": "created"})

    service = GatewayService(gateway_with(handler))
    order_id = await service.create_order(4300, "bk_123")

    assert order_id == "order_abc"
    assert seen["url"] == f"{API_URL}/orders"
    assert seen["body"] == {"amount": 430000, "currency": "INR", "receipt": "bk_123"}
    expected = base64.b64encode(b"rzp_test_key:rzp_test_secret").decode()
    assert seen["auth"] == f"Basic {expected}"


async def test_error_status_is_reported():
    gateway = gateway_with(lambda request: httpx.Response(401, json={"error": "bad key"}))

    result = await gateway.create_order(1000, "INR", "bk_1")

    assert not result.success
    assert result.raw_response == {"status_code": 401}
    with pytest.raises(GatewayOrderFailed):
        await GatewayService(gateway).create_order(10, "bk_1")


async def test_missing_order_id_is_a_failure():
    gateway = gateway_with(lambda request: httpx.Response(200, json={"status": "created"}))

    result = await gateway.create_order(1000, "INR", "bk_1")

    assert not result.success
    assert result.order_id is None


async def test_network_error_is_a_failure():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    result = await gateway_with(handler).create_order(1000, "INR", "bk_1")

    assert not result.success
    assert "connection refused" in result.error_message


async def test_missing_credentials_skip_the_request():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={"id": "order_x"})

    gateway = gateway_with(handler)
    gateway.key_secret = None

    result = await gateway.create_order(1000, "INR", "bk_1")

    assert not result.success
    assert calls == []


def test_signature_verification():
    gateway = gateway_with(lambda request: httpx.Response(200))
    signature = compute_signature("rzp_test_secret", "order_abc", "pay_1")

    assert gateway.verify_signature("order_abc", "pay_1", signature)
    assert not gateway.verify_signature("order_abc", "pay_2", signature)
    assert not gateway.verify_signature("order_abc", "pay_1", "")
