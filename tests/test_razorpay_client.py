"""Tests for the Razorpay adapter using httpx.MockTransport."""

import base64
import json

import httpx
import pytest

from resume_api.adapters.payments.razorpay_client import RazorpayGateway
from resume_api.core.errors import UpstreamAppError


def _gateway(handler) -> RazorpayGateway:
    return RazorpayGateway(
        key_id="rzp_test_key",
        key_secret="secret",
        base_url="https://api.razorpay.test/v1",
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
async def test_create_order_posts_with_basic_auth() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"id": "order_1", "amount": 29900, "currency": "INR", "receipt": "r"})

    order = await _gateway(handler).create_order(
        amount=29900, currency="INR", receipt="r", notes={"plan_type": "monthly"}
    )

    assert order["id"] == "order_1"
    request = seen[0]
    assert request.method == "POST"
    assert request.url.path == "/v1/orders"
    assert request.headers["authorization"] == "Basic " + base64.b64encode(b"rzp_test_key:secret").decode()
    assert json.loads(request.content)["notes"] == {"plan_type": "monthly"}


@pytest.mark.asyncio
async def test_fetch_payment_and_order_paths() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"path": request.url.path})

    gateway = _gateway(handler)
    assert (await gateway.fetch_payment("pay_1"))["path"] == "/v1/payments/pay_1"
    assert (await gateway.fetch_order("order_1"))["path"] == "/v1/orders/order_1"


@pytest.mark.asyncio
async def test_error_status_becomes_upstream_error() -> None:
    gateway = _gateway(lambda request: httpx.Response(400, json={"error": {"description": "bad"}}))

    with pytest.raises(UpstreamAppError) as exc_info:
        await gateway.create_order(amount=1, currency="INR", receipt="r", notes={})

    assert exc_info.value.code == "order_create_failed"
    assert exc_info.value.details["http_status"] == 400
