import base64

import httpx
import pytest

from hotelpay.config import GatewayConfig
from hotelpay.exceptions import GatewayRequestError
from hotelpay.services.payment_gateway import RazorpayClient


def _basic(key_id, secret):
    return "Basic " + base64.b64encode(f"{key_id}:{secret}".encode()).decode()


@pytest.mark.asyncio
async def test_create_order_posts_minor_units_with_basic_auth(gateway, razorpay):
    order = await gateway.create_order(150000, "INR", "ORDER_1", {"bookingId": "1"})

    req = razorpay.last()
    assert req["method"] == "POST"
    assert req["path"] == "/v1/orders"
    assert req["json"] == {
        "amount": 150000,
        "currency": "INR",
        "receipt": "ORDER_1",
        "notes": {"bookingId": "1"},
        "payment_capture": 1,
    }
    assert req["headers"]["authorization"] == _basic("rzp_test_key", "rzp_test_secret")
    assert order.id == "order_test_1"
    assert order.amount == 150000
    assert order.notes == {"bookingId": "1"}


@pytest.mark.asyncio
@pytest.mark.parametrize("amount", [1500.0, 0, -100, "150000"])
async def test_create_order_requires_positive_integer(gateway, razorpay, amount):
    with pytest.raises(ValueError):
        await gateway.create_order(amount, "INR", "ORDER_1")
    assert razorpay.requests == []


@pytest.mark.asyncio
async def test_create_order_surfaces_gateway_description(gateway, razorpay):
    razorpay.fail_orders = True
    with pytest.raises(GatewayRequestError) as excinfo:
        await gateway.create_order(100, "INR", "ORDER_1")
    assert excinfo.value.description == "The amount must be atleast INR 1.00"
    assert excinfo.value.status_code == 400
    assert excinfo.value.operation == "create_order"


@pytest.mark.asyncio
async def test_fetch_payment(gateway, razorpay):
    payment = await gateway.fetch_payment("pay_123")
    assert razorpay.last()["path"] == "/v1/payments/pay_123"
    assert payment.status == "captured"
    assert payment.order_id == "order_test_1"


@pytest.mark.asyncio
async def test_fetch_unknown_payment_raises(gateway):
    with pytest.raises(GatewayRequestError) as excinfo:
        await gateway.fetch_payment("pay_missing")
    assert "does not exist" in excinfo.value.description


@pytest.mark.asyncio
async def test_fetch_order_is_pass_through(gateway):
    order = await gateway.fetch_order("order_abc")
    assert order == {"id": "order_abc", "entity": "order", "amount": 150000, "currency": "INR", "status": "paid"}


@pytest.mark.asyncio
async def test_refund_converts_major_units(gateway, razorpay):
    refund = await gateway.refund("pay_123", 500)
    req = razorpay.last()
    assert req["path"] == "/v1/payments/pay_123/refund"
    assert req["json"] == {"amount": 50000}
    assert refund.amount == 50000
    assert refund.payment_id == "pay_123"


@pytest.mark.asyncio
async def test_refund_rejection_raises(gateway):
    with pytest.raises(GatewayRequestError):
        await gateway.refund("pay_missing", 500)


@pytest.mark.asyncio
async def test_transport_failure_becomes_gateway_error(gateway_config):
    def boom(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = RazorpayClient(gateway_config, transport=httpx.MockTransport(boom))
    with pytest.raises(GatewayRequestError) as excinfo:
        await client.fetch_payment("pay_123")
    assert excinfo.value.status_code is None
    assert excinfo.value.description.startswith("Payment verification failed")


@pytest.mark.asyncio
async def test_non_json_error_body_uses_fallback(gateway_config):
    client = RazorpayClient(gateway_config, transport=httpx.MockTransport(lambda r: httpx.Response(502, text="<html>bad gateway</html>")))
    with pytest.raises(GatewayRequestError) as excinfo:
        await client.refund("pay_123", 10)
    assert excinfo.value.description == "Refund failed"
    assert excinfo.value.status_code == 502


@pytest.mark.asyncio
async def test_rotated_credentials_are_used(razorpay):
    config = GatewayConfig(key_id="rzp_live_new", key_secret="rotated", webhook_secret="x", base_url="https://api.razorpay.test/v1")
    client = RazorpayClient(config, transport=httpx.MockTransport(razorpay.handle))
    await client.fetch_payment("pay_123")
    assert razorpay.last()["headers"]["authorization"] == _basic("rzp_live_new", "rotated")
