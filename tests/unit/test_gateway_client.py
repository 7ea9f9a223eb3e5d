import json

import httpx
import pytest

from storefront.errors import GatewayError
from storefront.payments import gateway_client


def _client(handler) -> httpx.Client:
    return httpx.Client(transport=httpx.MockTransport(handler), base_url="https://gateway.test/v1")


def test_is_configured_follows_config(monkeypatch):
    assert gateway_client.is_configured()
    monkeypatch.setattr("storefront.config.PAYMENT_GATEWAY_KEY_SECRET", "")
    assert not gateway_client.is_configured()
    with pytest.raises(GatewayError):
        gateway_client.require_gateway()


def test_create_order_posts_minor_units_and_parses_response():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={
            "id": "order_Abc123", "entity": "order", "amount": 44998,
            "currency": "INR", "receipt": "ORDER_1_1", "status": "created",
        })

    order = gateway_client.create_order(44998, "INR", "ORDER_1_1", {"order_id": "1"}, client=_client(handler))
    assert order.id == "order_Abc123"
    assert order.amount == 44998
    assert order.status == "created"
    assert seen["path"] == "/v1/orders"
    assert seen["body"] == {"amount": 44998, "currency": "INR", "receipt": "ORDER_1_1", "notes": {"order_id": "1"}}


def test_create_order_unconfigured_makes_no_call(monkeypatch):
    monkeypatch.setattr("storefront.config.PAYMENT_GATEWAY_KEY_ID", "")
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(200, json={})

    with pytest.raises(GatewayError):
        gateway_client.create_order(100, "INR", "R", client=_client(handler))
    assert calls == []


def test_non_2xx_raises_with_description():
    def handler(request):
        return httpx.Response(400, json={"error": {"code": "BAD_REQUEST_ERROR", "description": "amount too low"}})

    with pytest.raises(GatewayError) as exc:
        gateway_client.create_order(1, "INR", "R", client=_client(handler))
    assert exc.value.status == 400
    assert "amount too low" in exc.value.detail


def test_malformed_json_raises():
    def handler(request):
        return httpx.Response(200, content=b"<html>oops</html>")

    with pytest.raises(GatewayError):
        gateway_client.create_order(100, "INR", "R", client=_client(handler))


def test_missing_fields_raises():
    def handler(request):
        return httpx.Response(200, json={"status": "created"})

    with pytest.raises(GatewayError):
        gateway_client.create_order(100, "INR", "R", client=_client(handler))


def test_timeout_and_transport_errors_raise():
    def timeout(request):
        raise httpx.ReadTimeout("timed out", request=request)

    def refused(request):
        raise httpx.ConnectError("refused", request=request)

    with pytest.raises(GatewayError):
        gateway_client.create_order(100, "INR", "R", client=_client(timeout))
    with pytest.raises(GatewayError):
        gateway_client.create_order(100, "INR", "R", client=_client(refused))


def test_refund_payment():
    seen = {}

    def handler(request):
        seen["path"] = request.url.path
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"id": "rfnd_1", "payment_id": "pay_9", "amount": 500, "status": "processed"})

    refund = gateway_client.refund_payment("pay_9", 500, client=_client(handler))
    assert refund.id == "rfnd_1"
    assert refund.status == "processed"
    assert seen["path"] == "/v1/payments/pay_9/refund"
    assert seen["body"] == {"amount": 500}


def test_refund_requires_payment_id():
    with pytest.raises(GatewayError):
        gateway_client.refund_payment("")
