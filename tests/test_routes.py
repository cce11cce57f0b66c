import hashlib
from decimal import Decimal

import httpx
import pytest
from fastapi.testclient import TestClient

from api.dependencies import get_payment_service, get_webhook_service
from application.services.payment_service import PaymentService
from application.services.webhook_service import AutopayWebhookService
from domain.order.entity import Cart, Order
from main import app


PENDING_XML = (
    "<transaction><orderID>c1</orderID><status>PENDING</status>"
    "<redirecturl>https://pay.test/continue</redirecturl></transaction>"
)


def _autopay_handler(request: httpx.Request) -> httpx.Response:
    if request.url.path == "/gatewayList/v2":
        return httpx.Response(
            200, json={"gatewayList": [{"gatewayID": 106, "gatewayName": "Test bank", "state": "OK"}]}
        )
    if request.url.params.get("Amount") == "0.00":
        return httpx.Response(200, text="<transaction><status>FAILURE</status><reason>Bad amount</reason></transaction>")
    return httpx.Response(200, text=PENDING_XML)


@pytest.fixture
def client(make_processor, store):
    store.add_cart(Cart(id="c1", total=Decimal("99.50"), currency_code="PLN"))
    store.add_cart(Cart(id="zero", total=Decimal("0"), currency_code="PLN"))
    store.add_order(Order(id="o1", cart_id="c1", total=Decimal("99.50"), currency_code="PLN"))
    processor = make_processor(_autopay_handler)

    app.dependency_overrides[get_payment_service] = lambda: PaymentService(processor, store.uow_factory)
    app.dependency_overrides[get_webhook_service] = lambda: AutopayWebhookService(processor, store.uow_factory)
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def test_webhook_route_answers_with_signed_xml(client, store):
    signature = hashlib.sha256("100|c1|99.50|PLN|test-general-key".encode("utf-8")).hexdigest()
    body = (
        "<transactionList><serviceID>100</serviceID><transactions><transaction>"
        "<orderID>c1</orderID><amount>99.50</amount><currency>PLN</currency>"
        "<paymentStatus>SUCCESS</paymentStatus></transaction></transactions>"
        f"<hash>{signature}</hash></transactionList>"
    )

    resp = client.post("/autopay/hooks", content=body, headers={"Content-Type": "application/xml"})

    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("application/xml")
    assert "<confirmation>CONFIRMED</confirmation>" in resp.text
    assert store.orders.orders["c1"].is_captured
    assert resp.headers.get("X-Request-ID")


def test_webhook_route_malformed_body_is_400(client):
    resp = client.post("/autopay/hooks", content=b"garbage", headers={"Content-Type": "application/xml"})
    assert resp.status_code == 400
    assert "<confirmation>NOTCONFIRMED</confirmation>" in resp.text


def test_payment_session_route(client, store):
    resp = client.post("/store/autopay/c1/payment-sessions")
    assert resp.status_code == 200
    assert resp.json() == {
        "session_data": {"status": "pending", "redirect_url": "https://pay.test/continue", "gateway_id": None}
    }
    assert store.carts.carts["c1"].payment_session["status"] == "pending"


def test_payment_session_route_rejection(client):
    resp = client.post("/store/autopay/zero/payment-sessions")
    assert resp.status_code == 400
    assert resp.json() == {"error": "Bad amount", "code": "400"}


def test_payment_session_route_unknown_cart(client):
    resp = client.post("/store/autopay/nope/payment-sessions")
    assert resp.status_code == 404
    assert resp.json()["code"] == "404"


def test_gateways_route(client):
    resp = client.get("/store/autopay/c1/gateways")
    assert resp.status_code == 200
    gateways = resp.json()["gatewayList"]
    assert gateways[0]["gatewayID"] == 106
    assert gateways[0]["gatewayName"] == "Test bank"


def test_gateways_route_unknown_cart(client):
    resp = client.get("/store/autopay/nope/gateways")
    assert resp.status_code == 404


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["data"] == {"status": "healthy"}


def test_business_exception_handler_envelope():
    from fastapi import FastAPI

    from core.exceptions import register_exception_handlers
    from domain.common.exceptions import OrderStateConflictException

    local_app = FastAPI()
    register_exception_handlers(local_app)

    @local_app.get("/conflict")
    async def conflict():
        raise OrderStateConflictException("o1", current="captured", target="canceled")

    resp = TestClient(local_app).get("/conflict")

    assert resp.status_code == 409
    payload = resp.json()
    assert payload["code"] == 20103
    assert payload["error"]["type"] == "OrderStateConflict"
    assert payload["error"]["field"] == "status"
