import hashlib
from decimal import Decimal

import pytest

from application.services.webhook_service import AutopayWebhookService
from domain.order.entity import Order, OrderPaymentStatus, OrderStatus


def _sha(*fields: str) -> str:
    return hashlib.sha256("|".join(fields).encode("utf-8")).hexdigest()


def _order_hash(cart_id="c1", amount="99.50", currency="PLN") -> str:
    return _sha("100", cart_id, amount, currency, "test-general-key")


def _notification(status="SUCCESS", cart_id="c1", amount="99.50", signature=None) -> bytes:
    signature = _order_hash(cart_id) if signature is None else signature
    return (
        '<?xml version="1.0" encoding="UTF-8"?><transactionList><serviceID>100</serviceID>'
        "<transactions><transaction>"
        f"<orderID>{cart_id}</orderID><remoteID>R1</remoteID><amount>{amount}</amount>"
        f"<currency>PLN</currency><paymentStatus>{status}</paymentStatus>"
        "</transaction></transactions>"
        f"<hash>{signature}</hash></transactionList>"
    ).encode("utf-8")


@pytest.fixture
def service(processor, store, pending_order):
    store.add_order(pending_order)
    return AutopayWebhookService(processor, store.uow_factory)


@pytest.mark.asyncio
async def test_success_captures_order_once(service, store, pending_order):
    ack = await service.handle(_notification())

    assert ack.confirmed is True
    assert ack.status_code == 200
    assert ack.cart_id == "c1"
    assert "<confirmation>CONFIRMED</confirmation>" in ack.xml
    assert f"<hash>{_sha('100', 'c1', 'CONFIRMED')}</hash>" in ack.xml
    assert pending_order.payment_status is OrderPaymentStatus.CAPTURED
    assert pending_order.captured_at is not None
    assert len(store.orders.updates) == 1
    assert store.commits == 1


@pytest.mark.asyncio
async def test_replayed_success_is_idempotent(service, store, pending_order):
    await service.handle(_notification())
    captured_at = pending_order.captured_at

    ack = await service.handle(_notification())

    assert ack.confirmed is True
    assert len(store.orders.updates) == 1
    assert pending_order.captured_at == captured_at


@pytest.mark.asyncio
async def test_payload_amount_is_ignored_when_verifying(service, pending_order):
    # The hash is recomputed from the stored order total, never from the payload amount
    ack = await service.handle(_notification(amount="1.00"))
    assert ack.confirmed is True
    assert pending_order.is_captured


@pytest.mark.asyncio
async def test_hash_for_other_amount_is_rejected(service, store, pending_order):
    forged = _sha("100", "c1", "1.00", "PLN", "test-general-key")
    ack = await service.handle(_notification(amount="1.00", signature=forged))

    assert ack.confirmed is False
    assert ack.status_code == 200
    assert "<confirmation>NOTCONFIRMED</confirmation>" in ack.xml
    assert pending_order.payment_status is OrderPaymentStatus.NOT_PAID
    assert store.orders.updates == []
    assert store.rollbacks == 1


@pytest.mark.asyncio
async def test_unknown_order_is_not_confirmed(service, store):
    ack = await service.handle(_notification(cart_id="missing"))
    assert ack.confirmed is False
    assert ack.cart_id == "missing"
    assert store.rollbacks == 1


@pytest.mark.asyncio
async def test_failure_cancels_order_with_valid_hash(service, pending_order):
    ack = await service.handle(_notification(status="FAILURE"))

    assert ack.confirmed is True
    assert pending_order.status is OrderStatus.CANCELED
    assert pending_order.payment_status is OrderPaymentStatus.CANCELED


@pytest.mark.asyncio
async def test_failure_with_bad_hash_is_rejected_when_verifying(service, pending_order):
    ack = await service.handle(_notification(status="FAILURE", signature="0" * 64))

    assert ack.confirmed is False
    assert pending_order.status is OrderStatus.PENDING


@pytest.mark.asyncio
async def test_failure_without_cancellation_check(processor, store, pending_order):
    store.add_order(pending_order)
    service = AutopayWebhookService(processor, store.uow_factory, verify_cancellation=False)

    ack = await service.handle(_notification(status="FAILURE", signature="0" * 64))

    assert ack.confirmed is True
    assert pending_order.is_canceled


@pytest.mark.asyncio
async def test_cancel_after_capture_is_not_confirmed(service, pending_order):
    await service.handle(_notification())
    ack = await service.handle(_notification(status="FAILURE"))

    assert ack.confirmed is False
    assert pending_order.is_captured
    assert not pending_order.is_canceled


@pytest.mark.asyncio
@pytest.mark.parametrize("status", ["PENDING", "UNKNOWN"])
async def test_unmapped_or_pending_status_is_a_no_op(service, store, pending_order, status):
    ack = await service.handle(_notification(status=status, signature="0" * 64))

    assert ack.confirmed is True
    assert store.orders.updates == []
    assert pending_order.payment_status is OrderPaymentStatus.NOT_PAID


@pytest.mark.asyncio
async def test_malformed_document_gets_400(service, store):
    ack = await service.handle(b"<transactionList><transactions>")

    assert ack.confirmed is False
    assert ack.status_code == 400
    assert ack.cart_id == ""
    assert "<confirmation>NOTCONFIRMED</confirmation>" in ack.xml
    assert store.commits == 0


@pytest.mark.asyncio
async def test_gateway_routed_order_includes_gateway_in_hash(processor, store):
    order = store.add_order(
        Order(id="order_2", cart_id="c2", total=Decimal("10"), currency_code="PLN", gateway_id=106)
    )
    service = AutopayWebhookService(processor, store.uow_factory)
    signature = _sha("100", "c2", "10.00", "106", "PLN", "test-general-key")

    ack = await service.handle(_notification(cart_id="c2", amount="10.00", signature=signature))

    assert ack.confirmed is True
    assert order.is_captured


@pytest.mark.asyncio
async def test_lowercase_status_is_not_mapped(service, store, pending_order):
    ack = await service.handle(_notification(status="success"))

    assert ack.confirmed is True
    assert pending_order.payment_status is OrderPaymentStatus.NOT_PAID
    assert store.orders.updates == []
