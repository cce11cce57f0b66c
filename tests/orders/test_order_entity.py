from datetime import datetime
from decimal import Decimal

import pytest

from domain.common.exceptions import DomainValidationException, OrderStateConflictException
from domain.order.entity import Cart, Order, OrderPaymentStatus, OrderStatus


def _order(**kwargs) -> Order:
    return Order(id="o1", cart_id="c1", total=Decimal("10.00"), currency_code="PLN", **kwargs)


def test_capture_is_idempotent():
    order = _order()
    assert order.capture_payment() is True
    first = order.captured_at
    assert order.capture_payment() is False
    assert order.captured_at == first
    assert order.payment_status is OrderPaymentStatus.CAPTURED
    assert order.status is OrderStatus.PENDING


def test_cancel_is_idempotent():
    order = _order()
    assert order.cancel() is True
    assert order.cancel() is False
    assert order.status is OrderStatus.CANCELED
    assert order.payment_status is OrderPaymentStatus.CANCELED
    assert order.canceled_at is not None


def test_capture_after_cancel_conflicts():
    order = _order()
    order.cancel()
    with pytest.raises(OrderStateConflictException):
        order.capture_payment()


def test_cancel_after_capture_conflicts():
    order = _order()
    order.capture_payment()
    with pytest.raises(OrderStateConflictException):
        order.cancel()


def test_naive_timestamps_become_utc():
    order = _order(captured_at=datetime(2026, 1, 1, 12, 0))
    assert order.captured_at.tzinfo is not None


@pytest.mark.parametrize("total, currency", [(Decimal("-1"), "PLN"), (Decimal("1"), "PL"), (Decimal("1"), "")])
def test_invalid_money_rejected(total, currency):
    with pytest.raises(DomainValidationException):
        Cart(id="c1", total=total, currency_code=currency)
