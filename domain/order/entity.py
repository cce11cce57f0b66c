"""
Order domain entities - the order/cart view the Autopay integration needs.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from domain.common.exceptions import DomainValidationException, OrderStateConflictException


class OrderStatus(str, Enum):
    """Order lifecycle status."""
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELED = "canceled"


class OrderPaymentStatus(str, Enum):
    """Payment status tracked on the order."""
    NOT_PAID = "not_paid"
    CAPTURED = "captured"
    CANCELED = "canceled"


def _ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _validate_money(total: Decimal, currency_code: str) -> None:
    if total < 0:
        raise DomainValidationException(f"Total must not be negative: {total}", field="total")
    if not currency_code or len(currency_code) != 3 or not currency_code.isalpha():
        raise DomainValidationException(f"Invalid currency code: {currency_code}", field="currency_code")


@dataclass
class Cart:
    """
    Checkout cart.

    `gateway_id` is the optional payment-method routing hint chosen by the
    customer; `payment_session` stores the session data returned by
    payment initiation.
    """

    id: str
    total: Decimal
    currency_code: str
    gateway_id: Optional[int] = None
    payment_session: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        _validate_money(self.total, self.currency_code)
        if self.payment_session is None:
            self.payment_session = {}


@dataclass
class Order:
    """
    Order placed from a cart.

    Business rules:
    1. Capturing an already captured order is a no-op
    2. Canceling an already canceled order is a no-op
    3. A captured order cannot be canceled and a canceled order cannot be captured
    """

    id: str
    cart_id: str
    total: Decimal
    currency_code: str
    gateway_id: Optional[int] = None
    status: OrderStatus = OrderStatus.PENDING
    payment_status: OrderPaymentStatus = OrderPaymentStatus.NOT_PAID
    captured_at: Optional[datetime] = None
    canceled_at: Optional[datetime] = None

    def __post_init__(self):
        _validate_money(self.total, self.currency_code)
        self.captured_at = _ensure_utc(self.captured_at)
        self.canceled_at = _ensure_utc(self.canceled_at)

    @property
    def is_captured(self) -> bool:
        return self.payment_status == OrderPaymentStatus.CAPTURED

    @property
    def is_canceled(self) -> bool:
        return self.status == OrderStatus.CANCELED

    def capture_payment(self) -> bool:
        """Capture the order payment. Returns False when nothing changed."""
        if self.is_captured:
            return False
        if self.is_canceled:
            raise OrderStateConflictException(
                self.id, current=self.status.value, target=OrderPaymentStatus.CAPTURED.value
            )
        self.payment_status = OrderPaymentStatus.CAPTURED
        self.captured_at = datetime.now(timezone.utc)
        return True

    def cancel(self) -> bool:
        """Cancel the order. Returns False when it was already canceled."""
        if self.is_canceled:
            return False
        if self.is_captured:
            raise OrderStateConflictException(
                self.id, current=self.payment_status.value, target=OrderStatus.CANCELED.value
            )
        self.status = OrderStatus.CANCELED
        self.payment_status = OrderPaymentStatus.CANCELED
        self.canceled_at = datetime.now(timezone.utc)
        return True
