"""
Cart/order ORM models.
These are table mappings only; business rules live in domain.order.entity.
"""
from sqlalchemy import Column, Integer, String, Numeric, DateTime, JSON, Index
from datetime import datetime, timezone

from .base import Base


class CartModel(Base):
    __tablename__ = "carts"

    id = Column(String(64), primary_key=True, comment="Cart ID (Autopay OrderID)")
    total = Column(Numeric(precision=15, scale=2), nullable=False, comment="Cart total")
    currency_code = Column(String(3), nullable=False, comment="ISO-4217 currency")
    gateway_id = Column(Integer, nullable=True, comment="Chosen Autopay gateway")
    payment_session = Column(JSON, nullable=True, comment="Payment session data")

    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    def __repr__(self):
        return f"<CartModel(id='{self.id}', total={self.total}, currency_code='{self.currency_code}')>"


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(String(64), primary_key=True)
    cart_id = Column(String(64), unique=True, index=True, nullable=False, comment="Source cart")
    total = Column(Numeric(precision=15, scale=2), nullable=False, comment="Order total")
    currency_code = Column(String(3), nullable=False)
    gateway_id = Column(Integer, nullable=True)

    status = Column(String(20), nullable=False, default="pending", comment="pending/completed/canceled")
    payment_status = Column(
        String(20), nullable=False, default="not_paid", comment="not_paid/captured/canceled"
    )

    captured_at = Column(DateTime(timezone=True), nullable=True)
    canceled_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    __table_args__ = (
        Index("ix_orders_status_payment", "status", "payment_status"),
    )

    def __repr__(self):
        return (
            f"<OrderModel(id='{self.id}', cart_id='{self.cart_id}', "
            f"status='{self.status}', payment_status='{self.payment_status}')>"
        )
