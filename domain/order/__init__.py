from .entity import Cart, Order, OrderPaymentStatus, OrderStatus
from .repository import CartRepository, OrderRepository

__all__ = [
    "Cart",
    "Order",
    "OrderStatus",
    "OrderPaymentStatus",
    "CartRepository",
    "OrderRepository",
]
