"""Infrastructure models package exports."""
from .base import Base, metadata
from .order import CartModel, OrderModel

__all__ = [
    "Base",
    "metadata",
    "CartModel",
    "OrderModel",
]
