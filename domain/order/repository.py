"""
Order/cart repository interfaces.
"""
from abc import ABC, abstractmethod
from typing import Any, Optional

from .entity import Cart, Order


class OrderRepository(ABC):
    """Order store abstraction."""

    @abstractmethod
    async def get_by_cart_id(self, cart_id: str) -> Optional[Order]:
        """Get the order placed from the given cart"""
        pass

    @abstractmethod
    async def update(self, order: Order) -> Order:
        """Persist order state"""
        pass


class CartRepository(ABC):
    """Cart store abstraction."""

    @abstractmethod
    async def get_by_id(self, cart_id: str) -> Optional[Cart]:
        pass

    @abstractmethod
    async def update_payment_session(self, cart_id: str, session_data: dict[str, Any]) -> Cart:
        """Store payment session data on the cart"""
        pass
