"""
Order/cart repositories backed by SQLAlchemy.
"""
from typing import Any, Optional
from decimal import Decimal
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from domain.common.exceptions import CartNotFoundException, OrderNotFoundException
from domain.order.entity import Cart, Order, OrderPaymentStatus, OrderStatus
from domain.order.repository import CartRepository, OrderRepository
from infrastructure.models.order import CartModel, OrderModel
from core.logging_config import get_logger


logger = get_logger(__name__)


class SQLAlchemyOrderRepository(OrderRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_entity(self, model: OrderModel) -> Order:
        return Order(
            id=model.id,
            cart_id=model.cart_id,
            total=Decimal(str(model.total)),
            currency_code=model.currency_code,
            gateway_id=model.gateway_id,
            status=OrderStatus(model.status),
            payment_status=OrderPaymentStatus(model.payment_status),
            captured_at=model.captured_at,
            canceled_at=model.canceled_at,
        )

    async def get_by_cart_id(self, cart_id: str) -> Optional[Order]:
        # Row lock so concurrent notifications for one cart serialize on the order
        result = await self.session.execute(
            select(OrderModel).where(OrderModel.cart_id == cart_id).with_for_update()
        )
        db_order = result.scalar_one_or_none()
        return self._to_entity(db_order) if db_order else None

    async def update(self, order: Order) -> Order:
        db_order = await self.session.get(OrderModel, order.id)
        if db_order is None:
            raise OrderNotFoundException(order.cart_id)
        db_order.status = order.status.value
        db_order.payment_status = order.payment_status.value
        db_order.captured_at = order.captured_at
        db_order.canceled_at = order.canceled_at
        await self.session.flush()
        logger.info(
            "order_updated",
            order_id=order.id,
            cart_id=order.cart_id,
            status=order.status.value,
            payment_status=order.payment_status.value,
        )
        return self._to_entity(db_order)


class SQLAlchemyCartRepository(CartRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_entity(self, model: CartModel) -> Cart:
        return Cart(
            id=model.id,
            total=Decimal(str(model.total)),
            currency_code=model.currency_code,
            gateway_id=model.gateway_id,
            payment_session=model.payment_session or {},
        )

    async def get_by_id(self, cart_id: str) -> Optional[Cart]:
        db_cart = await self.session.get(CartModel, cart_id)
        return self._to_entity(db_cart) if db_cart else None

    async def update_payment_session(self, cart_id: str, session_data: dict[str, Any]) -> Cart:
        db_cart = await self.session.get(CartModel, cart_id)
        if db_cart is None:
            raise CartNotFoundException(cart_id)
        db_cart.payment_session = dict(session_data)
        await self.session.flush()
        return self._to_entity(db_cart)
