"""
Storefront-facing Autopay use-cases.

Depends only on the PaymentProcessor port and the unit-of-work abstraction;
concrete implementations are injected from the composition root (API).
"""
from __future__ import annotations

from typing import Callable

from application.dtos.payments import (
    GatewayDescriptor,
    PaymentIntent,
    PaymentProcessorError,
    PaymentSessionResponse,
)
from application.ports.payment_processor import PaymentProcessor
from core.logging_config import get_logger
from domain.common.exceptions import CartNotFoundException
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.order.entity import Cart


logger = get_logger(__name__)


class PaymentService:
    def __init__(self, processor: PaymentProcessor, uow_factory: Callable[..., AbstractUnitOfWork]) -> None:
        self.processor = processor
        self._uow_factory = uow_factory

    async def _get_cart(self, cart_id: str) -> Cart:
        async with self._uow_factory(readonly=True) as uow:
            cart = await uow.cart_repository.get_by_id(cart_id)
        if cart is None:
            raise CartNotFoundException(cart_id)
        return cart

    async def initiate_for_cart(self, cart_id: str) -> PaymentSessionResponse | PaymentProcessorError:
        try:
            cart = await self._get_cart(cart_id)
        except CartNotFoundException as exc:
            return PaymentProcessorError(error=exc.message, code="404")

        intent = PaymentIntent(
            cart_id=cart.id,
            amount=cart.total,
            currency_code=cart.currency_code,
            gateway_id=cart.gateway_id,
        )
        logger.info("payment_initiate_request", cart_id=cart.id, gateway_id=cart.gateway_id)
        result = await self.processor.initiate_payment(intent)
        if isinstance(result, PaymentProcessorError):
            return result

        try:
            async with self._uow_factory() as uow:
                await uow.cart_repository.update_payment_session(
                    cart.id, result.session_data.model_dump(mode="json")
                )
        except Exception as exc:
            logger.error(
                "payment_session_store_failed",
                cart_id=cart.id,
                error=str(exc),
                error_type=type(exc).__name__,
                exc_info=True,
            )
            return PaymentProcessorError(error=str(exc) or "Failed to store payment session", code="400")
        return result

    async def list_gateways_for_cart(self, cart_id: str) -> list[GatewayDescriptor]:
        cart = await self._get_cart(cart_id)
        return await self.processor.list_gateways(cart.currency_code.upper())
