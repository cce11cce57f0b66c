"""
Autopay transaction notification handling.

One pass per delivery: parse -> map status -> transition the order inside a
single unit of work -> answer with a signed confirmation. The provider
redelivers on transport failures only, so every parsed notification gets an
XML answer; CONFIRMED means the unit of work completed.
"""
from __future__ import annotations

from typing import Callable

from application.dtos.payments import ProcessorStatus, WebhookAcknowledgment, WebhookPayload
from application.ports.payment_processor import PaymentProcessor
from core.logging_config import get_logger
from domain.common.exceptions import OrderNotFoundException
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.order.entity import Order
from infrastructure.external.payments.exceptions import PaymentSignatureError, XmlDecodeError


logger = get_logger(__name__)


class AutopayWebhookService:
    def __init__(
        self,
        processor: PaymentProcessor,
        uow_factory: Callable[..., AbstractUnitOfWork],
        *,
        verify_cancellation: bool = True,
    ) -> None:
        self._processor = processor
        self._uow_factory = uow_factory
        self._verify_cancellation = verify_cancellation

    async def handle(self, body: bytes) -> WebhookAcknowledgment:
        try:
            payload = self._processor.parse_webhook(body)
        except XmlDecodeError as exc:
            # No order id to confirm against; answer 400 so the delivery is retried.
            logger.error("autopay_webhook_malformed", error=exc.message, details=exc.details)
            return WebhookAcknowledgment(
                xml=self._processor.build_confirmation_xml("", False),
                confirmed=False,
                status_code=400,
            )

        status = self._processor.map_status(payload.status_code)
        logger.info(
            "autopay_webhook_received",
            cart_id=payload.cart_id,
            payment_status=payload.status_code,
            mapped_status=status.value if status else None,
            remote_id=payload.gateway_transaction_id,
        )

        try:
            async with self._uow_factory() as uow:
                await self._apply(uow, payload, status)
            confirmed = True
        except Exception as exc:
            logger.error(
                "autopay_webhook_failed",
                cart_id=payload.cart_id,
                error=str(exc),
                error_type=type(exc).__name__,
                exc_info=not isinstance(exc, PaymentSignatureError),
            )
            confirmed = False

        return WebhookAcknowledgment(
            xml=self._processor.build_confirmation_xml(payload.cart_id, confirmed),
            confirmed=confirmed,
            cart_id=payload.cart_id,
        )

    async def _apply(
        self,
        uow: AbstractUnitOfWork,
        payload: WebhookPayload,
        status: ProcessorStatus | None,
    ) -> None:
        if status is ProcessorStatus.AUTHORIZED:
            order = await self._load_order(uow, payload.cart_id)
            self._verify(order, payload)
            if order.capture_payment():
                await uow.order_repository.update(order)
                logger.info("autopay_order_captured", cart_id=order.cart_id, order_id=order.id)
            else:
                logger.info("autopay_order_already_captured", cart_id=order.cart_id, order_id=order.id)
        elif status is ProcessorStatus.CANCELED:
            order = await self._load_order(uow, payload.cart_id)
            if self._verify_cancellation:
                self._verify(order, payload)
            if order.cancel():
                await uow.order_repository.update(order)
                logger.info("autopay_order_canceled", cart_id=order.cart_id, order_id=order.id)
            else:
                logger.info("autopay_order_already_canceled", cart_id=order.cart_id, order_id=order.id)
        else:
            logger.info("autopay_webhook_no_transition", cart_id=payload.cart_id, payment_status=payload.status_code)

    @staticmethod
    async def _load_order(uow: AbstractUnitOfWork, cart_id: str) -> Order:
        order = await uow.order_repository.get_by_cart_id(cart_id)
        if order is None:
            raise OrderNotFoundException(cart_id)
        return order

    def _verify(self, order: Order, payload: WebhookPayload) -> None:
        valid = self._processor.verify_webhook_hash(
            order.cart_id,
            payload.signature,
            order.total,
            order.currency_code,
            order.gateway_id,
        )
        if not valid:
            logger.error(
                "autopay_webhook_hash_mismatch",
                cart_id=order.cart_id,
                order_total=str(order.total),
                payload_amount=payload.amount,
            )
            raise PaymentSignatureError(
                f"Notification hash mismatch for cart {order.cart_id}",
                provider=self._processor.identifier,
            )
