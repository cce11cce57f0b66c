"""
API dependencies - service wiring for the Autopay routes.
"""
from typing import AsyncIterator, Callable

from fastapi import Depends

from application.ports.payment_processor import PaymentProcessor
from application.services.payment_service import PaymentService
from application.services.webhook_service import AutopayWebhookService
from core.settings import PaymentSettings, get_payment_settings
from domain.common.unit_of_work import AbstractUnitOfWork
from infrastructure.external.payments import get_payment_processor
from infrastructure.unit_of_work import SQLAlchemyUnitOfWork


async def get_processor(
    payment_settings: PaymentSettings = Depends(get_payment_settings),
) -> AsyncIterator[PaymentProcessor]:
    """Per-request processor; its HTTP client is closed when the request ends."""
    processor = get_payment_processor(payment_settings)
    try:
        yield processor
    finally:
        await processor.aclose()


async def get_uow_factory() -> Callable[..., AbstractUnitOfWork]:
    return SQLAlchemyUnitOfWork


async def get_payment_service(
    processor: PaymentProcessor = Depends(get_processor),
    uow_factory: Callable[..., AbstractUnitOfWork] = Depends(get_uow_factory),
) -> PaymentService:
    return PaymentService(processor=processor, uow_factory=uow_factory)


async def get_webhook_service(
    processor: PaymentProcessor = Depends(get_processor),
    uow_factory: Callable[..., AbstractUnitOfWork] = Depends(get_uow_factory),
    payment_settings: PaymentSettings = Depends(get_payment_settings),
) -> AutopayWebhookService:
    return AutopayWebhookService(
        processor=processor,
        uow_factory=uow_factory,
        verify_cancellation=payment_settings.webhook.verify_cancellation,
    )
