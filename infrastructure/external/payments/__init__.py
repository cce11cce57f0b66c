"""
Factory for the Autopay payment processor.
"""
from __future__ import annotations

from typing import Optional

import httpx

from core.config import settings
from core.settings import PaymentSettings, get_payment_settings
from .autopay_processor import AutopayPaymentProcessor
from .gateway_client import AutopayGatewayClient


def get_payment_processor(
    payment_settings: Optional[PaymentSettings] = None,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> AutopayPaymentProcessor:
    cfg = payment_settings or get_payment_settings()
    client = AutopayGatewayClient(
        cfg.autopay.autopay_url,
        timeouts=cfg.payment_timeouts,
        transport=transport,
        debug=settings.DEBUG,
    )
    return AutopayPaymentProcessor(cfg.autopay, client)


__all__ = ["AutopayPaymentProcessor", "AutopayGatewayClient", "get_payment_processor"]
