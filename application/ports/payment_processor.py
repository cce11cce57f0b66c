"""
Payment processor port (application/ports) exposing a replaceable protocol.

Application services depend on this Protocol; infrastructure implements it.
"""
from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional, Protocol, runtime_checkable

from application.dtos.payments import (
    GatewayDescriptor,
    PaymentIntent,
    PaymentProcessorError,
    PaymentSessionResponse,
    ProcessorStatus,
    WebhookPayload,
)


@runtime_checkable
class PaymentProcessor(Protocol):
    """Capability set the host platform relies on for one payment provider."""

    identifier: str

    async def initiate_payment(
        self, intent: PaymentIntent
    ) -> PaymentSessionResponse | PaymentProcessorError: ...

    async def authorize_payment(
        self, session_data: dict[str, Any]
    ) -> tuple[ProcessorStatus, dict[str, Any]]: ...

    async def capture_payment(self, session_data: dict[str, Any]) -> dict[str, Any]: ...

    async def cancel_payment(self, session_data: dict[str, Any]) -> dict[str, Any]: ...

    async def refund_payment(self, session_data: dict[str, Any], refund_amount: Decimal) -> dict[str, Any]: ...

    async def get_payment_status(self, session_data: dict[str, Any]) -> ProcessorStatus: ...

    def map_status(self, provider_status: Optional[str]) -> Optional[ProcessorStatus]: ...

    def verify_webhook_hash(
        self,
        cart_id: str,
        claimed_hash: str,
        total: Decimal,
        currency_code: str,
        gateway_id: Optional[int] = None,
    ) -> bool: ...

    def parse_webhook(self, body: bytes) -> WebhookPayload: ...

    def build_confirmation_xml(self, cart_id: str, confirmed: bool) -> str: ...

    async def list_gateways(self, currency_code: str) -> list[GatewayDescriptor]: ...
