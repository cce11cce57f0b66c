"""
Autopay payment processor.

Implements the signed-request / signed-callback protocol:
- payment initiation with a hash over the ordered request fields
- status mapping from Autopay codes to ProcessorStatus
- verification of notification hashes against the order's own totals
- signed confirmation documents and gateway listing
"""
from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Optional, Union
from urllib.parse import urlencode

from pydantic import ValidationError

from application.dtos.payments import (
    GatewayDescriptor,
    PaymentIntent,
    PaymentProcessorError,
    PaymentSessionData,
    PaymentSessionResponse,
    ProcessorStatus,
    SignedRequest,
    WebhookPayload,
)
from core.logging_config import get_logger
from core.settings import AutopaySettings
from domain.common.exceptions import DomainValidationException
from infrastructure.external.api_clients.base import APIError, APITimeoutError
from infrastructure.external.payments import xml_codec
from infrastructure.external.payments.exceptions import (
    PaymentProviderError,
    PaymentTimeoutError,
)
from infrastructure.external.payments.gateway_client import AutopayGatewayClient
from infrastructure.external.payments.signing import HashSigner, generate_unique_id
from shared.codes.payment_codes import AUTOPAY_STATUS_TO_INTERNAL


logger = get_logger(__name__)

CONFIRMED = "CONFIRMED"
NOT_CONFIRMED = "NOTCONFIRMED"
PAYMENT_PATH = "/payment"
GATEWAY_LIST_PATH = "/gatewayList/v2"
ERROR_CODE = "400"
UNKNOWN_ERROR = "Unknown error"

Amount = Union[Decimal, int, float, str]


def format_amount(amount: Amount) -> str:
    """Format an amount the way Autopay recomputes it: two decimals, ROUND_HALF_UP.

    Floats are converted through their shortest repr, so 10.005 becomes "10.01".
    """
    try:
        value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    except InvalidOperation as exc:
        raise DomainValidationException(f"Invalid amount: {amount!r}", field="amount") from exc
    if not value.is_finite() or value < 0:
        raise DomainValidationException(f"Invalid amount: {amount!r}", field="amount")
    return f"{value.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP):f}"


class AutopayPaymentProcessor:
    identifier = "autopay"

    def __init__(
        self,
        settings: AutopaySettings,
        client: AutopayGatewayClient,
        signer: Optional[HashSigner] = None,
    ) -> None:
        self._settings = settings
        self._client = client
        self._signer = signer or HashSigner()

    @property
    def service_id(self) -> str:
        return self._settings.service_id

    def _secret(self) -> str:
        return self._settings.general_key.get_secret_value()

    async def aclose(self) -> None:
        await self._client.close()

    # Signing

    def build_signed_parameters(
        self,
        cart_id: str,
        total: Amount,
        currency_code: str,
        gateway_id: Optional[int] = None,
    ) -> SignedRequest:
        """Sign `[serviceId, cartId, amount, gatewayId?, currency, generalKey]`.

        Autopay mirrors the same conditional field set, so GatewayID takes part
        in both the hash and the query only when a gateway was chosen.
        """
        amount = format_amount(total)
        currency = currency_code.upper()

        fields = [self.service_id, cart_id, amount]
        query = {"ServiceID": self.service_id, "OrderID": cart_id, "Amount": amount}
        if gateway_id is not None:
            fields.append(str(gateway_id))
            query["GatewayID"] = str(gateway_id)
        fields.append(currency)
        query["Currency"] = currency

        signature = self._signer.sign([*fields, self._secret()])
        query["Hash"] = signature

        return SignedRequest(
            fields=tuple([*fields, self._secret()]),
            signature=signature,
            query=query,
            path=f"{PAYMENT_PATH}?{urlencode(query)}",
        )

    def verify_webhook_hash(
        self,
        cart_id: str,
        claimed_hash: str,
        total: Amount,
        currency_code: str,
        gateway_id: Optional[int] = None,
    ) -> bool:
        """Recompute the hash from the order's recorded total/currency, never the payload's."""
        expected = self.build_signed_parameters(cart_id, total, currency_code, gateway_id)
        return self._signer.verify(expected.fields, claimed_hash)

    def parse_webhook(self, body: bytes) -> WebhookPayload:
        """Decode a transaction notification; raises XmlDecodeError."""
        return xml_codec.parse_webhook(body)

    def build_confirmation_xml(self, cart_id: str, confirmed: bool) -> str:
        confirmation = CONFIRMED if confirmed else NOT_CONFIRMED
        signature = self._signer.sign([self.service_id, cart_id, confirmation])
        return xml_codec.build_confirmation(self.service_id, cart_id, confirmation, signature)

    # Status

    def map_status(self, provider_status: Optional[str]) -> Optional[ProcessorStatus]:
        """Exact lookup; None means no transition for this status."""
        if provider_status is None:
            return None
        return AUTOPAY_STATUS_TO_INTERNAL.get(provider_status)

    async def get_payment_status(self, session_data: dict[str, Any]) -> ProcessorStatus:
        # A PENDING session already has a redirect; settlement arrives by notification.
        status = session_data.get("status")
        if status in (ProcessorStatus.AUTHORIZED, ProcessorStatus.PENDING):
            return ProcessorStatus.AUTHORIZED
        return ProcessorStatus.CANCELED

    # Provider calls

    async def initiate_payment(
        self, intent: PaymentIntent
    ) -> PaymentSessionResponse | PaymentProcessorError:
        """Start a payment; failures are returned, never raised."""
        try:
            signed = self.build_signed_parameters(
                intent.cart_id, intent.amount, intent.currency_code, intent.gateway_id
            )
            body = await self._client.call(PAYMENT_PATH, params=signed.query)
            if not isinstance(body, str):
                raise PaymentProviderError("Unexpected payment response format", provider=self.identifier)
            response = xml_codec.parse_initiate_response(body)
        except Exception as exc:
            logger.error(
                "autopay_payment_initiate_failed",
                cart_id=intent.cart_id,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return PaymentProcessorError(error=str(exc) or UNKNOWN_ERROR, code=ERROR_CODE)

        status = self.map_status(response.status)
        if status is ProcessorStatus.PENDING:
            logger.info("autopay_payment_initiated", cart_id=intent.cart_id, gateway_id=intent.gateway_id)
            return PaymentSessionResponse(
                session_data=PaymentSessionData(
                    status=status,
                    redirect_url=response.redirect_url,
                    gateway_id=intent.gateway_id,
                )
            )

        logger.warning(
            "autopay_payment_rejected",
            cart_id=intent.cart_id,
            provider_status=response.status,
            reason=response.reason,
        )
        return PaymentProcessorError(error=response.reason or UNKNOWN_ERROR, code=ERROR_CODE)

    async def list_gateways(self, currency_code: str) -> list[GatewayDescriptor]:
        message_id = generate_unique_id()
        currency = currency_code.upper()
        signature = self._signer.sign([self.service_id, message_id, currency, self._secret()])
        body = {
            "ServiceID": self.service_id,
            "MessageID": message_id,
            "Currencies": currency,
            "Hash": signature,
        }
        try:
            data = await self._client.call(GATEWAY_LIST_PATH, body=body)
        except APITimeoutError as exc:
            raise PaymentTimeoutError(str(exc), provider=self.identifier) from exc
        except APIError as exc:
            raise PaymentProviderError(
                exc.message,
                provider=self.identifier,
                provider_code=str(exc.status_code) if exc.status_code else None,
            ) from exc

        if not isinstance(data, dict) or not isinstance(data.get("gatewayList"), list):
            raise PaymentProviderError("Gateway list missing in provider response", provider=self.identifier)
        try:
            gateways = [GatewayDescriptor.model_validate(item) for item in data["gatewayList"]]
        except ValidationError as exc:
            raise PaymentProviderError(
                "Invalid gateway entry in provider response",
                provider=self.identifier,
                details={"errors": exc.error_count()},
            ) from exc

        logger.info("autopay_gateways_listed", currency=currency, count=len(gateways), message_id=message_id)
        return gateways

    # Session lifecycle. Settlement happens through notifications, so these
    # hand the stored session data back unchanged.

    async def authorize_payment(
        self, session_data: dict[str, Any]
    ) -> tuple[ProcessorStatus, dict[str, Any]]:
        return ProcessorStatus.AUTHORIZED, session_data

    async def capture_payment(self, session_data: dict[str, Any]) -> dict[str, Any]:
        return session_data

    async def cancel_payment(self, session_data: dict[str, Any]) -> dict[str, Any]:
        return session_data

    async def refund_payment(self, session_data: dict[str, Any], refund_amount: Amount) -> dict[str, Any]:
        return session_data

    async def retrieve_payment(self, session_data: dict[str, Any]) -> dict[str, Any]:
        return session_data

    async def delete_payment(self, session_data: dict[str, Any]) -> dict[str, Any]:
        return session_data

    async def update_payment_data(self, session_id: str, data: dict[str, Any]) -> dict[str, Any]:
        return data
