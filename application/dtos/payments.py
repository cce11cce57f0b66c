"""
Payment DTOs (Pydantic v2) used at application boundaries.
"""
from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.types import condecimal

from shared.codes.payment_codes import ProcessorStatus


def _normalize_currency(v: str) -> str:
    u = (v or "").strip().upper()
    if len(u) != 3 or not u.isalpha():
        raise ValueError("currency must be ISO-4217 alpha-3")
    return u


class PaymentIntent(BaseModel):
    """One checkout attempt; consumed once to build a signed request."""

    cart_id: str = Field(min_length=1)
    amount: condecimal(ge=0)  # type: ignore[valid-type]
    currency_code: str
    gateway_id: Optional[int] = None

    model_config = ConfigDict(frozen=True)

    @field_validator("currency_code")
    @classmethod
    def _upper_currency(cls, v: str) -> str:
        return _normalize_currency(v)


class SignedRequest(BaseModel):
    """Ordered field list plus its signature.

    `fields` ends with the shared secret, so it is kept out of repr.
    """

    fields: tuple[str, ...] = Field(repr=False)
    signature: str
    query: dict[str, str]
    path: str

    model_config = ConfigDict(frozen=True)


class WebhookPayload(BaseModel):
    """Decoded Autopay transaction notification."""

    cart_id: str = Field(alias="orderID", min_length=1)
    gateway_transaction_id: Optional[str] = Field(default=None, alias="remoteID")
    amount: Optional[str] = None
    currency_code: Optional[str] = Field(default=None, alias="currency")
    gateway_id: Optional[str] = Field(default=None, alias="gatewayID")
    payment_date: Optional[str] = Field(default=None, alias="paymentDate")
    status_code: str = Field(alias="paymentStatus", min_length=1)
    status_detail: Optional[str] = Field(default=None, alias="paymentStatusDetails")
    signature: str = Field(alias="hash", min_length=1)

    model_config = ConfigDict(frozen=True, populate_by_name=True)


class InitiatePaymentResponse(BaseModel):
    """Provider answer to a payment initiation request."""

    order_id: Optional[str] = Field(default=None, alias="orderID")
    status: Optional[str] = None
    redirect_url: Optional[str] = Field(default=None, alias="redirecturl")
    reason: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)


class GatewayCurrency(BaseModel):
    currency: str

    model_config = ConfigDict(extra="allow")


class GatewayDescriptor(BaseModel):
    """One payment method offered by the provider; passed through as received."""

    gateway_id: int = Field(alias="gatewayID")
    gateway_name: str = Field(alias="gatewayName")
    gateway_type: Optional[str] = Field(default=None, alias="gatewayType")
    bank_name: Optional[str] = Field(default=None, alias="bankName")
    icon_url: Optional[str] = Field(default=None, alias="iconURL")
    state: Optional[str] = None
    state_date: Optional[str] = Field(default=None, alias="stateDate")
    gateway_description: Optional[str] = Field(default=None, alias="gatewayDescription")
    in_balance_allowed: Optional[bool] = Field(default=None, alias="inBalanceAllowed")
    currency_list: list[GatewayCurrency] = Field(default_factory=list, alias="currencyList")

    model_config = ConfigDict(extra="allow", populate_by_name=True, frozen=True)


class PaymentSessionData(BaseModel):
    status: ProcessorStatus
    redirect_url: Optional[str] = None
    gateway_id: Optional[int] = None


class PaymentSessionResponse(BaseModel):
    session_data: PaymentSessionData


class PaymentProcessorError(BaseModel):
    """Failure value returned across the storefront boundary instead of raising."""

    error: str
    code: str = "400"
    detail: Optional[Any] = None


class WebhookAcknowledgment(BaseModel):
    """Signed XML answer for the provider."""

    xml: str
    confirmed: bool
    cart_id: str = ""
    status_code: int = 200


__all__ = [
    "ProcessorStatus",
    "PaymentIntent",
    "SignedRequest",
    "WebhookPayload",
    "InitiatePaymentResponse",
    "GatewayCurrency",
    "GatewayDescriptor",
    "PaymentSessionData",
    "PaymentSessionResponse",
    "PaymentProcessorError",
    "WebhookAcknowledgment",
]
