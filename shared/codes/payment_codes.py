"""
Payment specific codes and provider status mapping.
"""
from __future__ import annotations

from enum import Enum, IntEnum


class PaymentCode(IntEnum):
    # Provider/Network errors (6xxxx)
    PROVIDER_ERROR = 60000
    PROVIDER_RECOVERABLE = 60001
    SIGNATURE_ERROR = 60002
    TIMEOUT = 60003
    MALFORMED_PAYLOAD = 60005


class ProcessorStatus(str, Enum):
    """Internal view of a payment outcome."""

    AUTHORIZED = "authorized"
    PENDING = "pending"
    CANCELED = "canceled"


# Autopay paymentStatus / transaction status -> internal status.
# Values outside this map are a no-op for the webhook flow.
AUTOPAY_STATUS_TO_INTERNAL: dict[str, ProcessorStatus] = {
    "SUCCESS": ProcessorStatus.AUTHORIZED,
    "PENDING": ProcessorStatus.PENDING,
    "FAILURE": ProcessorStatus.CANCELED,
}
