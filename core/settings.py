"""
Payment-related settings using pydantic-settings v2 with nested env keys.

Autopay credentials are read once and handed to the processor as a frozen
value; nothing mutates them at runtime.

    AUTOPAY__GENERAL_KEY=...        shared secret, only ever used as a hash input
    AUTOPAY__SERVICE_ID=...
    AUTOPAY__AUTOPAY_URL=https://pay-accept.bm.pl
"""
from __future__ import annotations

from functools import lru_cache

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AutopaySettings(BaseModel):
    general_key: SecretStr
    service_id: str
    autopay_url: str

    model_config = ConfigDict(frozen=True)

    @field_validator("service_id", "autopay_url")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("general_key")
    @classmethod
    def _secret_not_blank(cls, v: SecretStr) -> SecretStr:
        if not v.get_secret_value().strip():
            raise ValueError("must not be blank")
        return v


class PaymentTimeouts(BaseModel):
    connect: float = 5.0
    read: float = 15.0
    write: float = 15.0
    total: float = 15.0

    model_config = ConfigDict(frozen=True)


class WebhookSettings(BaseModel):
    # Require a valid hash before canceling an order on FAILURE notifications
    verify_cancellation: bool = True

    model_config = ConfigDict(frozen=True)


class PaymentSettings(BaseSettings):
    autopay: AutopaySettings
    payment_timeouts: PaymentTimeouts = Field(default_factory=PaymentTimeouts)
    webhook: WebhookSettings = Field(default_factory=WebhookSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
        env_nested_delimiter="__",
        frozen=True,
    )


@lru_cache(maxsize=1)
def get_payment_settings() -> PaymentSettings:
    """Load payment settings once per process; fails fast on missing credentials."""
    return PaymentSettings()
