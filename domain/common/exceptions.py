"""Business exceptions shared by the domain and infrastructure layers.

The core layer only maps these to HTTP responses; the domain never depends
on core.
"""
from __future__ import annotations

from typing import Optional
from shared.codes import BusinessCode


class BusinessException(Exception):
    """Base class for business errors."""

    def __init__(
        self,
        code: int,
        message: str,
        error_type: str = "BusinessError",
        details: Optional[dict] = None,
        field: Optional[str] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.error_type = error_type
        self.details = details
        self.field = field
        super().__init__(self.message)


class OrderNotFoundException(BusinessException):
    def __init__(self, cart_id: Optional[str] = None):
        details = {"cart_id": cart_id} if cart_id else None
        super().__init__(
            code=BusinessCode.ORDER_NOT_FOUND,
            message="Order not found",
            error_type="OrderNotFound",
            details=details,
        )


class CartNotFoundException(BusinessException):
    def __init__(self, cart_id: Optional[str] = None):
        details = {"cart_id": cart_id} if cart_id else None
        super().__init__(
            code=BusinessCode.CART_NOT_FOUND,
            message="Cart not found",
            error_type="CartNotFound",
            details=details,
        )


class OrderStateConflictException(BusinessException):
    def __init__(self, order_id: str, *, current: str, target: str):
        super().__init__(
            code=BusinessCode.ORDER_STATE_CONFLICT,
            message=f"Order {order_id} cannot move from {current} to {target}",
            error_type="OrderStateConflict",
            details={"order_id": order_id, "current": current, "target": target},
            field="status",
        )


class DomainValidationException(BusinessException):
    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(
            code=BusinessCode.PARAM_VALIDATION_ERROR,
            message=message,
            error_type="DomainValidationError",
            details=details,
            field=field,
        )
