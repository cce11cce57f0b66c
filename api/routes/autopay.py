"""
Autopay API routes.

Keep this thin: the provider notification endpoint answers with signed XML,
storefront endpoints answer with JSON and report failures as `{error, code}`.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse
from starlette import status as http_status

from api.dependencies import get_payment_service, get_webhook_service
from application.dtos.payments import PaymentProcessorError
from application.services.payment_service import PaymentService
from application.services.webhook_service import AutopayWebhookService
from core.logging_config import get_logger
from domain.common.exceptions import BusinessException, CartNotFoundException


router = APIRouter(tags=["Autopay"])
logger = get_logger(__name__)

XML_MEDIA_TYPE = "application/xml"


def _error(result: PaymentProcessorError, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=result.model_dump(exclude_none=True))


@router.post("/autopay/hooks", summary="Autopay transaction notification")
async def autopay_webhook(
    request: Request,
    service: AutopayWebhookService = Depends(get_webhook_service),
):
    raw_body = await request.body()
    ack = await service.handle(raw_body)
    return Response(content=ack.xml, media_type=XML_MEDIA_TYPE, status_code=ack.status_code)


@router.get("/store/autopay/{cart_id}/gateways", summary="List Autopay gateways for a cart")
async def list_gateways(cart_id: str, service: PaymentService = Depends(get_payment_service)):
    try:
        gateways = await service.list_gateways_for_cart(cart_id)
    except CartNotFoundException as exc:
        return _error(PaymentProcessorError(error=exc.message, code="404"), http_status.HTTP_404_NOT_FOUND)
    except BusinessException as exc:
        logger.error("autopay_gateway_list_failed", cart_id=cart_id, error=exc.message)
        return _error(PaymentProcessorError(error=exc.message, code="400"), http_status.HTTP_400_BAD_REQUEST)

    return {"gatewayList": [g.model_dump(mode="json", by_alias=True) for g in gateways]}


@router.post("/store/autopay/{cart_id}/payment-sessions", summary="Initiate an Autopay payment for a cart")
async def initiate_payment(cart_id: str, service: PaymentService = Depends(get_payment_service)):
    result = await service.initiate_for_cart(cart_id)
    if isinstance(result, PaymentProcessorError):
        status_code = http_status.HTTP_404_NOT_FOUND if result.code == "404" else http_status.HTTP_400_BAD_REQUEST
        return _error(result, status_code)
    return result.model_dump(mode="json")
