from fastapi import APIRouter, Depends, Request

from src.platform.logging.loguru_io import Logger
from src.service.parking.app.command.reconcile_payment_use_case import ReconcilePaymentUseCase
from src.service.parking.driving_adapter.http_controller.schema.reservation_schema import (
    WebhookAckResponse,
)


router = APIRouter()


@router.post('/webhook')
@Logger.io
async def payment_webhook(
    request: Request,
    use_case: ReconcilePaymentUseCase = Depends(ReconcilePaymentUseCase.depends),
) -> WebhookAckResponse:
    """
    Gateway notifications. Anything past signature verification is acknowledged with
    200, unmatched or late payments are logged for manual follow-up instead of being
    retried by the gateway forever.
    """
    payload = await request.body()
    signature = request.headers.get(use_case.payment_gateway.signature_header)
    result = await use_case.handle_webhook(payload=payload, signature=signature)
    return WebhookAckResponse(
        handled=result.handled, reservation_id=result.reservation_id, status=result.status
    )
