import hashlib
import hmac
from typing import Dict, List, Optional

import orjson
import uuid_utils as uuid

from src.platform.config.core_setting import settings
from src.platform.exception.exceptions import GatewayError, WebhookSignatureError
from src.platform.logging.loguru_io import Logger
from src.service.parking.app.dto.payment import CheckoutRequest, CheckoutSession, PaymentEvent
from src.service.parking.app.interface.i_payment_gateway import IPaymentGateway
from src.service.parking.domain.enum.payment_outcome import PaymentOutcome


MOCK_EVENT_TYPES = {
    'checkout.paid': PaymentOutcome.PAID,
    'checkout.failed': PaymentOutcome.FAILED,
    'checkout.expired': PaymentOutcome.FAILED,
}


class MockPaymentGateway(IPaymentGateway):
    """
    In-process gateway for local development and tests.

    Webhook bodies are JSON: {"id", "type", "session_id", "reservation_id", "event_id"}
    signed with HMAC-SHA256 of MOCK_WEBHOOK_SECRET, hex encoded in `Mock-Signature`.
    Set `fail_next_checkout` / `fail_next_refund` to simulate gateway outages.
    """

    signature_header = 'Mock-Signature'

    def __init__(self, *, webhook_secret: Optional[str] = None, base_url: Optional[str] = None):
        self.webhook_secret = webhook_secret or settings.MOCK_WEBHOOK_SECRET.get_secret_value()
        self.base_url = (base_url or settings.PUBLIC_BASE_URL).rstrip('/')
        self.sessions: Dict[str, CheckoutRequest] = {}
        self.expired: List[str] = []
        self.refunded: List[str] = []
        self.refund_keys: Dict[str, str] = {}
        self.fail_next_checkout = False
        self.fail_next_refund = False

    @Logger.io
    async def create_checkout_session(self, *, request: CheckoutRequest) -> CheckoutSession:
        if self.fail_next_checkout:
            self.fail_next_checkout = False
            raise GatewayError('Mock gateway refused to create a checkout session')
        session_id = f'mock_cs_{uuid.uuid7().hex}'
        self.sessions[session_id] = request
        return CheckoutSession(
            session_id=session_id, redirect_url=f'{self.base_url}/mock-checkout/{session_id}'
        )

    def sign(self, payload: bytes) -> str:
        return hmac.new(self.webhook_secret.encode(), payload, hashlib.sha256).hexdigest()

    @Logger.io
    def parse_webhook(self, *, payload: bytes, signature: Optional[str]) -> Optional[PaymentEvent]:
        if not signature or not hmac.compare_digest(signature, self.sign(payload)):
            raise WebhookSignatureError('Invalid mock webhook signature')
        try:
            body = orjson.loads(payload)
        except orjson.JSONDecodeError as e:
            raise WebhookSignatureError('Webhook payload is not valid JSON') from e

        event_type = body.get('type')
        outcome = MOCK_EVENT_TYPES.get(event_type)
        if outcome is None:
            return None
        return PaymentEvent(
            outcome=outcome,
            session_id=body.get('session_id'),
            reservation_id=body.get('reservation_id'),
            event_id=body.get('event_id'),
            gateway_event_id=body.get('id'),
            gateway_event_type=event_type,
        )

    @Logger.io
    async def expire_session(self, *, session_id: str) -> None:
        self.expired.append(session_id)

    @Logger.io
    async def refund(self, *, session_id: str, idempotency_key: str) -> None:
        if self.fail_next_refund:
            self.fail_next_refund = False
            raise GatewayError(f'Mock gateway refused to refund session {session_id}')
        if idempotency_key in self.refund_keys:
            return
        self.refund_keys[idempotency_key] = session_id
        self.refunded.append(session_id)
