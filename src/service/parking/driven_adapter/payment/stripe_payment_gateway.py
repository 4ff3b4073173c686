"""
Stripe Checkout adapter

The SDK is synchronous, so every network call runs in a worker thread via
anyio.to_thread. Any StripeError becomes GatewayError (502, retryable) so the
orchestrator can compensate.
"""

from typing import Any, Optional

import anyio
import stripe

from src.platform.config.core_setting import settings
from src.platform.exception.exceptions import GatewayError, WebhookSignatureError
from src.platform.logging.loguru_io import Logger
from src.service.parking.app.dto.payment import CheckoutRequest, CheckoutSession, PaymentEvent
from src.service.parking.app.interface.i_payment_gateway import IPaymentGateway
from src.service.parking.domain.enum.payment_outcome import PaymentOutcome


FAILED_EVENT_TYPES = {
    'checkout.session.expired',
    'checkout.session.async_payment_failed',
}


class StripePaymentGateway(IPaymentGateway):
    signature_header = 'Stripe-Signature'

    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        webhook_secret: Optional[str] = None,
        currency: Optional[str] = None,
    ) -> None:
        self.api_key = api_key or settings.STRIPE_SECRET_KEY.get_secret_value()
        self._client: Optional[stripe.StripeClient] = None
        self.webhook_secret = webhook_secret or settings.STRIPE_WEBHOOK_SECRET.get_secret_value()
        self.currency = currency or settings.PAYMENT_CURRENCY

    @property
    def client(self) -> stripe.StripeClient:
        # StripeClient refuses an empty key, build it on first use
        if self._client is None:
            if not self.api_key:
                raise GatewayError('STRIPE_SECRET_KEY is not configured')
            self._client = stripe.StripeClient(self.api_key)
        return self._client

    @Logger.io
    async def create_checkout_session(self, *, request: CheckoutRequest) -> CheckoutSession:
        params: dict[str, Any] = {
            'mode': 'payment',
            'line_items': [
                {
                    'price_data': {
                        'currency': self.currency,
                        'unit_amount': item.unit_amount,
                        'product_data': {'name': item.description},
                    },
                    'quantity': item.quantity,
                }
                for item in request.line_items
            ],
            'customer_email': request.customer_email,
            'metadata': request.metadata,
            'payment_intent_data': {'metadata': request.metadata},
            'success_url': request.success_url,
            'cancel_url': request.cancel_url,
            'expires_at': int(request.expires_at.timestamp()),
        }

        try:
            if request.discount > 0:
                coupon = await anyio.to_thread.run_sync(
                    lambda: self.client.coupons.create(
                        params={
                            'amount_off': request.discount,
                            'currency': self.currency,
                            'duration': 'once',
                            'max_redemptions': 1,
                            'name': request.discount_label or 'Discount',
                        }
                    )
                )
                params['discounts'] = [{'coupon': coupon.id}]

            session = await anyio.to_thread.run_sync(
                lambda: self.client.checkout.sessions.create(params=params)
            )
        except stripe.StripeError as e:
            raise GatewayError(f'Stripe checkout session failed: {e.user_message or e}') from e

        if not session.url:
            raise GatewayError(f'Stripe returned no redirect URL for session {session.id}')
        return CheckoutSession(session_id=session.id, redirect_url=session.url)

    @Logger.io
    def parse_webhook(self, *, payload: bytes, signature: Optional[str]) -> Optional[PaymentEvent]:
        if not signature:
            raise WebhookSignatureError('Missing Stripe-Signature header')
        try:
            event = stripe.Webhook.construct_event(payload, signature, self.webhook_secret)
        except stripe.SignatureVerificationError as e:
            raise WebhookSignatureError('Invalid Stripe webhook signature') from e
        except ValueError as e:
            raise WebhookSignatureError('Invalid Stripe webhook payload') from e

        event_type = event['type']
        session = event['data']['object']
        metadata = session.get('metadata') or {}

        if event_type == 'checkout.session.completed':
            if session.get('payment_status') != 'paid':
                # Delayed payment methods settle later via async_payment_succeeded
                return None
            outcome = PaymentOutcome.PAID
        elif event_type == 'checkout.session.async_payment_succeeded':
            outcome = PaymentOutcome.PAID
        elif event_type in FAILED_EVENT_TYPES:
            outcome = PaymentOutcome.FAILED
        else:
            return None

        return PaymentEvent(
            outcome=outcome,
            session_id=session.get('id'),
            reservation_id=metadata.get('reservation_id'),
            event_id=metadata.get('event_id'),
            gateway_event_id=event['id'],
            gateway_event_type=event_type,
        )

    @Logger.io
    async def expire_session(self, *, session_id: str) -> None:
        try:
            await anyio.to_thread.run_sync(
                lambda: self.client.checkout.sessions.expire(session_id)
            )
        except stripe.StripeError as e:
            raise GatewayError(f'Stripe could not expire session {session_id}: {e}') from e

    @Logger.io
    async def refund(self, *, session_id: str, idempotency_key: str) -> None:
        try:
            session = await anyio.to_thread.run_sync(
                lambda: self.client.checkout.sessions.retrieve(session_id)
            )
            if not session.payment_intent:
                raise GatewayError(f'Session {session_id} has no payment to refund')
            payment_intent = (
                session.payment_intent
                if isinstance(session.payment_intent, str)
                else session.payment_intent.id
            )
            # Stripe replays the first response for a repeated key instead of refunding again
            await anyio.to_thread.run_sync(
                lambda: self.client.refunds.create(
                    params={'payment_intent': payment_intent},
                    options={'idempotency_key': idempotency_key},
                )
            )
        except stripe.StripeError as e:
            raise GatewayError(f'Stripe refund failed for session {session_id}: {e}') from e
