from datetime import datetime, timezone

import orjson
import pytest

from src.platform.exception.exceptions import GatewayError, WebhookSignatureError
from src.service.parking.app.dto.payment import CheckoutRequest
from src.service.parking.domain.enum.payment_outcome import PaymentOutcome
from src.service.parking.domain.value_object.line_item import LineItem
from src.service.parking.driven_adapter.payment.mock_payment_gateway import MockPaymentGateway


@pytest.fixture
def gateway() -> MockPaymentGateway:
    return MockPaymentGateway(webhook_secret='whsec_test', base_url='http://test/')


@pytest.fixture
def checkout_request() -> CheckoutRequest:
    return CheckoutRequest(
        line_items=[LineItem(description='Football Game parking', unit_amount=3500, quantity=2)],
        customer_email='jamie@example.com',
        metadata={'reservation_id': 'res-1', 'event_id': 'evt-1'},
        success_url='http://test/success?session_id={CHECKOUT_SESSION_ID}',
        cancel_url='http://test/cancel?reservation=res-1',
        expires_at=datetime(2026, 10, 20, 16, 35, tzinfo=timezone.utc),
    )


def webhook(event_type: str, **fields) -> bytes:
    return orjson.dumps({'id': 'evt_mock_1', 'type': event_type, **fields})


@pytest.mark.unit
class TestMockCheckout:
    @pytest.mark.asyncio
    async def test_create_checkout_session(self, gateway, checkout_request):
        session = await gateway.create_checkout_session(request=checkout_request)

        assert session.session_id.startswith('mock_cs_')
        assert session.redirect_url == f'http://test/mock-checkout/{session.session_id}'
        assert gateway.sessions[session.session_id].amount_due == 7000

    @pytest.mark.asyncio
    async def test_fail_next_checkout_fails_once(self, gateway, checkout_request):
        gateway.fail_next_checkout = True

        with pytest.raises(GatewayError):
            await gateway.create_checkout_session(request=checkout_request)
        assert await gateway.create_checkout_session(request=checkout_request)

    @pytest.mark.asyncio
    async def test_refund_and_expire_are_recorded(self, gateway):
        await gateway.expire_session(session_id='mock_cs_1')
        await gateway.refund(session_id='mock_cs_2', idempotency_key='refund-r2')

        assert gateway.expired == ['mock_cs_1']
        assert gateway.refunded == ['mock_cs_2']

    @pytest.mark.asyncio
    async def test_repeated_refund_key_refunds_once(self, gateway):
        await gateway.refund(session_id='mock_cs_2', idempotency_key='refund-r2')
        await gateway.refund(session_id='mock_cs_2', idempotency_key='refund-r2')

        assert gateway.refunded == ['mock_cs_2']
        assert gateway.refund_keys == {'refund-r2': 'mock_cs_2'}


@pytest.mark.unit
class TestMockWebhook:
    @pytest.mark.parametrize(
        'event_type,outcome',
        [
            ('checkout.paid', PaymentOutcome.PAID),
            ('checkout.failed', PaymentOutcome.FAILED),
            ('checkout.expired', PaymentOutcome.FAILED),
        ],
    )
    def test_known_event_types(self, gateway, event_type, outcome):
        payload = webhook(event_type, session_id='mock_cs_1', reservation_id='res-1')

        event = gateway.parse_webhook(payload=payload, signature=gateway.sign(payload))

        assert event.outcome == outcome
        assert event.session_id == 'mock_cs_1'
        assert event.reservation_id == 'res-1'
        assert event.gateway_event_id == 'evt_mock_1'

    def test_unknown_event_type_is_ignored(self, gateway):
        payload = webhook('checkout.opened', session_id='mock_cs_1')

        assert gateway.parse_webhook(payload=payload, signature=gateway.sign(payload)) is None

    @pytest.mark.parametrize('signature', [None, '', 'deadbeef'])
    def test_bad_signature(self, gateway, signature):
        with pytest.raises(WebhookSignatureError):
            gateway.parse_webhook(payload=webhook('checkout.paid'), signature=signature)

    def test_signed_garbage_is_rejected(self, gateway):
        payload = b'not json'

        with pytest.raises(WebhookSignatureError):
            gateway.parse_webhook(payload=payload, signature=gateway.sign(payload))
