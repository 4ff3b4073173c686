from abc import ABC, abstractmethod
from typing import Optional

from src.service.parking.app.dto.payment import CheckoutRequest, CheckoutSession, PaymentEvent


class IPaymentGateway(ABC):
    signature_header: str = 'Stripe-Signature'

    @abstractmethod
    async def create_checkout_session(self, *, request: CheckoutRequest) -> CheckoutSession:
        """
        Raises:
            GatewayError: the session could not be created (retryable)
        """
        pass

    @abstractmethod
    def parse_webhook(self, *, payload: bytes, signature: Optional[str]) -> Optional[PaymentEvent]:
        """
        Returns:
            None for notification types reconciliation does not care about

        Raises:
            WebhookSignatureError: signature missing or invalid
        """
        pass

    @abstractmethod
    async def expire_session(self, *, session_id: str) -> None:
        pass

    @abstractmethod
    async def refund(self, *, session_id: str, idempotency_key: str) -> None:
        """
        Requests repeating an idempotency_key refund the payment only once, so
        concurrent or retried refunds of one reservation cannot pay out twice.

        Raises:
            GatewayError: the refund was refused or the gateway is unreachable
        """
        pass
