from enum import StrEnum


class CustomBaseError(Exception):
    """Base class for all custom exceptions - controls logging behavior in @Logger.io"""

    error_code: str = 'ERROR'

    def __init__(self, message: str, status_code: int, error_code: str | None = None) -> None:
        self.message = message
        self.status_code = status_code
        if error_code:
            self.error_code = error_code
        super().__init__(message)

    def to_payload(self) -> dict:
        return {'error_code': self.error_code, 'message': self.message}


class ValidationError(CustomBaseError):
    error_code = 'VALIDATION_ERROR'

    def __init__(self, message: str) -> None:
        super().__init__(message, 400)


class NotFoundError(CustomBaseError):
    error_code = 'NOT_FOUND'

    def __init__(self, message: str) -> None:
        super().__init__(message, 404)


class ConflictError(CustomBaseError):
    error_code = 'CONFLICT'

    def __init__(self, message: str) -> None:
        super().__init__(message, 409)


class CapacityRejection(StrEnum):
    SOLD_OUT = 'SOLD_OUT'
    INSUFFICIENT_CAPACITY = 'INSUFFICIENT_CAPACITY'
    OVER_PER_ORDER_LIMIT = 'OVER_PER_ORDER_LIMIT'


class CapacityError(CustomBaseError):
    error_code = 'CAPACITY_ERROR'

    def __init__(
        self, *, reason: CapacityRejection, remaining: int, limit: int | None = None
    ) -> None:
        self.reason = reason
        self.remaining = remaining
        if reason == CapacityRejection.SOLD_OUT:
            message = 'Event is sold out, 0 spots remaining'
        elif reason == CapacityRejection.OVER_PER_ORDER_LIMIT:
            message = f'Maximum {limit} spots per order'
        else:
            message = f'Only {remaining} spot{"" if remaining == 1 else "s"} remaining'
        super().__init__(message, 409)

    def to_payload(self) -> dict:
        return super().to_payload() | {'reason': self.reason.value, 'remaining': self.remaining}


class InvalidStateTransitionError(CustomBaseError):
    error_code = 'INVALID_STATE_TRANSITION'

    def __init__(self, message: str) -> None:
        super().__init__(message, 409)


class RefundWindowClosedError(CustomBaseError):
    error_code = 'REFUND_WINDOW_CLOSED'

    def __init__(self, message: str) -> None:
        super().__init__(message, 409)


class GatewayError(CustomBaseError):
    """Payment gateway call failed; the caller may retry."""

    error_code = 'GATEWAY_ERROR'

    def __init__(self, message: str) -> None:
        super().__init__(message, 502)

    def to_payload(self) -> dict:
        return super().to_payload() | {'retryable': True}


class WebhookSignatureError(CustomBaseError):
    error_code = 'INVALID_SIGNATURE'

    def __init__(self, message: str) -> None:
        super().__init__(message, 400)


class ReconciliationError(CustomBaseError):
    """Webhook cannot be applied: unknown reservation, or paid after it was canceled.

    Logged, never surfaced to the gateway.
    """

    error_code = 'RECONCILIATION_ERROR'

    def __init__(
        self, message: str, *, reservation_id: str | None = None, status: str | None = None
    ) -> None:
        super().__init__(message, 200)
        self.reservation_id = reservation_id
        self.status = status
