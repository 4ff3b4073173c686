"""Application layer DTOs"""

from src.service.parking.app.dto.availability import Allocation, Availability, EventAvailability
from src.service.parking.app.dto.catalog import EventDetail, PriceQuote
from src.service.parking.app.dto.payment import CheckoutRequest, CheckoutSession, PaymentEvent
from src.service.parking.app.dto.reservation_result import ReconcileResult, ReservationResult

__all__ = [
    'Allocation',
    'Availability',
    'CheckoutRequest',
    'CheckoutSession',
    'EventAvailability',
    'EventDetail',
    'PaymentEvent',
    'PriceQuote',
    'ReconcileResult',
    'ReservationResult',
]
