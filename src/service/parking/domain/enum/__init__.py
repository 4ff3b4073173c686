"""Parking Domain Enums"""

from src.service.parking.domain.enum.payment_outcome import PaymentOutcome
from src.service.parking.domain.enum.promo_rejection import PromoRejection
from src.service.parking.domain.enum.reservation_status import ReservationStatus

__all__ = ['PaymentOutcome', 'PromoRejection', 'ReservationStatus']
