"""Application layer interfaces (Ports)"""

from src.service.parking.app.interface.i_availability_ledger import IAvailabilityLedger
from src.service.parking.app.interface.i_event_command_repo import IEventCommandRepo
from src.service.parking.app.interface.i_event_query_repo import IEventQueryRepo
from src.service.parking.app.interface.i_notification_sink import INotificationSink
from src.service.parking.app.interface.i_payment_gateway import IPaymentGateway
from src.service.parking.app.interface.i_promo_code_repo import IPromoCodeRepo
from src.service.parking.app.interface.i_reservation_command_repo import (
    IReservationCommandRepo,
)
from src.service.parking.app.interface.i_reservation_query_repo import IReservationQueryRepo

__all__ = [
    'IAvailabilityLedger',
    'IEventCommandRepo',
    'IEventQueryRepo',
    'INotificationSink',
    'IPaymentGateway',
    'IPromoCodeRepo',
    'IReservationCommandRepo',
    'IReservationQueryRepo',
]
