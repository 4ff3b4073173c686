"""
Wire Modules Configuration

Modules whose `depends` classmethods carry Provide markers.
Shared between the application lifespan and the test client.
"""

from types import ModuleType

from src.service.parking.app.command import (
    cancel_reservation_use_case,
    create_reservation_use_case,
    reconcile_payment_use_case,
    refund_reservation_use_case,
)
from src.service.parking.app.query import (
    get_event_availability_use_case,
    get_event_use_case,
    get_reservation_use_case,
    list_upcoming_events_use_case,
    quote_price_use_case,
)


WIRE_MODULES: list[ModuleType] = [
    create_reservation_use_case,
    cancel_reservation_use_case,
    refund_reservation_use_case,
    reconcile_payment_use_case,
    get_event_use_case,
    list_upcoming_events_use_case,
    get_event_availability_use_case,
    quote_price_use_case,
    get_reservation_use_case,
]
