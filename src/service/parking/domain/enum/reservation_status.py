from enum import StrEnum


class ReservationStatus(StrEnum):
    PENDING = 'PENDING'
    PAID = 'PAID'
    CANCELED = 'CANCELED'
    REFUNDED = 'REFUNDED'


# Statuses whose spots go back to the event, each reservation exactly once
HOLD_RELEASING_STATUSES = frozenset({ReservationStatus.CANCELED, ReservationStatus.REFUNDED})
