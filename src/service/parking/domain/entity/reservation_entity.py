from datetime import datetime
from typing import List, Mapping, Optional

import attrs

from src.platform.exception.exceptions import (
    CapacityError,
    CapacityRejection,
    InvalidStateTransitionError,
    ValidationError,
)
from src.platform.logging.loguru_io import Logger
from src.platform.types.uuid7_id import new_id
from src.service.parking.domain.enum.reservation_status import ReservationStatus
from src.service.parking.domain.pricing_calculator import PricingBreakdown
from src.service.parking.domain.value_object.addon_snapshot import AddonSnapshot
from src.service.parking.domain.value_object.contact_info import ContactInfo


ALLOWED_TRANSITIONS: Mapping[ReservationStatus, frozenset[ReservationStatus]] = {
    ReservationStatus.PENDING: frozenset({ReservationStatus.PAID, ReservationStatus.CANCELED}),
    ReservationStatus.PAID: frozenset({ReservationStatus.REFUNDED}),
    ReservationStatus.CANCELED: frozenset(),
    ReservationStatus.REFUNDED: frozenset(),
}


@attrs.define
class Reservation:
    event_id: str
    quantity: int
    contact: ContactInfo
    unit_price: int
    addons_total: int
    discount: int
    subtotal: int
    service_fee: int
    tax: int
    total: int
    tier_name: Optional[str] = None
    addons: List[AddonSnapshot] = attrs.field(factory=list)
    promo_code_id: Optional[str] = None
    promo_code: Optional[str] = None
    status: ReservationStatus = ReservationStatus.PENDING
    payment_session_id: Optional[str] = None
    hold_expires_at: Optional[datetime] = None
    # Set once the ledger has taken this reservation's spots back
    hold_released: bool = False
    id: str = attrs.field(factory=new_id)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None
    canceled_at: Optional[datetime] = None
    refunded_at: Optional[datetime] = None

    @classmethod
    @Logger.io
    def create(
        cls,
        *,
        event_id: str,
        contact: ContactInfo,
        pricing: PricingBreakdown,
        addons: List[AddonSnapshot],
        hold_expires_at: datetime,
        max_per_order: int,
        now: datetime,
    ) -> 'Reservation':
        if pricing.quantity < 1:
            raise ValidationError('Quantity must be at least 1')
        if pricing.quantity > max_per_order:
            raise CapacityError(
                reason=CapacityRejection.OVER_PER_ORDER_LIMIT, remaining=0, limit=max_per_order
            )
        contact.validate()

        return cls(
            event_id=event_id,
            quantity=pricing.quantity,
            contact=contact,
            tier_name=pricing.tier_name,
            unit_price=pricing.unit_price,
            addons_total=pricing.addons_total,
            discount=pricing.discount,
            subtotal=pricing.subtotal,
            service_fee=pricing.service_fee,
            tax=pricing.tax,
            total=pricing.total,
            addons=list(addons),
            promo_code_id=pricing.promo_code_id,
            promo_code=pricing.promo_code,
            status=ReservationStatus.PENDING,
            hold_expires_at=hold_expires_at,
            created_at=now,
            updated_at=now,
        )

    @property
    def is_terminal(self) -> bool:
        return not ALLOWED_TRANSITIONS[self.status]

    def can_transition_to(self, target: ReservationStatus) -> bool:
        return target in ALLOWED_TRANSITIONS[self.status]

    def _transition(self, target: ReservationStatus, *, now: datetime, **changes) -> 'Reservation':
        if not self.can_transition_to(target):
            raise InvalidStateTransitionError(
                f'Reservation {self.id} cannot go from {self.status} to {target}'
            )
        return attrs.evolve(self, status=target, updated_at=now, **changes)

    @Logger.io
    def mark_paid(self, *, now: datetime) -> 'Reservation':
        return self._transition(ReservationStatus.PAID, now=now, paid_at=now)

    @Logger.io
    def cancel(self, *, now: datetime) -> 'Reservation':
        return self._transition(ReservationStatus.CANCELED, now=now, canceled_at=now)

    @Logger.io
    def refund(self, *, now: datetime) -> 'Reservation':
        return self._transition(ReservationStatus.REFUNDED, now=now, refunded_at=now)

    def attach_payment_session(self, *, session_id: str) -> 'Reservation':
        if self.status != ReservationStatus.PENDING:
            raise InvalidStateTransitionError(
                f'Cannot attach a payment session to a {self.status} reservation'
            )
        return attrs.evolve(self, payment_session_id=session_id)

    def is_hold_expired(self, *, now: datetime) -> bool:
        return (
            self.status == ReservationStatus.PENDING
            and self.hold_expires_at is not None
            and self.hold_expires_at < now
        )
