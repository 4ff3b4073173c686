"""
Create Reservation Use Case

Flow:
1. Validate quantity and contact (no side effects yet)
2. Load the event, resolve the selected add-ons
3. Validate the promo code (silently) and price the order
4. Check-and-hold capacity; the ledger stores the PENDING reservation with its
   frozen price snapshot in the same step, so a hold never exists without its row
5. Open a checkout session at the payment gateway
6. Store the session id on the reservation

Compensation:
- failure after 4 cancels the reservation (compare-and-set, so a concurrent
  webhook or sweeper cannot release the same hold twice) and releases the hold;
  if that fails too, the PENDING or CANCELED row is what the sweeper reclaims
- failure at 6 additionally expires the gateway session, best effort
"""

from datetime import datetime, timedelta
from typing import List, Optional, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends
from opentelemetry import trace

from src.platform.config.core_setting import settings
from src.platform.config.di import Container
from src.platform.exception.exceptions import (
    CapacityError,
    GatewayError,
    NotFoundError,
    ValidationError,
)
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.parking_metrics import metrics
from src.service.parking.app.command.reservation_compensation import (
    expire_session_best_effort,
    release_hold,
)
from src.service.parking.app.dto.payment import CheckoutRequest, CheckoutSession
from src.service.parking.app.dto.reservation_result import ReservationResult
from src.service.parking.app.interface.i_availability_ledger import IAvailabilityLedger
from src.service.parking.app.interface.i_event_query_repo import IEventQueryRepo
from src.service.parking.app.interface.i_payment_gateway import IPaymentGateway
from src.service.parking.app.interface.i_promo_code_repo import IPromoCodeRepo
from src.service.parking.app.interface.i_reservation_command_repo import IReservationCommandRepo
from src.service.parking.app.promo_code_lookup import lookup_promo
from src.service.parking.domain.entity.event_entity import Event
from src.service.parking.domain.entity.reservation_entity import Reservation
from src.service.parking.domain.enum.reservation_status import ReservationStatus
from src.service.parking.domain.pricing_calculator import PricingBreakdown, calculate_price
from src.service.parking.domain.value_object.addon_snapshot import AddonSnapshot
from src.service.parking.domain.value_object.contact_info import ContactInfo
from src.service.parking.domain.value_object.event_time import utc_now


class CreateReservationUseCase:
    def __init__(
        self,
        *,
        event_query_repo: IEventQueryRepo,
        promo_code_repo: IPromoCodeRepo,
        reservation_command_repo: IReservationCommandRepo,
        availability_ledger: IAvailabilityLedger,
        payment_gateway: IPaymentGateway,
    ) -> None:
        self.event_query_repo = event_query_repo
        self.promo_code_repo = promo_code_repo
        self.reservation_command_repo = reservation_command_repo
        self.availability_ledger = availability_ledger
        self.payment_gateway = payment_gateway
        self.tracer = trace.get_tracer(__name__)

    @classmethod
    @inject
    def depends(
        cls,
        event_query_repo: IEventQueryRepo = Depends(Provide[Container.event_query_repo]),
        promo_code_repo: IPromoCodeRepo = Depends(Provide[Container.promo_code_repo]),
        reservation_command_repo: IReservationCommandRepo = Depends(
            Provide[Container.reservation_command_repo]
        ),
        availability_ledger: IAvailabilityLedger = Depends(
            Provide[Container.availability_ledger]
        ),
        payment_gateway: IPaymentGateway = Depends(Provide[Container.payment_gateway]),
    ) -> Self:
        return cls(
            event_query_repo=event_query_repo,
            promo_code_repo=promo_code_repo,
            reservation_command_repo=reservation_command_repo,
            availability_ledger=availability_ledger,
            payment_gateway=payment_gateway,
        )

    @Logger.io
    async def execute(
        self,
        *,
        event_id: str,
        quantity: int,
        contact: ContactInfo,
        addon_ids: Optional[List[str]] = None,
        promo_code: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> ReservationResult:
        """
        Raises:
            ValidationError: bad quantity, contact or add-on selection
            NotFoundError: unknown event
            CapacityError: not enough spots, nothing was held
            GatewayError: checkout could not be opened, hold already given back
        """
        now = now or utc_now()
        if quantity < 1:
            raise ValidationError('Quantity must be at least 1')
        contact.validate()

        event = await self.event_query_repo.get_by_id(event_id=event_id)
        if event is None:
            raise NotFoundError(f'Event {event_id} not found')
        addons = event.find_addons(list(addon_ids or []))

        with self.tracer.start_as_current_span(
            'use_case.create_reservation',
            attributes={'event.id': event_id, 'reservation.quantity': quantity},
        ) as span:
            promo = await lookup_promo(
                self.promo_code_repo, code=promo_code, now=now, tz_name=event.timezone
            )
            pricing = calculate_price(event, quantity=quantity, addons=addons, promo=promo, now=now)

            try:
                reservation = Reservation.create(
                    event_id=event_id,
                    contact=contact,
                    pricing=pricing,
                    addons=[
                        AddonSnapshot(addon_id=addon.id, name=addon.name, price=addon.price)
                        for addon in addons
                    ],
                    hold_expires_at=now + timedelta(minutes=settings.HOLD_TTL_MINUTES),
                    max_per_order=settings.MAX_SPOTS_PER_ORDER,
                    now=now,
                )
                allocation = await self.availability_ledger.reserve(
                    event_id=event_id, quantity=quantity, reservation=reservation
                )
            except CapacityError as e:
                metrics.record_reservation(event_id=event_id, result=e.reason.lower())
                raise

            span.set_attribute('reservation.id', reservation.id)
            Logger.base.info(
                f'🅿️ [RESERVE] Held {quantity} spot(s) for event {event_id}, '
                f'{allocation.remaining} remaining'
            )

            try:
                session = await self.payment_gateway.create_checkout_session(
                    request=self._checkout_request(
                        event=event, reservation=reservation, pricing=pricing, now=now
                    )
                )
            except Exception as e:
                await self._compensate(reservation=reservation, now=now)
                metrics.record_reservation(
                    event_id=event_id,
                    result='gateway_error' if isinstance(e, GatewayError) else 'failed',
                )
                raise

            try:
                await self.reservation_command_repo.set_payment_session(
                    reservation_id=reservation.id, session_id=session.session_id
                )
            except Exception:
                await self._compensate(reservation=reservation, now=now)
                await expire_session_best_effort(
                    gateway=self.payment_gateway, session_id=session.session_id
                )
                metrics.record_reservation(event_id=event_id, result='failed')
                raise

        reservation = reservation.attach_payment_session(session_id=session.session_id)
        metrics.record_reservation(event_id=event_id, result='created')
        Logger.base.info(
            f'🧾 [RESERVE] Reservation {reservation.id} PENDING, total {reservation.total}, '
            f'checkout session {session.session_id}'
        )
        return self._result(reservation=reservation, session=session)

    def _checkout_request(
        self, *, event: Event, reservation: Reservation, pricing: PricingBreakdown, now: datetime
    ) -> CheckoutRequest:
        base_url = settings.PUBLIC_BASE_URL.rstrip('/')
        return CheckoutRequest(
            line_items=pricing.line_items(event_title=event.title),
            customer_email=reservation.contact.email,
            metadata={'reservation_id': reservation.id, 'event_id': event.id},
            success_url=f'{base_url}/success?session_id={{CHECKOUT_SESSION_ID}}',
            cancel_url=f'{base_url}/cancel?reservation={reservation.id}',
            expires_at=now + timedelta(minutes=settings.CHECKOUT_SESSION_TTL_MINUTES),
            discount=pricing.discount,
            discount_label=f'Discount ({pricing.promo_code})' if pricing.promo_code else None,
        )

    async def _compensate(self, *, reservation: Reservation, now: datetime) -> None:
        try:
            canceled = reservation.cancel(now=now)
            won = await self.reservation_command_repo.transition_status(
                reservation=canceled, expected_status=ReservationStatus.PENDING
            )
        except Exception as e:
            # The row stays PENDING and the sweeper cancels it when the hold expires
            Logger.base.error(
                f'❌ [RESERVE] Could not cancel reservation {reservation.id} after a failed '
                f'checkout: {e}'
            )
            return
        if won and await release_hold(ledger=self.availability_ledger, reservation=canceled):
            Logger.base.warning(
                f'↩️ [RESERVE] Gave back {reservation.quantity} spot(s) for event '
                f'{reservation.event_id}'
            )

    @staticmethod
    def _result(*, reservation: Reservation, session: CheckoutSession) -> ReservationResult:
        return ReservationResult(
            reservation=reservation,
            redirect_url=session.redirect_url,
            session_id=session.session_id,
        )
