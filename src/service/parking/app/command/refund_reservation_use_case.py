from datetime import datetime
from typing import Optional, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.exception.exceptions import (
    InvalidStateTransitionError,
    NotFoundError,
    RefundWindowClosedError,
)
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.parking_metrics import metrics
from src.service.parking.app.command.reservation_compensation import release_hold
from src.service.parking.app.interface.i_availability_ledger import IAvailabilityLedger
from src.service.parking.app.interface.i_event_query_repo import IEventQueryRepo
from src.service.parking.app.interface.i_payment_gateway import IPaymentGateway
from src.service.parking.app.interface.i_reservation_command_repo import IReservationCommandRepo
from src.service.parking.domain.entity.reservation_entity import Reservation
from src.service.parking.domain.enum.reservation_status import ReservationStatus
from src.service.parking.domain.value_object.event_time import to_event_time, utc_now


class RefundReservationUseCase:
    """
    PAID -> REFUNDED

    Refunds close `cutoff_hours` before the event starts; staff can pass
    override_cutoff to refund anyway. The gateway refund happens first, a gateway
    failure leaves the reservation PAID. The refund is keyed by reservation id, so
    two requests racing past the PAID check pay out once and the loser of the
    compare-and-set gets InvalidStateTransitionError.
    """

    def __init__(
        self,
        *,
        reservation_command_repo: IReservationCommandRepo,
        event_query_repo: IEventQueryRepo,
        availability_ledger: IAvailabilityLedger,
        payment_gateway: IPaymentGateway,
    ) -> None:
        self.reservation_command_repo = reservation_command_repo
        self.event_query_repo = event_query_repo
        self.availability_ledger = availability_ledger
        self.payment_gateway = payment_gateway

    @classmethod
    @inject
    def depends(
        cls,
        reservation_command_repo: IReservationCommandRepo = Depends(
            Provide[Container.reservation_command_repo]
        ),
        event_query_repo: IEventQueryRepo = Depends(Provide[Container.event_query_repo]),
        availability_ledger: IAvailabilityLedger = Depends(
            Provide[Container.availability_ledger]
        ),
        payment_gateway: IPaymentGateway = Depends(Provide[Container.payment_gateway]),
    ) -> Self:
        return cls(
            reservation_command_repo=reservation_command_repo,
            event_query_repo=event_query_repo,
            availability_ledger=availability_ledger,
            payment_gateway=payment_gateway,
        )

    @Logger.io
    async def execute(
        self,
        *,
        reservation_id: str,
        override_cutoff: bool = False,
        now: Optional[datetime] = None,
    ) -> Reservation:
        now = now or utc_now()
        reservation = await self.reservation_command_repo.get_by_id(reservation_id=reservation_id)
        if reservation is None:
            raise NotFoundError(f'Reservation {reservation_id} not found')
        refunded = reservation.refund(now=now)

        event = await self.event_query_repo.get_by_id(event_id=reservation.event_id)
        if event is None:
            raise NotFoundError(f'Event {reservation.event_id} not found')
        if now > event.refund_cutoff and not override_cutoff:
            cutoff = to_event_time(event.refund_cutoff, event.timezone)
            raise RefundWindowClosedError(
                f'Refunds closed at {cutoff.strftime("%Y-%m-%d %H:%M %Z")}, '
                f'{event.cutoff_hours}h before the event'
            )

        if reservation.payment_session_id:
            await self.payment_gateway.refund(
                session_id=reservation.payment_session_id,
                idempotency_key=f'refund-{reservation.id}',
            )

        won = await self.reservation_command_repo.transition_status(
            reservation=refunded, expected_status=ReservationStatus.PAID
        )
        if not won:
            raise InvalidStateTransitionError(
                f'Reservation {reservation_id} changed status while refunding'
            )

        await release_hold(ledger=self.availability_ledger, reservation=refunded)
        metrics.record_transition(
            from_status=ReservationStatus.PAID.value, to_status=ReservationStatus.REFUNDED.value
        )
        Logger.base.info(
            f'💵 [RESERVE] Reservation {reservation_id} refunded'
            + (' (cutoff overridden)' if override_cutoff else '')
        )
        return refunded
