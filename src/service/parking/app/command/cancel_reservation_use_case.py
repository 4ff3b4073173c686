from datetime import datetime
from typing import Optional, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.exception.exceptions import InvalidStateTransitionError, NotFoundError
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.parking_metrics import metrics
from src.service.parking.app.command.reservation_compensation import (
    expire_session_best_effort,
    release_hold,
)
from src.service.parking.app.interface.i_availability_ledger import IAvailabilityLedger
from src.service.parking.app.interface.i_payment_gateway import IPaymentGateway
from src.service.parking.app.interface.i_reservation_command_repo import IReservationCommandRepo
from src.service.parking.domain.entity.reservation_entity import Reservation
from src.service.parking.domain.enum.reservation_status import ReservationStatus
from src.service.parking.domain.value_object.event_time import utc_now


class CancelReservationUseCase:
    """Buyer walked away from checkout: PENDING -> CANCELED and the hold goes back"""

    def __init__(
        self,
        *,
        reservation_command_repo: IReservationCommandRepo,
        availability_ledger: IAvailabilityLedger,
        payment_gateway: IPaymentGateway,
    ) -> None:
        self.reservation_command_repo = reservation_command_repo
        self.availability_ledger = availability_ledger
        self.payment_gateway = payment_gateway

    @classmethod
    @inject
    def depends(
        cls,
        reservation_command_repo: IReservationCommandRepo = Depends(
            Provide[Container.reservation_command_repo]
        ),
        availability_ledger: IAvailabilityLedger = Depends(
            Provide[Container.availability_ledger]
        ),
        payment_gateway: IPaymentGateway = Depends(Provide[Container.payment_gateway]),
    ) -> Self:
        return cls(
            reservation_command_repo=reservation_command_repo,
            availability_ledger=availability_ledger,
            payment_gateway=payment_gateway,
        )

    @Logger.io
    async def execute(self, *, reservation_id: str, now: Optional[datetime] = None) -> Reservation:
        now = now or utc_now()
        reservation = await self.reservation_command_repo.get_by_id(reservation_id=reservation_id)
        if reservation is None:
            raise NotFoundError(f'Reservation {reservation_id} not found')

        canceled = reservation.cancel(now=now)
        won = await self.reservation_command_repo.transition_status(
            reservation=canceled, expected_status=ReservationStatus.PENDING
        )
        if not won:
            current = await self.reservation_command_repo.get_by_id(reservation_id=reservation_id)
            status = current.status if current else reservation.status
            raise InvalidStateTransitionError(
                f'Reservation {reservation_id} cannot go from {status} to CANCELED'
            )

        await release_hold(ledger=self.availability_ledger, reservation=canceled)
        await expire_session_best_effort(
            gateway=self.payment_gateway, session_id=canceled.payment_session_id
        )
        metrics.record_transition(
            from_status=ReservationStatus.PENDING.value, to_status=ReservationStatus.CANCELED.value
        )
        Logger.base.info(f'🚫 [RESERVE] Reservation {reservation_id} canceled by buyer')
        return canceled
