from datetime import datetime
from typing import Optional

from src.platform.logging.loguru_io import Logger
from src.platform.metrics.parking_metrics import metrics
from src.service.parking.app.command.reservation_compensation import (
    expire_session_best_effort,
    release_hold,
)
from src.service.parking.app.interface.i_availability_ledger import IAvailabilityLedger
from src.service.parking.app.interface.i_payment_gateway import IPaymentGateway
from src.service.parking.app.interface.i_reservation_command_repo import IReservationCommandRepo
from src.service.parking.domain.enum.reservation_status import ReservationStatus
from src.service.parking.domain.value_object.event_time import utc_now


class ExpirePendingHoldsUseCase:
    """
    Reclaim capacity from abandoned checkouts.

    Cancels PENDING reservations whose hold_expires_at has passed. A reservation
    that gets paid between the listing and the cancel loses nothing: the
    compare-and-set fails and the row is skipped.

    Each pass also retries releases that failed after a cancel or refund had
    already committed (rows still marked hold_released=False).
    """

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

    @Logger.io
    async def execute(self, *, now: Optional[datetime] = None, batch_size: int = 100) -> int:
        """Returns how many holds were released"""
        now = now or utc_now()
        released = await self._cancel_expired(now=now, batch_size=batch_size)
        released += await self._retry_unreleased(batch_size=batch_size)

        if released:
            Logger.base.info(f'🧹 [SWEEPER] Released {released} hold(s)')
        return released

    async def _cancel_expired(self, *, now: datetime, batch_size: int) -> int:
        expired = await self.reservation_command_repo.list_expired_holds(now=now, limit=batch_size)

        released = 0
        for reservation in expired:
            canceled = reservation.cancel(now=now)
            won = await self.reservation_command_repo.transition_status(
                reservation=canceled, expected_status=ReservationStatus.PENDING
            )
            if not won:
                continue
            metrics.expired_holds.inc()
            metrics.record_transition(
                from_status=ReservationStatus.PENDING.value,
                to_status=ReservationStatus.CANCELED.value,
            )
            await expire_session_best_effort(
                gateway=self.payment_gateway, session_id=canceled.payment_session_id
            )
            if await release_hold(ledger=self.availability_ledger, reservation=canceled):
                released += 1
        return released

    async def _retry_unreleased(self, *, batch_size: int) -> int:
        leftovers = await self.reservation_command_repo.list_unreleased_holds(limit=batch_size)

        released = 0
        for reservation in leftovers:
            if await release_hold(ledger=self.availability_ledger, reservation=reservation):
                Logger.base.warning(
                    f'♻️ [SWEEPER] Recovered {reservation.quantity} spot(s) of '
                    f'{reservation.status} reservation {reservation.id}'
                )
                released += 1
        return released
