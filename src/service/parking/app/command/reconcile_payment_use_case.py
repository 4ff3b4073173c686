"""
Reconcile Payment Use Case

Applies a gateway notification to its reservation. Deliveries can repeat and arrive
out of order, so every status change is a compare-and-set from PENDING and only the
winner touches capacity, promo usage or notifications.
"""

from datetime import datetime
from typing import Optional, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.exception.exceptions import ReconciliationError
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.parking_metrics import metrics
from src.service.parking.app.command.reservation_compensation import release_hold
from src.service.parking.app.dto.payment import PaymentEvent
from src.service.parking.app.dto.reservation_result import ReconcileResult
from src.service.parking.app.interface.i_availability_ledger import IAvailabilityLedger
from src.service.parking.app.interface.i_event_query_repo import IEventQueryRepo
from src.service.parking.app.interface.i_notification_sink import INotificationSink
from src.service.parking.app.interface.i_payment_gateway import IPaymentGateway
from src.service.parking.app.interface.i_promo_code_repo import IPromoCodeRepo
from src.service.parking.app.interface.i_reservation_command_repo import IReservationCommandRepo
from src.service.parking.domain.entity.reservation_entity import Reservation
from src.service.parking.domain.enum.payment_outcome import PaymentOutcome
from src.service.parking.domain.enum.reservation_status import ReservationStatus
from src.service.parking.domain.value_object.event_time import utc_now


class ReconcilePaymentUseCase:
    def __init__(
        self,
        *,
        reservation_command_repo: IReservationCommandRepo,
        event_query_repo: IEventQueryRepo,
        promo_code_repo: IPromoCodeRepo,
        availability_ledger: IAvailabilityLedger,
        notification_sink: INotificationSink,
        payment_gateway: IPaymentGateway,
    ) -> None:
        self.reservation_command_repo = reservation_command_repo
        self.event_query_repo = event_query_repo
        self.promo_code_repo = promo_code_repo
        self.availability_ledger = availability_ledger
        self.notification_sink = notification_sink
        self.payment_gateway = payment_gateway

    @classmethod
    @inject
    def depends(
        cls,
        reservation_command_repo: IReservationCommandRepo = Depends(
            Provide[Container.reservation_command_repo]
        ),
        event_query_repo: IEventQueryRepo = Depends(Provide[Container.event_query_repo]),
        promo_code_repo: IPromoCodeRepo = Depends(Provide[Container.promo_code_repo]),
        availability_ledger: IAvailabilityLedger = Depends(
            Provide[Container.availability_ledger]
        ),
        notification_sink: INotificationSink = Depends(Provide[Container.notification_sink]),
        payment_gateway: IPaymentGateway = Depends(Provide[Container.payment_gateway]),
    ) -> Self:
        return cls(
            reservation_command_repo=reservation_command_repo,
            event_query_repo=event_query_repo,
            promo_code_repo=promo_code_repo,
            availability_ledger=availability_ledger,
            notification_sink=notification_sink,
            payment_gateway=payment_gateway,
        )

    @Logger.io
    async def handle_webhook(
        self, *, payload: bytes, signature: Optional[str], now: Optional[datetime] = None
    ) -> ReconcileResult:
        """
        Raises:
            WebhookSignatureError: the only failure the gateway gets to see
        """
        payment_event = self.payment_gateway.parse_webhook(payload=payload, signature=signature)
        if payment_event is None:
            metrics.record_webhook(outcome='none', result='ignored')
            return ReconcileResult(handled=False, detail='event type ignored')
        Logger.base.info(
            f'📨 [WEBHOOK] {payment_event.gateway_event_type} session {payment_event.session_id}'
        )
        return await self.execute(payment_event=payment_event, now=now)

    @Logger.io
    async def execute(
        self, *, payment_event: PaymentEvent, now: Optional[datetime] = None
    ) -> ReconcileResult:
        now = now or utc_now()
        try:
            reservation = await self._find(payment_event)
            if payment_event.outcome == PaymentOutcome.PAID:
                return await self._confirm(reservation=reservation, now=now)
            return await self._fail(reservation=reservation, now=now)
        except ReconciliationError as e:
            Logger.base.error(f'🔎 [WEBHOOK] {e.message}')
            metrics.record_webhook(
                outcome=payment_event.outcome.value,
                result='conflict' if e.reservation_id else 'unmatched',
            )
            return ReconcileResult(
                handled=False, reservation_id=e.reservation_id, status=e.status, detail=e.message
            )

    async def _find(self, payment_event: PaymentEvent) -> Reservation:
        reservation = None
        if payment_event.reservation_id:
            reservation = await self.reservation_command_repo.get_by_id(
                reservation_id=payment_event.reservation_id
            )
        if reservation is None and payment_event.session_id:
            reservation = await self.reservation_command_repo.get_by_payment_session_id(
                session_id=payment_event.session_id
            )
        if reservation is None:
            raise ReconciliationError(
                f'No reservation for payment session {payment_event.session_id} '
                f'(reservation_id={payment_event.reservation_id})'
            )
        return reservation

    async def _confirm(self, *, reservation: Reservation, now: datetime) -> ReconcileResult:
        if reservation.status == ReservationStatus.PENDING:
            paid = reservation.mark_paid(now=now)
            won = await self.reservation_command_repo.transition_status(
                reservation=paid, expected_status=ReservationStatus.PENDING
            )
            if won:
                await self._after_paid(reservation=paid)
                return self._applied(paid, PaymentOutcome.PAID)
            # Lost the race to another delivery or the sweeper, judge by what won
            reservation = await self.reservation_command_repo.get_by_id(
                reservation_id=reservation.id
            ) or reservation

        if reservation.status in (ReservationStatus.PAID, ReservationStatus.REFUNDED):
            return self._duplicate(reservation, PaymentOutcome.PAID)

        raise ReconciliationError(
            f'Payment received for reservation {reservation.id} which is '
            f'{reservation.status}; the payment needs a manual refund',
            reservation_id=reservation.id,
            status=reservation.status.value,
        )

    async def _after_paid(self, *, reservation: Reservation) -> None:
        metrics.record_transition(
            from_status=ReservationStatus.PENDING.value, to_status=ReservationStatus.PAID.value
        )
        if reservation.promo_code_id:
            counted = await self.promo_code_repo.increment_usage_atomically(
                promo_code_id=reservation.promo_code_id
            )
            if not counted:
                Logger.base.warning(
                    f'🎟️ [WEBHOOK] Promo {reservation.promo_code} reached max uses, '
                    f'reservation {reservation.id} stays PAID without a usage credit'
                )

        event = await self.event_query_repo.get_by_id(event_id=reservation.event_id)
        if event is not None:
            await self.notification_sink.send_reservation_confirmation(
                reservation=reservation, event=event
            )

    async def _fail(self, *, reservation: Reservation, now: datetime) -> ReconcileResult:
        if reservation.status != ReservationStatus.PENDING:
            return self._duplicate(reservation, PaymentOutcome.FAILED)

        canceled = reservation.cancel(now=now)
        won = await self.reservation_command_repo.transition_status(
            reservation=canceled, expected_status=ReservationStatus.PENDING
        )
        if not won:
            return self._duplicate(reservation, PaymentOutcome.FAILED)

        await release_hold(ledger=self.availability_ledger, reservation=canceled)
        metrics.record_transition(
            from_status=ReservationStatus.PENDING.value, to_status=ReservationStatus.CANCELED.value
        )
        return self._applied(canceled, PaymentOutcome.FAILED)

    @staticmethod
    def _applied(reservation: Reservation, outcome: PaymentOutcome) -> ReconcileResult:
        Logger.base.info(f'✅ [WEBHOOK] Reservation {reservation.id} -> {reservation.status}')
        metrics.record_webhook(outcome=outcome.value, result='applied')
        return ReconcileResult(
            handled=True, reservation_id=reservation.id, status=reservation.status.value
        )

    @staticmethod
    def _duplicate(reservation: Reservation, outcome: PaymentOutcome) -> ReconcileResult:
        Logger.base.info(
            f'🔁 [WEBHOOK] Reservation {reservation.id} already {reservation.status}, no-op'
        )
        metrics.record_webhook(outcome=outcome.value, result='duplicate')
        return ReconcileResult(
            handled=True,
            reservation_id=reservation.id,
            status=reservation.status.value,
            detail='already processed',
        )
