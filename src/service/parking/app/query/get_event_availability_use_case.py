from typing import Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.exception.exceptions import NotFoundError
from src.platform.logging.loguru_io import Logger
from src.service.parking.app.dto.availability import EventAvailability
from src.service.parking.app.interface.i_availability_ledger import IAvailabilityLedger
from src.service.parking.app.interface.i_event_query_repo import IEventQueryRepo
from src.service.parking.app.interface.i_reservation_query_repo import IReservationQueryRepo
from src.service.parking.domain.enum.reservation_status import ReservationStatus


class GetEventAvailabilityUseCase:
    """Remaining comes from the ledger; held / sold are a breakdown from reservations"""

    def __init__(
        self,
        *,
        event_query_repo: IEventQueryRepo,
        reservation_query_repo: IReservationQueryRepo,
        availability_ledger: IAvailabilityLedger,
    ) -> None:
        self.event_query_repo = event_query_repo
        self.reservation_query_repo = reservation_query_repo
        self.availability_ledger = availability_ledger

    @classmethod
    @inject
    def depends(
        cls,
        event_query_repo: IEventQueryRepo = Depends(Provide[Container.event_query_repo]),
        reservation_query_repo: IReservationQueryRepo = Depends(
            Provide[Container.reservation_query_repo]
        ),
        availability_ledger: IAvailabilityLedger = Depends(
            Provide[Container.availability_ledger]
        ),
    ) -> Self:
        return cls(
            event_query_repo=event_query_repo,
            reservation_query_repo=reservation_query_repo,
            availability_ledger=availability_ledger,
        )

    @Logger.io
    async def execute(self, *, event_id: str) -> EventAvailability:
        event = await self.event_query_repo.get_by_id(event_id=event_id)
        if event is None:
            raise NotFoundError(f'Event {event_id} not found')

        availability = await self.availability_ledger.get_availability(event_id=event_id)
        by_status = await self.reservation_query_repo.sum_quantity_by_status(event_id=event_id)
        return EventAvailability(
            event_id=event_id,
            capacity=availability.capacity,
            held=by_status.get(ReservationStatus.PENDING, 0),
            sold=by_status.get(ReservationStatus.PAID, 0),
            remaining=availability.remaining,
        )
