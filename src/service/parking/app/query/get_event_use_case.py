from datetime import datetime
from typing import Optional, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.exception.exceptions import NotFoundError
from src.platform.logging.loguru_io import Logger
from src.service.parking.app.dto.catalog import EventDetail
from src.service.parking.app.interface.i_availability_ledger import IAvailabilityLedger
from src.service.parking.app.interface.i_event_query_repo import IEventQueryRepo
from src.service.parking.domain.entity.event_entity import Event
from src.service.parking.domain.price_tier_resolver import resolve_unit_price
from src.service.parking.domain.value_object.event_time import utc_now


async def build_event_detail(
    *, event: Event, availability_ledger: IAvailabilityLedger, now: datetime
) -> EventDetail:
    unit_price, tier_name = resolve_unit_price(event, now)
    availability = await availability_ledger.get_availability(event_id=event.id)
    return EventDetail(
        event=event, unit_price=unit_price, tier_name=tier_name, availability=availability
    )


class GetEventUseCase:
    def __init__(
        self, *, event_query_repo: IEventQueryRepo, availability_ledger: IAvailabilityLedger
    ) -> None:
        self.event_query_repo = event_query_repo
        self.availability_ledger = availability_ledger

    @classmethod
    @inject
    def depends(
        cls,
        event_query_repo: IEventQueryRepo = Depends(Provide[Container.event_query_repo]),
        availability_ledger: IAvailabilityLedger = Depends(
            Provide[Container.availability_ledger]
        ),
    ) -> Self:
        return cls(event_query_repo=event_query_repo, availability_ledger=availability_ledger)

    @Logger.io
    async def execute(
        self, *, event_id_or_slug: str, now: Optional[datetime] = None
    ) -> EventDetail:
        event = await self.event_query_repo.get_by_id(event_id=event_id_or_slug)
        if event is None:
            event = await self.event_query_repo.get_by_slug(slug=event_id_or_slug.strip().lower())
        if event is None:
            raise NotFoundError(f'Event {event_id_or_slug} not found')
        return await build_event_detail(
            event=event, availability_ledger=self.availability_ledger, now=now or utc_now()
        )
