from datetime import datetime
from typing import List, Optional, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.logging.loguru_io import Logger
from src.service.parking.app.dto.catalog import EventDetail
from src.service.parking.app.interface.i_availability_ledger import IAvailabilityLedger
from src.service.parking.app.interface.i_event_query_repo import IEventQueryRepo
from src.service.parking.app.query.get_event_use_case import build_event_detail
from src.service.parking.domain.value_object.event_time import utc_now


class ListUpcomingEventsUseCase:
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
        self, *, now: Optional[datetime] = None, include_sold_out: bool = False
    ) -> List[EventDetail]:
        """Events starting at or after now, soonest first. Sold-out events only on request"""
        now = now or utc_now()
        events = await self.event_query_repo.list_upcoming(now=now)
        details = [
            await build_event_detail(
                event=event, availability_ledger=self.availability_ledger, now=now
            )
            for event in events
        ]
        if include_sold_out:
            return details
        return [detail for detail in details if not detail.availability.is_sold_out]
