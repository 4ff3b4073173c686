from typing import List

from fastapi import APIRouter, Depends

from src.platform.logging.loguru_io import Logger
from src.service.parking.app.query.get_event_availability_use_case import (
    GetEventAvailabilityUseCase,
)
from src.service.parking.app.query.get_event_use_case import GetEventUseCase
from src.service.parking.app.query.list_upcoming_events_use_case import ListUpcomingEventsUseCase
from src.service.parking.app.query.quote_price_use_case import QuotePriceUseCase
from src.service.parking.driving_adapter.http_controller.schema.event_schema import (
    EventAvailabilityResponse,
    EventResponse,
    QuoteRequest,
    QuoteResponse,
)


router = APIRouter()


@router.get('')
@Logger.io
async def list_events(
    include_sold_out: bool = False,
    use_case: ListUpcomingEventsUseCase = Depends(ListUpcomingEventsUseCase.depends),
) -> List[EventResponse]:
    details = await use_case.execute(include_sold_out=include_sold_out)
    return [EventResponse.from_detail(detail) for detail in details]


@router.get('/{event_id_or_slug}')
@Logger.io
async def get_event(
    event_id_or_slug: str,
    use_case: GetEventUseCase = Depends(GetEventUseCase.depends),
) -> EventResponse:
    detail = await use_case.execute(event_id_or_slug=event_id_or_slug)
    return EventResponse.from_detail(detail)


@router.get('/{event_id}/availability')
@Logger.io
async def get_event_availability(
    event_id: str,
    use_case: GetEventAvailabilityUseCase = Depends(GetEventAvailabilityUseCase.depends),
) -> EventAvailabilityResponse:
    availability = await use_case.execute(event_id=event_id)
    return EventAvailabilityResponse.from_dto(availability)


@router.post('/{event_id}/quote')
@Logger.io
async def quote_price(
    event_id: str,
    request: QuoteRequest,
    use_case: QuotePriceUseCase = Depends(QuotePriceUseCase.depends),
) -> QuoteResponse:
    quote = await use_case.execute(
        event_id=event_id,
        quantity=request.quantity,
        addon_ids=request.addon_ids,
        promo_code=request.promo_code,
    )
    return QuoteResponse.from_quote(quote)
