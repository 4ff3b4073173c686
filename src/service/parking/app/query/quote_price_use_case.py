from datetime import datetime
from typing import List, Optional, Self

from dependency_injector.wiring import Provide, inject
from fastapi import Depends

from src.platform.config.di import Container
from src.platform.exception.exceptions import NotFoundError
from src.platform.logging.loguru_io import Logger
from src.service.parking.app.dto.catalog import PriceQuote
from src.service.parking.app.interface.i_event_query_repo import IEventQueryRepo
from src.service.parking.app.interface.i_promo_code_repo import IPromoCodeRepo
from src.service.parking.app.promo_code_lookup import lookup_promo
from src.service.parking.domain.enum.promo_rejection import PromoRejection
from src.service.parking.domain.pricing_calculator import calculate_price
from src.service.parking.domain.promo_code_validator import NoPromo
from src.service.parking.domain.value_object.event_time import utc_now


class QuotePriceUseCase:
    """Price preview for the booking form, holds nothing and writes nothing"""

    def __init__(self, *, event_query_repo: IEventQueryRepo, promo_code_repo: IPromoCodeRepo):
        self.event_query_repo = event_query_repo
        self.promo_code_repo = promo_code_repo

    @classmethod
    @inject
    def depends(
        cls,
        event_query_repo: IEventQueryRepo = Depends(Provide[Container.event_query_repo]),
        promo_code_repo: IPromoCodeRepo = Depends(Provide[Container.promo_code_repo]),
    ) -> Self:
        return cls(event_query_repo=event_query_repo, promo_code_repo=promo_code_repo)

    @Logger.io
    async def execute(
        self,
        *,
        event_id: str,
        quantity: int,
        addon_ids: Optional[List[str]] = None,
        promo_code: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> PriceQuote:
        now = now or utc_now()
        event = await self.event_query_repo.get_by_id(event_id=event_id)
        if event is None:
            raise NotFoundError(f'Event {event_id} not found')

        addons = event.find_addons(list(addon_ids or []))
        promo = await lookup_promo(
            self.promo_code_repo, code=promo_code, now=now, tz_name=event.timezone
        )
        pricing = calculate_price(event, quantity=quantity, addons=addons, promo=promo, now=now)

        rejection = None
        if isinstance(promo, NoPromo) and promo.reason != PromoRejection.EMPTY:
            rejection = promo.reason
        return PriceQuote(pricing=pricing, event_title=event.title, promo_rejection=rejection)
