from typing import Optional

import attrs

from src.service.parking.app.dto.availability import Availability
from src.service.parking.domain.entity.event_entity import Event
from src.service.parking.domain.enum.promo_rejection import PromoRejection
from src.service.parking.domain.pricing_calculator import PricingBreakdown


@attrs.define(frozen=True)
class EventDetail:
    """Event as shown to a buyer: the price in effect right now and what is left"""

    event: Event
    unit_price: int
    tier_name: Optional[str]
    availability: Availability


@attrs.define(frozen=True)
class PriceQuote:
    pricing: PricingBreakdown
    event_title: str
    promo_rejection: Optional[PromoRejection] = None  # None when no code was sent or it applied

    @property
    def promo_applied(self) -> bool:
        return self.pricing.promo_code is not None
