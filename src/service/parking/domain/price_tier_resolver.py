"""
Price Tier Resolver

A tier is in effect when `now` falls inside its window, both bounds inclusive and
a missing bound open. When several tiers overlap the first one in the event's
declared order wins, so catalog authors control precedence by ordering. No
candidate means the event's base price applies.
"""

from datetime import datetime
from typing import Optional

from src.service.parking.domain.entity.event_entity import Event, PriceTier
from src.service.parking.domain.value_object.event_time import within_window


def resolve_active_tier(event: Event, now: datetime) -> Optional[PriceTier]:
    for tier in sorted(event.price_tiers, key=lambda t: t.position):
        if within_window(
            now, starts_at=tier.starts_at, ends_at=tier.ends_at, tz_name=event.timezone
        ):
            return tier
    return None


def resolve_unit_price(event: Event, now: datetime) -> tuple[int, Optional[str]]:
    """(unit price, tier name), the tier name is None when the base price applies"""
    tier = resolve_active_tier(event, now)
    if tier is None:
        return event.base_price, None
    return tier.price, tier.name
