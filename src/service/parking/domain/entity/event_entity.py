from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import List, Optional

import attrs

from src.platform.exception.exceptions import ValidationError
from src.platform.logging.loguru_io import Logger
from src.platform.types.uuid7_id import new_id
from src.service.parking.domain.value_object.event_time import get_zone, to_event_time
from src.service.parking.domain.value_object.money import to_rate


@attrs.define
class PriceTier:
    name: str
    price: int
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None
    position: int = 0
    event_id: Optional[str] = None
    id: str = attrs.field(factory=new_id)

    @classmethod
    @Logger.io
    def create(
        cls,
        *,
        name: str,
        price: int,
        starts_at: Optional[datetime] = None,
        ends_at: Optional[datetime] = None,
        position: int = 0,
        tz_name: str = 'UTC',
    ) -> 'PriceTier':
        if not name or not name.strip():
            raise ValidationError('Price tier name is required')
        if price < 0:
            raise ValidationError('Price tier price must not be negative')
        validate_tier_window(starts_at=starts_at, ends_at=ends_at, tz_name=tz_name)
        return cls(
            name=name.strip(),
            price=price,
            starts_at=starts_at,
            ends_at=ends_at,
            position=position,
        )


def validate_tier_window(
    *, starts_at: Optional[datetime], ends_at: Optional[datetime], tz_name: str
) -> None:
    """Catalog-write check, resolution never sees a reversed window"""
    if starts_at is None or ends_at is None:
        return
    if to_event_time(starts_at, tz_name) > to_event_time(ends_at, tz_name):
        raise ValidationError('Price tier start must not be after its end')


@attrs.define
class Addon:
    name: str
    price: int
    position: int = 0
    event_id: Optional[str] = None
    id: str = attrs.field(factory=new_id)

    @classmethod
    @Logger.io
    def create(cls, *, name: str, price: int, position: int = 0) -> 'Addon':
        if not name or not name.strip():
            raise ValidationError('Add-on name is required')
        if price < 0:
            raise ValidationError('Add-on price must not be negative')
        return cls(name=name.strip(), price=price, position=position)


@attrs.define
class Event:
    slug: str
    title: str
    starts_at: datetime
    capacity: int
    base_price: int
    service_fee_pct: Decimal
    tax_pct: Decimal
    cutoff_hours: int
    timezone: str
    description: str = ''
    gates_open_at: Optional[datetime] = None
    addons_enabled: bool = True
    price_tiers: List[PriceTier] = attrs.field(factory=list)
    addons: List[Addon] = attrs.field(factory=list)
    id: str = attrs.field(factory=new_id)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    @Logger.io
    def create(
        cls,
        *,
        slug: str,
        title: str,
        starts_at: datetime,
        capacity: int,
        base_price: int,
        service_fee_pct: Decimal | float | str,
        tax_pct: Decimal | float | str,
        cutoff_hours: int,
        timezone_name: str,
        description: str = '',
        gates_open_at: Optional[datetime] = None,
        addons_enabled: bool = True,
        price_tiers: Optional[List[PriceTier]] = None,
        addons: Optional[List[Addon]] = None,
    ) -> 'Event':
        if not slug or not slug.strip():
            raise ValidationError('Event slug is required')
        if not title or not title.strip():
            raise ValidationError('Event title is required')
        if capacity < 1:
            raise ValidationError('Event capacity must be a positive integer')
        if base_price < 0:
            raise ValidationError('Event base price must not be negative')
        if cutoff_hours < 0:
            raise ValidationError('Cutoff hours must not be negative')
        get_zone(timezone_name)

        event_id = new_id()
        tiers = list(price_tiers or [])
        for position, tier in enumerate(tiers):
            validate_tier_window(
                starts_at=tier.starts_at, ends_at=tier.ends_at, tz_name=timezone_name
            )
            # Pin naive wall-clock bounds to the event zone before they are stored
            if tier.starts_at is not None:
                tier.starts_at = to_event_time(tier.starts_at, timezone_name)
            if tier.ends_at is not None:
                tier.ends_at = to_event_time(tier.ends_at, timezone_name)
            tier.event_id = event_id
            tier.position = position
        event_addons = list(addons or [])
        for position, addon in enumerate(event_addons):
            addon.event_id = event_id
            addon.position = position

        now = datetime.now(timezone.utc)
        return cls(
            id=event_id,
            slug=slug.strip().lower(),
            title=title.strip(),
            description=description,
            starts_at=to_event_time(starts_at, timezone_name),
            gates_open_at=to_event_time(gates_open_at, timezone_name) if gates_open_at else None,
            capacity=capacity,
            base_price=base_price,
            service_fee_pct=to_rate(service_fee_pct, field='service_fee_pct'),
            tax_pct=to_rate(tax_pct, field='tax_pct'),
            cutoff_hours=cutoff_hours,
            timezone=timezone_name,
            addons_enabled=addons_enabled,
            price_tiers=tiers,
            addons=event_addons,
            created_at=now,
            updated_at=now,
        )

    @property
    def refund_cutoff(self) -> datetime:
        """Last instant a paid reservation may still be refunded"""
        return to_event_time(self.starts_at, self.timezone) - timedelta(hours=self.cutoff_hours)

    def find_addons(self, addon_ids: List[str]) -> List[Addon]:
        """Resolve ids against this event's add-ons, keeping request order"""
        by_id = {addon.id: addon for addon in self.addons}
        unknown = [addon_id for addon_id in addon_ids if addon_id not in by_id]
        if unknown:
            raise ValidationError(f'Add-ons do not belong to this event: {", ".join(unknown)}')
        if addon_ids and not self.addons_enabled:
            raise ValidationError('Add-ons are not available for this event')
        if len(set(addon_ids)) != len(addon_ids):
            raise ValidationError('Each add-on can only be selected once')
        return [by_id[addon_id] for addon_id in addon_ids]
