"""
Create Event Use Case

Catalog authoring: validates the event with its tiers and add-ons, persists it, then
registers the capacity counter with the availability ledger.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, List, Mapping, Optional

from src.platform.config.core_setting import settings
from src.platform.exception.exceptions import ConflictError
from src.platform.logging.loguru_io import Logger
from src.service.parking.app.interface.i_availability_ledger import IAvailabilityLedger
from src.service.parking.app.interface.i_event_command_repo import IEventCommandRepo
from src.service.parking.domain.entity.event_entity import Addon, Event, PriceTier


class CreateEventUseCase:
    def __init__(
        self,
        *,
        event_command_repo: IEventCommandRepo,
        availability_ledger: IAvailabilityLedger,
    ) -> None:
        self.event_command_repo = event_command_repo
        self.availability_ledger = availability_ledger

    @Logger.io
    async def execute(
        self,
        *,
        slug: str,
        title: str,
        starts_at: datetime,
        capacity: int,
        base_price: int,
        service_fee_pct: Decimal | float | str = Decimal('0'),
        tax_pct: Decimal | float | str = Decimal('0'),
        cutoff_hours: int = 0,
        timezone_name: Optional[str] = None,
        description: str = '',
        gates_open_at: Optional[datetime] = None,
        addons_enabled: bool = True,
        price_tiers: Optional[List[Mapping[str, Any]]] = None,
        addons: Optional[List[Mapping[str, Any]]] = None,
    ) -> Event:
        """
        Args:
            price_tiers: dicts with name, price and optional starts_at / ends_at, in
                precedence order (the first matching tier wins)
            addons: dicts with name and price

        Raises:
            ValidationError: invalid amounts, rates, timezone or tier windows
            ConflictError: slug already taken
        """
        tz_name = timezone_name or settings.DEFAULT_TIMEZONE
        event = Event.create(
            slug=slug,
            title=title,
            starts_at=starts_at,
            capacity=capacity,
            base_price=base_price,
            service_fee_pct=service_fee_pct,
            tax_pct=tax_pct,
            cutoff_hours=cutoff_hours,
            timezone_name=tz_name,
            description=description,
            gates_open_at=gates_open_at,
            addons_enabled=addons_enabled,
            price_tiers=[
                PriceTier.create(
                    name=tier['name'],
                    price=tier['price'],
                    starts_at=tier.get('starts_at'),
                    ends_at=tier.get('ends_at'),
                    tz_name=tz_name,
                )
                for tier in price_tiers or []
            ],
            addons=[
                Addon.create(name=addon['name'], price=addon['price']) for addon in addons or []
            ],
        )

        if await self.event_command_repo.exists_by_slug(slug=event.slug):
            raise ConflictError(f'Event slug {event.slug} already exists')

        created = await self.event_command_repo.create(event=event)
        await self.availability_ledger.register_event(
            event_id=created.id, capacity=created.capacity
        )
        Logger.base.info(
            f'📅 [CATALOG] Created event {created.slug} ({created.id}), '
            f'capacity {created.capacity}'
        )
        return created
