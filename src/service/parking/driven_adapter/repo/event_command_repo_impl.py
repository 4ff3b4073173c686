from typing import AsyncContextManager, Callable

from sqlalchemy import exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.logging.loguru_io import Logger
from src.service.parking.app.interface.i_event_command_repo import IEventCommandRepo
from src.service.parking.domain.entity.event_entity import Event
from src.service.parking.domain.value_object.event_time import as_utc
from src.service.parking.driven_adapter.model.event_model import (
    AddonModel,
    EventModel,
    PriceTierModel,
)


class EventCommandRepoImpl(IEventCommandRepo):
    def __init__(self, session_factory: Callable[..., AsyncContextManager[AsyncSession]]):
        self.session_factory = session_factory

    @Logger.io
    async def create(self, *, event: Event) -> Event:
        async with self.session_factory() as session:
            model = EventModel(
                id=event.id,
                slug=event.slug,
                title=event.title,
                description=event.description,
                starts_at=as_utc(event.starts_at),
                gates_open_at=as_utc(event.gates_open_at),
                timezone=event.timezone,
                capacity=event.capacity,
                base_price=event.base_price,
                service_fee_pct=event.service_fee_pct,
                tax_pct=event.tax_pct,
                cutoff_hours=event.cutoff_hours,
                addons_enabled=event.addons_enabled,
                price_tiers=[
                    PriceTierModel(
                        id=tier.id,
                        name=tier.name,
                        price=tier.price,
                        starts_at=as_utc(tier.starts_at),
                        ends_at=as_utc(tier.ends_at),
                        position=tier.position,
                    )
                    for tier in event.price_tiers
                ],
                addons=[
                    AddonModel(
                        id=addon.id, name=addon.name, price=addon.price, position=addon.position
                    )
                    for addon in event.addons
                ],
            )
            session.add(model)
            await session.commit()
            return event

    @Logger.io
    async def exists_by_slug(self, *, slug: str) -> bool:
        async with self.session_factory() as session:
            result = await session.execute(select(exists().where(EventModel.slug == slug)))
            return bool(result.scalar())
