"""
Event Query Repository Implementation - catalog read side
"""

from datetime import datetime
from typing import AsyncContextManager, Callable, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.logging.loguru_io import Logger
from src.service.parking.app.interface.i_event_query_repo import IEventQueryRepo
from src.service.parking.domain.entity.event_entity import Addon, Event, PriceTier
from src.service.parking.domain.value_object.event_time import as_utc
from src.service.parking.driven_adapter.model.event_model import (
    AddonModel,
    EventModel,
    PriceTierModel,
)


class EventQueryRepoImpl(IEventQueryRepo):
    def __init__(self, session_factory: Callable[..., AsyncContextManager[AsyncSession]]):
        self.session_factory = session_factory

    @staticmethod
    def _model_to_tier(model: PriceTierModel) -> PriceTier:
        return PriceTier(
            id=model.id,
            event_id=model.event_id,
            name=model.name,
            price=model.price,
            starts_at=as_utc(model.starts_at),
            ends_at=as_utc(model.ends_at),
            position=model.position,
        )

    @staticmethod
    def _model_to_addon(model: AddonModel) -> Addon:
        return Addon(
            id=model.id,
            event_id=model.event_id,
            name=model.name,
            price=model.price,
            position=model.position,
        )

    def _model_to_event(self, model: EventModel) -> Event:
        return Event(
            id=model.id,
            slug=model.slug,
            title=model.title,
            description=model.description,
            starts_at=as_utc(model.starts_at),  # type: ignore[arg-type]
            gates_open_at=as_utc(model.gates_open_at),
            timezone=model.timezone,
            capacity=model.capacity,
            base_price=model.base_price,
            service_fee_pct=model.service_fee_pct,
            tax_pct=model.tax_pct,
            cutoff_hours=model.cutoff_hours,
            addons_enabled=model.addons_enabled,
            price_tiers=[self._model_to_tier(tier) for tier in model.price_tiers],
            addons=[self._model_to_addon(addon) for addon in model.addons],
            created_at=as_utc(model.created_at),
            updated_at=as_utc(model.updated_at),
        )

    @Logger.io
    async def get_by_id(self, *, event_id: str) -> Optional[Event]:
        async with self.session_factory() as session:
            result = await session.execute(select(EventModel).where(EventModel.id == event_id))
            model = result.scalar_one_or_none()
            return self._model_to_event(model) if model else None

    @Logger.io
    async def get_by_slug(self, *, slug: str) -> Optional[Event]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(EventModel).where(EventModel.slug == slug.strip().lower())
            )
            model = result.scalar_one_or_none()
            return self._model_to_event(model) if model else None

    @Logger.io
    async def list_upcoming(self, *, now: datetime) -> List[Event]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(EventModel)
                .where(EventModel.starts_at >= as_utc(now))
                .order_by(EventModel.starts_at.asc())
            )
            return [self._model_to_event(model) for model in result.scalars().all()]
