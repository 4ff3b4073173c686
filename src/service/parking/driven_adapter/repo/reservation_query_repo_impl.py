from typing import AsyncContextManager, Callable, Dict, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.logging.loguru_io import Logger
from src.service.parking.app.interface.i_reservation_query_repo import IReservationQueryRepo
from src.service.parking.domain.entity.reservation_entity import Reservation
from src.service.parking.domain.enum.reservation_status import ReservationStatus
from src.service.parking.driven_adapter.model.reservation_model import ReservationModel
from src.service.parking.driven_adapter.repo.reservation_mapper import model_to_reservation


class ReservationQueryRepoImpl(IReservationQueryRepo):
    def __init__(self, session_factory: Callable[..., AsyncContextManager[AsyncSession]]):
        self.session_factory = session_factory

    @Logger.io
    async def get_by_id(self, *, reservation_id: str) -> Optional[Reservation]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(ReservationModel).where(ReservationModel.id == reservation_id)
            )
            model = result.scalar_one_or_none()
            return model_to_reservation(model) if model else None

    @Logger.io
    async def sum_quantity_by_status(self, *, event_id: str) -> Dict[ReservationStatus, int]:
        async with self.session_factory() as session:
            summed = func.coalesce(func.sum(ReservationModel.quantity), 0)
            result = await session.execute(
                select(ReservationModel.status, summed)
                .where(ReservationModel.event_id == event_id)
                .group_by(ReservationModel.status)
            )
            totals = {status: 0 for status in ReservationStatus}
            for status, quantity in result.all():
                totals[ReservationStatus(status)] = int(quantity)
            return totals
