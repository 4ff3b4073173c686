from datetime import datetime
from typing import AsyncContextManager, Callable, List, Optional

from sqlalchemy import select, update as sql_update
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.logging.loguru_io import Logger
from src.service.parking.app.interface.i_reservation_command_repo import IReservationCommandRepo
from src.service.parking.domain.entity.reservation_entity import Reservation
from src.service.parking.domain.enum.reservation_status import (
    HOLD_RELEASING_STATUSES,
    ReservationStatus,
)
from src.service.parking.domain.value_object.event_time import as_utc
from src.service.parking.driven_adapter.model.reservation_model import ReservationModel
from src.service.parking.driven_adapter.repo.reservation_mapper import (
    model_to_reservation,
    reservation_to_model,
)


def claim_hold_release(reservation_id: str):
    """UPDATE that flips hold_released once, RETURNING the id only for the caller that flipped it"""
    return (
        sql_update(ReservationModel)
        .where(
            ReservationModel.id == reservation_id,
            ReservationModel.status.in_([status.value for status in HOLD_RELEASING_STATUSES]),
            ReservationModel.hold_released.is_(False),
        )
        .values(hold_released=True)
        .returning(ReservationModel.id)
        .execution_options(synchronize_session=False)
    )


class ReservationCommandRepoImpl(IReservationCommandRepo):
    def __init__(self, session_factory: Callable[..., AsyncContextManager[AsyncSession]]):
        self.session_factory = session_factory

    @Logger.io
    async def create(self, *, reservation: Reservation) -> Reservation:
        async with self.session_factory() as session:
            session.add(reservation_to_model(reservation))
            await session.commit()
            return reservation

    @Logger.io
    async def get_by_id(self, *, reservation_id: str) -> Optional[Reservation]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(ReservationModel).where(ReservationModel.id == reservation_id)
            )
            model = result.scalar_one_or_none()
            return model_to_reservation(model) if model else None

    @Logger.io
    async def get_by_payment_session_id(self, *, session_id: str) -> Optional[Reservation]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(ReservationModel).where(ReservationModel.payment_session_id == session_id)
            )
            model = result.scalar_one_or_none()
            return model_to_reservation(model) if model else None

    @Logger.io
    async def set_payment_session(self, *, reservation_id: str, session_id: str) -> None:
        async with self.session_factory() as session:
            await session.execute(
                sql_update(ReservationModel)
                .where(ReservationModel.id == reservation_id)
                .values(payment_session_id=session_id)
                .execution_options(synchronize_session=False)
            )
            await session.commit()

    @Logger.io
    async def transition_status(
        self, *, reservation: Reservation, expected_status: ReservationStatus
    ) -> bool:
        async with self.session_factory() as session:
            stmt = (
                sql_update(ReservationModel)
                .where(
                    ReservationModel.id == reservation.id,
                    ReservationModel.status == expected_status.value,
                )
                .values(
                    status=reservation.status.value,
                    updated_at=as_utc(reservation.updated_at),
                    paid_at=as_utc(reservation.paid_at),
                    canceled_at=as_utc(reservation.canceled_at),
                    refunded_at=as_utc(reservation.refunded_at),
                )
                .returning(ReservationModel.id)
                .execution_options(synchronize_session=False)
            )
            won = (await session.execute(stmt)).scalar_one_or_none() is not None
            await session.commit()
            return won

    @Logger.io
    async def mark_hold_released(self, *, reservation_id: str) -> bool:
        async with self.session_factory() as session:
            won = (
                await session.execute(claim_hold_release(reservation_id))
            ).scalar_one_or_none() is not None
            await session.commit()
            return won

    @Logger.io
    async def list_unreleased_holds(self, *, limit: int = 100) -> List[Reservation]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(ReservationModel)
                .where(
                    ReservationModel.status.in_(
                        [status.value for status in HOLD_RELEASING_STATUSES]
                    ),
                    ReservationModel.hold_released.is_(False),
                )
                .order_by(ReservationModel.updated_at.asc())
                .limit(limit)
            )
            return [model_to_reservation(model) for model in result.scalars().all()]

    @Logger.io
    async def list_expired_holds(self, *, now: datetime, limit: int = 100) -> List[Reservation]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(ReservationModel)
                .where(
                    ReservationModel.status == ReservationStatus.PENDING.value,
                    ReservationModel.hold_expires_at < as_utc(now),
                )
                .order_by(ReservationModel.hold_expires_at.asc())
                .limit(limit)
            )
            return [model_to_reservation(model) for model in result.scalars().all()]
