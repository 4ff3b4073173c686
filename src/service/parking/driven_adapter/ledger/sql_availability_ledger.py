"""
SQL Availability Ledger

Check-and-hold is a single conditional UPDATE on the event_capacity row:

    UPDATE event_capacity
       SET consumed = consumed + :q
     WHERE event_id = :id AND consumed + :q <= capacity
    RETURNING capacity, consumed

The database row lock serialises concurrent holds for one event, so the counter
can never pass capacity. Zero rows updated means the hold was refused, and a
follow-up read tells SOLD_OUT apart from INSUFFICIENT_CAPACITY.

Every operation is one transaction. A reservation handed to `reserve` is inserted
in the transaction that takes its hold, and a reservation-bound `release` flips
reservation.hold_released in the transaction that decrements the counter. A crash
between steps therefore never leaves a hold without a row, or a canceled row whose
spots are lost.
"""

import time
from typing import AsyncContextManager, Callable, Optional

from sqlalchemy import case, select, update as sql_update
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.config.core_setting import settings
from src.platform.exception.exceptions import (
    CapacityError,
    CapacityRejection,
    NotFoundError,
    ValidationError,
)
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.parking_metrics import metrics
from src.service.parking.app.dto.availability import Allocation, Availability
from src.service.parking.app.interface.i_availability_ledger import IAvailabilityLedger
from src.service.parking.domain.entity.reservation_entity import Reservation
from src.service.parking.driven_adapter.model.event_capacity_model import EventCapacityModel
from src.service.parking.driven_adapter.repo.reservation_command_repo_impl import (
    claim_hold_release,
)
from src.service.parking.driven_adapter.repo.reservation_mapper import reservation_to_model


class SqlAvailabilityLedger(IAvailabilityLedger):
    def __init__(
        self,
        *,
        session_factory: Callable[..., AsyncContextManager[AsyncSession]],
        max_per_order: int = settings.MAX_SPOTS_PER_ORDER,
    ) -> None:
        self.session_factory = session_factory
        self.max_per_order = max_per_order

    @Logger.io
    async def register_event(self, *, event_id: str, capacity: int) -> None:
        if capacity < 1:
            raise ValidationError('Event capacity must be a positive integer')
        async with self.session_factory() as session:
            session.add(EventCapacityModel(event_id=event_id, capacity=capacity, consumed=0))
            await session.commit()
        metrics.remaining_capacity.labels(event_id=event_id).set(capacity)

    @Logger.io
    async def update_capacity(self, *, event_id: str, capacity: int) -> Availability:
        async with self.session_factory() as session:
            stmt = (
                sql_update(EventCapacityModel)
                .where(
                    EventCapacityModel.event_id == event_id,
                    EventCapacityModel.consumed <= capacity,
                )
                .values(capacity=capacity)
                .returning(EventCapacityModel.capacity, EventCapacityModel.consumed)
                .execution_options(synchronize_session=False)
            )
            row = (await session.execute(stmt)).one_or_none()
            if row is None:
                await session.rollback()
                current = await self._read(session, event_id=event_id)
                raise ValidationError(
                    f'Capacity {capacity} is below the {current.consumed} spots held or sold'
                )
            await session.commit()

        availability = Availability(event_id=event_id, capacity=row.capacity, consumed=row.consumed)
        metrics.remaining_capacity.labels(event_id=event_id).set(availability.remaining)
        return availability

    @Logger.io
    async def reserve(
        self, *, event_id: str, quantity: int, reservation: Optional[Reservation] = None
    ) -> Allocation:
        if quantity < 1:
            raise ValidationError('Quantity must be at least 1')

        start = time.perf_counter()
        if quantity > self.max_per_order:
            current = await self.get_availability(event_id=event_id)
            self._record('reserve', 'over_limit', start, event_id, current.remaining)
            raise CapacityError(
                reason=CapacityRejection.OVER_PER_ORDER_LIMIT,
                remaining=current.remaining,
                limit=self.max_per_order,
            )

        async with self.session_factory() as session:
            stmt = (
                sql_update(EventCapacityModel)
                .where(
                    EventCapacityModel.event_id == event_id,
                    EventCapacityModel.consumed + quantity <= EventCapacityModel.capacity,
                )
                .values(consumed=EventCapacityModel.consumed + quantity)
                .returning(EventCapacityModel.capacity, EventCapacityModel.consumed)
                .execution_options(synchronize_session=False)
            )
            row = (await session.execute(stmt)).one_or_none()

            if row is None:
                await session.rollback()
                current = await self._read(session, event_id=event_id)
                if current.is_sold_out:
                    self._record('reserve', 'sold_out', start, event_id, 0)
                    raise CapacityError(reason=CapacityRejection.SOLD_OUT, remaining=0)
                self._record('reserve', 'insufficient', start, event_id, current.remaining)
                raise CapacityError(
                    reason=CapacityRejection.INSUFFICIENT_CAPACITY, remaining=current.remaining
                )

            if reservation is not None:
                session.add(reservation_to_model(reservation))
            await session.commit()

        remaining = row.capacity - row.consumed
        self._record('reserve', 'success', start, event_id, remaining)
        Logger.base.info(f'🅿️ [LEDGER] Held {quantity} for event {event_id}, {remaining} left')
        return Allocation(event_id=event_id, quantity=quantity, remaining=remaining)

    @Logger.io
    async def release(
        self, *, event_id: str, quantity: int, reservation_id: Optional[str] = None
    ) -> Availability:
        if quantity < 1:
            raise ValidationError('Quantity must be at least 1')

        start = time.perf_counter()
        async with self.session_factory() as session:
            if reservation_id is not None:
                claimed = (
                    await session.execute(claim_hold_release(reservation_id))
                ).scalar_one_or_none()
                if claimed is None:
                    await session.rollback()
                    Logger.base.info(
                        f'🔁 [LEDGER] Hold of reservation {reservation_id} already released'
                    )
                    self._record('release', 'duplicate', start, event_id, None)
                    return await self._read(session, event_id=event_id)

            stmt = (
                sql_update(EventCapacityModel)
                .where(EventCapacityModel.event_id == event_id)
                .values(
                    consumed=case(
                        (
                            EventCapacityModel.consumed >= quantity,
                            EventCapacityModel.consumed - quantity,
                        ),
                        else_=0,
                    )
                )
                .returning(EventCapacityModel.capacity, EventCapacityModel.consumed)
                .execution_options(synchronize_session=False)
            )
            row = (await session.execute(stmt)).one_or_none()
            if row is None:
                await session.rollback()
                raise NotFoundError(f'No capacity record for event {event_id}')
            await session.commit()

        availability = Availability(event_id=event_id, capacity=row.capacity, consumed=row.consumed)
        self._record('release', 'success', start, event_id, availability.remaining)
        Logger.base.info(
            f'🔓 [LEDGER] Released {quantity} for event {event_id}, {availability.remaining} left'
        )
        return availability

    @Logger.io
    async def get_availability(self, *, event_id: str) -> Availability:
        async with self.session_factory() as session:
            return await self._read(session, event_id=event_id)

    @staticmethod
    async def _read(session: AsyncSession, *, event_id: str) -> Availability:
        result = await session.execute(
            select(EventCapacityModel.capacity, EventCapacityModel.consumed).where(
                EventCapacityModel.event_id == event_id
            )
        )
        row = result.one_or_none()
        if row is None:
            raise NotFoundError(f'No capacity record for event {event_id}')
        return Availability(event_id=event_id, capacity=row.capacity, consumed=row.consumed)

    @staticmethod
    def _record(
        operation: str, result: str, start: float, event_id: str, remaining: int | None
    ) -> None:
        metrics.record_ledger_operation(
            operation=operation,
            result=result,
            duration=time.perf_counter() - start,
            event_id=event_id,
            remaining=remaining,
        )
