import asyncio
import time
from collections import defaultdict
from typing import Dict, Optional

from src.platform.config.core_setting import settings
from src.platform.exception.exceptions import (
    CapacityError,
    CapacityRejection,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from src.platform.logging.loguru_io import Logger
from src.platform.metrics.parking_metrics import metrics
from src.service.parking.app.dto.availability import Allocation, Availability
from src.service.parking.app.interface.i_availability_ledger import IAvailabilityLedger
from src.service.parking.app.interface.i_reservation_command_repo import IReservationCommandRepo
from src.service.parking.domain.entity.reservation_entity import Reservation


class InMemoryAvailabilityLedger(IAvailabilityLedger):
    """
    Single-process ledger for local runs and tests.

    Check-and-hold runs under a per-event asyncio.Lock, the same guarantee the SQL
    ledger gets from its conditional UPDATE. State is lost on restart.

    Reservation rows go through the repository while the event lock is held: the
    counter moves only after the row write (insert or hold_released flip) succeeded.
    """

    def __init__(
        self,
        *,
        reservation_command_repo: IReservationCommandRepo,
        max_per_order: int = settings.MAX_SPOTS_PER_ORDER,
    ) -> None:
        self.reservation_command_repo = reservation_command_repo
        self.max_per_order = max_per_order
        self._capacity: Dict[str, int] = {}
        self._consumed: Dict[str, int] = {}
        self._locks: Dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    @Logger.io
    async def register_event(self, *, event_id: str, capacity: int) -> None:
        if capacity < 1:
            raise ValidationError('Event capacity must be a positive integer')
        async with self._locks[event_id]:
            if event_id in self._capacity:
                raise ConflictError(f'Event {event_id} is already registered')
            self._capacity[event_id] = capacity
            self._consumed[event_id] = 0
        metrics.remaining_capacity.labels(event_id=event_id).set(capacity)

    @Logger.io
    async def update_capacity(self, *, event_id: str, capacity: int) -> Availability:
        async with self._locks[event_id]:
            current = self._snapshot(event_id)
            if capacity < current.consumed:
                raise ValidationError(
                    f'Capacity {capacity} is below the {current.consumed} spots held or sold'
                )
            self._capacity[event_id] = capacity
            availability = self._snapshot(event_id)
        metrics.remaining_capacity.labels(event_id=event_id).set(availability.remaining)
        return availability

    @Logger.io
    async def reserve(
        self, *, event_id: str, quantity: int, reservation: Optional[Reservation] = None
    ) -> Allocation:
        if quantity < 1:
            raise ValidationError('Quantity must be at least 1')

        start = time.perf_counter()
        async with self._locks[event_id]:
            current = self._snapshot(event_id)
            if quantity > self.max_per_order:
                self._record('reserve', 'over_limit', start, event_id, current.remaining)
                raise CapacityError(
                    reason=CapacityRejection.OVER_PER_ORDER_LIMIT,
                    remaining=current.remaining,
                    limit=self.max_per_order,
                )
            if current.is_sold_out:
                self._record('reserve', 'sold_out', start, event_id, 0)
                raise CapacityError(reason=CapacityRejection.SOLD_OUT, remaining=0)
            if quantity > current.remaining:
                self._record('reserve', 'insufficient', start, event_id, current.remaining)
                raise CapacityError(
                    reason=CapacityRejection.INSUFFICIENT_CAPACITY, remaining=current.remaining
                )

            if reservation is not None:
                await self.reservation_command_repo.create(reservation=reservation)
            self._consumed[event_id] += quantity
            remaining = current.remaining - quantity

        self._record('reserve', 'success', start, event_id, remaining)
        return Allocation(event_id=event_id, quantity=quantity, remaining=remaining)

    @Logger.io
    async def release(
        self, *, event_id: str, quantity: int, reservation_id: Optional[str] = None
    ) -> Availability:
        if quantity < 1:
            raise ValidationError('Quantity must be at least 1')

        start = time.perf_counter()
        async with self._locks[event_id]:
            current = self._snapshot(event_id)
            if reservation_id is not None and not (
                await self.reservation_command_repo.mark_hold_released(
                    reservation_id=reservation_id
                )
            ):
                self._record('release', 'duplicate', start, event_id, None)
                return current
            self._consumed[event_id] = max(0, self._consumed[event_id] - quantity)
            availability = self._snapshot(event_id)

        self._record('release', 'success', start, event_id, availability.remaining)
        return availability

    @Logger.io
    async def get_availability(self, *, event_id: str) -> Availability:
        return self._snapshot(event_id)

    def _snapshot(self, event_id: str) -> Availability:
        if event_id not in self._capacity:
            raise NotFoundError(f'No capacity record for event {event_id}')
        return Availability(
            event_id=event_id,
            capacity=self._capacity[event_id],
            consumed=self._consumed[event_id],
        )

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
