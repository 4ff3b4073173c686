from abc import ABC, abstractmethod
from typing import Optional

from src.service.parking.app.dto.availability import Allocation, Availability
from src.service.parking.domain.entity.reservation_entity import Reservation


class IAvailabilityLedger(ABC):
    """
    Sole owner of the per-event consumed-capacity counter.

    `reserve` is an indivisible check-and-hold: concurrent calls for the same event
    are serialised, so the counter never passes capacity. Holds are durable when
    `reserve` returns.

    Reservation-bound calls keep the counter and the reservation rows in step: a
    hold is recorded together with its PENDING row, and a release flips the row's
    hold_released flag in the same step as the decrement, so retrying a release
    never gives the same spots back twice.
    """

    @abstractmethod
    async def register_event(self, *, event_id: str, capacity: int) -> None:
        pass

    @abstractmethod
    async def update_capacity(self, *, event_id: str, capacity: int) -> Availability:
        """Administrative change, refused below what is already consumed"""
        pass

    @abstractmethod
    async def reserve(
        self, *, event_id: str, quantity: int, reservation: Optional[Reservation] = None
    ) -> Allocation:
        """
        Args:
            reservation: PENDING reservation to store with the hold; a refused hold
                stores nothing

        Raises:
            CapacityError: SOLD_OUT, INSUFFICIENT_CAPACITY or OVER_PER_ORDER_LIMIT
            NotFoundError: event has no capacity record
        """
        pass

    @abstractmethod
    async def release(
        self, *, event_id: str, quantity: int, reservation_id: Optional[str] = None
    ) -> Availability:
        """
        Give capacity back, floored at zero consumed.

        With `reservation_id` the release happens at most once per reservation, and
        only after it reached CANCELED or REFUNDED; later calls change nothing.
        """
        pass

    @abstractmethod
    async def get_availability(self, *, event_id: str) -> Availability:
        pass
