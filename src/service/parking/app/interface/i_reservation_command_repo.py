from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from src.service.parking.domain.entity.reservation_entity import Reservation
from src.service.parking.domain.enum.reservation_status import ReservationStatus


class IReservationCommandRepo(ABC):
    @abstractmethod
    async def create(self, *, reservation: Reservation) -> Reservation:
        pass

    @abstractmethod
    async def get_by_id(self, *, reservation_id: str) -> Optional[Reservation]:
        pass

    @abstractmethod
    async def get_by_payment_session_id(self, *, session_id: str) -> Optional[Reservation]:
        pass

    @abstractmethod
    async def set_payment_session(self, *, reservation_id: str, session_id: str) -> None:
        pass

    @abstractmethod
    async def transition_status(
        self, *, reservation: Reservation, expected_status: ReservationStatus
    ) -> bool:
        """
        Compare-and-set: write `reservation`'s status and timestamps only if the stored
        status still equals `expected_status`.

        Returns:
            True when this caller won the transition, False when someone else already
            moved the reservation.
        """
        pass

    @abstractmethod
    async def mark_hold_released(self, *, reservation_id: str) -> bool:
        """
        Flip hold_released on a CANCELED or REFUNDED reservation.

        Returns:
            False when the flag was already set or the reservation still holds its
            spots legitimately (PENDING, PAID)
        """
        pass

    @abstractmethod
    async def list_expired_holds(self, *, now: datetime, limit: int = 100) -> List[Reservation]:
        """PENDING reservations whose hold expired before `now`, oldest first"""
        pass

    @abstractmethod
    async def list_unreleased_holds(self, *, limit: int = 100) -> List[Reservation]:
        """CANCELED or REFUNDED reservations whose spots were never given back"""
        pass
