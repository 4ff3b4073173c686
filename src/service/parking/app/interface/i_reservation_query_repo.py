from abc import ABC, abstractmethod
from typing import Dict, Optional

from src.service.parking.domain.entity.reservation_entity import Reservation
from src.service.parking.domain.enum.reservation_status import ReservationStatus


class IReservationQueryRepo(ABC):
    @abstractmethod
    async def get_by_id(self, *, reservation_id: str) -> Optional[Reservation]:
        pass

    @abstractmethod
    async def sum_quantity_by_status(self, *, event_id: str) -> Dict[ReservationStatus, int]:
        pass
