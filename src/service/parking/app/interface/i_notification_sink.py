from abc import ABC, abstractmethod

from src.service.parking.domain.entity.event_entity import Event
from src.service.parking.domain.entity.reservation_entity import Reservation


class INotificationSink(ABC):
    @abstractmethod
    async def send_reservation_confirmation(
        self, *, reservation: Reservation, event: Event
    ) -> None:
        pass
