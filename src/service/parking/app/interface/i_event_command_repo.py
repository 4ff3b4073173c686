from abc import ABC, abstractmethod

from src.service.parking.domain.entity.event_entity import Event


class IEventCommandRepo(ABC):
    @abstractmethod
    async def create(self, *, event: Event) -> Event:
        """Persist the event with its tiers and add-ons in declared order"""
        pass

    @abstractmethod
    async def exists_by_slug(self, *, slug: str) -> bool:
        pass
