from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from src.service.parking.domain.entity.event_entity import Event


class IEventQueryRepo(ABC):
    """Catalog reads. Events are always returned with their tiers and add-ons"""

    @abstractmethod
    async def get_by_id(self, *, event_id: str) -> Optional[Event]:
        pass

    @abstractmethod
    async def get_by_slug(self, *, slug: str) -> Optional[Event]:
        pass

    @abstractmethod
    async def list_upcoming(self, *, now: datetime) -> List[Event]:
        """Events starting at or after `now`, soonest first"""
        pass
