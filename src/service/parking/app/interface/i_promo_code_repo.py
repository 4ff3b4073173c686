from abc import ABC, abstractmethod
from typing import Optional

from src.service.parking.domain.entity.promo_code_entity import PromoCode


class IPromoCodeRepo(ABC):
    @abstractmethod
    async def get_by_code(self, *, code: str) -> Optional[PromoCode]:
        """Lookup by normalised (upper-case) code"""
        pass

    @abstractmethod
    async def create(self, *, promo_code: PromoCode) -> PromoCode:
        pass

    @abstractmethod
    async def increment_usage_atomically(self, *, promo_code_id: str) -> bool:
        """
        Add one use if the code is still under its cap.

        Returns:
            False when max_uses is already reached (or the code is gone), in which
            case nothing is written.
        """
        pass
