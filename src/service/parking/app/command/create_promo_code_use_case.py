from datetime import datetime
from decimal import Decimal
from typing import Optional

from src.platform.config.core_setting import settings
from src.platform.exception.exceptions import ConflictError
from src.platform.logging.loguru_io import Logger
from src.service.parking.app.interface.i_promo_code_repo import IPromoCodeRepo
from src.service.parking.domain.entity.promo_code_entity import PromoCode
from src.service.parking.domain.value_object.event_time import to_event_time


class CreatePromoCodeUseCase:
    def __init__(self, *, promo_code_repo: IPromoCodeRepo) -> None:
        self.promo_code_repo = promo_code_repo

    @Logger.io
    async def execute(
        self,
        *,
        code: str,
        percent_off: Decimal | float | str | None = None,
        amount_off: Optional[int] = None,
        starts_at: Optional[datetime] = None,
        ends_at: Optional[datetime] = None,
        max_uses: Optional[int] = None,
    ) -> PromoCode:
        # Codes are global, naive bounds are read in the business's home timezone
        tz_name = settings.DEFAULT_TIMEZONE
        promo = PromoCode.create(
            code=code,
            percent_off=percent_off,
            amount_off=amount_off,
            starts_at=to_event_time(starts_at, tz_name) if starts_at else None,
            ends_at=to_event_time(ends_at, tz_name) if ends_at else None,
            max_uses=max_uses,
        )
        if await self.promo_code_repo.get_by_code(code=promo.code) is not None:
            raise ConflictError(f'Promo code {promo.code} already exists')
        return await self.promo_code_repo.create(promo_code=promo)
