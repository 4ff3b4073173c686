from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

import attrs

from src.platform.exception.exceptions import ValidationError
from src.platform.logging.loguru_io import Logger
from src.platform.types.uuid7_id import new_id
from src.service.parking.domain.value_object.event_time import as_utc
from src.service.parking.domain.value_object.money import ZERO_RATE, apply_rate, to_rate


def normalize_code(code: Optional[str]) -> str:
    return (code or '').strip().upper()


@attrs.define
class PromoCode:
    """Global discount code, exactly one of percent_off / amount_off is set"""

    code: str
    percent_off: Optional[Decimal] = None
    amount_off: Optional[int] = None
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None
    max_uses: Optional[int] = None
    used: int = 0
    id: str = attrs.field(factory=new_id)
    created_at: Optional[datetime] = None

    @classmethod
    @Logger.io
    def create(
        cls,
        *,
        code: str,
        percent_off: Decimal | float | str | None = None,
        amount_off: Optional[int] = None,
        starts_at: Optional[datetime] = None,
        ends_at: Optional[datetime] = None,
        max_uses: Optional[int] = None,
    ) -> 'PromoCode':
        normalized = normalize_code(code)
        if not normalized:
            raise ValidationError('Promo code is required')
        if (percent_off is None) == (amount_off is None):
            raise ValidationError('Promo code needs exactly one of percent_off or amount_off')

        percent: Optional[Decimal] = None
        if percent_off is not None:
            percent = to_rate(percent_off, field='percent_off')
            if percent == ZERO_RATE:
                raise ValidationError('percent_off must be greater than 0')
        if amount_off is not None and amount_off <= 0:
            raise ValidationError('amount_off must be a positive amount of cents')
        if starts_at and ends_at and as_utc(starts_at) > as_utc(ends_at):
            raise ValidationError('Promo code start must not be after its end')
        if max_uses is not None and max_uses < 1:
            raise ValidationError('max_uses must be at least 1')

        return cls(
            code=normalized,
            percent_off=percent,
            amount_off=amount_off,
            starts_at=starts_at,
            ends_at=ends_at,
            max_uses=max_uses,
            used=0,
            created_at=datetime.now(timezone.utc),
        )

    @property
    def is_exhausted(self) -> bool:
        return self.max_uses is not None and self.used >= self.max_uses

    def discount_for(self, gross: int) -> int:
        """Nominal discount, may exceed gross; the caller floors the subtotal at zero"""
        if self.percent_off is not None:
            return apply_rate(gross, self.percent_off)
        return self.amount_off or 0
