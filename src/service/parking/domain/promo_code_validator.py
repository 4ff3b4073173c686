"""
Promo Code Validator

Invalid codes never fail a booking. The result is either ValidPromo or NoPromo with
the reason, and the caller simply prices without a discount on NoPromo.
"""

from datetime import datetime
from typing import Optional, Union

import attrs

from src.service.parking.domain.entity.promo_code_entity import PromoCode
from src.service.parking.domain.enum.promo_rejection import PromoRejection
from src.service.parking.domain.value_object.event_time import to_event_time


@attrs.define(frozen=True)
class ValidPromo:
    promo: PromoCode


@attrs.define(frozen=True)
class NoPromo:
    reason: PromoRejection
    code: str = ''


PromoResult = Union[ValidPromo, NoPromo]

NO_PROMO = NoPromo(reason=PromoRejection.EMPTY)


def validate_promo(
    promo: Optional[PromoCode], *, now: datetime, tz_name: str, code: str = ''
) -> PromoResult:
    if promo is None:
        return NoPromo(reason=PromoRejection.NOT_FOUND if code else PromoRejection.EMPTY, code=code)

    local_now = to_event_time(now, tz_name)
    if promo.starts_at is not None and local_now < to_event_time(promo.starts_at, tz_name):
        return NoPromo(reason=PromoRejection.NOT_STARTED, code=promo.code)
    if promo.ends_at is not None and local_now > to_event_time(promo.ends_at, tz_name):
        return NoPromo(reason=PromoRejection.EXPIRED, code=promo.code)
    if promo.is_exhausted:
        return NoPromo(reason=PromoRejection.EXHAUSTED, code=promo.code)
    return ValidPromo(promo=promo)
