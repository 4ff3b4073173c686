from datetime import datetime
from typing import Optional

from src.service.parking.app.interface.i_promo_code_repo import IPromoCodeRepo
from src.service.parking.domain.entity.promo_code_entity import normalize_code
from src.service.parking.domain.promo_code_validator import NO_PROMO, PromoResult, validate_promo


async def lookup_promo(
    promo_code_repo: IPromoCodeRepo, *, code: Optional[str], now: datetime, tz_name: str
) -> PromoResult:
    """Fetch and validate a buyer-entered code; blank input short-circuits without I/O"""
    normalized = normalize_code(code)
    if not normalized:
        return NO_PROMO
    promo = await promo_code_repo.get_by_code(code=normalized)
    return validate_promo(promo, now=now, tz_name=tz_name, code=normalized)
