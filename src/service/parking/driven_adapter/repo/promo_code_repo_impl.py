from typing import AsyncContextManager, Callable, Optional

from sqlalchemy import or_, select, update as sql_update
from sqlalchemy.ext.asyncio import AsyncSession

from src.platform.logging.loguru_io import Logger
from src.service.parking.app.interface.i_promo_code_repo import IPromoCodeRepo
from src.service.parking.domain.entity.promo_code_entity import PromoCode, normalize_code
from src.service.parking.domain.value_object.event_time import as_utc
from src.service.parking.driven_adapter.model.promo_code_model import PromoCodeModel


class PromoCodeRepoImpl(IPromoCodeRepo):
    def __init__(self, session_factory: Callable[..., AsyncContextManager[AsyncSession]]):
        self.session_factory = session_factory

    @staticmethod
    def _model_to_entity(model: PromoCodeModel) -> PromoCode:
        return PromoCode(
            id=model.id,
            code=model.code,
            percent_off=model.percent_off,
            amount_off=model.amount_off,
            starts_at=as_utc(model.starts_at),
            ends_at=as_utc(model.ends_at),
            max_uses=model.max_uses,
            used=model.used,
            created_at=as_utc(model.created_at),
        )

    @Logger.io
    async def get_by_code(self, *, code: str) -> Optional[PromoCode]:
        async with self.session_factory() as session:
            result = await session.execute(
                select(PromoCodeModel).where(PromoCodeModel.code == normalize_code(code))
            )
            model = result.scalar_one_or_none()
            return self._model_to_entity(model) if model else None

    @Logger.io
    async def create(self, *, promo_code: PromoCode) -> PromoCode:
        async with self.session_factory() as session:
            session.add(
                PromoCodeModel(
                    id=promo_code.id,
                    code=promo_code.code,
                    percent_off=promo_code.percent_off,
                    amount_off=promo_code.amount_off,
                    starts_at=as_utc(promo_code.starts_at),
                    ends_at=as_utc(promo_code.ends_at),
                    max_uses=promo_code.max_uses,
                    used=promo_code.used,
                )
            )
            await session.commit()
            return promo_code

    @Logger.io
    async def increment_usage_atomically(self, *, promo_code_id: str) -> bool:
        """Single conditional UPDATE, the cap check and the increment cannot interleave"""
        async with self.session_factory() as session:
            stmt = (
                sql_update(PromoCodeModel)
                .where(
                    PromoCodeModel.id == promo_code_id,
                    or_(
                        PromoCodeModel.max_uses.is_(None),
                        PromoCodeModel.used < PromoCodeModel.max_uses,
                    ),
                )
                .values(used=PromoCodeModel.used + 1)
                .returning(PromoCodeModel.used)
                .execution_options(synchronize_session=False)
            )
            new_used = (await session.execute(stmt)).scalar_one_or_none()
            await session.commit()
            return new_used is not None
