from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import CheckConstraint, DateTime, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from src.platform.database.orm_db_setting import Base
from src.service.parking.domain.value_object.money import RATE_PLACES


class PromoCodeModel(Base):
    __tablename__ = 'promo_code'
    __table_args__ = (
        CheckConstraint(
            '(percent_off IS NULL) <> (amount_off IS NULL)', name='ck_promo_code_one_mode'
        ),
        CheckConstraint('used >= 0', name='ck_promo_code_used_non_negative'),
        CheckConstraint('max_uses IS NULL OR used <= max_uses', name='ck_promo_code_used_cap'),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    code: Mapped[str] = mapped_column(String(64), unique=True, nullable=False, index=True)
    percent_off: Mapped[Optional[Decimal]] = mapped_column(
        Numeric(9, RATE_PLACES), nullable=True
    )
    amount_off: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    starts_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    ends_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    max_uses: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    used: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
