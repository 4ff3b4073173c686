from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from src.platform.database.orm_db_setting import Base


class EventCapacityModel(Base):
    """Per-event consumed-capacity counter, written only by the availability ledger"""

    __tablename__ = 'event_capacity'
    __table_args__ = (
        CheckConstraint('consumed >= 0', name='ck_event_capacity_consumed_non_negative'),
        CheckConstraint('consumed <= capacity', name='ck_event_capacity_no_oversell'),
    )

    event_id: Mapped[str] = mapped_column(
        String(36), ForeignKey('event.id', ondelete='CASCADE'), primary_key=True
    )
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    consumed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )
