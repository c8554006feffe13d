"""
Special day model for date-specific overrides of the weekly schedule.

Holidays, vacations and custom closures. A special day on a date blocks
public booking for that date regardless of the barber's working blocks.
"""

from datetime import date as date_type, time, datetime
from enum import Enum
from typing import Optional
from sqlalchemy import String, Boolean, Date, Time, TIMESTAMP, ForeignKey, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from core.database import Base


class SpecialDayKind(str, Enum):
    HOLIDAY = "holiday"
    VACATION = "vacation"
    CUSTOM = "custom"


class SpecialDay(Base):
    """
    Date override for one barber.

    When whole_day is false, range_start < range_end describes the affected
    part of the day. The override still takes precedence over working hours
    for the whole date when slots are listed.
    """

    __tablename__ = "special_days"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)

    barber_id: Mapped[int] = mapped_column(ForeignKey("barbers.id", ondelete="CASCADE"))
    """Reference to the barber."""

    date: Mapped[date_type] = mapped_column(Date)
    """Calendar date the override applies to."""

    kind: Mapped[str] = mapped_column(String(20), default=SpecialDayKind.CUSTOM.value)
    """One of 'holiday', 'vacation', 'custom'."""

    whole_day: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    range_start: Mapped[Optional[time]] = mapped_column(Time, nullable=True)
    range_end: Mapped[Optional[time]] = mapped_column(Time, nullable=True)

    description: Mapped[str] = mapped_column(String(255), default="")
    """Human-readable reason returned to clients instead of slots."""

    created_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now())

    barber = relationship("Barber", back_populates="special_days")

    __table_args__ = (
        UniqueConstraint('barber_id', 'date', name='uq_special_days_barber_date'),
    )

    def __repr__(self) -> str:
        return f"<SpecialDay(barber_id={self.barber_id}, date={self.date}, kind='{self.kind}')>"
