"""
Barber booking configuration.

One optional row per barber. When a barber never saved a configuration the
service layer falls back to the defaults in core.constants.
"""

from datetime import datetime
from typing import Optional
from sqlalchemy import Integer, String, Boolean, ForeignKey, TIMESTAMP, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from core.database import Base
from core.constants import (
    DEFAULT_BUFFER_MINUTES,
    DEFAULT_LEAD_TIME_MINUTES,
    DEFAULT_MAX_BOOKINGS_PER_DAY,
    DEFAULT_ALLOW_SAME_DAY_BOOKING,
    DEFAULT_SHOW_PRICES,
    DEFAULT_CURRENCY,
    DEFAULT_TIMEZONE,
)


class BarberConfig(Base):
    """Per-barber scheduling and display settings."""

    __tablename__ = "barber_configs"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)

    barber_id: Mapped[int] = mapped_column(ForeignKey("barbers.id", ondelete="CASCADE"), unique=True)
    """Owning barber (one configuration per barber)."""

    buffer_minutes: Mapped[int] = mapped_column(Integer, default=DEFAULT_BUFFER_MINUTES, nullable=False)
    """Idle minutes inserted between consecutive slot grid positions."""

    lead_time_minutes: Mapped[int] = mapped_column(Integer, default=DEFAULT_LEAD_TIME_MINUTES, nullable=False)
    """Advance notice the barber asks for, shown to the booking form."""

    max_bookings_per_day: Mapped[int] = mapped_column(Integer, default=DEFAULT_MAX_BOOKINGS_PER_DAY, nullable=False)
    """Cap on occupied appointments per day accepted from the public booking flow."""

    allow_same_day_booking: Mapped[bool] = mapped_column(Boolean, default=DEFAULT_ALLOW_SAME_DAY_BOOKING, nullable=False)
    """Whether clients may book for today."""

    show_prices: Mapped[bool] = mapped_column(Boolean, default=DEFAULT_SHOW_PRICES, nullable=False)
    """Whether the public service catalog exposes prices."""

    currency: Mapped[str] = mapped_column(String(10), default=DEFAULT_CURRENCY, nullable=False)

    timezone: Mapped[str] = mapped_column(String(64), default=DEFAULT_TIMEZONE, nullable=False)
    """IANA timezone used to decide what "today" and "past" mean for this barber."""

    created_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now())

    barber = relationship("Barber", back_populates="config")

    __table_args__ = (
        CheckConstraint('buffer_minutes >= 0', name='ck_barber_configs_buffer_non_negative'),
        CheckConstraint('lead_time_minutes >= 0', name='ck_barber_configs_lead_time_non_negative'),
        CheckConstraint('max_bookings_per_day >= 1', name='ck_barber_configs_max_bookings_positive'),
    )

    def __repr__(self) -> str:
        return f"<BarberConfig(barber_id={self.barber_id}, buffer={self.buffer_minutes})>"
