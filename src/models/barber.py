"""
Barber model representing a professional who takes bookings.

Each barber owns a service catalog, a weekly schedule, special-day overrides,
a booking configuration and the appointments booked with them.
"""

from datetime import datetime
from typing import Optional
from sqlalchemy import String, Boolean, TIMESTAMP
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from core.database import Base


class Barber(Base):
    """
    Barber entity.

    The barber row doubles as the per-barber lock taken by the booking
    transaction (SELECT ... FOR UPDATE) while it re-checks availability.
    """

    __tablename__ = "barbers"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    """Unique identifier for the barber."""

    name: Mapped[str] = mapped_column(String(255))
    """Display name shown on the booking form."""

    email: Mapped[Optional[str]] = mapped_column(String(255), unique=True, nullable=True)
    """Contact email."""

    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    """Contact phone."""

    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    """Inactive barbers are hidden from the public booking flow."""

    created_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    config = relationship("BarberConfig", back_populates="barber", uselist=False, cascade="all, delete-orphan")
    working_blocks = relationship("WorkingBlock", back_populates="barber", cascade="all, delete-orphan")
    special_days = relationship("SpecialDay", back_populates="barber", cascade="all, delete-orphan")
    services = relationship("Service", back_populates="barber", cascade="all, delete-orphan")
    appointments = relationship("Appointment", back_populates="barber")

    def __repr__(self) -> str:
        return f"<Barber(id={self.id}, name='{self.name}')>"
