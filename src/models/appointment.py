"""
Appointment model representing a booked service with a barber.

Appointments are created by the public booking flow (status 'reserved') or
by the barber from the dashboard. Only occupied appointments (any status
other than cancelled, no_show and completed) block time on the barber's day.
"""

from datetime import date as date_type, time, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from sqlalchemy import String, Date, Time, Numeric, ForeignKey, Index, TIMESTAMP, text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from core.database import Base


class AppointmentStatus(str, Enum):
    RESERVED = "reserved"
    CONFIRMED = "confirmed"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


NON_OCCUPYING_STATUSES = (
    AppointmentStatus.CANCELLED.value,
    AppointmentStatus.NO_SHOW.value,
    AppointmentStatus.COMPLETED.value,
)
"""Statuses that do not block time for overlap purposes."""

PENDING_STATUSES = (
    AppointmentStatus.RESERVED.value,
    AppointmentStatus.CONFIRMED.value,
    AppointmentStatus.IN_PROGRESS.value,
)
"""Non-terminal statuses; the auto-completion sweep only touches these."""

_OCCUPIED_PREDICATE = text("status NOT IN ('cancelled', 'no_show', 'completed')")


class Appointment(Base):
    """
    Appointment entity.

    Invariants:
    - start_time < end_time on the same date
    - cancel_code is unique across all appointments
    - no two occupied appointments of a barber start at the same date and time
      (partial unique index backing the transactional availability re-check)
    """

    __tablename__ = "appointments"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)

    barber_id: Mapped[int] = mapped_column(ForeignKey("barbers.id"))
    """Barber providing the service."""

    client_id: Mapped[int] = mapped_column(ForeignKey("clients.id"))
    """Client who booked."""

    service_id: Mapped[int] = mapped_column(ForeignKey("services.id"))
    """Booked service (drives end_time)."""

    date: Mapped[date_type] = mapped_column(Date)
    start_time: Mapped[time] = mapped_column(Time)
    end_time: Mapped[time] = mapped_column(Time)

    status: Mapped[str] = mapped_column(String(20), default=AppointmentStatus.RESERVED.value)
    """One of the AppointmentStatus values."""

    price_final: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    """Price charged; defaults to the service price at booking time."""

    cancel_code: Mapped[str] = mapped_column(String(12), unique=True, index=True)
    """Short code for self-service lookup and cancellation without login."""

    notes: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    cancelled_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    completed_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)

    created_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    barber = relationship("Barber", back_populates="appointments")
    client = relationship("Client", back_populates="appointments")
    service = relationship("Service")

    __table_args__ = (
        Index('idx_appointments_barber_date', 'barber_id', 'date'),
        Index('idx_appointments_status_date', 'status', 'date'),
        Index(
            'uq_appointments_barber_slot_occupied',
            'barber_id', 'date', 'start_time',
            unique=True,
            postgresql_where=_OCCUPIED_PREDICATE,
            sqlite_where=_OCCUPIED_PREDICATE,
        ),
    )

    @property
    def is_occupying(self) -> bool:
        return self.status not in NON_OCCUPYING_STATUSES

    def __repr__(self) -> str:
        return f"<Appointment(id={self.id}, barber_id={self.barber_id}, {self.date} {self.start_time}-{self.end_time}, status='{self.status}')>"
