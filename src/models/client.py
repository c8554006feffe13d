"""
Client model representing people who book appointments.

Clients are identified by phone number: the public booking form finds an
existing client by phone (digits only) or creates a new one.
"""

from datetime import datetime
from typing import Optional
from sqlalchemy import String, Integer, TIMESTAMP
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from core.database import Base


class Client(Base):
    """Client entity shared across barbers."""

    __tablename__ = "clients"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)

    first_name: Mapped[str] = mapped_column(String(100))
    last_name: Mapped[str] = mapped_column(String(100))

    phone: Mapped[str] = mapped_column(String(30), unique=True, index=True)
    """Phone number, digits only."""

    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    total_visits: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    """Number of bookings made by this client."""

    last_visit_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), nullable=True)

    notes: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    created_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now())

    appointments = relationship("Appointment", back_populates="client")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __repr__(self) -> str:
        return f"<Client(id={self.id}, name='{self.full_name}', phone='{self.phone}')>"
