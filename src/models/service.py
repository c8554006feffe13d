"""
Service model representing an entry in a barber's catalog (haircut, beard trim...).

The service duration drives slot sizing: every slot offered for a service is
exactly duration_minutes long.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from sqlalchemy import String, Integer, Numeric, ForeignKey, TIMESTAMP, Index, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from core.database import Base


class ServiceStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class Service(Base):
    """
    Catalog entry offered by one barber.

    Services are never hard-deleted while appointments reference them;
    deactivation hides them from the booking form instead.
    """

    __tablename__ = "services"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)

    barber_id: Mapped[int] = mapped_column(ForeignKey("barbers.id", ondelete="CASCADE"))
    """Owning barber."""

    name: Mapped[str] = mapped_column(String(255))

    description: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), default=Decimal("0"))

    duration_minutes: Mapped[int] = mapped_column(Integer)
    """Length of the service in minutes (> 0)."""

    status: Mapped[str] = mapped_column(String(20), default=ServiceStatus.ACTIVE.value)
    """'active' or 'inactive'."""

    created_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now())

    barber = relationship("Barber", back_populates="services")

    __table_args__ = (
        Index('idx_services_barber_status', 'barber_id', 'status'),
        CheckConstraint('duration_minutes > 0', name='ck_services_duration_positive'),
        CheckConstraint('price >= 0', name='ck_services_price_non_negative'),
    )

    @property
    def is_active(self) -> bool:
        return self.status == ServiceStatus.ACTIVE.value

    def __repr__(self) -> str:
        return f"<Service(id={self.id}, name='{self.name}', duration={self.duration_minutes})>"
