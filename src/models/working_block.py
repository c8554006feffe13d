"""
Working block model for a barber's weekly schedule.

A working block is one contiguous range of open hours on a weekday,
optionally containing a single break. Several blocks on the same weekday
describe a split shift (e.g., 09:00-13:00 and 16:00-20:00).
"""

from datetime import time, datetime
from typing import Optional
from sqlalchemy import Time, TIMESTAMP, ForeignKey, Index, Integer
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from core.database import Base
from utils.datetime_utils import WEEKDAY_NAMES


class WorkingBlock(Base):
    """
    Model for storing a barber's open hours by day of week.

    Invariants (enforced by the working hours service on write):
    - start_time < end_time
    - break_start and break_end are both set or both empty
    - start_time <= break_start < break_end <= end_time
    """

    __tablename__ = "working_blocks"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    """Unique identifier for the working block."""

    barber_id: Mapped[int] = mapped_column(ForeignKey("barbers.id", ondelete="CASCADE"))
    """Reference to the barber."""

    weekday: Mapped[int] = mapped_column(Integer)
    """Day of the week (0=Monday, 1=Tuesday, ..., 6=Sunday)."""

    start_time: Mapped[time] = mapped_column(Time)
    """Opening time of the block."""

    end_time: Mapped[time] = mapped_column(Time)
    """Closing time of the block."""

    break_start: Mapped[Optional[time]] = mapped_column(Time, nullable=True)
    """Start of the break inside the block, if any."""

    break_end: Mapped[Optional[time]] = mapped_column(Time, nullable=True)
    """End of the break inside the block, if any."""

    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    """Order of the block as configured by the barber."""

    created_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), server_default=func.now())
    updated_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now())

    barber = relationship("Barber", back_populates="working_blocks")

    __table_args__ = (
        Index('idx_working_blocks_barber_weekday', 'barber_id', 'weekday'),
    )

    @property
    def weekday_name(self) -> str:
        return WEEKDAY_NAMES[self.weekday]

    @property
    def has_break(self) -> bool:
        return self.break_start is not None and self.break_end is not None

    def __repr__(self) -> str:
        return f"<WorkingBlock(barber_id={self.barber_id}, day={self.weekday_name}, {self.start_time}-{self.end_time})>"
