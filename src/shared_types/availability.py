"""
Shared types for availability-related functionality.

These dataclasses are the in-memory inputs and outputs of the slot engine,
decoupled from the ORM models so the engine stays a pure function.
"""

from dataclasses import dataclass
from typing import Optional

from utils.time_interval import TimeInterval, format_minutes


@dataclass(frozen=True)
class DayBlock:
    """
    One working block of a day, in minutes since midnight.

    Invariants: start < end; when a break is present,
    start <= break.start < break.end <= end.
    """
    start: int
    end: int
    break_interval: Optional[TimeInterval] = None

    def __post_init__(self) -> None:
        if self.start >= self.end:
            raise ValueError(f"Working block start must be before end: {format_minutes(self.start)}-{format_minutes(self.end)}")
        if self.break_interval is not None:
            brk = self.break_interval
            if not (self.start <= brk.start < brk.end <= self.end):
                raise ValueError(f"Break {brk} must lie inside working block {format_minutes(self.start)}-{format_minutes(self.end)}")

    @property
    def interval(self) -> TimeInterval:
        return TimeInterval(self.start, self.end)


@dataclass(frozen=True)
class Slot:
    """
    Represents an available time slot.

    Computed per request and never stored.
    """
    start: int
    end: int
    duration_minutes: int

    @property
    def interval(self) -> TimeInterval:
        return TimeInterval(self.start, self.end)

    def to_dict(self) -> dict[str, str | int | bool]:
        """Convert to the wire format returned by the slot query."""
        return {
            "start_time": format_minutes(self.start),
            "end_time": format_minutes(self.end),
            "available": True,
            "duration_minutes": self.duration_minutes,
        }
