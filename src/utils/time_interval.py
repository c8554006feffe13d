"""
Half-open time-of-day intervals.

Times within a single day are handled as minutes since midnight so that
arithmetic never runs into calendar-date or timezone artifacts. An interval
``[start, end)`` includes its start minute and excludes its end minute, so
two intervals that merely touch (one ends when the other begins) do not
overlap.
"""

from dataclasses import dataclass
from datetime import time
from typing import Union

MINUTES_PER_DAY = 24 * 60


def to_minutes(value: Union[time, str]) -> int:
    """
    Convert a time of day to minutes since midnight.

    Args:
        value: ``datetime.time`` or an "HH:MM" / "HH:MM:SS" string

    Returns:
        Minutes since midnight (seconds are truncated)

    Raises:
        ValueError: If the string is not a valid time of day
    """
    if isinstance(value, time):
        return value.hour * 60 + value.minute

    parts = value.strip().split(':')
    if len(parts) not in (2, 3) or not all(part.isdigit() for part in parts):
        raise ValueError(f"Invalid time format (expected HH:MM): {value}")
    hours, minutes = int(parts[0]), int(parts[1])
    if hours > 23 or minutes > 59:
        raise ValueError(f"Invalid time format (expected HH:MM): {value}")
    return hours * 60 + minutes


def from_minutes(minutes: int) -> time:
    """Convert minutes since midnight back to a ``datetime.time``."""
    if minutes < 0 or minutes >= MINUTES_PER_DAY:
        raise ValueError(f"Minutes out of range for a single day: {minutes}")
    return time(minutes // 60, minutes % 60)


def format_minutes(minutes: int) -> str:
    """Format minutes since midnight as "HH:MM"; 1440 renders as "24:00"."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


@dataclass(frozen=True)
class TimeInterval:
    """A half-open ``[start, end)`` range of minutes within one day."""

    start: int
    end: int

    @classmethod
    def from_times(cls, start: Union[time, str], end: Union[time, str]) -> "TimeInterval":
        return cls(to_minutes(start), to_minutes(end))

    @property
    def duration_minutes(self) -> int:
        return self.end - self.start

    def overlaps(self, other: "TimeInterval") -> bool:
        """Strict overlap: ``s1 < e2 and s2 < e1``. Touching intervals do not overlap."""
        return self.start < other.end and other.start < self.end

    def contains(self, other: "TimeInterval") -> bool:
        """True when ``other`` lies entirely within this interval."""
        return self.start <= other.start and other.end <= self.end

    def __str__(self) -> str:
        return f"{format_minutes(self.start)}-{format_minutes(self.end)}"
