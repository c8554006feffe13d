"""
Available-slot computation.

Pure functions, no database access: given a day's working blocks, the busy
intervals already taken, a service duration and a buffer, produce the
ordered list of bookable slots.

Slots are laid on a fixed grid per block. The cursor starts at the block
start and always advances by ``duration + buffer``, whether the candidate at
that position was emitted, rejected for touching the break, or rejected for
overlapping a busy interval. Candidates are never shifted to fill gaps.
"""

import logging
from typing import Iterable, List, Sequence

from shared_types.availability import DayBlock, Slot
from utils.time_interval import TimeInterval

logger = logging.getLogger(__name__)


def generate_block_slots(
    block: DayBlock,
    busy: Sequence[TimeInterval],
    service_duration: int,
    buffer_minutes: int,
) -> List[Slot]:
    """
    Generate the available slots of a single working block.

    Args:
        block: Working block, optionally with a break
        busy: Occupied intervals of the day
        service_duration: Slot length in minutes (> 0)
        buffer_minutes: Idle minutes between grid positions (>= 0)

    Returns:
        Slots in ascending start order
    """
    slots: List[Slot] = []
    step = service_duration + buffer_minutes
    cursor = block.start

    while cursor + service_duration <= block.end:
        candidate = TimeInterval(cursor, cursor + service_duration)

        if block.break_interval is not None and candidate.overlaps(block.break_interval):
            pass
        elif not overlaps_any(candidate, busy):
            slots.append(Slot(start=candidate.start, end=candidate.end, duration_minutes=service_duration))

        cursor += step

    return slots


def generate_slots(
    blocks: Iterable[DayBlock],
    busy: Iterable[TimeInterval],
    service_duration: int,
    buffer_minutes: int,
) -> List[Slot]:
    """
    Generate the available slots of a day.

    ``busy`` must already be limited to occupied appointments of the target
    date, with any appointment being edited left out by the caller.

    Args:
        blocks: Working blocks of the day (split shifts allowed)
        busy: Occupied intervals
        service_duration: Requested service length in minutes
        buffer_minutes: Buffer between consecutive grid positions

    Returns:
        All available slots sorted by start time

    Raises:
        ValueError: If service_duration <= 0 or buffer_minutes < 0
    """
    if service_duration <= 0:
        raise ValueError(f"Service duration must be positive, got {service_duration}")
    if buffer_minutes < 0:
        raise ValueError(f"Buffer minutes cannot be negative, got {buffer_minutes}")

    busy_intervals = list(busy)
    slots: List[Slot] = []
    for block in blocks:
        slots.extend(generate_block_slots(block, busy_intervals, service_duration, buffer_minutes))

    slots.sort(key=lambda slot: slot.start)
    return slots


def overlaps_any(candidate: TimeInterval, busy: Iterable[TimeInterval]) -> bool:
    """True when the candidate overlaps at least one busy interval (strict half-open test)."""
    return any(candidate.overlaps(interval) for interval in busy)
