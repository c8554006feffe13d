"""
Working hours resolution and weekly schedule management.
"""

import logging
from datetime import time
from typing import Dict, List, Optional, Sequence

from pydantic import BaseModel
from sqlalchemy.orm import Session

from core.exceptions import ValidationError
from models import WorkingBlock
from services.barber_service import get_barber
from shared_types.availability import DayBlock
from utils.time_interval import TimeInterval, to_minutes

logger = logging.getLogger(__name__)


class WorkingBlockInput(BaseModel):
    """One block of a weekday as submitted from the dashboard."""
    start_time: time
    end_time: time
    break_start: Optional[time] = None
    break_end: Optional[time] = None


def get_working_blocks(db: Session, barber_id: int, weekday: int) -> List[WorkingBlock]:
    """
    Get a barber's working blocks for a weekday, in configured order.

    An empty list means the barber does not work that weekday; it is not an error.

    Args:
        db: Database session
        barber_id: Barber ID
        weekday: 0=Monday ... 6=Sunday
    """
    return db.query(WorkingBlock).filter(
        WorkingBlock.barber_id == barber_id,
        WorkingBlock.weekday == weekday
    ).order_by(WorkingBlock.position, WorkingBlock.id).all()


def to_day_block(block: WorkingBlock) -> DayBlock:
    """Convert a stored working block into the slot engine's representation."""
    break_interval = None
    if block.has_break:
        break_interval = TimeInterval.from_times(block.break_start, block.break_end)  # type: ignore[arg-type]
    return DayBlock(
        start=to_minutes(block.start_time),
        end=to_minutes(block.end_time),
        break_interval=break_interval,
    )


def get_weekly_schedule(db: Session, barber_id: int) -> Dict[int, List[WorkingBlock]]:
    """Get all blocks of a barber keyed by weekday (every weekday present, possibly empty)."""
    blocks = db.query(WorkingBlock).filter(
        WorkingBlock.barber_id == barber_id
    ).order_by(WorkingBlock.weekday, WorkingBlock.position, WorkingBlock.id).all()

    schedule: Dict[int, List[WorkingBlock]] = {weekday: [] for weekday in range(7)}
    for block in blocks:
        schedule[block.weekday].append(block)
    return schedule


def validate_blocks(blocks: Sequence[WorkingBlockInput]) -> List[DayBlock]:
    """
    Check the working block invariants for one weekday.

    Raises:
        ValidationError: If a block is inverted, a break is half-specified or
            outside its block, or two blocks overlap
    """
    day_blocks: List[DayBlock] = []
    for block in blocks:
        if (block.break_start is None) != (block.break_end is None):
            raise ValidationError("El descanso necesita hora de inicio y de fin")
        break_interval = None
        if block.break_start is not None and block.break_end is not None:
            break_interval = TimeInterval.from_times(block.break_start, block.break_end)
        try:
            day_blocks.append(DayBlock(
                start=to_minutes(block.start_time),
                end=to_minutes(block.end_time),
                break_interval=break_interval,
            ))
        except ValueError as e:
            raise ValidationError(f"Horario inválido: {e}") from e

    ordered = sorted(day_blocks, key=lambda b: b.start)
    for previous, current in zip(ordered, ordered[1:]):
        if previous.interval.overlaps(current.interval):
            raise ValidationError(f"Los bloques {previous.interval} y {current.interval} se superponen")
    return day_blocks


def replace_weekday_blocks(db: Session, barber_id: int, weekday: int, blocks: Sequence[WorkingBlockInput]) -> List[WorkingBlock]:
    """
    Replace every block of a weekday. An empty list closes that weekday.

    Raises:
        NotFoundError: If the barber does not exist
        ValidationError: If the weekday or any block is invalid
    """
    if weekday < 0 or weekday > 6:
        raise ValidationError("El día de la semana debe estar entre 0 (lunes) y 6 (domingo)")
    get_barber(db, barber_id)
    validate_blocks(blocks)

    db.query(WorkingBlock).filter(
        WorkingBlock.barber_id == barber_id,
        WorkingBlock.weekday == weekday
    ).delete(synchronize_session=False)

    for position, block in enumerate(blocks):
        db.add(WorkingBlock(
            barber_id=barber_id,
            weekday=weekday,
            start_time=block.start_time,
            end_time=block.end_time,
            break_start=block.break_start,
            break_end=block.break_end,
            position=position,
        ))

    db.commit()
    logger.info(f"Replaced weekday {weekday} schedule for barber {barber_id} with {len(blocks)} block(s)")
    return get_working_blocks(db, barber_id, weekday)
