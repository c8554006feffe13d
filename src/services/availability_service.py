"""
Availability service for slot listing and booking-time re-checks.

Slot listing is a read path: it tolerates staleness and retries transient
store failures. ``is_available`` is the write-time guard and must be called
again, against fresh data and inside the booking transaction, right before
an appointment row is written.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, time
from typing import List, Optional

from sqlalchemy.orm import Session

from core.exceptions import ValidationError
from models import Appointment, NON_OCCUPYING_STATUSES
from services import slot_engine
from services.barber_config_service import get_barber_config
from services.barber_service import get_active_barber
from services.service_catalog_service import resolve_service_duration
from services.special_day_service import get_special_day
from services.working_hours_service import get_working_blocks, to_day_block
from shared_types.availability import Slot
from utils.datetime_utils import parse_date_string, weekday_for_date
from utils.retry import retry_on_transient_store_error
from utils.time_interval import TimeInterval

logger = logging.getLogger(__name__)

CLOSED_DAY_MESSAGE = "El barbero no atiende este día"
SPECIAL_DAY_MESSAGE = "El barbero no atiende en esta fecha"
FULLY_BOOKED_MESSAGE = "No hay horarios disponibles para esta fecha"


@dataclass
class AvailabilityResult:
    """Outcome of a slot query: the slots, plus a reason when there are none."""
    date: date
    duration_minutes: int
    slots: List[Slot] = field(default_factory=list)
    message: Optional[str] = None


def _validate_date(date_str: str) -> date:
    try:
        return parse_date_string(date_str)
    except ValueError as e:
        raise ValidationError("Fecha inválida (formato esperado: AAAA-MM-DD)") from e


def fetch_busy_intervals(
    db: Session,
    barber_id: int,
    target_date: date,
    exclude_appointment_id: Optional[int] = None,
) -> List[TimeInterval]:
    """
    Get the occupied intervals of a barber's day.

    Cancelled, no-show and completed appointments do not occupy time.

    Args:
        db: Database session
        barber_id: Barber ID
        target_date: Day to inspect
        exclude_appointment_id: Appointment left out (the one being edited)

    Returns:
        Busy intervals ordered by start time
    """
    query = db.query(Appointment.start_time, Appointment.end_time).filter(
        Appointment.barber_id == barber_id,
        Appointment.date == target_date,
        Appointment.status.notin_(NON_OCCUPYING_STATUSES)
    )
    if exclude_appointment_id is not None:
        query = query.filter(Appointment.id != exclude_appointment_id)

    rows = query.order_by(Appointment.start_time).all()
    return [TimeInterval.from_times(start, end) for start, end in rows]


@retry_on_transient_store_error()
def get_available_slots(
    db: Session,
    barber_id: int,
    date_str: str,
    service_id: Optional[int] = None,
    exclude_appointment_id: Optional[int] = None,
) -> AvailabilityResult:
    """
    List the bookable slots of a barber's day for a service.

    A special day short-circuits to an empty result carrying its
    description; otherwise the day's working blocks are sliced into slots
    of the service's duration, skipping breaks and occupied time.

    Args:
        db: Database session
        barber_id: Barber ID
        date_str: Requested date in YYYY-MM-DD format
        service_id: Service whose duration sizes the slots (defaults to 30 minutes)
        exclude_appointment_id: Appointment being edited, ignored as busy time

    Returns:
        AvailabilityResult with ordered slots, or an empty list and a reason

    Raises:
        ValidationError: If the date is malformed
        NotFoundError: If the barber does not exist or is inactive
        TransientStoreError: If the store stays unreachable after retries
    """
    target_date = _validate_date(date_str)
    get_active_barber(db, barber_id)
    duration = resolve_service_duration(db, barber_id, service_id)

    special_day = get_special_day(db, barber_id, target_date)
    if special_day is not None:
        logger.info(f"Barber {barber_id} has a {special_day.kind} special day on {target_date}; no slots")
        return AvailabilityResult(
            date=target_date,
            duration_minutes=duration,
            message=special_day.description or SPECIAL_DAY_MESSAGE,
        )

    weekday = weekday_for_date(target_date)
    blocks = get_working_blocks(db, barber_id, weekday)
    if not blocks:
        return AvailabilityResult(date=target_date, duration_minutes=duration, message=CLOSED_DAY_MESSAGE)

    config = get_barber_config(db, barber_id)
    busy = fetch_busy_intervals(db, barber_id, target_date, exclude_appointment_id)
    slots = slot_engine.generate_slots(
        [to_day_block(block) for block in blocks],
        busy,
        duration,
        config.buffer_minutes,
    )

    logger.debug(
        f"Barber {barber_id} on {target_date}: {len(blocks)} block(s), {len(busy)} busy, "
        f"duration={duration}, buffer={config.buffer_minutes} -> {len(slots)} slot(s)"
    )
    if not slots:
        return AvailabilityResult(date=target_date, duration_minutes=duration, message=FULLY_BOOKED_MESSAGE)
    return AvailabilityResult(date=target_date, duration_minutes=duration, slots=slots)


def is_available(
    db: Session,
    barber_id: int,
    target_date: date,
    start_time: time,
    end_time: time,
    exclude_appointment_id: Optional[int] = None,
) -> bool:
    """
    Re-check that a window is free against current appointment data.

    Applies the same strict half-open overlap test as slot generation.
    Call it inside the writing transaction, after taking the barber lock.

    Args:
        db: Database session
        barber_id: Barber ID
        target_date: Appointment date
        start_time: Window start
        end_time: Window end
        exclude_appointment_id: Appointment being updated, ignored as busy time

    Returns:
        True when no occupied appointment overlaps the window
    """
    candidate = TimeInterval.from_times(start_time, end_time)
    busy = fetch_busy_intervals(db, barber_id, target_date, exclude_appointment_id)
    available = not slot_engine.overlaps_any(candidate, busy)
    if not available:
        logger.warning(f"Window {candidate} on {target_date} for barber {barber_id} is no longer available")
    return available
