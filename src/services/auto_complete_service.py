"""
Auto-completion of appointments whose time has passed.

Appointments are stored in the barber's local wall-clock time, so "has its
end passed" is evaluated per barber timezone.
"""

import logging
from collections import defaultdict
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import and_, or_
from sqlalchemy.orm import Query, Session

from core.constants import AUTO_COMPLETE_BATCH_LIMIT, DEFAULT_TIMEZONE
from models import Appointment, AppointmentStatus, Barber, BarberConfig, PENDING_STATUSES
from services.appointment_status import apply_transition
from utils.datetime_utils import get_timezone, utc_now

logger = logging.getLogger(__name__)


def _barber_ids_by_timezone(db: Session) -> Dict[str, List[int]]:
    rows = db.query(Barber.id, BarberConfig.timezone).outerjoin(
        BarberConfig, BarberConfig.barber_id == Barber.id
    ).all()
    grouped: Dict[str, List[int]] = defaultdict(list)
    for barber_id, tz_name in rows:
        grouped[tz_name or DEFAULT_TIMEZONE].append(barber_id)
    return grouped


def _overdue_query(db: Session, barber_ids: List[int], local_now: datetime) -> Query[Appointment]:
    today = local_now.date()
    current_time = local_now.time().replace(microsecond=0)
    return db.query(Appointment).filter(
        Appointment.barber_id.in_(barber_ids),
        Appointment.status.in_(PENDING_STATUSES),
        or_(
            Appointment.date < today,
            and_(Appointment.date == today, Appointment.end_time <= current_time)
        )
    )


def count_pending(db: Session, now: Optional[datetime] = None) -> int:
    """
    Count non-terminal appointments whose end time has already passed.

    Args:
        db: Database session
        now: Current instant (timezone-aware); defaults to now

    Returns:
        Number of appointments the sweep would complete
    """
    now = now or utc_now()
    total = 0
    for tz_name, barber_ids in _barber_ids_by_timezone(db).items():
        local_now = now.astimezone(get_timezone(tz_name))
        total += _overdue_query(db, barber_ids, local_now).count()
    return total


def auto_complete_appointments(db: Session, now: Optional[datetime] = None, limit: int = AUTO_COMPLETE_BATCH_LIMIT) -> int:
    """
    Mark overdue non-terminal appointments as completed.

    Processes at most ``limit`` appointments per call, oldest first, and
    commits once at the end.

    Args:
        db: Database session
        now: Current instant (timezone-aware); defaults to now
        limit: Maximum number of appointments to complete

    Returns:
        Number of appointments completed
    """
    now = now or utc_now()
    completed = 0
    for tz_name, barber_ids in _barber_ids_by_timezone(db).items():
        remaining = limit - completed
        if remaining <= 0:
            break
        local_now = now.astimezone(get_timezone(tz_name))
        overdue = _overdue_query(db, barber_ids, local_now).order_by(
            Appointment.date, Appointment.end_time
        ).limit(remaining).all()
        for appointment in overdue:
            apply_transition(appointment, AppointmentStatus.COMPLETED.value, now=now)
            completed += 1

    if completed:
        db.commit()
        logger.info(f"Auto-completed {completed} appointment(s)")
    return completed
