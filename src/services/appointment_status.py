"""
Appointment status state machine.

    reserved -> confirmed -> in_progress
    {reserved, confirmed, in_progress} -> completed | cancelled
    {reserved, confirmed} -> no_show

completed and cancelled are terminal. no_show has no way out either.
"""

import logging
from datetime import datetime
from typing import Dict, FrozenSet, Optional

from core.exceptions import InvalidTransitionError, ValidationError
from models import Appointment, AppointmentStatus
from utils.datetime_utils import utc_now

logger = logging.getLogger(__name__)

_S = AppointmentStatus

ALLOWED_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    _S.RESERVED.value: frozenset({_S.CONFIRMED.value, _S.COMPLETED.value, _S.CANCELLED.value, _S.NO_SHOW.value}),
    _S.CONFIRMED.value: frozenset({_S.IN_PROGRESS.value, _S.COMPLETED.value, _S.CANCELLED.value, _S.NO_SHOW.value}),
    _S.IN_PROGRESS.value: frozenset({_S.COMPLETED.value, _S.CANCELLED.value}),
    _S.COMPLETED.value: frozenset(),
    _S.CANCELLED.value: frozenset(),
    _S.NO_SHOW.value: frozenset(),
}

TERMINAL_STATUSES = frozenset(status for status, targets in ALLOWED_TRANSITIONS.items() if not targets)


def parse_status(value: str) -> str:
    """
    Raises:
        ValidationError: If the value is not a known appointment status
    """
    if value not in ALLOWED_TRANSITIONS:
        raise ValidationError(f"Estado de turno inválido: {value}")
    return value


def can_transition(current: str, target: str) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


def apply_transition(appointment: Appointment, target: str, now: Optional[datetime] = None) -> None:
    """
    Move an appointment to a new status, stamping cancelled_at/completed_at.

    Does not commit.

    Raises:
        ValidationError: If the target is not a known status
        InvalidTransitionError: If the move is not allowed from the current status
    """
    parse_status(target)
    current = appointment.status
    if not can_transition(current, target):
        raise InvalidTransitionError(current, target)

    now = now or utc_now()
    appointment.status = target
    if target == _S.CANCELLED.value:
        appointment.cancelled_at = now
    elif target == _S.COMPLETED.value:
        appointment.completed_at = now
    logger.info(f"Appointment {appointment.id}: {current} -> {target}")
