"""
Appointment management for the barber dashboard.

Covers listing, walk-in and phone bookings entered by the barber,
rescheduling and status changes. Writes go through the same lock and
availability re-check as public bookings.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from core.exceptions import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    SlotUnavailableError,
    TransientStoreError,
    ValidationError,
)
from models import Appointment, AppointmentStatus
from services.appointment_status import TERMINAL_STATUSES, apply_transition, parse_status
from services.availability_service import is_available
from services.barber_service import get_active_barber, lock_barber
from services.booking_service import compute_end_time, write_appointment
from services.client_service import get_client
from services.service_catalog_service import get_service
from utils.client_validators import validate_notes_field
from utils.datetime_utils import parse_date_string, parse_time_string

logger = logging.getLogger(__name__)

DASHBOARD_INITIAL_STATUSES = (AppointmentStatus.RESERVED.value, AppointmentStatus.CONFIRMED.value)


def _parse_date(date_str: str) -> date:
    try:
        return parse_date_string(date_str)
    except ValueError as e:
        raise ValidationError("Fecha inválida (formato esperado: AAAA-MM-DD)") from e


def list_appointments(
    db: Session,
    barber_id: int,
    target_date: Optional[date] = None,
    status: Optional[str] = None,
) -> List[Appointment]:
    """List a barber's appointments, optionally for one date and/or status, in time order."""
    query = db.query(Appointment).filter(Appointment.barber_id == barber_id)
    if target_date is not None:
        query = query.filter(Appointment.date == target_date)
    if status is not None:
        query = query.filter(Appointment.status == parse_status(status))
    return query.order_by(Appointment.date, Appointment.start_time).all()


def get_appointment(db: Session, barber_id: int, appointment_id: int, for_update: bool = False) -> Appointment:
    """
    Raises:
        NotFoundError: If the appointment does not exist for this barber
    """
    query = db.query(Appointment).filter(
        Appointment.id == appointment_id,
        Appointment.barber_id == barber_id
    )
    if for_update:
        query = query.with_for_update()
    appointment = query.first()
    if not appointment:
        raise NotFoundError("Turno no encontrado")
    return appointment


def create_appointment(
    db: Session,
    barber_id: int,
    client_id: int,
    service_id: int,
    date_str: str,
    start_time_str: str,
    status: Optional[str] = None,
    price_final: Optional[Decimal] = None,
    notes: Optional[str] = None,
) -> Appointment:
    """
    Create an appointment from the dashboard for an existing client.

    Unlike public bookings, the barber may book outside configured hours
    (walk-ins) and may start the appointment as confirmed. Overlap with
    occupied appointments is still refused.

    Raises:
        ValidationError: Malformed date or time, unsupported initial status, negative price
        NotFoundError: Barber, client or service absent
        SlotUnavailableError: Window overlaps an occupied appointment
    """
    try:
        target_date = _parse_date(date_str)
        start_time = parse_time_string(start_time_str)
        notes = validate_notes_field(notes)
    except ValueError as e:
        raise ValidationError(str(e)) from e

    initial_status = status or AppointmentStatus.RESERVED.value
    if initial_status not in DASHBOARD_INITIAL_STATUSES:
        raise ValidationError(f"Un turno nuevo no puede crearse con estado '{initial_status}'")
    if price_final is not None and price_final < 0:
        raise ValidationError("El precio no puede ser negativo")

    get_active_barber(db, barber_id)
    client = get_client(db, client_id)
    service = get_service(db, barber_id, service_id, active_only=True)
    end_time = compute_end_time(start_time, service.duration_minutes)

    appointment = write_appointment(
        db,
        barber_id=barber_id,
        resolve_client=lambda: client,
        service=service,
        target_date=target_date,
        start_time=start_time,
        end_time=end_time,
        status=initial_status,
        price_final=price_final,
        notes=notes,
    )
    logger.info(f"Barber {barber_id} created appointment {appointment.id} for client {client_id}")
    return appointment


def reschedule_appointment(
    db: Session,
    barber_id: int,
    appointment_id: int,
    date_str: str,
    start_time_str: str,
    service_id: Optional[int] = None,
) -> Appointment:
    """
    Move an appointment to a new date/time, optionally changing its service.

    The availability re-check ignores the appointment itself, so it can be
    shifted into a window that overlaps its own current position.

    Raises:
        ValidationError: Malformed date or time
        NotFoundError: Appointment or service absent
        ConflictError: Appointment already in a terminal state
        SlotUnavailableError: New window overlaps another occupied appointment
    """
    try:
        target_date = _parse_date(date_str)
        start_time = parse_time_string(start_time_str)
    except ValueError as e:
        raise ValidationError(str(e)) from e

    try:
        lock_barber(db, barber_id)
        appointment = get_appointment(db, barber_id, appointment_id, for_update=True)
        if appointment.status in TERMINAL_STATUSES:
            raise ConflictError(f"No se puede reprogramar un turno en estado '{appointment.status}'")

        service = get_service(db, barber_id, service_id or appointment.service_id, active_only=service_id is not None)
        end_time = compute_end_time(start_time, service.duration_minutes)

        if not is_available(db, barber_id, target_date, start_time, end_time, exclude_appointment_id=appointment.id):
            raise SlotUnavailableError()

        appointment.date = target_date
        appointment.start_time = start_time
        appointment.end_time = end_time
        if service.id != appointment.service_id:
            appointment.service_id = service.id
            appointment.price_final = service.price
        db.commit()
    except (ConflictError, NotFoundError, ValidationError):
        db.rollback()
        raise
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"Concurrent change while rescheduling appointment {appointment_id}: {e}")
        raise SlotUnavailableError() from e
    except OperationalError as e:
        db.rollback()
        logger.error(f"Store failure while rescheduling appointment {appointment_id}: {e}")
        raise TransientStoreError("El servicio no está disponible momentáneamente. Intentá de nuevo.") from e

    db.refresh(appointment)
    logger.info(f"Rescheduled appointment {appointment_id} to {target_date} {start_time}")
    return appointment


def transition_status(db: Session, barber_id: int, appointment_id: int, new_status: str) -> Appointment:
    """
    Change an appointment's status following the state machine.

    Raises:
        ValidationError: Unknown status
        NotFoundError: Appointment absent
        InvalidTransitionError: Move not allowed (e.g. completing a cancelled appointment)
    """
    parse_status(new_status)
    try:
        appointment = get_appointment(db, barber_id, appointment_id, for_update=True)
        apply_transition(appointment, new_status)
        db.commit()
    except (InvalidTransitionError, NotFoundError):
        db.rollback()
        raise
    except OperationalError as e:
        db.rollback()
        logger.error(f"Store failure while updating appointment {appointment_id}: {e}")
        raise TransientStoreError("El servicio no está disponible momentáneamente. Intentá de nuevo.") from e

    db.refresh(appointment)
    return appointment
