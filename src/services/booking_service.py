"""
Booking service for public self-service bookings.

Booking is a two-phase flow: slots are listed first (stale data tolerated),
then at submission time the requested window is re-validated and written
in one transaction. The transaction takes a per-barber row lock before the
re-check, and a partial unique index on (barber, date, start) rejects any
duplicate that slips through. Write paths are never retried.
"""

import logging
import secrets
from datetime import date, datetime, time
from decimal import Decimal
from typing import Any, Callable, Dict, Optional

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from core.constants import CANCEL_CODE_ALPHABET, CANCEL_CODE_LENGTH, CANCEL_CODE_MAX_ATTEMPTS
from core.exceptions import (
    BookingError,
    ConflictError,
    NotFoundError,
    SlotUnavailableError,
    TransientStoreError,
    ValidationError,
)
from models import Appointment, AppointmentStatus, Client, NON_OCCUPYING_STATUSES, Service
from services.appointment_status import apply_transition
from services.availability_service import is_available
from services.barber_config_service import get_barber_config
from services.barber_service import get_active_barber, lock_barber
from services.client_service import find_or_create_by_phone, increment_visits, normalize_client_fields
from services.service_catalog_service import get_service
from services.special_day_service import get_special_day
from services.working_hours_service import get_working_blocks, to_day_block
from utils.client_validators import validate_notes_field
from utils.datetime_utils import barber_now, format_hhmm, parse_date_string, parse_time_string, weekday_for_date
from utils.retry import retry_on_transient_store_error
from utils.time_interval import MINUTES_PER_DAY, TimeInterval, from_minutes, to_minutes

logger = logging.getLogger(__name__)

SELF_CANCELLABLE_STATUSES = (AppointmentStatus.RESERVED.value, AppointmentStatus.CONFIRMED.value)


def generate_cancel_code(db: Session) -> str:
    """
    Generate a cancellation code not used by any appointment.

    Codes are short random tokens, so collisions are possible: each
    candidate is checked against the store and regenerated on collision.

    Raises:
        TransientStoreError: If no free code was found within the attempt limit
    """
    for attempt in range(CANCEL_CODE_MAX_ATTEMPTS):
        code = ''.join(secrets.choice(CANCEL_CODE_ALPHABET) for _ in range(CANCEL_CODE_LENGTH))
        exists = db.query(Appointment.id).filter(Appointment.cancel_code == code).first()
        if not exists:
            return code
        logger.warning(f"Cancel code collision on attempt {attempt + 1}, regenerating")

    logger.error(f"Could not generate a unique cancel code after {CANCEL_CODE_MAX_ATTEMPTS} attempts")
    raise TransientStoreError("No se pudo completar la reserva. Intentá de nuevo.")


def compute_end_time(start_time: time, duration_minutes: int) -> time:
    """
    Add a service duration to a start time within the same day.

    Raises:
        ValidationError: If the duration is not positive or the service would end after midnight
    """
    if duration_minutes <= 0:
        raise ValidationError("La duración del servicio debe ser mayor a cero")
    end_minutes = to_minutes(start_time) + duration_minutes
    if end_minutes >= MINUTES_PER_DAY:
        raise ValidationError("El servicio no puede terminar después de la medianoche")
    return from_minutes(end_minutes)


def count_occupied_appointments(db: Session, barber_id: int, target_date: date) -> int:
    return db.query(Appointment).filter(
        Appointment.barber_id == barber_id,
        Appointment.date == target_date,
        Appointment.status.notin_(NON_OCCUPYING_STATUSES)
    ).count()


def fits_schedule(db: Session, barber_id: int, target_date: date, start_time: time, end_time: time) -> bool:
    """
    Check that a window lies inside the barber's open hours for the date.

    The window must sit entirely inside one working block without touching
    its break, and the date must not be a special day.
    """
    if get_special_day(db, barber_id, target_date) is not None:
        return False
    window = TimeInterval.from_times(start_time, end_time)
    for block in get_working_blocks(db, barber_id, weekday_for_date(target_date)):
        day_block = to_day_block(block)
        if not day_block.interval.contains(window):
            continue
        if day_block.break_interval is not None and window.overlaps(day_block.break_interval):
            continue
        return True
    return False


def write_appointment(
    db: Session,
    barber_id: int,
    resolve_client: Callable[[], Client],
    service: Service,
    target_date: date,
    start_time: time,
    end_time: time,
    status: str = AppointmentStatus.RESERVED.value,
    price_final: Optional[Decimal] = None,
    notes: Optional[str] = None,
    max_per_day: Optional[int] = None,
) -> Appointment:
    """
    Lock, re-check and insert a new appointment, then commit.

    Args:
        db: Database session
        barber_id: Barber ID
        resolve_client: Returns the booking client; called under the barber lock,
            so a client row inserted by a concurrent booking surfaces as a conflict
        service: Booked service
        target_date: Appointment date
        start_time: Start of the window
        end_time: End of the window
        status: Initial status
        price_final: Price to charge (defaults to the service price)
        notes: Optional notes
        max_per_day: Daily cap on occupied appointments, if any

    Returns:
        The committed appointment

    Raises:
        SlotUnavailableError: If the window is taken (re-check or unique index)
        ConflictError: If the daily cap is reached
        TransientStoreError: On lock or statement timeout, or lost connection
    """
    try:
        lock_barber(db, barber_id)

        if not is_available(db, barber_id, target_date, start_time, end_time):
            raise SlotUnavailableError()

        if max_per_day is not None and count_occupied_appointments(db, barber_id, target_date) >= max_per_day:
            raise ConflictError("No quedan turnos disponibles para esa fecha. Elegí otro día.")

        client = resolve_client()
        increment_visits(db, client)

        appointment = Appointment(
            barber_id=barber_id,
            client_id=client.id,
            service_id=service.id,
            date=target_date,
            start_time=start_time,
            end_time=end_time,
            status=status,
            price_final=price_final if price_final is not None else service.price,
            cancel_code=generate_cancel_code(db),
            notes=notes,
        )
        db.add(appointment)
        db.commit()
    except BookingError:
        db.rollback()
        raise
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"Concurrent booking detected for barber {barber_id} on {target_date} {start_time}: {e}")
        raise SlotUnavailableError() from e
    except OperationalError as e:
        db.rollback()
        logger.error(f"Store failure while booking for barber {barber_id} on {target_date}: {e}")
        raise TransientStoreError("El servicio no está disponible momentáneamente. Intentá de nuevo.") from e

    db.refresh(appointment)
    return appointment


def _parse_request_datetime(date_str: str, time_str: str) -> tuple[date, time]:
    try:
        target_date = parse_date_string(date_str)
    except ValueError as e:
        raise ValidationError("Fecha inválida (formato esperado: AAAA-MM-DD)") from e
    try:
        start_time = parse_time_string(time_str)
    except ValueError as e:
        raise ValidationError("Hora inválida (formato esperado: HH:MM)") from e
    return target_date, start_time


def _check_booking_window(now: datetime, target_date: date, start_time: time, allow_same_day: bool) -> None:
    today = now.date()
    if target_date < today:
        raise ValidationError("No se pueden reservar turnos en fechas pasadas")
    if target_date == today:
        if not allow_same_day:
            raise ValidationError("El barbero no acepta reservas para el mismo día")
        if start_time <= now.time().replace(tzinfo=None):
            raise ValidationError("No se pueden reservar turnos en horarios pasados")


def create_booking(
    db: Session,
    barber_id: int,
    service_id: int,
    date_str: str,
    start_time_str: str,
    first_name: str,
    last_name: str,
    phone: str,
    email: Optional[str] = None,
    notes: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Book a slot from the public booking form.

    Args:
        db: Database session
        barber_id: Barber ID
        service_id: Service to book
        date_str: Date in YYYY-MM-DD format
        start_time_str: Start time in HH:MM format
        first_name: Client's first name
        last_name: Client's last name
        phone: Client's phone (identifies the client)
        email: Optional client email
        notes: Optional notes for the barber
        now: Current time override (tests); defaults to the barber's local time

    Returns:
        Booking summary with appointment id and cancellation code

    Raises:
        ValidationError: Missing or malformed fields, past dates, same-day refused
        NotFoundError: Barber or service absent or inactive
        SlotUnavailableError: Window taken or outside open hours
        ConflictError: Daily cap reached
        TransientStoreError: Store unavailable (not retried)
    """
    if not service_id:
        raise ValidationError("El servicio es requerido")
    target_date, start_time = _parse_request_datetime(date_str, start_time_str)
    try:
        notes = validate_notes_field(notes)
    except ValueError as e:
        raise ValidationError(str(e)) from e
    first_name, last_name, phone, email = normalize_client_fields(first_name, last_name, phone, email)

    get_active_barber(db, barber_id)
    service = get_service(db, barber_id, service_id, active_only=True)
    config = get_barber_config(db, barber_id)

    now = now or barber_now(config.timezone)
    _check_booking_window(now, target_date, start_time, config.allow_same_day_booking)
    end_time = compute_end_time(start_time, service.duration_minutes)

    if not fits_schedule(db, barber_id, target_date, start_time, end_time):
        raise SlotUnavailableError("El horario solicitado está fuera del horario de atención. Actualizá los horarios e intentá de nuevo.")

    appointment = write_appointment(
        db,
        barber_id=barber_id,
        resolve_client=lambda: find_or_create_by_phone(db, first_name, last_name, phone, email),
        service=service,
        target_date=target_date,
        start_time=start_time,
        end_time=end_time,
        notes=notes,
        max_per_day=config.max_bookings_per_day,
    )

    logger.info(
        f"Booked appointment {appointment.id} for client {appointment.client_id} with barber {barber_id} "
        f"on {target_date} {format_hhmm(start_time)}-{format_hhmm(end_time)}"
    )
    return appointment_summary(appointment)


def appointment_summary(appointment: Appointment) -> Dict[str, Any]:
    """Build the booking summary returned to clients and the dashboard."""
    client = appointment.client
    service = appointment.service
    return {
        "appointment_id": appointment.id,
        "cancel_code": appointment.cancel_code,
        "client": {
            "id": client.id,
            "first_name": client.first_name,
            "last_name": client.last_name,
            "phone": client.phone,
            "email": client.email,
        },
        "service": {
            "id": service.id,
            "name": service.name,
            "duration_minutes": service.duration_minutes,
            "price": service.price,
        },
        "appointment": {
            "barber_id": appointment.barber_id,
            "date": appointment.date.isoformat(),
            "start_time": format_hhmm(appointment.start_time),
            "end_time": format_hhmm(appointment.end_time),
            "status": appointment.status,
            "price_final": appointment.price_final,
            "notes": appointment.notes,
        },
    }


def _normalize_code(code: str) -> str:
    normalized = (code or "").strip().upper()
    if not normalized:
        raise ValidationError("El código de cancelación es requerido")
    return normalized


@retry_on_transient_store_error()
def get_booking_by_code(db: Session, code: str) -> Dict[str, Any]:
    """
    Look up a booking by its cancellation code (case-insensitive).

    Raises:
        ValidationError: If the code is empty
        NotFoundError: If no appointment has this code
    """
    normalized = _normalize_code(code)
    appointment = db.query(Appointment).filter(Appointment.cancel_code == normalized).first()
    if not appointment:
        raise NotFoundError("No se encontró un turno con ese código")
    return appointment_summary(appointment)


def cancel_booking_by_code(db: Session, code: str) -> Dict[str, Any]:
    """
    Cancel a booking by its cancellation code.

    Only reserved and confirmed appointments can be cancelled this way.

    Raises:
        ValidationError: If the code is empty
        NotFoundError: If no appointment has this code
        ConflictError: If the appointment is already cancelled or past the cancellable states
    """
    normalized = _normalize_code(code)
    try:
        appointment = db.query(Appointment).filter(
            Appointment.cancel_code == normalized
        ).with_for_update().first()
        if not appointment:
            raise NotFoundError("No se encontró un turno con ese código")

        if appointment.status == AppointmentStatus.CANCELLED.value:
            raise ConflictError("El turno ya fue cancelado")
        if appointment.status not in SELF_CANCELLABLE_STATUSES:
            raise ConflictError("El turno ya no puede cancelarse")

        apply_transition(appointment, AppointmentStatus.CANCELLED.value)
        db.commit()
    except (ConflictError, NotFoundError):
        db.rollback()
        raise
    except OperationalError as e:
        db.rollback()
        logger.error(f"Store failure while cancelling booking {normalized}: {e}")
        raise TransientStoreError("El servicio no está disponible momentáneamente. Intentá de nuevo.") from e

    logger.info(f"Appointment {appointment.id} cancelled by client with code")
    return appointment_summary(appointment)
