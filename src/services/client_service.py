"""
Client lookup, registration and visit tracking.
"""

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.constants import CLIENT_HISTORY_LIMIT, CLIENT_SEARCH_LIMIT
from core.exceptions import ConflictError, NotFoundError, ValidationError
from models import Appointment, AppointmentStatus, Client, NON_OCCUPYING_STATUSES
from utils.client_validators import validate_email_optional, validate_name_field, validate_notes_field
from utils.datetime_utils import format_hhmm, utc_now
from utils.phone_validator import validate_phone

logger = logging.getLogger(__name__)


def normalize_client_fields(
    first_name: str,
    last_name: str,
    phone: str,
    email: Optional[str] = None,
) -> Tuple[str, str, str, Optional[str]]:
    """
    Validate and normalize the identity fields of a client.

    Returns:
        (first_name, last_name, phone digits, email or None)

    Raises:
        ValidationError: If a field is missing or malformed
    """
    try:
        return (
            validate_name_field(first_name, 'nombre'),
            validate_name_field(last_name, 'apellido'),
            validate_phone(phone),
            validate_email_optional(email),
        )
    except ValueError as e:
        raise ValidationError(str(e)) from e


def find_or_create_by_phone(
    db: Session,
    first_name: str,
    last_name: str,
    phone: str,
    email: Optional[str] = None,
) -> Client:
    """
    Find a client by phone number or register a new one.

    The phone is normalized to digits before lookup. When the client exists
    and the submitted name or email differ from the stored ones, the stored
    values are updated. Does not commit; the caller owns the transaction.

    Args:
        db: Database session
        first_name: Client's first name
        last_name: Client's last name
        phone: Phone number in any common notation
        email: Optional email address

    Returns:
        Existing or newly created client (flushed, so it has an id)

    Raises:
        ValidationError: If a field is missing or malformed
        IntegrityError: If a concurrent transaction registered the same phone
    """
    first_name, last_name, cleaned_phone, email = normalize_client_fields(first_name, last_name, phone, email)

    client = db.query(Client).filter(Client.phone == cleaned_phone).first()
    if client:
        changed = False
        if client.first_name != first_name or client.last_name != last_name:
            client.first_name = first_name
            client.last_name = last_name
            changed = True
        if email and client.email != email:
            client.email = email
            changed = True
        if changed:
            logger.info(f"Updated contact details of client {client.id}")
        return client

    client = Client(
        first_name=first_name,
        last_name=last_name,
        phone=cleaned_phone,
        email=email,
        total_visits=0,
    )
    db.add(client)
    db.flush()
    logger.info(f"Registered new client {client.id}")
    return client


def increment_visits(db: Session, client: Client) -> None:
    """Count one more visit and stamp the last visit time. Does not commit."""
    client.total_visits = (client.total_visits or 0) + 1
    client.last_visit_at = utc_now()
    db.flush()


def get_client(db: Session, client_id: int) -> Client:
    """
    Raises:
        NotFoundError: If the client does not exist
    """
    client = db.query(Client).filter(Client.id == client_id).first()
    if not client:
        raise NotFoundError("Cliente no encontrado")
    return client


def get_client_for_barber(db: Session, barber_id: int, client_id: int) -> Client:
    """
    Get a client that has booked at least once with the barber.

    Clients are shared across barbers; a barber only sees the ones who
    booked with them.

    Raises:
        NotFoundError: If the client does not exist or never booked with the barber
    """
    client = db.query(Client).join(
        Appointment, Appointment.client_id == Client.id
    ).filter(
        Client.id == client_id,
        Appointment.barber_id == barber_id,
    ).first()
    if not client:
        raise NotFoundError("Cliente no encontrado")
    return client


def list_clients(db: Session, barber_id: int) -> List[Client]:
    """List the clients who ever booked with a barber, most frequent first."""
    return db.query(Client).join(
        Appointment, Appointment.client_id == Client.id
    ).filter(
        Appointment.barber_id == barber_id
    ).distinct().order_by(Client.total_visits.desc(), Client.last_name, Client.first_name).all()


def search_clients(db: Session, barber_id: int, term: str, limit: int = CLIENT_SEARCH_LIMIT) -> List[Client]:
    """
    Search a barber's clients by first name, last name or full name.

    Matching is a case-insensitive substring match. A blank term returns
    no results.
    """
    term = (term or "").strip()
    if not term:
        return []
    pattern = f"%{term}%"
    return db.query(Client).join(
        Appointment, Appointment.client_id == Client.id
    ).filter(
        Appointment.barber_id == barber_id,
        Client.first_name.ilike(pattern)
        | Client.last_name.ilike(pattern)
        | (Client.first_name + ' ' + Client.last_name).ilike(pattern),
    ).distinct().order_by(Client.first_name, Client.last_name).limit(limit).all()


def get_client_details(
    db: Session,
    barber_id: int,
    client_id: int,
    history_limit: int = CLIENT_HISTORY_LIMIT,
) -> Dict[str, Any]:
    """
    Get a client with their visit history and spending with one barber.

    Only completed appointments count towards the amount spent.

    Args:
        db: Database session
        barber_id: Barber ID
        client_id: Client ID
        history_limit: Maximum number of appointments in the history

    Returns:
        Dict with the client, its statistics and the most recent appointments

    Raises:
        NotFoundError: If the client never booked with the barber
    """
    client = get_client_for_barber(db, barber_id, client_id)
    appointments = db.query(Appointment).filter(
        Appointment.client_id == client_id,
        Appointment.barber_id == barber_id,
    ).order_by(Appointment.date.desc(), Appointment.start_time.desc()).all()

    completed = [a for a in appointments if a.status == AppointmentStatus.COMPLETED.value]
    total_spent = sum((Decimal(a.price_final or 0) for a in completed), Decimal("0"))

    return {
        "client": client,
        "stats": {
            "total_appointments": len(appointments),
            "completed_appointments": len(completed),
            "cancelled_appointments": sum(1 for a in appointments if a.status == AppointmentStatus.CANCELLED.value),
            "total_spent": total_spent,
            "average_spent": total_spent / len(completed) if completed else None,
            "last_appointment_date": appointments[0].date if appointments else None,
        },
        "appointments": [
            {
                "id": a.id,
                "date": a.date.isoformat(),
                "start_time": format_hhmm(a.start_time),
                "end_time": format_hhmm(a.end_time),
                "status": a.status,
                "price_final": a.price_final,
                "notes": a.notes,
                "service_name": a.service.name,
            }
            for a in appointments[:history_limit]
        ],
    }


def update_client(
    db: Session,
    barber_id: int,
    client_id: int,
    first_name: str,
    last_name: str,
    phone: str,
    email: Optional[str] = None,
    notes: Optional[str] = None,
) -> Client:
    """
    Replace a client's contact details and notes.

    Raises:
        ValidationError: If a field is missing or malformed
        NotFoundError: If the client never booked with the barber
        ConflictError: If another client already uses the phone number
    """
    first_name, last_name, cleaned_phone, email = normalize_client_fields(first_name, last_name, phone, email)
    try:
        notes = validate_notes_field(notes)
    except ValueError as e:
        raise ValidationError(str(e)) from e

    client = get_client_for_barber(db, barber_id, client_id)
    taken = db.query(Client.id).filter(Client.phone == cleaned_phone, Client.id != client_id).first()
    if taken:
        raise ConflictError("Ya existe otro cliente con ese teléfono")

    client.first_name = first_name
    client.last_name = last_name
    client.phone = cleaned_phone
    client.email = email
    client.notes = notes
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        raise ConflictError("Ya existe otro cliente con ese teléfono") from e

    db.refresh(client)
    logger.info(f"Barber {barber_id} updated client {client_id}")
    return client


def delete_client(db: Session, barber_id: int, client_id: int) -> None:
    """
    Delete a client together with their past appointments with the barber.

    Raises:
        NotFoundError: If the client never booked with the barber
        ConflictError: If the client still holds occupied appointments, or
            has appointments with other barbers
    """
    client = get_client_for_barber(db, barber_id, client_id)

    occupied = db.query(Appointment.id).filter(
        Appointment.client_id == client_id,
        Appointment.status.notin_(NON_OCCUPYING_STATUSES),
    ).first()
    if occupied:
        raise ConflictError("No se puede eliminar un cliente que tiene turnos pendientes")

    elsewhere = db.query(Appointment.id).filter(
        Appointment.client_id == client_id,
        Appointment.barber_id != barber_id,
    ).first()
    if elsewhere:
        raise ConflictError("No se puede eliminar un cliente que tiene turnos con otros barberos")

    for appointment in db.query(Appointment).filter(
        Appointment.client_id == client_id,
        Appointment.barber_id == barber_id,
    ).all():
        db.delete(appointment)
    db.delete(client)
    db.commit()
    logger.info(f"Barber {barber_id} deleted client {client_id}")
