"""
Barber lookup and registration.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from core.exceptions import NotFoundError, ValidationError
from models import Barber

logger = logging.getLogger(__name__)


def get_barber(db: Session, barber_id: int) -> Barber:
    """
    Get a barber by id, active or not.

    Raises:
        NotFoundError: If the barber does not exist
    """
    barber = db.query(Barber).filter(Barber.id == barber_id).first()
    if not barber:
        raise NotFoundError("Barbero no encontrado")
    return barber


def get_active_barber(db: Session, barber_id: int) -> Barber:
    """
    Get a barber that currently accepts bookings.

    Raises:
        NotFoundError: If the barber does not exist or is inactive
    """
    barber = get_barber(db, barber_id)
    if not barber.is_active:
        raise NotFoundError("Barbero no encontrado")
    return barber


def lock_barber(db: Session, barber_id: int) -> Barber:
    """
    Take the per-barber booking lock for the current transaction.

    Serializes concurrent writers that re-check availability for the same
    barber. Lock waits are bounded by the connection's lock_timeout; a
    timeout surfaces as OperationalError to the caller.

    Raises:
        NotFoundError: If the barber does not exist or is inactive
    """
    barber = db.query(Barber).filter(Barber.id == barber_id).with_for_update().first()
    if not barber or not barber.is_active:
        raise NotFoundError("Barbero no encontrado")
    return barber


def create_barber(db: Session, name: str, email: Optional[str] = None, phone: Optional[str] = None) -> Barber:
    """Register a new barber."""
    if not name or not name.strip():
        raise ValidationError("El nombre del barbero es requerido")
    barber = Barber(name=name.strip(), email=email, phone=phone, is_active=True)
    db.add(barber)
    db.commit()
    db.refresh(barber)
    logger.info(f"Created barber {barber.id}")
    return barber
