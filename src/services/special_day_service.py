"""
Special-day overrides (holidays, vacations, custom closures).
"""

import logging
from datetime import date, time
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from core.exceptions import ConflictError, NotFoundError, ValidationError
from models import SpecialDay, SpecialDayKind
from services.barber_service import get_barber

logger = logging.getLogger(__name__)

_KINDS = {kind.value for kind in SpecialDayKind}


def get_special_day(db: Session, barber_id: int, target_date: date) -> Optional[SpecialDay]:
    """
    Get the override for a barber's date, if any.

    A returned override means the date offers no slots at all.
    """
    return db.query(SpecialDay).filter(
        SpecialDay.barber_id == barber_id,
        SpecialDay.date == target_date
    ).first()


def list_special_days(db: Session, barber_id: int, start: Optional[date] = None, end: Optional[date] = None) -> List[SpecialDay]:
    """List a barber's overrides, optionally within an inclusive date range."""
    query = db.query(SpecialDay).filter(SpecialDay.barber_id == barber_id)
    if start is not None:
        query = query.filter(SpecialDay.date >= start)
    if end is not None:
        query = query.filter(SpecialDay.date <= end)
    return query.order_by(SpecialDay.date).all()


def create_special_day(
    db: Session,
    barber_id: int,
    target_date: date,
    kind: str = SpecialDayKind.CUSTOM.value,
    whole_day: bool = True,
    range_start: Optional[time] = None,
    range_end: Optional[time] = None,
    description: str = "",
) -> SpecialDay:
    """
    Create an override for one date.

    Raises:
        NotFoundError: If the barber does not exist
        ValidationError: If the kind is unknown or a partial day has no valid range
        ConflictError: If the date already has an override
    """
    get_barber(db, barber_id)
    if kind not in _KINDS:
        raise ValidationError(f"Tipo de día especial inválido: {kind}")
    if whole_day:
        range_start = range_end = None
    elif range_start is None or range_end is None or range_start >= range_end:
        raise ValidationError("Un día especial parcial necesita un rango horario válido (inicio < fin)")

    special_day = SpecialDay(
        barber_id=barber_id,
        date=target_date,
        kind=kind,
        whole_day=whole_day,
        range_start=range_start,
        range_end=range_end,
        description=description or "",
    )
    try:
        db.add(special_day)
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"Duplicate special day for barber {barber_id} on {target_date}: {e}")
        raise ConflictError("Ya existe un día especial para esa fecha") from e

    db.refresh(special_day)
    logger.info(f"Created {kind} special day for barber {barber_id} on {target_date}")
    return special_day


def delete_special_day(db: Session, barber_id: int, special_day_id: int) -> None:
    """
    Remove an override.

    Raises:
        NotFoundError: If the override does not exist for this barber
    """
    special_day = db.query(SpecialDay).filter(
        SpecialDay.id == special_day_id,
        SpecialDay.barber_id == barber_id
    ).first()
    if not special_day:
        raise NotFoundError("Día especial no encontrado")
    db.delete(special_day)
    db.commit()
    logger.info(f"Deleted special day {special_day_id} for barber {barber_id}")
