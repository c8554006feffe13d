"""
Service catalog management.

Each barber offers a catalog of services; a service's duration is the
length of every slot offered for it.
"""

import logging
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from core.constants import DEFAULT_SERVICE_DURATION_MINUTES
from core.exceptions import NotFoundError, ValidationError
from models import Service, ServiceStatus
from services.barber_service import get_barber

logger = logging.getLogger(__name__)


def _validate_service_fields(name: Optional[str], price: Optional[Decimal], duration_minutes: Optional[int]) -> None:
    if name is not None and not name.strip():
        raise ValidationError("El nombre del servicio es requerido")
    if price is not None and price < 0:
        raise ValidationError("El precio no puede ser negativo")
    if duration_minutes is not None and duration_minutes <= 0:
        raise ValidationError("La duración del servicio debe ser mayor a cero")


def list_services(db: Session, barber_id: int, include_inactive: bool = False) -> List[Service]:
    """
    List a barber's services ordered by name.

    Args:
        db: Database session
        barber_id: Barber ID
        include_inactive: Also return deactivated services (dashboard view)
    """
    query = db.query(Service).filter(Service.barber_id == barber_id)
    if not include_inactive:
        query = query.filter(Service.status == ServiceStatus.ACTIVE.value)
    return query.order_by(Service.name).all()


def get_service(db: Session, barber_id: int, service_id: int, active_only: bool = False) -> Service:
    """
    Get one of a barber's services.

    Raises:
        NotFoundError: If the service does not exist, belongs to another
            barber, or is inactive while ``active_only`` is set
    """
    service = db.query(Service).filter(
        Service.id == service_id,
        Service.barber_id == barber_id
    ).first()
    if not service or (active_only and not service.is_active):
        raise NotFoundError("Servicio no encontrado o no disponible")
    return service


def create_service(
    db: Session,
    barber_id: int,
    name: str,
    duration_minutes: int,
    price: Decimal = Decimal("0"),
    description: Optional[str] = None,
) -> Service:
    """
    Add a service to a barber's catalog.

    Raises:
        NotFoundError: If the barber does not exist
        ValidationError: If the name is empty, the price negative or the duration not positive
    """
    get_barber(db, barber_id)
    _validate_service_fields(name, price, duration_minutes)

    service = Service(
        barber_id=barber_id,
        name=name.strip(),
        description=description,
        price=price,
        duration_minutes=duration_minutes,
        status=ServiceStatus.ACTIVE.value,
    )
    db.add(service)
    db.commit()
    db.refresh(service)
    logger.info(f"Created service {service.id} for barber {barber_id} ({duration_minutes} min)")
    return service


def update_service(
    db: Session,
    barber_id: int,
    service_id: int,
    name: Optional[str] = None,
    duration_minutes: Optional[int] = None,
    price: Optional[Decimal] = None,
    description: Optional[str] = None,
    status: Optional[str] = None,
) -> Service:
    """
    Update a service. Fields left as None keep their value.

    Existing appointments keep their stored end time when the duration changes.
    """
    service = get_service(db, barber_id, service_id)
    _validate_service_fields(name, price, duration_minutes)
    if status is not None and status not in (ServiceStatus.ACTIVE.value, ServiceStatus.INACTIVE.value):
        raise ValidationError(f"Estado de servicio inválido: {status}")

    if name is not None:
        service.name = name.strip()
    if duration_minutes is not None:
        service.duration_minutes = duration_minutes
    if price is not None:
        service.price = price
    if description is not None:
        service.description = description
    if status is not None:
        service.status = status

    db.commit()
    db.refresh(service)
    logger.info(f"Updated service {service_id} for barber {barber_id}")
    return service


def deactivate_service(db: Session, barber_id: int, service_id: int) -> Service:
    """Soft-delete a service: it disappears from booking but keeps its history."""
    service = get_service(db, barber_id, service_id)
    service.status = ServiceStatus.INACTIVE.value
    db.commit()
    logger.info(f"Deactivated service {service_id} for barber {barber_id}")
    return service


def resolve_service_duration(db: Session, barber_id: int, service_id: Optional[int]) -> int:
    """
    Get the slot length for a slot query.

    Falls back to the default duration, with a warning, when no service id
    is given or the id does not name an active service of the barber.

    Args:
        db: Database session
        barber_id: Barber ID
        service_id: Optional service ID from the query

    Returns:
        Duration in minutes
    """
    if service_id is None:
        logger.warning(
            f"Slot query for barber {barber_id} without service; "
            f"using default duration of {DEFAULT_SERVICE_DURATION_MINUTES} minutes"
        )
        return DEFAULT_SERVICE_DURATION_MINUTES

    service = db.query(Service).filter(
        Service.id == service_id,
        Service.barber_id == barber_id,
        Service.status == ServiceStatus.ACTIVE.value
    ).first()
    if not service:
        logger.warning(
            f"Service {service_id} not found for barber {barber_id}; "
            f"using default duration of {DEFAULT_SERVICE_DURATION_MINUTES} minutes"
        )
        return DEFAULT_SERVICE_DURATION_MINUTES
    return service.duration_minutes
