# pyright: reportMissingTypeStubs=false
"""
Public booking API endpoints.

Used by the client-facing booking form. No authentication: bookings are
identified afterwards by their cancellation code only.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from api.responses import (
    AvailabilityResponse,
    AvailabilitySlot,
    BookingResponse,
    ServiceListResponse,
    ServiceResponse,
)
from core.database import get_db
from core.exceptions import BookingError
from services import availability_service, booking_service
from services.barber_config_service import get_barber_config
from services.barber_service import get_active_barber
from services.service_catalog_service import list_services
from utils.client_validators import validate_email_optional, validate_name_field, validate_notes_field
from utils.phone_validator import validate_phone

logger = logging.getLogger(__name__)

router = APIRouter()


class BookingCreateRequest(BaseModel):
    """Request model for a public booking."""
    barber_id: int
    service_id: int
    date: str  # YYYY-MM-DD
    start_time: str  # HH:MM
    first_name: str
    last_name: str
    phone: str
    email: Optional[str] = None
    notes: Optional[str] = None

    @field_validator('first_name')
    @classmethod
    def validate_first_name(cls, v: str) -> str:
        return validate_name_field(v, 'nombre')

    @field_validator('last_name')
    @classmethod
    def validate_last_name(cls, v: str) -> str:
        return validate_name_field(v, 'apellido')

    @field_validator('phone')
    @classmethod
    def validate_phone_number(cls, v: str) -> str:
        return validate_phone(v)

    @field_validator('email')
    @classmethod
    def validate_email(cls, v: Optional[str]) -> Optional[str]:
        return validate_email_optional(v)

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, v: Optional[str]) -> Optional[str]:
        return validate_notes_field(v)


@router.get("/barbers/{barber_id}/services", response_model=ServiceListResponse)
async def get_public_services(barber_id: int, db: Session = Depends(get_db)):
    """
    List a barber's active services for the booking form.

    Prices are omitted when the barber chose not to show them.
    """
    get_active_barber(db, barber_id)
    config = get_barber_config(db, barber_id)
    services = []
    for service in list_services(db, barber_id):
        item = ServiceResponse.model_validate(service)
        if not config.show_prices:
            item.price = None
        services.append(item)
    return ServiceListResponse(services=services, currency=config.currency if config.show_prices else None)


@router.get("/barbers/{barber_id}/slots", response_model=AvailabilityResponse)
async def get_available_slots(
    barber_id: int,
    date: str,
    service_id: Optional[int] = Query(None),
    exclude_appointment_id: Optional[int] = Query(None, description="Appointment to ignore as busy time (for appointment editing)"),
    db: Session = Depends(get_db)
):
    """
    Get available time slots for a barber's day.

    Returns an empty list plus a reason when the barber does not work that
    day, the date is a special day, or every slot is taken.
    """
    try:
        result = availability_service.get_available_slots(
            db=db,
            barber_id=barber_id,
            date_str=date,
            service_id=service_id,
            exclude_appointment_id=exclude_appointment_id,
        )
        return AvailabilityResponse(
            date=result.date.isoformat(),
            duration_minutes=result.duration_minutes,
            slots=[AvailabilitySlot(**slot.to_dict()) for slot in result.slots],  # type: ignore[arg-type]
            message=result.message,
        )

    except BookingError:
        raise
    except Exception as e:
        logger.exception(
            f"Unexpected error in slots endpoint: date={date}, barber_id={barber_id}, "
            f"service_id={service_id}, error={e}"
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="No se pudieron obtener los horarios disponibles"
        )


@router.post("/bookings", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(request: BookingCreateRequest, db: Session = Depends(get_db)):
    """
    Book a slot.

    The slot is re-validated against current bookings inside the booking
    transaction; a 409 means it was taken in the meantime and the client
    should fetch the slot list again.
    """
    try:
        summary = booking_service.create_booking(
            db=db,
            barber_id=request.barber_id,
            service_id=request.service_id,
            date_str=request.date,
            start_time_str=request.start_time,
            first_name=request.first_name,
            last_name=request.last_name,
            phone=request.phone,
            email=request.email,
            notes=request.notes,
        )
        return BookingResponse(message="Turno reservado exitosamente", **summary)

    except BookingError:
        raise
    except Exception as e:
        logger.exception(f"Unexpected error creating booking for barber {request.barber_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="No se pudo completar la reserva"
        )


@router.get("/bookings/{code}", response_model=BookingResponse)
async def get_booking(code: str, db: Session = Depends(get_db)):
    """Look up a booking by cancellation code."""
    summary = booking_service.get_booking_by_code(db, code)
    return BookingResponse(**summary)


@router.post("/bookings/{code}/cancel", response_model=BookingResponse)
async def cancel_booking(code: str, db: Session = Depends(get_db)):
    """Cancel a booking by cancellation code."""
    summary = booking_service.cancel_booking_by_code(db, code)
    return BookingResponse(message="Turno cancelado exitosamente", **summary)
