# pyright: reportMissingTypeStubs=false
"""
Barber dashboard API endpoints.

Configuration, service catalog, weekly schedule, special days, clients and
appointment management for one barber. Authentication is handled outside
this service.
"""

import logging
from datetime import date as date_type, time
from decimal import Decimal
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.orm import Session

from api.responses import (
    AppointmentListResponse,
    AppointmentResponse,
    BarberConfigResponse,
    ClientDetailsResponse,
    ClientHistoryEntry,
    ClientListResponse,
    ClientResponse,
    ClientStats,
    ServiceListResponse,
    ServiceResponse,
    SpecialDayListResponse,
    SpecialDayResponse,
    SuccessResponse,
    WeeklyScheduleResponse,
    WorkingBlockResponse,
)
from core.database import get_db
from models import SpecialDayKind
from services import (
    appointment_service,
    barber_config_service,
    client_service,
    service_catalog_service,
    special_day_service,
    working_hours_service,
)
from services.barber_service import get_barber
from services.working_hours_service import WorkingBlockInput
from utils.client_validators import validate_notes_field
from utils.datetime_utils import parse_date_string

logger = logging.getLogger(__name__)

router = APIRouter()


# ===== Request Models =====

class BarberConfigUpdateRequest(BaseModel):
    """Partial configuration update; omitted fields keep their value."""
    buffer_minutes: Optional[int] = None
    lead_time_minutes: Optional[int] = None
    max_bookings_per_day: Optional[int] = None
    allow_same_day_booking: Optional[bool] = None
    show_prices: Optional[bool] = None
    currency: Optional[str] = None
    timezone: Optional[str] = None


class ServiceCreateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    duration_minutes: int = Field(gt=0, le=720)
    price: Decimal = Field(default=Decimal("0"), ge=0)
    description: Optional[str] = Field(default=None, max_length=500)


class ServiceUpdateRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    duration_minutes: Optional[int] = Field(default=None, gt=0, le=720)
    price: Optional[Decimal] = Field(default=None, ge=0)
    description: Optional[str] = Field(default=None, max_length=500)
    status: Optional[str] = None


class WeekdayScheduleRequest(BaseModel):
    """All blocks of one weekday; an empty list closes the day."""
    blocks: List[WorkingBlockInput]


class SpecialDayCreateRequest(BaseModel):
    date: date_type
    kind: str = SpecialDayKind.CUSTOM.value
    whole_day: bool = True
    range_start: Optional[time] = None
    range_end: Optional[time] = None
    description: str = Field(default="", max_length=255)


class ClientUpdateRequest(BaseModel):
    first_name: str
    last_name: str
    phone: str
    email: Optional[str] = None
    notes: Optional[str] = None


class AppointmentCreateRequest(BaseModel):
    """Walk-in or phone booking entered by the barber."""
    client_id: int
    service_id: int
    date: str  # YYYY-MM-DD
    start_time: str  # HH:MM
    status: Optional[str] = None  # 'reserved' (default) or 'confirmed'
    price_final: Optional[Decimal] = None
    notes: Optional[str] = None

    @field_validator('notes')
    @classmethod
    def validate_notes(cls, v: Optional[str]) -> Optional[str]:
        return validate_notes_field(v)


class AppointmentRescheduleRequest(BaseModel):
    date: str  # YYYY-MM-DD
    start_time: str  # HH:MM
    service_id: Optional[int] = None


class AppointmentStatusRequest(BaseModel):
    status: str


# ===== Configuration =====

@router.get("/config", response_model=BarberConfigResponse)
async def get_config(barber_id: int, db: Session = Depends(get_db)):
    """Get the barber's booking configuration (defaults when never saved)."""
    get_barber(db, barber_id)
    config = barber_config_service.get_barber_config(db, barber_id)
    return BarberConfigResponse(**config.model_dump())


@router.put("/config", response_model=BarberConfigResponse)
async def update_config(barber_id: int, request: BarberConfigUpdateRequest, db: Session = Depends(get_db)):
    """Update the barber's booking configuration."""
    changes = request.model_dump(exclude_none=True)
    config = barber_config_service.update_barber_config(db, barber_id, changes)
    return BarberConfigResponse(**config.model_dump())


# ===== Service catalog =====

@router.get("/services", response_model=ServiceListResponse)
async def get_services(barber_id: int, include_inactive: bool = Query(True), db: Session = Depends(get_db)):
    """List the barber's services, including inactive ones by default."""
    get_barber(db, barber_id)
    services = service_catalog_service.list_services(db, barber_id, include_inactive=include_inactive)
    return ServiceListResponse(services=[ServiceResponse.model_validate(s) for s in services])


@router.post("/services", response_model=ServiceResponse, status_code=status.HTTP_201_CREATED)
async def create_service(barber_id: int, request: ServiceCreateRequest, db: Session = Depends(get_db)):
    service = service_catalog_service.create_service(
        db,
        barber_id=barber_id,
        name=request.name,
        duration_minutes=request.duration_minutes,
        price=request.price,
        description=request.description,
    )
    return ServiceResponse.model_validate(service)


@router.put("/services/{service_id}", response_model=ServiceResponse)
async def update_service(barber_id: int, service_id: int, request: ServiceUpdateRequest, db: Session = Depends(get_db)):
    service = service_catalog_service.update_service(
        db,
        barber_id=barber_id,
        service_id=service_id,
        **request.model_dump(exclude_none=True),
    )
    return ServiceResponse.model_validate(service)


@router.delete("/services/{service_id}", response_model=SuccessResponse)
async def delete_service(barber_id: int, service_id: int, db: Session = Depends(get_db)):
    """Deactivate a service; past appointments keep referencing it."""
    service_catalog_service.deactivate_service(db, barber_id, service_id)
    return SuccessResponse(message="Servicio desactivado")


# ===== Weekly schedule =====

@router.get("/working-hours", response_model=WeeklyScheduleResponse)
async def get_working_hours(barber_id: int, db: Session = Depends(get_db)):
    get_barber(db, barber_id)
    schedule = working_hours_service.get_weekly_schedule(db, barber_id)
    return WeeklyScheduleResponse(schedule={
        weekday: [WorkingBlockResponse.model_validate(block) for block in blocks]
        for weekday, blocks in schedule.items()
    })


@router.put("/working-hours/{weekday}", response_model=WeeklyScheduleResponse)
async def replace_working_hours(barber_id: int, weekday: int, request: WeekdayScheduleRequest, db: Session = Depends(get_db)):
    """Replace every block of one weekday (0=Monday ... 6=Sunday)."""
    blocks = working_hours_service.replace_weekday_blocks(db, barber_id, weekday, request.blocks)
    return WeeklyScheduleResponse(schedule={
        weekday: [WorkingBlockResponse.model_validate(block) for block in blocks]
    })


# ===== Special days =====

@router.get("/special-days", response_model=SpecialDayListResponse)
async def get_special_days(
    barber_id: int,
    start: Optional[date_type] = Query(None),
    end: Optional[date_type] = Query(None),
    db: Session = Depends(get_db)
):
    get_barber(db, barber_id)
    special_days = special_day_service.list_special_days(db, barber_id, start, end)
    return SpecialDayListResponse(special_days=[SpecialDayResponse.model_validate(d) for d in special_days])


@router.post("/special-days", response_model=SpecialDayResponse, status_code=status.HTTP_201_CREATED)
async def create_special_day(barber_id: int, request: SpecialDayCreateRequest, db: Session = Depends(get_db)):
    special_day = special_day_service.create_special_day(
        db,
        barber_id=barber_id,
        target_date=request.date,
        kind=request.kind,
        whole_day=request.whole_day,
        range_start=request.range_start,
        range_end=request.range_end,
        description=request.description,
    )
    return SpecialDayResponse.model_validate(special_day)


@router.delete("/special-days/{special_day_id}", response_model=SuccessResponse)
async def delete_special_day(barber_id: int, special_day_id: int, db: Session = Depends(get_db)):
    special_day_service.delete_special_day(db, barber_id, special_day_id)
    return SuccessResponse(message="Día especial eliminado")


# ===== Clients =====

@router.get("/clients", response_model=ClientListResponse)
async def get_clients(
    barber_id: int,
    search: Optional[str] = Query(None, description="Name fragment to search for"),
    db: Session = Depends(get_db)
):
    """List the barber's clients, or search them by name."""
    get_barber(db, barber_id)
    if search is not None:
        clients = client_service.search_clients(db, barber_id, search)
    else:
        clients = client_service.list_clients(db, barber_id)
    return ClientListResponse(clients=[ClientResponse.model_validate(c) for c in clients])


@router.get("/clients/{client_id}", response_model=ClientDetailsResponse)
async def get_client_details(barber_id: int, client_id: int, db: Session = Depends(get_db)):
    details = client_service.get_client_details(db, barber_id, client_id)
    return ClientDetailsResponse(
        client=ClientResponse.model_validate(details["client"]),
        stats=ClientStats(**details["stats"]),
        appointments=[ClientHistoryEntry(**entry) for entry in details["appointments"]],
    )


@router.put("/clients/{client_id}", response_model=ClientResponse)
async def update_client(barber_id: int, client_id: int, request: ClientUpdateRequest, db: Session = Depends(get_db)):
    client = client_service.update_client(
        db,
        barber_id=barber_id,
        client_id=client_id,
        first_name=request.first_name,
        last_name=request.last_name,
        phone=request.phone,
        email=request.email,
        notes=request.notes,
    )
    return ClientResponse.model_validate(client)


@router.delete("/clients/{client_id}", response_model=SuccessResponse)
async def delete_client(barber_id: int, client_id: int, db: Session = Depends(get_db)):
    """Delete a client without pending appointments."""
    client_service.delete_client(db, barber_id, client_id)
    return SuccessResponse(message="Cliente eliminado")


# ===== Appointments =====

@router.get("/appointments", response_model=AppointmentListResponse)
async def get_appointments(
    barber_id: int,
    date: Optional[str] = Query(None, description="YYYY-MM-DD"),
    status_filter: Optional[str] = Query(None, alias="status"),
    db: Session = Depends(get_db)
):
    """List the barber's appointments, optionally for one date and status."""
    get_barber(db, barber_id)
    target_date = parse_date_string(date) if date else None
    appointments = appointment_service.list_appointments(db, barber_id, target_date, status_filter)
    return AppointmentListResponse(appointments=[AppointmentResponse.model_validate(a) for a in appointments])


@router.get("/appointments/{appointment_id}", response_model=AppointmentResponse)
async def get_appointment(barber_id: int, appointment_id: int, db: Session = Depends(get_db)):
    appointment = appointment_service.get_appointment(db, barber_id, appointment_id)
    return AppointmentResponse.model_validate(appointment)


@router.post("/appointments", response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
async def create_appointment(barber_id: int, request: AppointmentCreateRequest, db: Session = Depends(get_db)):
    appointment = appointment_service.create_appointment(
        db,
        barber_id=barber_id,
        client_id=request.client_id,
        service_id=request.service_id,
        date_str=request.date,
        start_time_str=request.start_time,
        status=request.status,
        price_final=request.price_final,
        notes=request.notes,
    )
    return AppointmentResponse.model_validate(appointment)


@router.put("/appointments/{appointment_id}", response_model=AppointmentResponse)
async def reschedule_appointment(
    barber_id: int,
    appointment_id: int,
    request: AppointmentRescheduleRequest,
    db: Session = Depends(get_db)
):
    """Move an appointment; its own current window is not treated as busy."""
    appointment = appointment_service.reschedule_appointment(
        db,
        barber_id=barber_id,
        appointment_id=appointment_id,
        date_str=request.date,
        start_time_str=request.start_time,
        service_id=request.service_id,
    )
    return AppointmentResponse.model_validate(appointment)


@router.patch("/appointments/{appointment_id}/status", response_model=AppointmentResponse)
async def update_appointment_status(
    barber_id: int,
    appointment_id: int,
    request: AppointmentStatusRequest,
    db: Session = Depends(get_db)
):
    """Apply a status transition (confirm, start, complete, cancel, no-show)."""
    appointment = appointment_service.transition_status(db, barber_id, appointment_id, request.status)
    return AppointmentResponse.model_validate(appointment)
