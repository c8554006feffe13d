"""
Shared response models for API endpoints.

This module contains Pydantic response models that are shared across
the public booking and dashboard endpoints. Every successful response
carries ``success: true``; failures are rendered by the exception handlers
in main.py as ``{"success": false, "message": ...}``.
"""

from datetime import date, datetime, time
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, field_serializer


class SuccessResponse(BaseModel):
    """Plain acknowledgement."""
    success: bool = True
    message: Optional[str] = None


class ServiceResponse(BaseModel):
    """Response model for a catalog service."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
    duration_minutes: int
    price: Optional[float] = None  # None when the barber hides prices
    status: str


class ServiceListResponse(BaseModel):
    success: bool = True
    services: List[ServiceResponse]
    currency: Optional[str] = None


class AvailabilitySlot(BaseModel):
    """Response model for availability slot."""
    start_time: str  # HH:MM
    end_time: str  # HH:MM
    available: bool = True
    duration_minutes: int


class AvailabilityResponse(BaseModel):
    """Response model for availability query."""
    success: bool = True
    date: str
    duration_minutes: int
    slots: List[AvailabilitySlot]
    message: Optional[str] = None  # Reason when there are no slots


class BookingClientSummary(BaseModel):
    id: int
    first_name: str
    last_name: str
    phone: str
    email: Optional[str] = None


class BookingServiceSummary(BaseModel):
    id: int
    name: str
    duration_minutes: int
    price: float


class BookingAppointmentSummary(BaseModel):
    barber_id: int
    date: str
    start_time: str
    end_time: str
    status: str
    price_final: Optional[float] = None
    notes: Optional[str] = None


class BookingResponse(BaseModel):
    """Response model for booking creation, lookup and cancellation."""
    success: bool = True
    message: Optional[str] = None
    appointment_id: int
    cancel_code: str
    client: BookingClientSummary
    service: BookingServiceSummary
    appointment: BookingAppointmentSummary


class BarberConfigResponse(BaseModel):
    success: bool = True
    buffer_minutes: int
    lead_time_minutes: int
    max_bookings_per_day: int
    allow_same_day_booking: bool
    show_prices: bool
    currency: str
    timezone: str


class WorkingBlockResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    weekday: int
    start_time: time
    end_time: time
    break_start: Optional[time] = None
    break_end: Optional[time] = None

    @field_serializer('start_time', 'end_time', 'break_start', 'break_end')
    def serialize_time(self, value: Optional[time]) -> Optional[str]:
        return value.strftime('%H:%M') if value is not None else None


class WeeklyScheduleResponse(BaseModel):
    success: bool = True
    schedule: Dict[int, List[WorkingBlockResponse]]  # weekday (0=Monday) -> blocks


class SpecialDayResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    date: date
    kind: str
    whole_day: bool
    range_start: Optional[time] = None
    range_end: Optional[time] = None
    description: str

    @field_serializer('range_start', 'range_end')
    def serialize_time(self, value: Optional[time]) -> Optional[str]:
        return value.strftime('%H:%M') if value is not None else None


class SpecialDayListResponse(BaseModel):
    success: bool = True
    special_days: List[SpecialDayResponse]


class AppointmentResponse(BaseModel):
    """Response model for an appointment in the dashboard."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    barber_id: int
    client_id: int
    service_id: int
    date: date
    start_time: time
    end_time: time
    status: str
    price_final: Optional[float] = None
    cancel_code: str
    notes: Optional[str] = None
    cancelled_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @field_serializer('start_time', 'end_time')
    def serialize_time(self, value: time) -> str:
        return value.strftime('%H:%M')


class AppointmentListResponse(BaseModel):
    success: bool = True
    appointments: List[AppointmentResponse]


class ClientResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    first_name: str
    last_name: str
    phone: str
    email: Optional[str] = None
    total_visits: int
    last_visit_at: Optional[datetime] = None
    notes: Optional[str] = None


class ClientListResponse(BaseModel):
    success: bool = True
    clients: List[ClientResponse]


class ClientStats(BaseModel):
    total_appointments: int
    completed_appointments: int
    cancelled_appointments: int
    total_spent: float
    average_spent: Optional[float] = None
    last_appointment_date: Optional[date] = None


class ClientHistoryEntry(BaseModel):
    id: int
    date: str
    start_time: str
    end_time: str
    status: str
    price_final: Optional[float] = None
    notes: Optional[str] = None
    service_name: str


class ClientDetailsResponse(BaseModel):
    """Client with visit history and spending with one barber."""
    success: bool = True
    client: ClientResponse
    stats: ClientStats
    appointments: List[ClientHistoryEntry]
