"""
Domain exceptions for the booking platform.

Services raise these instead of HTTP errors; the FastAPI exception handlers
in main.py translate them into ``{"success": false, "message": ...}``
responses with the status code carried by each class.
"""

from fastapi import status


class BookingError(Exception):
    """Base class for all expected booking-domain failures."""

    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(BookingError):
    """Malformed or missing input. Rejected before any store access, never retried."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(BookingError):
    """Barber, service or appointment absent (or inactive)."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(BookingError):
    """
    The request collides with current state.

    Raised for slots that are no longer available, repeated cancellations
    and invalid status transitions. Recovery needs fresh input from the
    caller, so it is never retried server-side.
    """

    status_code = status.HTTP_409_CONFLICT


class SlotUnavailableError(ConflictError):
    """The requested window overlaps an occupied appointment."""

    def __init__(self, message: str = "El horario seleccionado ya no está disponible. Actualizá los horarios e intentá de nuevo."):
        super().__init__(message)


class InvalidTransitionError(ConflictError):
    """Appointment status change not allowed by the state machine."""

    def __init__(self, current: str, target: str):
        super().__init__(f"No se puede cambiar el estado de '{current}' a '{target}'")
        self.current = current
        self.target = target


class TransientStoreError(BookingError):
    """Connection loss or timeout talking to the database. Safe to retry on read paths only."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
