# Package initialization
# Import all models to ensure relationships are properly established
from .barber import Barber
from .barber_config import BarberConfig
from .working_block import WorkingBlock
from .special_day import SpecialDay, SpecialDayKind
from .service import Service, ServiceStatus
from .client import Client
from .appointment import Appointment, AppointmentStatus, NON_OCCUPYING_STATUSES, PENDING_STATUSES

__all__ = [
    "Barber",
    "BarberConfig",
    "WorkingBlock",
    "SpecialDay",
    "SpecialDayKind",
    "Service",
    "ServiceStatus",
    "Client",
    "Appointment",
    "AppointmentStatus",
    "NON_OCCUPYING_STATUSES",
    "PENDING_STATUSES",
]
