"""
Barber configuration access.

A barber without a stored configuration gets the platform defaults. Updates
are partial: only the provided fields change.
"""

import logging
from typing import Any, Dict

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator
from sqlalchemy.orm import Session

from core.constants import (
    DEFAULT_BUFFER_MINUTES,
    DEFAULT_LEAD_TIME_MINUTES,
    DEFAULT_MAX_BOOKINGS_PER_DAY,
    DEFAULT_ALLOW_SAME_DAY_BOOKING,
    DEFAULT_SHOW_PRICES,
    DEFAULT_CURRENCY,
    DEFAULT_TIMEZONE,
)
from core.exceptions import ValidationError
from models import BarberConfig
from services.barber_service import get_barber
from utils.datetime_utils import get_timezone

logger = logging.getLogger(__name__)


class BarberConfigSettings(BaseModel):
    """Schema for barber booking configuration."""
    buffer_minutes: int = Field(default=DEFAULT_BUFFER_MINUTES, ge=0, le=240, description="Idle minutes between consecutive slots")
    lead_time_minutes: int = Field(default=DEFAULT_LEAD_TIME_MINUTES, ge=0, description="Advance notice requested from clients, in minutes")
    max_bookings_per_day: int = Field(default=DEFAULT_MAX_BOOKINGS_PER_DAY, ge=1, le=500)
    allow_same_day_booking: bool = Field(default=DEFAULT_ALLOW_SAME_DAY_BOOKING)
    show_prices: bool = Field(default=DEFAULT_SHOW_PRICES, description="Whether the public catalog shows prices")
    currency: str = Field(default=DEFAULT_CURRENCY, min_length=3, max_length=10)
    timezone: str = Field(default=DEFAULT_TIMEZONE)

    @field_validator('timezone')
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        get_timezone(v)
        return v

    @field_validator('currency')
    @classmethod
    def normalize_currency(cls, v: str) -> str:
        return v.strip().upper()


_CONFIG_FIELDS = tuple(BarberConfigSettings.model_fields.keys())


def _to_settings(config: BarberConfig) -> BarberConfigSettings:
    return BarberConfigSettings(**{name: getattr(config, name) for name in _CONFIG_FIELDS})


def get_barber_config(db: Session, barber_id: int) -> BarberConfigSettings:
    """
    Get the effective configuration of a barber.

    Args:
        db: Database session
        barber_id: Barber ID

    Returns:
        Stored configuration, or the defaults when none was saved
    """
    config = db.query(BarberConfig).filter(BarberConfig.barber_id == barber_id).first()
    if config is None:
        return BarberConfigSettings()
    return _to_settings(config)


def update_barber_config(db: Session, barber_id: int, changes: Dict[str, Any]) -> BarberConfigSettings:
    """
    Update (or create) a barber's configuration.

    Args:
        db: Database session
        barber_id: Barber ID
        changes: Fields to change; unknown keys are rejected

    Returns:
        The configuration after the update

    Raises:
        NotFoundError: If the barber does not exist
        ValidationError: If a field is unknown or out of range
    """
    get_barber(db, barber_id)

    unknown = set(changes) - set(_CONFIG_FIELDS)
    if unknown:
        raise ValidationError(f"Campos de configuración desconocidos: {', '.join(sorted(unknown))}")

    current = get_barber_config(db, barber_id)
    try:
        merged = BarberConfigSettings(**{**current.model_dump(), **changes})
    except PydanticValidationError as e:
        first_error = e.errors()[0]
        field = ".".join(str(part) for part in first_error.get("loc", ()))
        raise ValidationError(f"Configuración inválida ({field}): {first_error.get('msg')}") from e

    config = db.query(BarberConfig).filter(BarberConfig.barber_id == barber_id).first()
    if config is None:
        config = BarberConfig(barber_id=barber_id)
        db.add(config)
    for name, value in merged.model_dump().items():
        setattr(config, name, value)

    db.commit()
    logger.info(f"Updated configuration for barber {barber_id}: {sorted(changes)}")
    return merged
