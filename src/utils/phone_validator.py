"""
Phone number validation utilities.

Provides centralized phone number cleaning and validation logic
for consistent client lookup across booking paths.
"""

import re

from core.constants import MIN_PHONE_DIGITS


def clean_phone_number(phone: str) -> str:
    """
    Clean phone number by dropping everything that is not a digit.

    Args:
        phone: Phone number string (may contain spaces, dashes, parentheses, a leading +)

    Returns:
        Digits only
    """
    return re.sub(r'\D', '', phone or '')


def validate_phone(phone: str) -> str:
    """
    Validate and clean a client phone number.

    Args:
        phone: Phone number string to validate

    Returns:
        Cleaned phone number (digits only)

    Raises:
        ValueError: If phone number is missing or has too few digits
    """
    if not phone or not phone.strip():
        raise ValueError('El teléfono es requerido')

    cleaned = clean_phone_number(phone)
    if len(cleaned) < MIN_PHONE_DIGITS:
        raise ValueError(f'El teléfono debe tener al menos {MIN_PHONE_DIGITS} dígitos')
    return cleaned
