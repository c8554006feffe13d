"""
Client field validation utilities.

Provides centralized validation logic for the client identity fields
collected by the public booking form and the dashboard.
"""

import re
from typing import Optional

from core.constants import MAX_NOTES_LENGTH

EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')


def validate_name_field(v: Optional[str], label: str = 'nombre') -> str:
    """
    Validate a required name field.

    Args:
        v: Name value to validate
        label: Field label used in the error message

    Returns:
        Stripped name

    Raises:
        ValueError: If the value is missing, too long or contains markup
    """
    if v is None or not v.strip():
        raise ValueError(f'El campo {label} es requerido')
    v = v.strip()
    if len(v) > 100:
        raise ValueError(f'El campo {label} es demasiado largo (máximo 100 caracteres)')
    if '<' in v or '>' in v:
        raise ValueError(f'El campo {label} contiene caracteres inválidos')
    return v


def validate_email_optional(v: Optional[str]) -> Optional[str]:
    """
    Validate an optional email address.

    Returns:
        Lower-cased email, or None for empty input

    Raises:
        ValueError: If the value is present but not an email address
    """
    if v is None or not v.strip():
        return None
    v = v.strip().lower()
    if not EMAIL_PATTERN.match(v):
        raise ValueError('El formato del email no es válido')
    return v


def validate_notes_field(v: Optional[str]) -> Optional[str]:
    """Validate optional free-text notes."""
    if v is None or not v.strip():
        return None
    if len(v) > MAX_NOTES_LENGTH:
        raise ValueError(f'Las notas son demasiado largas (máximo {MAX_NOTES_LENGTH} caracteres)')
    # Basic XSS prevention
    if '<' in v or '>' in v:
        raise ValueError('Las notas contienen caracteres inválidos')
    return v.strip()
