"""
Shared type definitions for the barbershop booking backend.

This module contains dataclasses and types that are used across multiple services.
"""

from shared_types.availability import DayBlock, Slot

__all__ = ["DayBlock", "Slot"]
