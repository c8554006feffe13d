"""
Utility modules for the barbershop booking application.

This package contains shared helpers used across the application:
time-of-day arithmetic, datetime parsing, client field validation and
retry handling for read paths.
"""
