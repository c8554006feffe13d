"""
Services package for booking business logic.

Each module groups plain functions by responsibility (slot computation,
availability, booking, schedule and catalog management). Functions take the
SQLAlchemy session as their first argument and raise core.exceptions errors.
"""
