"""
Unit tests for the appointment status state machine.
"""

import pytest
from datetime import datetime, timezone

from core.exceptions import ConflictError, InvalidTransitionError, ValidationError
from models import Appointment, AppointmentStatus
from services.appointment_status import (
    ALLOWED_TRANSITIONS,
    TERMINAL_STATUSES,
    apply_transition,
    can_transition,
    parse_status,
)

S = AppointmentStatus


def make_appointment(status: str) -> Appointment:
    return Appointment(id=1, status=status)


class TestTransitionTable:
    """Test which moves the state machine allows."""

    @pytest.mark.parametrize("current,target", [
        (S.RESERVED, S.CONFIRMED),
        (S.CONFIRMED, S.IN_PROGRESS),
        (S.RESERVED, S.COMPLETED),
        (S.CONFIRMED, S.COMPLETED),
        (S.IN_PROGRESS, S.COMPLETED),
        (S.RESERVED, S.CANCELLED),
        (S.CONFIRMED, S.CANCELLED),
        (S.IN_PROGRESS, S.CANCELLED),
        (S.RESERVED, S.NO_SHOW),
        (S.CONFIRMED, S.NO_SHOW),
    ])
    def test_allowed_transitions(self, current, target):
        assert can_transition(current.value, target.value)

    @pytest.mark.parametrize("current,target", [
        (S.COMPLETED, S.CANCELLED),
        (S.CANCELLED, S.COMPLETED),
        (S.CANCELLED, S.RESERVED),
        (S.IN_PROGRESS, S.NO_SHOW),
        (S.IN_PROGRESS, S.CONFIRMED),
        (S.CONFIRMED, S.RESERVED),
        (S.RESERVED, S.IN_PROGRESS),
        (S.NO_SHOW, S.COMPLETED),
    ])
    def test_forbidden_transitions(self, current, target):
        assert not can_transition(current.value, target.value)

    def test_terminal_statuses(self):
        assert TERMINAL_STATUSES == {S.COMPLETED.value, S.CANCELLED.value, S.NO_SHOW.value}

    def test_every_status_has_an_entry(self):
        assert set(ALLOWED_TRANSITIONS) == {status.value for status in S}


class TestApplyTransition:
    """Test applying transitions to appointments."""

    def test_cancel_stamps_cancelled_at(self):
        appointment = make_appointment(S.RESERVED.value)
        now = datetime(2030, 1, 7, 12, 0, tzinfo=timezone.utc)

        apply_transition(appointment, S.CANCELLED.value, now=now)

        assert appointment.status == S.CANCELLED.value
        assert appointment.cancelled_at == now
        assert appointment.completed_at is None

    def test_complete_stamps_completed_at(self):
        appointment = make_appointment(S.IN_PROGRESS.value)
        apply_transition(appointment, S.COMPLETED.value)
        assert appointment.status == S.COMPLETED.value
        assert appointment.completed_at is not None

    def test_cancelling_completed_appointment_fails(self):
        appointment = make_appointment(S.COMPLETED.value)
        with pytest.raises(InvalidTransitionError) as exc_info:
            apply_transition(appointment, S.CANCELLED.value)

        assert exc_info.value.current == S.COMPLETED.value
        assert exc_info.value.target == S.CANCELLED.value
        assert isinstance(exc_info.value, ConflictError)
        assert appointment.status == S.COMPLETED.value

    def test_completing_cancelled_appointment_fails(self):
        appointment = make_appointment(S.CANCELLED.value)
        with pytest.raises(InvalidTransitionError):
            apply_transition(appointment, S.COMPLETED.value)

    def test_unknown_status_is_a_validation_error(self):
        with pytest.raises(ValidationError):
            apply_transition(make_appointment(S.RESERVED.value), "archived")

    def test_parse_status(self):
        assert parse_status("no_show") == "no_show"
        with pytest.raises(ValidationError):
            parse_status("done")
