"""
Integration tests for dashboard appointment management: creation,
rescheduling, status changes and listing.
"""

import pytest
from datetime import time
from decimal import Decimal

from core.exceptions import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    SlotUnavailableError,
    ValidationError,
)
from models import AppointmentStatus
from services.appointment_service import (
    create_appointment,
    get_appointment,
    list_appointments,
    reschedule_appointment,
    transition_status,
)
from tests.conftest import (
    BOOKING_DATE,
    BOOKING_DATE_STR,
    create_appointment as insert_appointment,
    create_barber,
    create_client,
    create_service,
)

S = AppointmentStatus


class TestCreateAppointment:
    """Test appointments entered by the barber."""

    def test_walk_in_outside_configured_hours(self, db_session, barber, haircut, client_record):
        # No working blocks at all: the barber may still book
        appointment = create_appointment(db_session, barber.id, client_record.id, haircut.id, BOOKING_DATE_STR, "20:00")

        assert appointment.status == S.RESERVED.value
        assert appointment.start_time == time(20, 0)
        assert appointment.end_time == time(20, 30)
        assert appointment.price_final == Decimal("5000")
        assert len(appointment.cancel_code) == 6
        db_session.refresh(client_record)
        assert client_record.total_visits == 1

    def test_confirmed_with_custom_price(self, db_session, barber, haircut, client_record):
        appointment = create_appointment(
            db_session, barber.id, client_record.id, haircut.id, BOOKING_DATE_STR, "10:00",
            status=S.CONFIRMED.value, price_final=Decimal("4500"), notes="Cliente frecuente",
        )

        assert appointment.status == S.CONFIRMED.value
        assert appointment.price_final == Decimal("4500")
        assert appointment.notes == "Cliente frecuente"

    def test_overlap_is_refused(self, db_session, barber, haircut, client_record):
        create_appointment(db_session, barber.id, client_record.id, haircut.id, BOOKING_DATE_STR, "10:00")

        with pytest.raises(SlotUnavailableError):
            create_appointment(db_session, barber.id, client_record.id, haircut.id, BOOKING_DATE_STR, "10:15")

    @pytest.mark.parametrize("status", [S.COMPLETED.value, S.CANCELLED.value, S.IN_PROGRESS.value, "done"])
    def test_initial_status_must_be_pending(self, db_session, barber, haircut, client_record, status):
        with pytest.raises(ValidationError):
            create_appointment(db_session, barber.id, client_record.id, haircut.id, BOOKING_DATE_STR, "10:00", status=status)

    def test_negative_price(self, db_session, barber, haircut, client_record):
        with pytest.raises(ValidationError):
            create_appointment(
                db_session, barber.id, client_record.id, haircut.id, BOOKING_DATE_STR, "10:00",
                price_final=Decimal("-1"),
            )

    def test_unknown_client(self, db_session, barber, haircut):
        with pytest.raises(NotFoundError):
            create_appointment(db_session, barber.id, 9999, haircut.id, BOOKING_DATE_STR, "10:00")

    def test_malformed_time(self, db_session, barber, haircut, client_record):
        with pytest.raises(ValidationError):
            create_appointment(db_session, barber.id, client_record.id, haircut.id, BOOKING_DATE_STR, "10h")


class TestRescheduleAppointment:
    """Test moving appointments."""

    @pytest.fixture
    def appointment(self, db_session, barber, haircut, client_record):
        return insert_appointment(db_session, barber, client_record, haircut, time(10, 0), time(10, 30))

    def test_move_to_free_window(self, db_session, barber, appointment):
        moved = reschedule_appointment(db_session, barber.id, appointment.id, "2030-01-08", "15:00")

        assert moved.date.isoformat() == "2030-01-08"
        assert moved.start_time == time(15, 0)
        assert moved.end_time == time(15, 30)

    def test_shift_into_its_own_window(self, db_session, barber, appointment):
        moved = reschedule_appointment(db_session, barber.id, appointment.id, BOOKING_DATE_STR, "10:15")

        assert moved.start_time == time(10, 15)
        assert moved.end_time == time(10, 45)

    def test_overlap_with_another_appointment(self, db_session, barber, haircut, appointment):
        other_client = create_client(db_session, phone="1166667777")
        insert_appointment(db_session, barber, other_client, haircut, time(11, 0), time(11, 30))

        with pytest.raises(SlotUnavailableError):
            reschedule_appointment(db_session, barber.id, appointment.id, BOOKING_DATE_STR, "10:45")

        db_session.refresh(appointment)
        assert appointment.start_time == time(10, 0)

    def test_change_service_updates_end_and_price(self, db_session, barber, appointment):
        long_service = create_service(db_session, barber, name="Corte y barba", duration_minutes=60, price=Decimal("8000"))

        moved = reschedule_appointment(db_session, barber.id, appointment.id, BOOKING_DATE_STR, "10:00", service_id=long_service.id)

        assert moved.end_time == time(11, 0)
        assert moved.service_id == long_service.id
        assert moved.price_final == Decimal("8000")

    @pytest.mark.parametrize("status", [S.COMPLETED.value, S.CANCELLED.value, S.NO_SHOW.value])
    def test_terminal_appointment_cannot_move(self, db_session, barber, appointment, status):
        appointment.status = status
        db_session.commit()

        with pytest.raises(ConflictError):
            reschedule_appointment(db_session, barber.id, appointment.id, BOOKING_DATE_STR, "15:00")

    def test_appointment_of_another_barber(self, db_session, appointment):
        other = create_barber(db_session, name="Other Barber")
        with pytest.raises(NotFoundError):
            reschedule_appointment(db_session, other.id, appointment.id, BOOKING_DATE_STR, "15:00")


class TestTransitionStatus:
    """Test dashboard status changes."""

    @pytest.fixture
    def appointment(self, db_session, barber, haircut, client_record):
        return insert_appointment(db_session, barber, client_record, haircut, time(10, 0), time(10, 30))

    def test_full_lifecycle(self, db_session, barber, appointment):
        for target in (S.CONFIRMED.value, S.IN_PROGRESS.value, S.COMPLETED.value):
            updated = transition_status(db_session, barber.id, appointment.id, target)
            assert updated.status == target

        assert updated.completed_at is not None

    def test_cancel_sets_cancelled_at(self, db_session, barber, appointment):
        updated = transition_status(db_session, barber.id, appointment.id, S.CANCELLED.value)

        assert updated.status == S.CANCELLED.value
        assert updated.cancelled_at is not None

    def test_cancelled_cannot_be_completed(self, db_session, barber, appointment):
        transition_status(db_session, barber.id, appointment.id, S.CANCELLED.value)

        with pytest.raises(InvalidTransitionError):
            transition_status(db_session, barber.id, appointment.id, S.COMPLETED.value)

        db_session.refresh(appointment)
        assert appointment.status == S.CANCELLED.value

    def test_completed_cannot_be_cancelled(self, db_session, barber, appointment):
        transition_status(db_session, barber.id, appointment.id, S.COMPLETED.value)

        with pytest.raises(InvalidTransitionError):
            transition_status(db_session, barber.id, appointment.id, S.CANCELLED.value)

    def test_unknown_status(self, db_session, barber, appointment):
        with pytest.raises(ValidationError):
            transition_status(db_session, barber.id, appointment.id, "paused")

    def test_unknown_appointment(self, db_session, barber):
        with pytest.raises(NotFoundError):
            transition_status(db_session, barber.id, 9999, S.CONFIRMED.value)


class TestListAppointments:
    """Test listing and lookup."""

    def test_filters_and_order(self, db_session, barber, haircut, client_record):
        late = insert_appointment(db_session, barber, client_record, haircut, time(15, 0), time(15, 30))
        early = insert_appointment(db_session, barber, client_record, haircut, time(9, 0), time(9, 30))
        cancelled = insert_appointment(db_session, barber, client_record, haircut, time(9, 0), time(9, 30), status=S.CANCELLED.value)
        insert_appointment(db_session, barber, client_record, haircut, time(9, 0), time(9, 30), on_date=BOOKING_DATE.replace(day=8))

        for_day = list_appointments(db_session, barber.id, target_date=BOOKING_DATE)
        assert [a.id for a in for_day if a.status != S.CANCELLED.value] == [early.id, late.id]
        assert len(for_day) == 3

        only_cancelled = list_appointments(db_session, barber.id, status=S.CANCELLED.value)
        assert [a.id for a in only_cancelled] == [cancelled.id]

        assert len(list_appointments(db_session, barber.id)) == 4

    def test_invalid_status_filter(self, db_session, barber):
        with pytest.raises(ValidationError):
            list_appointments(db_session, barber.id, status="archived")

    def test_get_appointment_scoped_to_barber(self, db_session, barber, haircut, client_record):
        appointment = insert_appointment(db_session, barber, client_record, haircut, time(9, 0), time(9, 30))
        other = create_barber(db_session, name="Other Barber")

        assert get_appointment(db_session, barber.id, appointment.id).id == appointment.id
        with pytest.raises(NotFoundError):
            get_appointment(db_session, other.id, appointment.id)
