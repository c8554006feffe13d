"""
Integration tests for the public booking flow: submission, lookup and
self-service cancellation by code.
"""

import pytest
from datetime import datetime, time
from decimal import Decimal
from unittest.mock import patch
from zoneinfo import ZoneInfo

from sqlalchemy import event

from core.exceptions import (
    ConflictError,
    NotFoundError,
    SlotUnavailableError,
    TransientStoreError,
    ValidationError,
)
from models import Appointment, AppointmentStatus, Client
from services.availability_service import get_available_slots
from services.booking_service import (
    cancel_booking_by_code,
    compute_end_time,
    create_booking,
    generate_cancel_code,
    get_booking_by_code,
)
from tests.conftest import (
    BOOKING_DATE,
    BOOKING_DATE_STR,
    TEST_DATABASE_URL,
    create_appointment,
    create_barber,
    create_block,
    create_service,
    create_special_day,
)

BUENOS_AIRES = ZoneInfo("America/Argentina/Buenos_Aires")

# A week before the booking date, so nothing is in the past
NOW = datetime(2030, 1, 1, 10, 0, tzinfo=BUENOS_AIRES)


@pytest.fixture
def open_day(db_session, barber):
    """Barber works 09:00-12:00 with a 10:30-11:00 break on the booking date."""
    return create_block(db_session, barber, time(9, 0), time(12, 0), break_start=time(10, 30), break_end=time(11, 0))


def book(db_session, barber, service, start: str, request: dict, date_str: str = BOOKING_DATE_STR, now=NOW, **overrides):
    fields = {**request, **overrides}
    return create_booking(
        db_session,
        barber_id=barber.id,
        service_id=service.id,
        date_str=date_str,
        start_time_str=start,
        now=now,
        **fields,
    )


class TestCreateBooking:
    """Test booking submission."""

    def test_successful_booking_summary(self, db_session, barber, haircut, open_day, booking_request):
        summary = book(db_session, barber, haircut, "09:30", booking_request, notes="Corte bajo a los costados")

        code = summary["cancel_code"]
        assert len(code) == 6
        assert code.isalnum() and code == code.upper()
        assert summary["client"]["first_name"] == "Lucía"
        assert summary["client"]["phone"] == "541155551234"
        assert summary["client"]["email"] == "lucia@example.com"
        assert summary["service"]["name"] == "Corte"
        assert summary["appointment"] == {
            "barber_id": barber.id,
            "date": BOOKING_DATE_STR,
            "start_time": "09:30",
            "end_time": "10:00",
            "status": AppointmentStatus.RESERVED.value,
            "price_final": Decimal("5000"),
            "notes": "Corte bajo a los costados",
        }

        appointment = db_session.query(Appointment).filter(Appointment.id == summary["appointment_id"]).one()
        assert appointment.cancel_code == code
        assert appointment.client.total_visits == 1
        assert appointment.client.last_visit_at is not None

    def test_booked_slot_disappears_from_listing(self, db_session, barber, haircut, open_day, booking_request):
        before = get_available_slots(db_session, barber.id, BOOKING_DATE_STR, haircut.id)
        book(db_session, barber, haircut, before.slots[0].to_dict()["start_time"], booking_request)

        after = get_available_slots(db_session, barber.id, BOOKING_DATE_STR, haircut.id)

        assert len(after.slots) == len(before.slots) - 1
        assert before.slots[0] not in after.slots

    def test_returning_client_is_reused_and_updated(self, db_session, barber, haircut, open_day, booking_request):
        first = book(db_session, barber, haircut, "09:00", booking_request)
        second = book(
            db_session, barber, haircut, "11:00", booking_request,
            phone="54 11 5555 1234", last_name="Gómez Ruiz", email="lucia.gomez@example.com",
        )

        assert first["client"]["id"] == second["client"]["id"]
        clients = db_session.query(Client).all()
        assert len(clients) == 1
        assert clients[0].last_name == "Gómez Ruiz"
        assert clients[0].email == "lucia.gomez@example.com"
        assert clients[0].total_visits == 2

    def test_same_slot_twice_is_refused(self, db_session, barber, haircut, open_day, booking_request):
        book(db_session, barber, haircut, "09:00", booking_request)

        with pytest.raises(SlotUnavailableError):
            book(db_session, barber, haircut, "09:00", booking_request, phone="1166667777")

    def test_overlapping_window_is_refused(self, db_session, barber, open_day, booking_request):
        long_service = create_service(db_session, barber, name="Corte y barba", duration_minutes=60)
        book(db_session, barber, long_service, "09:00", booking_request)

        with pytest.raises(SlotUnavailableError):
            book(db_session, barber, long_service, "09:30", booking_request)

    def test_stale_availability_check_is_caught_by_the_store(self, db_session, barber, haircut, open_day, booking_request):
        """Two submissions that both passed the re-check: only one row is written."""
        book(db_session, barber, haircut, "09:00", booking_request)

        with patch("services.booking_service.is_available", return_value=True):
            with pytest.raises(SlotUnavailableError):
                book(db_session, barber, haircut, "09:00", booking_request, phone="1166667777")

        occupied = db_session.query(Appointment).filter(Appointment.start_time == time(9, 0)).all()
        assert len(occupied) == 1
        # The losing submission left no client behind
        assert db_session.query(Client).count() == 1

    def test_cancelled_slot_can_be_booked_again(self, db_session, barber, haircut, open_day, booking_request):
        summary = book(db_session, barber, haircut, "09:00", booking_request)
        cancel_booking_by_code(db_session, summary["cancel_code"])

        again = book(db_session, barber, haircut, "09:00", booking_request)

        assert again["appointment_id"] != summary["appointment_id"]

    @pytest.mark.parametrize("start", ["12:00", "11:45", "10:30", "10:15", "08:45"])
    def test_window_outside_open_hours_is_refused(self, db_session, barber, haircut, open_day, booking_request, start):
        with pytest.raises(SlotUnavailableError):
            book(db_session, barber, haircut, start, booking_request)

    def test_special_day_is_refused(self, db_session, barber, haircut, open_day, booking_request):
        create_special_day(db_session, barber)
        with pytest.raises(SlotUnavailableError):
            book(db_session, barber, haircut, "09:00", booking_request)

    def test_past_date_is_refused(self, db_session, barber, haircut, open_day, booking_request):
        later = datetime(2030, 1, 8, 9, 0, tzinfo=BUENOS_AIRES)
        with pytest.raises(ValidationError):
            book(db_session, barber, haircut, "09:00", booking_request, now=later)

    def test_same_day_past_time_is_refused(self, db_session, barber, haircut, open_day, booking_request):
        same_day = datetime(2030, 1, 7, 9, 40, tzinfo=BUENOS_AIRES)

        with pytest.raises(ValidationError):
            book(db_session, barber, haircut, "09:30", booking_request, now=same_day)

        summary = book(db_session, barber, haircut, "10:00", booking_request, now=same_day)
        assert summary["appointment"]["start_time"] == "10:00"

    def test_same_day_refused_when_disabled(self, db_session, booking_request):
        strict = create_barber(db_session, name="Strict Barber", allow_same_day_booking=False)
        service = create_service(db_session, strict)
        create_block(db_session, strict, time(9, 0), time(18, 0))
        same_day = datetime(2030, 1, 7, 8, 0, tzinfo=BUENOS_AIRES)

        with pytest.raises(ValidationError):
            book(db_session, strict, service, "15:00", booking_request, now=same_day)

    def test_daily_cap(self, db_session, booking_request):
        capped = create_barber(db_session, name="Capped Barber", max_bookings_per_day=1, buffer_minutes=0)
        service = create_service(db_session, capped)
        create_block(db_session, capped, time(9, 0), time(12, 0))
        book(db_session, capped, service, "09:00", booking_request)

        with pytest.raises(ConflictError) as exc_info:
            book(db_session, capped, service, "10:00", booking_request)
        assert not isinstance(exc_info.value, SlotUnavailableError)

    def test_missing_service(self, db_session, barber, open_day, booking_request):
        with pytest.raises(ValidationError):
            create_booking(db_session, barber.id, 0, BOOKING_DATE_STR, "09:00", now=NOW, **booking_request)

    def test_inactive_service(self, db_session, barber, open_day, booking_request):
        retired = create_service(db_session, barber, name="Permanente", status="inactive")
        with pytest.raises(NotFoundError):
            book(db_session, barber, retired, "09:00", booking_request)

    def test_service_of_another_barber(self, db_session, barber, open_day, booking_request):
        other = create_barber(db_session, name="Other Barber")
        foreign = create_service(db_session, other)
        with pytest.raises(NotFoundError):
            book(db_session, barber, foreign, "09:00", booking_request)

    def test_unknown_barber(self, db_session, haircut, booking_request):
        with pytest.raises(NotFoundError):
            create_booking(db_session, 9999, haircut.id, BOOKING_DATE_STR, "09:00", now=NOW, **booking_request)

    @pytest.mark.parametrize("overrides", [
        {"phone": "123"},
        {"phone": ""},
        {"first_name": "  "},
        {"last_name": ""},
        {"email": "not-an-email"},
        {"notes": "x" * 501},
    ])
    def test_invalid_client_fields(self, db_session, barber, haircut, open_day, booking_request, overrides):
        with pytest.raises(ValidationError):
            book(db_session, barber, haircut, "09:00", booking_request, **overrides)
        assert db_session.query(Appointment).count() == 0

    @pytest.mark.parametrize("date_str,start", [
        ("2030-02-30", "09:00"),
        ("07-01-2030", "09:00"),
        (BOOKING_DATE_STR, "25:00"),
        (BOOKING_DATE_STR, "9am"),
    ])
    def test_malformed_date_or_time(self, db_session, barber, haircut, open_day, booking_request, date_str, start):
        with pytest.raises(ValidationError):
            book(db_session, barber, haircut, start, booking_request, date_str=date_str)


@pytest.mark.skipif(
    not TEST_DATABASE_URL.startswith("sqlite"),
    reason="Interleaves two sessions on one thread; the barber row lock would block on PostgreSQL",
)
class TestConcurrentSubmissions:
    """Two submissions for the same slot where one commits mid-way through the other."""

    def race(self, session_factory, barber, service, first_request: dict, second_request: dict):
        """
        Book 09:00 twice. The first submission runs to completion right before
        the second one writes anything, after the second already passed its
        availability re-check.

        Returns the first submission's summary and the second one's error.
        """
        first_session = session_factory()
        second_session = session_factory()
        outcome = {}

        def commit_first_submission(session, flush_context, instances):
            outcome["summary"] = book(first_session, barber, service, "09:00", first_request)

        event.listen(second_session, "before_flush", commit_first_submission, once=True)
        try:
            with pytest.raises(ConflictError) as exc_info:
                book(second_session, barber, service, "09:00", second_request)
        finally:
            first_session.close()
            second_session.close()

        assert "summary" in outcome
        return outcome["summary"], exc_info.value

    def test_same_new_client_submitting_twice(self, session_factory, db_session, barber, haircut, open_day, booking_request):
        summary, error = self.race(session_factory, barber, haircut, booking_request, booking_request)

        assert isinstance(error, SlotUnavailableError)
        db_session.expire_all()
        appointments = db_session.query(Appointment).all()
        assert [a.id for a in appointments] == [summary["appointment_id"]]
        clients = db_session.query(Client).all()
        assert len(clients) == 1
        assert clients[0].total_visits == 1

    def test_different_clients_for_the_same_slot(self, session_factory, db_session, barber, haircut, open_day, booking_request):
        other_request = {**booking_request, "first_name": "Mateo", "phone": "1166667777", "email": None}

        summary, error = self.race(session_factory, barber, haircut, booking_request, other_request)

        assert isinstance(error, SlotUnavailableError)
        db_session.expire_all()
        appointments = db_session.query(Appointment).all()
        assert [a.id for a in appointments] == [summary["appointment_id"]]
        assert appointments[0].client.first_name == "Lucía"
        # The losing submission's client row was rolled back with it
        assert db_session.query(Client).count() == 1


class TestLookupAndCancel:
    """Test lookup and cancellation by code."""

    @pytest.fixture
    def booking(self, db_session, barber, haircut, open_day, booking_request):
        return book(db_session, barber, haircut, "09:00", booking_request)

    def test_lookup_by_code(self, db_session, booking):
        found = get_booking_by_code(db_session, booking["cancel_code"].lower())

        assert found["appointment_id"] == booking["appointment_id"]
        assert found["appointment"]["start_time"] == "09:00"

    def test_lookup_unknown_code(self, db_session):
        with pytest.raises(NotFoundError):
            get_booking_by_code(db_session, "ZZZZZZ")

    def test_cancel_by_code(self, db_session, barber, haircut, booking):
        summary = cancel_booking_by_code(db_session, f"  {booking['cancel_code'].lower()} ")

        assert summary["appointment"]["status"] == AppointmentStatus.CANCELLED.value
        appointment = db_session.query(Appointment).filter(Appointment.id == booking["appointment_id"]).one()
        assert appointment.cancelled_at is not None

        slots = get_available_slots(db_session, barber.id, BOOKING_DATE_STR, haircut.id)
        assert slots.slots[0].to_dict()["start_time"] == "09:00"

    def test_second_cancel_is_a_conflict(self, db_session, booking):
        cancel_booking_by_code(db_session, booking["cancel_code"])

        with pytest.raises(ConflictError, match="ya fue cancelado"):
            cancel_booking_by_code(db_session, booking["cancel_code"])

    @pytest.mark.parametrize("status", [
        AppointmentStatus.COMPLETED.value,
        AppointmentStatus.IN_PROGRESS.value,
        AppointmentStatus.NO_SHOW.value,
    ])
    def test_only_pending_bookings_can_be_cancelled(self, db_session, booking, status):
        appointment = db_session.query(Appointment).filter(Appointment.id == booking["appointment_id"]).one()
        appointment.status = status
        db_session.commit()

        with pytest.raises(ConflictError):
            cancel_booking_by_code(db_session, booking["cancel_code"])
        db_session.refresh(appointment)
        assert appointment.status == status

    def test_cancel_unknown_code(self, db_session):
        with pytest.raises(NotFoundError):
            cancel_booking_by_code(db_session, "ZZZZZZ")

    def test_cancel_empty_code(self, db_session):
        with pytest.raises(ValidationError):
            cancel_booking_by_code(db_session, "   ")


class TestBookingHelpers:
    """Test cancel code generation and end time computation."""

    def test_generated_codes_are_unique(self, db_session):
        codes = {generate_cancel_code(db_session) for _ in range(50)}
        assert len(codes) == 50

    def test_code_generation_gives_up_after_repeated_collisions(self, db_session, barber, haircut, client_record):
        taken = create_appointment(db_session, barber, client_record, haircut, time(9, 0), time(9, 30))
        taken.cancel_code = "AAAAAA"
        db_session.commit()

        with patch("services.booking_service.secrets.choice", return_value="A"):
            with pytest.raises(TransientStoreError):
                generate_cancel_code(db_session)

    def test_compute_end_time(self):
        assert compute_end_time(time(9, 30), 45) == time(10, 15)

    def test_end_time_cannot_cross_midnight(self):
        with pytest.raises(ValidationError):
            compute_end_time(time(23, 45), 30)

    def test_duration_must_be_positive(self):
        with pytest.raises(ValidationError):
            compute_end_time(time(9, 0), 0)
