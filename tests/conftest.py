"""
Test configuration and shared fixtures for the barbershop booking test suite.

Uses an in-memory SQLite database by default (set TEST_DATABASE_URL to run
against PostgreSQL). Each test gets freshly created tables that are dropped
afterwards, so services are free to commit.
"""

import os
import pytest
from datetime import date, time
from decimal import Decimal
from typing import Generator, Optional

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import NullPool, StaticPool

# Keep the application engine off any real database while tests import it
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("AUTO_COMPLETE_ENABLED", "false")

from core.database import Base

# Import all models to ensure they're registered with SQLAlchemy before any relationships are resolved
from models import (
    Appointment,
    AppointmentStatus,
    Barber,
    BarberConfig,
    Client,
    Service,
    SpecialDay,
    WorkingBlock,
)
from utils.datetime_utils import weekday_for_date


# Test database URL
TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite://")

# A Monday far enough in the future that bookings are never in the past
BOOKING_DATE = date(2030, 1, 7)
BOOKING_DATE_STR = BOOKING_DATE.isoformat()


@pytest.fixture(scope="session")
def db_engine():
    """
    Create a database engine for the test session.

    In-memory SQLite needs a static pool so every session sees the same database.
    """
    if TEST_DATABASE_URL.startswith("sqlite"):
        engine = create_engine(
            TEST_DATABASE_URL,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
            echo=False,
        )
    else:
        engine = create_engine(TEST_DATABASE_URL, poolclass=NullPool, echo=False)

    yield engine

    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(db_engine) -> Generator[sessionmaker, None, None]:
    """
    Create all tables for one test and drop them afterwards.

    Yields a session factory configured like the application's SessionLocal.
    """
    Base.metadata.create_all(bind=db_engine)
    factory = sessionmaker(bind=db_engine, autocommit=False, autoflush=False, expire_on_commit=False)

    yield factory

    Base.metadata.drop_all(bind=db_engine)


@pytest.fixture(scope="function")
def db_session(session_factory) -> Generator[Session, None, None]:
    """Provide a database session for a test."""
    session = session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


# Factory helpers

def create_barber(db_session: Session, name: str = "Test Barber", is_active: bool = True, **config) -> Barber:
    """
    Create a barber, optionally with a stored configuration.

    Any keyword arguments become BarberConfig fields.
    """
    barber = Barber(name=name, is_active=is_active)
    db_session.add(barber)
    db_session.flush()
    if config:
        db_session.add(BarberConfig(barber_id=barber.id, **config))
    db_session.commit()
    return barber


def create_service(
    db_session: Session,
    barber: Barber,
    name: str = "Corte",
    duration_minutes: int = 30,
    price: Decimal = Decimal("5000"),
    status: str = "active",
) -> Service:
    service = Service(
        barber_id=barber.id,
        name=name,
        duration_minutes=duration_minutes,
        price=price,
        status=status,
    )
    db_session.add(service)
    db_session.commit()
    return service


def create_block(
    db_session: Session,
    barber: Barber,
    start: time,
    end: time,
    break_start: Optional[time] = None,
    break_end: Optional[time] = None,
    on_date: date = BOOKING_DATE,
    position: int = 0,
) -> WorkingBlock:
    """Create a working block on the weekday of ``on_date``."""
    block = WorkingBlock(
        barber_id=barber.id,
        weekday=weekday_for_date(on_date),
        start_time=start,
        end_time=end,
        break_start=break_start,
        break_end=break_end,
        position=position,
    )
    db_session.add(block)
    db_session.commit()
    return block


def create_client(db_session: Session, phone: str = "1155550000", first_name: str = "Juan", last_name: str = "Pérez") -> Client:
    client = Client(first_name=first_name, last_name=last_name, phone=phone, total_visits=0)
    db_session.add(client)
    db_session.commit()
    return client


_code_counter = 0


def create_appointment(
    db_session: Session,
    barber: Barber,
    client: Client,
    service: Service,
    start: time,
    end: time,
    on_date: date = BOOKING_DATE,
    status: str = AppointmentStatus.RESERVED.value,
) -> Appointment:
    """Insert an appointment directly, bypassing the booking checks."""
    global _code_counter
    _code_counter += 1
    appointment = Appointment(
        barber_id=barber.id,
        client_id=client.id,
        service_id=service.id,
        date=on_date,
        start_time=start,
        end_time=end,
        status=status,
        price_final=service.price,
        cancel_code=f"T{_code_counter:05d}",
    )
    db_session.add(appointment)
    db_session.commit()
    return appointment


def create_special_day(db_session: Session, barber: Barber, on_date: date = BOOKING_DATE, description: str = "Feriado", whole_day: bool = True) -> SpecialDay:
    special_day = SpecialDay(
        barber_id=barber.id,
        date=on_date,
        kind="holiday",
        whole_day=whole_day,
        range_start=None if whole_day else time(9, 0),
        range_end=None if whole_day else time(12, 0),
        description=description,
    )
    db_session.add(special_day)
    db_session.commit()
    return special_day


@pytest.fixture
def barber(db_session) -> Barber:
    return create_barber(db_session)


@pytest.fixture
def haircut(db_session, barber) -> Service:
    return create_service(db_session, barber, name="Corte", duration_minutes=30)


@pytest.fixture
def client_record(db_session) -> Client:
    return create_client(db_session)


@pytest.fixture
def booking_request() -> dict:
    """Sample client identity fields for bookings."""
    return {
        "first_name": "Lucía",
        "last_name": "Gómez",
        "phone": "+54 11 5555-1234",
        "email": "lucia@example.com",
    }
