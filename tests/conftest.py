# tests/conftest.py

from datetime import date, datetime, time

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel

from inspector_booking import models  # noqa: F401  (registers tables)
from inspector_booking.auth import create_access_token, hash_password
from inspector_booking.db import create_db_engine, get_session
from inspector_booking.deps import get_now
from inspector_booking.main import app
from inspector_booking.models import User
from inspector_booking.schemas import AvailabilityWindowIn, ClientInfo, SlotRequest

# Friday morning; the first Monday after it is MONDAY
NOW = datetime(2030, 1, 4, 9, 0)
MONDAY = date(2030, 1, 7)
PASSWORD = "correct-horse-battery"


def make_user(engine, email: str, role: str) -> int:
    with Session(engine) as session:
        user = User(email=email, password_hash=hash_password(PASSWORD), role=role)
        session.add(user)
        session.commit()
        return user.id


def auth_headers(email: str) -> dict:
    return {"Authorization": f"Bearer {create_access_token({'sub': email})}"}


def window(day: int, start: str, end: str, active: bool = True) -> AvailabilityWindowIn:
    return AvailabilityWindowIn(
        day_of_week=day,
        start_time=time.fromisoformat(start),
        end_time=time.fromisoformat(end),
        active=active,
    )


def slot(on_date: date, start: str, duration: int = 60) -> SlotRequest:
    return SlotRequest(booking_date=on_date, booking_time=time.fromisoformat(start), duration_minutes=duration)


def client_info(name: str = "Pat Buyer") -> ClientInfo:
    return ClientInfo(
        client_name=name,
        client_email="pat@example.com",
        client_phone="(555) 123-4567",
        property_address="123 Test St, Austin, TX 78701",
    )


@pytest.fixture
def engine(tmp_path):
    engine = create_db_engine(f"sqlite:///{tmp_path / 'test.db'}")
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def inspector_id(engine):
    return make_user(engine, "inspector@example.com", "inspector")


@pytest.fixture
def other_inspector_id(engine):
    return make_user(engine, "other@example.com", "inspector")


@pytest.fixture
def admin_id(engine):
    return make_user(engine, "admin@example.com", "admin")


@pytest.fixture
def client(engine):
    def _get_session():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_session] = _get_session
    app.dependency_overrides[get_now] = lambda: NOW
    # no context manager: startup would create tables in the default database
    yield TestClient(app)
    app.dependency_overrides.clear()
