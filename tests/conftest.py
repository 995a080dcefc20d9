import os
from datetime import datetime, time, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault('DATABASE_URL', 'sqlite://')

from scheduler_api.auth import jwt_handler  # noqa: E402
from scheduler_api.auth.passwords import hash_password  # noqa: E402
from scheduler_api.database import Base  # noqa: E402
from scheduler_api.models.availability import AvailabilityWindow  # noqa: E402
from scheduler_api.models.booking import Booking, BookingStatus  # noqa: E402
from scheduler_api.models.event_type import EventType  # noqa: E402
from scheduler_api.models.user import User  # noqa: E402

# Thursday. The following Monday is 2026-01-05.
FIXED_NOW = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def db_session():
    engine = create_engine(
        'sqlite://',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    db = testing_session_local()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def make_user(db_session):
    def _make_user(email: str = 'owner@example.com', name: str = 'Owner', password: str = 'secret123') -> User:
        user = User(
            name=name,
            email=email,
            username=email.split('@')[0],
            hashed_password=hash_password(password),
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def make_event_type(db_session):
    def _make_event_type(owner: User, duration_minutes: int = 30, title: str = 'Intro call') -> EventType:
        event_type = EventType(owner_id=owner.id, title=title, duration_minutes=duration_minutes)
        db_session.add(event_type)
        db_session.commit()
        db_session.refresh(event_type)
        return event_type

    return _make_event_type


@pytest.fixture
def make_window(db_session):
    def _make_window(
        owner: User,
        day_of_week: int = 1,
        start_time: time = time(9, 0),
        end_time: time = time(17, 0),
        timezone_name: str = 'UTC',
    ) -> AvailabilityWindow:
        window = AvailabilityWindow(
            owner_id=owner.id,
            day_of_week=day_of_week,
            start_time=start_time,
            end_time=end_time,
            timezone=timezone_name,
        )
        db_session.add(window)
        db_session.commit()
        db_session.refresh(window)
        return window

    return _make_window


@pytest.fixture
def make_booking(db_session):
    def _make_booking(
        event_type: EventType,
        start_time: datetime,
        end_time: datetime,
        status: BookingStatus = BookingStatus.CONFIRMED,
        invitee_email: str = 'guest@example.com',
    ) -> Booking:
        booking = Booking(
            event_type_id=event_type.id,
            invitee_name='Guest',
            invitee_email=invitee_email,
            start_time=start_time,
            end_time=end_time,
            status=status.value,
        )
        db_session.add(booking)
        db_session.commit()
        db_session.refresh(booking)
        return booking

    return _make_booking


@pytest.fixture
def client(db_session, monkeypatch: pytest.MonkeyPatch):
    from fastapi.testclient import TestClient

    from scheduler_api.database import get_db
    from scheduler_api.main import app
    from scheduler_api.routes.common import get_now

    monkeypatch.setattr('scheduler_api.routes.booking_routes.ensure_database_ready', lambda: None)
    monkeypatch.setattr('scheduler_api.routes.public_routes.ensure_database_ready', lambda: None)

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_now] = lambda: FIXED_NOW
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    def _auth_headers(user: User) -> dict:
        return {'Authorization': f'Bearer {jwt_handler.create_access_token(user.id)}'}

    return _auth_headers
