"""Shared test fixtures and configuration."""
import os
from contextlib import contextmanager

# Must be set before clubcheckin.core.config builds the settings singleton
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("TIMEZONE", "UTC")

from datetime import timedelta  # noqa: E402
from types import SimpleNamespace  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from clubcheckin.main import app  # noqa: E402
from clubcheckin.db.base import Base  # noqa: E402
from clubcheckin.db.models import ClubMembership, Event  # noqa: E402
from clubcheckin.api.deps import get_db  # noqa: E402
from tests.utils import make_token  # noqa: E402
from clubcheckin.realtime import Broadcaster  # noqa: E402
from clubcheckin.schemas.auth import CurrentUser  # noqa: E402


# Test database setup
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

CLUB_ID = 1
OTHER_CLUB_ID = 2


@pytest.fixture(autouse=True)
def disable_rate_limiting_for_tests(request):
    """Disable rate limiting for all tests except rate limiting tests."""
    from clubcheckin.core.rate_limit import limiter

    # Check if this is a rate limiting test (marked with @pytest.mark.rate_limit)
    if "rate_limit" in request.keywords:
        limiter.enabled = True
        limiter.reset()
        yield
        limiter.reset()
    else:
        limiter.enabled = False
        yield
        limiter.enabled = True


@pytest.fixture(scope="function")
def db_engine():
    """Create a fresh database for each test."""
    engine = create_engine(
        SQLALCHEMY_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(db_engine):
    """Create a new database session for a test."""
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def club(db_session):
    """
    Seed two events and the people around them.

    - event: club 1, led by ``leader``; ``member`` is approved, ``pending``
      applied but is not approved yet
    - other_event: club 2, led by ``other_leader``
    - ``outsider`` belongs to no club; ``admin`` has the admin role only
    """
    event = Event(club_id=CLUB_ID, title="Spring Mixer")
    other_event = Event(club_id=OTHER_CLUB_ID, title="Chess Night")
    db_session.add_all([event, other_event])
    db_session.add_all([
        ClubMembership(user_id=10, club_id=CLUB_ID, role="leader", status="approved"),
        ClubMembership(user_id=20, club_id=CLUB_ID, role="member", status="approved"),
        ClubMembership(user_id=21, club_id=CLUB_ID, role="member", status="approved"),
        ClubMembership(user_id=40, club_id=CLUB_ID, role="member", status="pending"),
        ClubMembership(user_id=11, club_id=OTHER_CLUB_ID, role="leader", status="approved"),
    ])
    db_session.commit()

    return SimpleNamespace(
        event=event,
        other_event=other_event,
        admin=CurrentUser(user_id=1, role="admin", first_name="Ada", last_name="Admin"),
        leader=CurrentUser(user_id=10, role="leader", first_name="Lee", last_name="Leader"),
        other_leader=CurrentUser(user_id=11, role="leader", first_name="Otto", last_name="Other"),
        member=CurrentUser(user_id=20, role="member", first_name="Mia", last_name="Member"),
        second_member=CurrentUser(user_id=21, role="member", first_name="Sam", last_name="Second"),
        outsider=CurrentUser(user_id=30, role="member", first_name="Oli", last_name="Outsider"),
        pending=CurrentUser(user_id=40, role="member", first_name="Pat", last_name="Pending"),
    )


@pytest.fixture
def expired_token(club):
    return make_token(club.member, expires_delta=timedelta(minutes=-5))


@pytest.fixture
def broadcaster():
    """A fresh broadcaster installed on the app for each test."""
    app.state.broadcaster = Broadcaster(queue_size=100)
    return app.state.broadcaster


@pytest.fixture(scope="function")
def client(db_engine, db_session, broadcaster, monkeypatch):
    """Create a test client with a test database."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)

    @contextmanager
    def override_get_db_context():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    # The realtime socket opens its own short-lived sessions
    monkeypatch.setattr(
        "clubcheckin.api.v1.endpoints.realtime.get_db_context", override_get_db_context
    )
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
