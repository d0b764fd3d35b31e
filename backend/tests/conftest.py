from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from app.database import get_session, register_models
from app.main import app
from app.models.room import PlayMode, Room, RoomStatus

TEST_DATABASE_URL = "sqlite:///:memory:"

OWNER_ID = "owner-1"
OTHER_USER_ID = "user-2"

# ============================================================================
# CRITICAL: Test Database Setup with StaticPool
# ============================================================================
# 1. Use sqlite:///:memory: with StaticPool so ALL sessions share same DB
# 2. check_same_thread=False required for TestClient/threaded access
# 3. All models MUST be registered before create_all() (see session_fixture)
# 4. App dependency overridden to use test_engine (see client_fixture)
# 5. Tables created before and dropped after every test
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


def override_get_session():
    """Override session to use test engine"""
    with Session(test_engine) as session:
        yield session


@pytest.fixture(name="session", scope="function")
def session_fixture():
    """Provide a test database session on a fresh schema"""
    register_models()
    SQLModel.metadata.create_all(test_engine)

    with Session(test_engine) as session:
        yield session

    SQLModel.metadata.drop_all(test_engine)


@pytest.fixture(name="client")
def client_fixture(session: Session):
    """Provide a test client with overridden database session

    CRITICAL: Override MUST be set BEFORE TestClient() and stay in place
    for the entire duration. This ensures the app never uses its own engine.
    """
    app.dependency_overrides[get_session] = override_get_session

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def owner_headers():
    return {"X-User-Id": OWNER_ID}


@pytest.fixture
def other_headers():
    return {"X-User-Id": OTHER_USER_ID}


@pytest.fixture
def make_room(session: Session):
    """Factory for rooms persisted directly through the session"""
    counter = {"n": 0}

    def _make_room(accepted_capacity=10, num_teams=2, players_per_team=5, created_by=OWNER_ID, **kwargs):
        counter["n"] += 1
        room = Room(
            code=f"TEST{counter['n']:02d}",
            play_date=kwargs.pop("play_date", datetime(2026, 3, 1, 18, 0)),
            accepted_capacity=accepted_capacity,
            num_teams=num_teams,
            players_per_team=players_per_team,
            play_mode=kwargs.pop("play_mode", PlayMode.league),
            status=kwargs.pop("status", RoomStatus.open),
            created_by=created_by,
            **kwargs,
        )
        session.add(room)
        session.commit()
        session.refresh(room)
        return room

    return _make_room
