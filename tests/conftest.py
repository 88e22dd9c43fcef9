"""Pytest fixtures — throw-away SQLite database and a fake geocoder."""
import os

os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")

from datetime import datetime, timezone, timedelta  # noqa: E402

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from lan_linkup.database import Base, get_db  # noqa: E402
from lan_linkup.main import app  # noqa: E402
from lan_linkup.services.geocoding import (  # noqa: E402
    Coordinates,
    GeocodingError,
    GeocodingUnavailableError,
    get_geocoder,
)

# Import all models so they register with Base.metadata
from lan_linkup.models.user import User                  # noqa: F401,E402
from lan_linkup.models.party import Party                # noqa: F401,E402
from lan_linkup.models.attendee import PartyAttendee     # noqa: F401,E402
from lan_linkup.models.friendship import Friendship      # noqa: F401,E402

SQLITE_URL = "sqlite:///./test.db"


class FakeGeocoder:
    """Resolves every address to a fixed point, except the two magic ones."""

    UNRESOLVABLE = "nowhere"
    OUTAGE = "outage"

    def __init__(self):
        self.calls = []

    def geocode(self, address: str) -> Coordinates:
        self.calls.append(address)
        if self.UNRESOLVABLE in address.lower():
            raise GeocodingError(f"Could not locate address: {address}")
        if self.OUTAGE in address.lower():
            raise GeocodingUnavailableError("Geocoding service unavailable")
        return Coordinates(latitude=52.2297, longitude=21.0122)


@pytest.fixture(scope="function")
def db_engine():
    """Create a fresh SQLite engine for each test."""
    engine = create_engine(SQLITE_URL, connect_args={"check_same_thread": False})
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db(db_engine):
    """Yield a database session bound to the test engine."""
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def geocoder():
    return FakeGeocoder()


@pytest.fixture(scope="function")
def client(db_engine, geocoder):
    """FastAPI TestClient with the database and geocoder dependencies overridden."""
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)

    def _override_get_db():
        session = TestingSession()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_geocoder] = lambda: geocoder
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Helpers: create users / parties via the API
# ---------------------------------------------------------------------------
def auth(user: dict) -> dict:
    """Authorization header for a user returned by create_test_user."""
    return {"Authorization": f"Bearer {user['access_token']}"}


def create_test_user(client: TestClient, username: str = "player1", password: str = "hunter2hunter2") -> dict:
    """Helper — register a user and return the token response (``access_token`` + ``user``)."""
    resp = client.post("/api/auth/register", json={
        "username": username,
        "email": f"{username}@example.com",
        "password": password,
    })
    assert resp.status_code == 201, resp.text
    return resp.json()


def party_payload(**overrides) -> dict:
    payload = {
        "title": "Friday Night Frag",
        "description": "Bring your own rig, snacks provided.",
        "game": "Counter-Strike 2",
        "capacity": 8,
        "location": "Warsaw",
        "address": "ul. Marszałkowska 1, Warsaw",
        "visibility": "public",
        "date": (datetime.now(timezone.utc) + timedelta(days=7)).isoformat(),
    }
    payload.update(overrides)
    return payload


def create_test_party(client: TestClient, host: dict, **overrides) -> dict:
    """Helper — POST /api/parties as ``host`` and return response JSON."""
    resp = client.post("/api/parties", json=party_payload(**overrides), headers=auth(host))
    assert resp.status_code == 201, resp.text
    return resp.json()


def make_friends(client: TestClient, a: dict, b: dict) -> None:
    """Helper — ``a`` sends a request that ``b`` accepts."""
    resp = client.post("/api/friend-requests", json={"addressee_id": b["user"]["id"]}, headers=auth(a))
    assert resp.status_code == 201, resp.text
    resp = client.post(f"/api/friend-requests/{resp.json()['id']}/accept", headers=auth(b))
    assert resp.status_code == 200, resp.text
