from datetime import datetime
from decimal import Decimal

import fakeredis
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import Engine, StaticPool, create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.orm.session import Session

from eventflow.database.db import Base, get_db
from eventflow.main import app
from eventflow.models.venues import Venue
from eventflow.services import events as event_service
from eventflow.services.hierarchy import register_organization

# Use an in-memory SQLite database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"
engine: Engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(autouse=True)
def setup_database():
    """Fresh tables for every test."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


# Override the database dependency
def override_get_db():
    db: Session = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db


@pytest.fixture
def db_session():
    db: Session = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def client():
    # No context manager: the app's startup would create tables in the real database
    return TestClient(app)


@pytest.fixture(autouse=True)
def redis_client(monkeypatch: pytest.MonkeyPatch):
    """Point the venue lock at an in-process fake Redis shared by the whole test."""
    server = fakeredis.FakeServer()

    def get_client():
        return fakeredis.FakeRedis(server=server, decode_responses=True)

    monkeypatch.setattr("eventflow.services.bookings.get_redis_client", get_client)
    return get_client()


@pytest.fixture
def orgs(db_session: Session) -> dict:
    """
    root (0)
    └── college (1)
        ├── dept (2)
        │   └── club (3)
        └── lab (2)
    other_college (1)  under root
    """
    root = register_organization(db_session, name="CGPU", org_id="admin", password_hash="x")
    college = register_organization(
        db_session, name="College", org_id="college", password_hash="x", parent_id=root.id
    )
    other = register_organization(
        db_session, name="Other College", org_id="other", password_hash="x", parent_id=root.id
    )
    dept = register_organization(
        db_session, name="Department", org_id="dept", password_hash="x", parent_id=college.id
    )
    lab = register_organization(
        db_session, name="Lab", org_id="lab", password_hash="x", parent_id=college.id
    )
    club = register_organization(
        db_session, name="Club", org_id="club", password_hash="x", parent_id=dept.id
    )
    return {
        "root": root,
        "college": college,
        "other_college": other,
        "dept": dept,
        "lab": lab,
        "club": club,
    }


@pytest.fixture
def venue(db_session: Session) -> Venue:
    v = Venue(name="Main Hall", capacity=300, features=["projector", "audio_system"])
    db_session.add(v)
    db_session.commit()
    db_session.refresh(v)
    return v


@pytest.fixture
def make_event(db_session: Session, venue: Venue):
    """Create an event through the service with sensible defaults."""

    def _make(creator, start: datetime, end: datetime, name: str = "Tech Fest", venue_id=None):
        payload = {
            "name": name,
            "start_at": start,
            "end_at": end,
            "venue_id": venue_id or venue.id,
            "budget": Decimal("5000.00"),
            "description": "Annual technical festival",
            "expected_participants": 120,
            "required_resources": ["projector", "microphones"],
        }
        return event_service.create_event(db_session, creator.id, payload)

    return _make
