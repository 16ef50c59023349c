"""Shared test fixtures."""

from datetime import UTC, datetime, timedelta

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel, create_engine
from sqlmodel.pool import StaticPool

from admission.core.database import get_session
from admission.core.security import Caller, create_access_token
from admission.main import app
from admission.models import Event, Group, GroupMember, Role, User


@pytest.fixture(name="engine")
def engine_fixture():
    """Create an in-memory SQLite database for testing."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="session")
def session_fixture(engine):
    """Create a new database session for each test."""
    with Session(engine) as session:
        yield session


@pytest.fixture(name="client")
def client_fixture(session: Session):
    """Create a test client with the test database session."""

    def get_session_override():
        return session

    app.dependency_overrides[get_session] = get_session_override
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


@pytest.fixture(name="auth")
def auth_fixture():
    """Build an Authorization header for a user id and role."""

    def _auth(uid: str, role: Role = Role.USER) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(uid, role)}"}

    return _auth


@pytest.fixture(name="alice")
def alice_fixture(session: Session) -> Caller:
    """A registrant with a profile."""
    session.add(User(id="alice", email="alice@example.com", display_name="Alice Rao"))
    session.commit()
    return Caller(uid="alice")


@pytest.fixture(name="bob")
def bob_fixture(session: Session) -> Caller:
    """A second registrant with a profile."""
    session.add(User(id="bob", email="bob@example.com", display_name="Bob Iyer"))
    session.commit()
    return Caller(uid="bob")


@pytest.fixture(name="admin")
def admin_fixture() -> Caller:
    return Caller(uid="admin-1", role=Role.ADMIN)


@pytest.fixture(name="guard")
def guard_fixture() -> Caller:
    return Caller(uid="guard-1", role=Role.SECURITY)


@pytest.fixture(name="open_event")
def open_event_fixture(session: Session) -> Event:
    """An event anyone may register for."""
    event = Event(
        id="evt-open",
        title="Community Reception",
        location="Main Hall",
        scheduled_at=datetime.now(UTC) + timedelta(days=3),
        requires_approval=False,
    )
    session.add(event)
    session.commit()
    session.refresh(event)
    return event


@pytest.fixture(name="gated_event")
def gated_event_fixture(session: Session) -> Event:
    """An event that requires approval."""
    event = Event(
        id="evt-gated",
        title="Delegation Briefing",
        location="Room 4",
        capacity=40,
        scheduled_at=datetime.now(UTC) + timedelta(days=5),
        requires_approval=True,
    )
    session.add(event)
    session.commit()
    session.refresh(event)
    return event


@pytest.fixture(name="group")
def group_fixture(session: Session) -> Group:
    """An empty group."""
    group = Group(id="grp-press", name="Press Corps")
    session.add(group)
    session.commit()
    session.refresh(group)
    return group


@pytest.fixture(name="add_member")
def add_member_fixture(session: Session):
    """Add a user to a group without touching the user's cached groups."""

    def _add(group_id: str, user_id: str) -> None:
        session.add(GroupMember(group_id=group_id, user_id=user_id))
        session.commit()

    return _add
