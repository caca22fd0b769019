"""Pytest fixtures and configuration for ganttdeck tests."""

import os

# Must be set before ganttdeck.database.database builds its module-level engine.
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["ENFORCE_ACYCLIC_DEPENDENCIES"] = "false"

import pytest
from datetime import datetime
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from ganttdeck.database.database import Base
from ganttdeck.database.models import UserDB, ProjectDB, ProjectMemberDB, GroupDB
from ganttdeck.engine.protocol import SchedulingProtocol
from ganttdeck.engine.task_store import TaskStore
from ganttdeck.engine.dependency_graph import DependencyGraphManager
from ganttdeck.models.project import ProjectRole

from tests.seed import OWNER_ID, MEMBER_ID, VIEWER_ID, OUTSIDER_ID, PROJECT_ID, OTHER_PROJECT_ID, GROUP_ID


# Use in-memory SQLite database for tests
TEST_DATABASE_URL = "sqlite:///:memory:"


@pytest.fixture(scope="function")
def session_factory():
    """Session factory over a fresh in-memory database with seeded users and projects.

    Layout:
    - project 1: owner (1), member (2), viewer (3); group "Design"
    - project 2: owned by user 4 only
    """
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )
    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    session = TestingSessionLocal()
    now = datetime.utcnow()
    session.add_all([
        UserDB(id=OWNER_ID, email="owner@example.com", first_name="Olive", last_name="Owner", created_at=now, updated_at=now),
        UserDB(id=MEMBER_ID, email="member@example.com", first_name="Max", last_name="Member", created_at=now, updated_at=now),
        UserDB(id=VIEWER_ID, email="viewer@example.com", first_name="Vera", last_name="Viewer", created_at=now, updated_at=now),
        UserDB(id=OUTSIDER_ID, email="outsider@example.com", first_name="Otto", created_at=now, updated_at=now),
    ])
    session.flush()
    session.add_all([
        ProjectDB(id=PROJECT_ID, name="Launch", owner_id=OWNER_ID),
        ProjectDB(id=OTHER_PROJECT_ID, name="Elsewhere", owner_id=OUTSIDER_ID),
    ])
    session.flush()
    session.add_all([
        ProjectMemberDB(project_id=PROJECT_ID, user_id=OWNER_ID, role=ProjectRole.OWNER.value),
        ProjectMemberDB(project_id=PROJECT_ID, user_id=MEMBER_ID, role=ProjectRole.MEMBER.value),
        ProjectMemberDB(project_id=PROJECT_ID, user_id=VIEWER_ID, role=ProjectRole.VIEWER.value),
        ProjectMemberDB(project_id=OTHER_PROJECT_ID, user_id=OUTSIDER_ID, role=ProjectRole.OWNER.value),
        GroupDB(id=GROUP_ID, project_id=PROJECT_ID, name="Design", color="#ff8800"),
    ])
    session.commit()
    session.close()

    try:
        yield TestingSessionLocal
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def db_session(session_factory) -> Session:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def protocol(db_session):
    return SchedulingProtocol(db_session)


@pytest.fixture
def task_store(db_session):
    return TaskStore(db_session)


@pytest.fixture
def graph_manager(db_session):
    return DependencyGraphManager(db_session)


@pytest.fixture
def make_task(protocol):
    """Create a task as the project owner; keyword arguments are task fields."""
    def _make(title="Task", project_id=PROJECT_ID, user_id=OWNER_ID, **fields):
        return protocol.create_task(user_id, project_id, {"title": title, **fields})
    return _make


@pytest.fixture
def current_user_id():
    """Mutable holder for the user the test client authenticates as."""
    return {"id": OWNER_ID}


@pytest.fixture
def test_client(db_session: Session, current_user_id):
    """Create a FastAPI test client with overridden database dependency and authentication."""
    from ganttdeck.api.app import app
    from ganttdeck.database.database import get_db
    from ganttdeck.auth.dependencies import get_current_user

    # Override the get_db dependency to use our test database session
    def override_get_db():
        try:
            yield db_session
        finally:
            pass  # Don't close the session here, let the fixture handle it

    def override_get_current_user():
        return db_session.get(UserDB, current_user_id["id"]).to_pydantic()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = override_get_current_user

    with TestClient(app) as client:
        yield client

    # Clean up dependency overrides
    app.dependency_overrides.clear()
