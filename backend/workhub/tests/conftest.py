"""Pytest configuration for workhub integration tests

WHAT: Provides shared fixtures for service-level and HTTP endpoint tests
WHY: Ensures consistent test setup, database isolation and auth helpers
REFERENCES:
    - workhub/main.py: FastAPI application
    - workhub/database.py: Database configuration
    - workhub/deps.py: Dependency injection
"""

import os
import sys
from pathlib import Path
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# Ensure backend is in path
BACKEND_ROOT = Path(__file__).resolve().parents[2]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

# Set test environment before any workhub module reads it
os.environ.setdefault("JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest.fixture
def test_db_engine():
    """Create in-memory test database engine shared across threads."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    from workhub.database import Base
    Base.metadata.create_all(bind=engine)

    yield engine

    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def test_db_session(test_db_engine) -> Generator[Session, None, None]:
    """Create test database session."""
    SessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=test_db_engine
    )

    session = SessionLocal()
    yield session
    session.rollback()
    session.close()


# ============================================================================
# Application & Client Fixtures
# ============================================================================

@pytest.fixture
def app(test_db_session):
    """Create FastAPI test application."""
    from workhub.main import create_app
    from workhub.database import get_db

    test_app = create_app()

    def override_get_db():
        # Shared with the test body; closing here would detach its objects
        yield test_db_session

    test_app.dependency_overrides[get_db] = override_get_db
    return test_app


@pytest.fixture
def client(app) -> TestClient:
    """Create TestClient for HTTP testing."""
    return TestClient(app)


# ============================================================================
# Model Fixtures
# ============================================================================

@pytest.fixture
def make_user(test_db_session):
    """Factory creating persisted users: make_user("alice")."""
    from workhub.models import User

    def _make(handle: str, name: str | None = None) -> User:
        user = User(email=f"{handle}@example.com", name=name or handle.title())
        test_db_session.add(user)
        test_db_session.commit()
        test_db_session.refresh(user)
        return user

    return _make


@pytest.fixture
def owner(make_user):
    return make_user("owner", "Olivia Owner")


@pytest.fixture
def admin(make_user):
    return make_user("admin", "Adam Admin")


@pytest.fixture
def member(make_user):
    return make_user("member", "Mia Member")


@pytest.fixture
def outsider(make_user):
    return make_user("outsider", "Otto Outsider")


@pytest.fixture
def workspace(test_db_session, owner, admin, member):
    """Workspace owned by `owner` with `admin` (admin) and `member` (member)."""
    from workhub.models import WorkspaceRoleEnum
    from workhub.services.workspace_service import WorkspaceService

    service = WorkspaceService(test_db_session)
    ws = service.create_workspace("Acme", owner.id)
    service.add_member(ws.id, owner.id, admin.id, WorkspaceRoleEnum.admin)
    service.add_member(ws.id, owner.id, member.id, WorkspaceRoleEnum.member)
    return service._load(ws.id)


@pytest.fixture
def project_service(test_db_session):
    from workhub.services.project_service import ProjectService
    return ProjectService(test_db_session)


@pytest.fixture
def workspace_service(test_db_session):
    from workhub.services.workspace_service import WorkspaceService
    return WorkspaceService(test_db_session)


# ============================================================================
# Authentication Fixtures
# ============================================================================

@pytest.fixture
def auth_headers():
    """Build auth headers for a user: auth_headers(user)."""
    from workhub.security import create_access_token

    def _headers(user) -> dict:
        token = create_access_token(subject=user.email)
        return {"Authorization": f"Bearer {token}"}

    return _headers
