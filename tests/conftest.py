"""Pytest configuration and shared fixtures."""

import os

# Must be set before any reviewflow module builds the global engine
os.environ.setdefault("REVIEWFLOW_DATABASE_URL", "sqlite://")

import pytest
from sqlalchemy.orm import sessionmaker

from reviewflow.core.config import WorkflowConfig
from reviewflow.core.review.events import ReviewEvents
from reviewflow.core.security import create_access_token
from reviewflow.db.base import Base
from reviewflow.db.session import create_db_engine
from reviewflow.services.document_store import InMemoryDocumentStore

from tests.factories import create_role, create_user

CONTENT_TYPE = "api::article.article"


@pytest.fixture
def engine():
    """Fresh in-memory SQLite database per test."""
    engine = create_db_engine("sqlite://")
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db_session(engine):
    session = sessionmaker(bind=engine, autoflush=False)()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def workflow_config():
    return WorkflowConfig()


@pytest.fixture
def document_store():
    return InMemoryDocumentStore()


@pytest.fixture
def events():
    return ReviewEvents()


@pytest.fixture
def requester(db_session):
    """Content owner allowed to request reviews."""
    role = create_role(
        db_session,
        name="editor",
        permissions=["reviews:read", "reviews:assign", "reviews:bulk_assign"],
    )
    return create_user(db_session, role=role, name="Requester")


@pytest.fixture
def reviewer(db_session):
    """User eligible to handle reviews."""
    role = create_role(
        db_session,
        name="reviewer",
        permissions=["reviews:read", "reviews:handle", "reviews:approve", "reviews:reject"],
    )
    return create_user(db_session, role=role, name="Reviewer")


@pytest.fixture
def admin(db_session):
    role = create_role(db_session, name="admin", permissions=["*:*"])
    return create_user(db_session, role=role, name="Admin")


@pytest.fixture
def app(db_session, workflow_config, document_store, events):
    """FastAPI app wired to the test session and collaborators."""
    from reviewflow.api import deps
    from reviewflow.api.main import app

    def override_get_db():
        yield db_session

    app.dependency_overrides[deps.get_db] = override_get_db
    app.dependency_overrides[deps.get_workflow_config] = lambda: workflow_config
    app.dependency_overrides[deps.get_document_store] = lambda: document_store
    app.dependency_overrides[deps.get_events] = lambda: events
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    from fastapi.testclient import TestClient

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers():
    """Build bearer headers for a user."""
    def _headers(user) -> dict:
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}
    return _headers
