# tests/conftest.py

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from unittest.mock import MagicMock

from app.main import app
from app.core.config import settings
from app.db.session import get_db
from app.models import Base
from app.schemas.booking import ContactInfo
from app.services.concept_client import get_concept_client
from app.services.profile_client import get_profile_client
from app.utils.kafka_helpers import get_notifier

# Never reach for a real broker from the test suite
settings.NOTIFICATIONS_ENABLED = False


# --- Test Database Setup ---
engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


@event.listens_for(engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    yield session
    session.close()
    Base.metadata.drop_all(bind=engine)


# --- Mock Collaborators ---
@pytest.fixture
def notifier():
    """Stands in for the Kafka notification dispatcher."""
    return MagicMock()


@pytest.fixture
def profiles():
    client = MagicMock()
    client.get_contact_info.side_effect = lambda user_id: ContactInfo(
        email=f"{user_id}@example.com", phone="+15550100"
    )
    return client


@pytest.fixture
def concepts():
    client = MagicMock()
    client.get_concept.return_value = None
    return client


# --- Test Client Fixture ---
@pytest.fixture(scope="function")
def client(db_session, profiles, concepts, notifier):
    """
    TestClient wired to the in-memory database with mocked collaborators.
    Authentication is real: use tests.utils.auth to build headers.
    """

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_profile_client] = lambda: profiles
    app.dependency_overrides[get_concept_client] = lambda: concepts
    app.dependency_overrides[get_notifier] = lambda: notifier

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
