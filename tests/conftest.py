"""Pytest configuration and fixtures."""

import os

# Point the application at a local SQLite database before it reads settings.
os.environ["DATABASE_URL"] = "sqlite:///./test.db"
os.environ.pop("ALLOWED_ORIGINS", None)

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from src.database import Base, get_database  # noqa: E402
from src.main import app  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def setup_test_database():
    """Create test database schema once at the start of the test session."""
    database = get_database()
    database.create_all()
    yield
    database.dispose()


@pytest.fixture(scope="function", autouse=True)
def db():
    """Create a fresh database session for each test with cleanup."""
    session = get_database().session()

    yield session

    # Clean up all data after test
    session.rollback()
    for table in reversed(Base.metadata.sorted_tables):
        session.execute(table.delete())
    session.commit()
    session.close()


@pytest.fixture(scope="function")
def client():
    """Create a test client running the application lifespan."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def user_payload():
    return {"name": "Jo", "email": "A@B.com", "age": 30}


@pytest.fixture
def created_user(client, user_payload):
    """Create a user through the API and return its JSON record."""
    response = client.post("/api/users", json=user_payload)
    assert response.status_code == 201
    return response.json()["data"]
