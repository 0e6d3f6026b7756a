"""Application wiring tests: root document, errors, CORS and the store handle."""

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from src.api.dependencies import get_user_repository
from src.config import Settings
from src.database import Database
from src.main import app, create_app
from src.services.user_repository import UserRepository


def test_root_describes_service(client):
    response = client.get("/")

    assert response.status_code == 200
    body = response.json()
    assert body["version"] == "1.0.0"
    assert body["endpoints"]["createUser"] == "POST /api/users"
    assert body["endpoints"]["deleteUser"] == "DELETE /api/users/:id"


def test_health_check(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_unknown_route_uses_envelope(client):
    response = client.get("/api/nothing-here")

    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Not Found"}


@pytest.fixture
def override_repository():
    def _override(repository):
        app.dependency_overrides[get_user_repository] = lambda: repository

    yield _override
    app.dependency_overrides.clear()


def test_unhandled_error_returns_generic_500(override_repository):
    repository = MagicMock(spec=UserRepository)
    repository.list_all.side_effect = RuntimeError("secret internal detail")
    override_repository(repository)

    with TestClient(app, raise_server_exceptions=False) as test_client:
        response = test_client.get("/api/users")

    assert response.status_code == 500
    assert response.json() == {"success": False, "message": "Internal Server Error"}


def test_storage_failure_returns_generic_500(override_repository):
    session = MagicMock()
    session.query.side_effect = OperationalError("SELECT", {}, Exception("db is down"))
    override_repository(UserRepository(session))

    with TestClient(app) as test_client:
        response = test_client.post("/api/users", json={"name": "Jo", "email": "jo@example.com"})

    assert response.status_code == 500
    assert response.json() == {"success": False, "message": "Internal Server Error"}
    assert "db is down" not in response.text


def test_cors_allows_all_by_default():
    test_client = TestClient(create_app(Settings(allowed_origins=None)))

    response = test_client.get("/", headers={"Origin": "https://anywhere.example"})

    # With credentials allowed, newer Starlette echoes the origin instead of "*".
    assert response.headers["access-control-allow-origin"] in ("*", "https://anywhere.example")


def test_cors_allow_list():
    test_client = TestClient(create_app(Settings(allowed_origins="https://app.example")))

    allowed = test_client.get("/", headers={"Origin": "https://app.example"})
    denied = test_client.get("/", headers={"Origin": "https://evil.example"})

    assert allowed.headers["access-control-allow-origin"] == "https://app.example"
    assert "access-control-allow-origin" not in denied.headers


class TestDatabase:
    """Tests for the store handle."""

    def test_connect_is_idempotent(self, tmp_path):
        database = Database(f"sqlite:///{tmp_path / 'users.db'}")

        engine = database.connect()

        assert database.is_connected
        assert database.connect() is engine
        database.dispose()

    def test_dispose_then_reconnect(self, tmp_path):
        database = Database(f"sqlite:///{tmp_path / 'users.db'}")
        first = database.connect()

        database.dispose()
        assert not database.is_connected

        assert database.connect() is not first
        database.dispose()

    def test_session_reconnects_after_dispose(self, tmp_path):
        database = Database(f"sqlite:///{tmp_path / 'users.db'}")
        database.connect()
        database.dispose()

        with database.session() as session:
            assert session.execute(text("SELECT 1")).scalar() == 1
        assert database.is_connected
        database.dispose()

    def test_connect_failure_is_raised(self, tmp_path):
        database = Database(f"sqlite:///{tmp_path / 'missing' / 'users.db'}")

        with pytest.raises(OperationalError):
            database.connect()
        assert not database.is_connected

    def test_create_all_creates_users_table(self, tmp_path):
        database = Database(f"sqlite:///{tmp_path / 'users.db'}")
        database.create_all()

        with database.session() as session:
            assert session.execute(text("SELECT COUNT(*) FROM users")).scalar() == 0
        database.dispose()