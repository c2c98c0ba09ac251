"""
Tests for signup: users row, then profile and role rows with FK retry.
"""

import pytest
from fastapi.testclient import TestClient

from app.api.routes import auth_routes
from app.db.datastore import DatastoreError, DatastoreErrorKind, get_datastore
from app.main import app

from tests.conftest import FakeDatastore, fk_error, unique_error


def signup(role="student", email="ada@university.edu"):
    return {
        "email": email,
        "password": "correct-horse-battery",
        "full_name": "Ada Lovelace",
        "role": role,
    }


@pytest.fixture(autouse=True)
def fast_retries(monkeypatch):
    monkeypatch.setattr(auth_routes.settings, "profile_base_delay", 0.0)
    monkeypatch.setattr(auth_routes.settings, "profile_max_attempts", 3)


@pytest.fixture
def client_for():
    """Build a TestClient whose routes see the given datastore."""
    def build(store):
        app.dependency_overrides[get_datastore] = lambda: store
        return TestClient(app)

    yield build
    app.dependency_overrides.clear()


class TestRegister:
    """Test POST /api/auth/register."""

    def test_creates_user_profile_and_role_row(self, client_for):
        store = FakeDatastore()

        response = client_for(store).post("/api/auth/register", json=signup())

        assert response.status_code == 201
        body = response.json()
        assert body["user_id"] == 1
        assert body["role"] == "student"
        assert body["message"] == "Registered successfully as student. Please login."
        assert [table for table, _ in store.calls] == ["users", "profiles", "students"]

    def test_password_is_hashed(self, client_for):
        store = FakeDatastore()

        client_for(store).post("/api/auth/register", json=signup())

        user = store.rows["users"][0]
        assert user["password_hash"] != "correct-horse-battery"
        assert user["password_hash"].startswith("$2")

    def test_profile_retried_while_user_not_visible(self, client_for):
        store = FakeDatastore({"profiles": [fk_error(), fk_error()]})

        response = client_for(store).post("/api/auth/register", json=signup())

        assert response.status_code == 201
        assert store.inserts_into("profiles") == 3
        assert store.rows["profiles"][0]["full_name"] == "Ada Lovelace"

    def test_employer_row_gets_company_name(self, client_for):
        store = FakeDatastore({"employers": [fk_error()]})

        response = client_for(store).post("/api/auth/register", json=signup(role="employer"))

        assert response.status_code == 201
        assert store.rows["employers"][0]["company_name"] == "Ada Lovelace"

    def test_profile_never_visible(self, client_for):
        store = FakeDatastore({"profiles": [fk_error()] * 5})

        response = client_for(store).post("/api/auth/register", json=signup())

        assert response.status_code == 503
        assert store.inserts_into("profiles") == 3
        assert "students" not in store.rows

    def test_duplicate_profile(self, client_for):
        store = FakeDatastore({"profiles": [unique_error()]})

        response = client_for(store).post("/api/auth/register", json=signup())

        assert response.status_code == 409
        assert store.inserts_into("profiles") == 1

    def test_profile_other_error(self, client_for):
        store = FakeDatastore({"profiles": [DatastoreError(DatastoreErrorKind.OTHER, "check constraint")]})

        response = client_for(store).post("/api/auth/register", json=signup())

        assert response.status_code == 500

    def test_email_already_registered(self, client_for):
        store = FakeDatastore()
        client = client_for(store)
        client.post("/api/auth/register", json=signup())

        response = client.post("/api/auth/register", json=signup(role="mentor"))

        assert response.status_code == 409
        assert response.json()["detail"] == "Email already registered"
        assert store.inserts_into("users") == 1

    def test_users_unique_race(self, client_for):
        """A concurrent signup can win between the lookup and the insert."""
        store = FakeDatastore({"users": [unique_error()]})

        response = client_for(store).post("/api/auth/register", json=signup())

        assert response.status_code == 409
        assert store.inserts_into("profiles") == 0

    def test_retry_after_503_succeeds(self, client_for):
        """After a timed-out signup the same email can register again."""
        store = FakeDatastore({"profiles": [fk_error()] * 3})
        client = client_for(store)

        first = client.post("/api/auth/register", json=signup())
        second = client.post("/api/auth/register", json=signup())

        assert first.status_code == 503
        assert second.status_code == 201
        assert len(store.rows["users"]) == 1
        assert len(store.rows["profiles"]) == 1
        assert len(store.rows["students"]) == 1

    def test_failed_role_row_removes_profile_and_user(self, client_for):
        store = FakeDatastore({"mentors": [fk_error()] * 3})

        response = client_for(store).post("/api/auth/register", json=signup(role="mentor"))

        assert response.status_code == 503
        assert store.rows["users"] == []
        assert store.rows["profiles"] == []
        assert ("users", {"user_id": 1}) in store.deletes

    def test_permanent_failure_also_rolls_back(self, client_for):
        store = FakeDatastore({"profiles": [unique_error()]})

        client_for(store).post("/api/auth/register", json=signup())

        assert store.rows["users"] == []

    def test_short_password_rejected(self, client_for):
        store = FakeDatastore()
        payload = signup()
        payload["password"] = "short"

        response = client_for(store).post("/api/auth/register", json=payload)

        assert response.status_code == 422
        assert store.calls == []

    def test_unknown_role_rejected(self, client_for):
        store = FakeDatastore()

        response = client_for(store).post("/api/auth/register", json=signup(role="admin"))

        assert response.status_code == 422


class TestHealth:

    def test_root(self, client_for):
        response = client_for(FakeDatastore()).get("/")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
