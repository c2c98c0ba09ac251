"""
Tests for employer-owned resources: assessments, applicants and projects.
"""

from datetime import datetime

import pytest
from fastapi.testclient import TestClient

from app.api.routes import employer_routes
from app.core.auth import get_current_employer
from app.main import app

from tests.conftest import FakeSQLResult, FakeSQLSession


EMPLOYER = {"user_id": 5, "email": "hr@northwind.com", "role": "employer", "employer_id": 6}

QUESTION = {
    "question": "Which HTTP method is idempotent?",
    "options": ["POST", "PUT", "PATCH"],
    "correct_option": 1,
}


@pytest.fixture
def client():
    app.dependency_overrides[get_current_employer] = lambda: dict(EMPLOYER)
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def use_session(monkeypatch):
    def install(session):
        monkeypatch.setattr(employer_routes, "get_db_session", session)
        return session
    return install


class TestCreateAssessment:
    """Test POST /api/employers/assessments."""

    def test_creates_question(self, client, use_session):
        session = use_session(FakeSQLSession(
            lambda sql, params: FakeSQLResult([(12, datetime(2025, 5, 1))])
        ))

        response = client.post("/api/employers/assessments", json=QUESTION)

        assert response.status_code == 201
        body = response.json()
        assert body["question_id"] == 12
        assert body["employer_id"] == 6
        assert body["job_id"] is None
        assert body["options"] == ["POST", "PUT", "PATCH"]

        (sql, params), = session.executed
        assert sql.startswith("INSERT INTO assessment_questions")
        assert params["eid"] == 6
        assert params["correct"] == 1

    def test_tied_to_own_job(self, client, use_session):
        def respond(sql, params):
            if sql.startswith("SELECT job_id FROM jobs"):
                return FakeSQLResult([(30,)])
            return FakeSQLResult([(13, datetime(2025, 5, 1))])

        session = use_session(FakeSQLSession(respond))

        response = client.post("/api/employers/assessments", json=dict(QUESTION, job_id=30))

        assert response.status_code == 201
        assert response.json()["job_id"] == 30
        (_, lookup_params), = session.statements("SELECT job_id FROM jobs")
        assert lookup_params == {"jid": 30, "eid": 6}

    def test_job_of_another_employer(self, client, use_session):
        session = use_session(FakeSQLSession(lambda sql, params: FakeSQLResult([])))

        response = client.post("/api/employers/assessments", json=dict(QUESTION, job_id=31))

        assert response.status_code == 404
        assert session.statements("INSERT INTO") == []

    def test_correct_option_out_of_range(self, client, use_session):
        session = use_session(FakeSQLSession())

        response = client.post("/api/employers/assessments", json=dict(QUESTION, correct_option=3))

        assert response.status_code == 422
        assert session.executed == []

    def test_needs_two_options(self, client, use_session):
        use_session(FakeSQLSession())

        response = client.post(
            "/api/employers/assessments", json=dict(QUESTION, options=["Only"], correct_option=0)
        )

        assert response.status_code == 422


class TestListAndDeleteAssessments:

    def test_lists_own_questions(self, client, monkeypatch):
        seen = []

        def fake_sql(sql, params=None):
            seen.append((" ".join(sql.split()), params))
            return [{
                "question_id": 12, "employer_id": 6, "job_id": 30,
                "question": "Which HTTP method is idempotent?",
                "options": ["POST", "PUT"], "correct_option": 1,
                "created_at": datetime(2025, 5, 1),
            }]

        monkeypatch.setattr(employer_routes, "execute_raw_sql", fake_sql)

        response = client.get("/api/employers/assessments?job_id=30")

        assert response.status_code == 200
        assert response.json()[0]["question_id"] == 12
        sql, params = seen[0]
        assert "WHERE employer_id = :eid AND job_id = :jid" in sql
        assert params == {"eid": 6, "jid": 30}

    def test_delete_someone_elses_question(self, client, use_session):
        session = use_session(FakeSQLSession(lambda sql, params: FakeSQLResult(rowcount=0)))

        response = client.delete("/api/employers/assessments/12")

        assert response.status_code == 404
        (sql, params), = session.executed
        assert "WHERE question_id = :qid AND employer_id = :eid" in sql
        assert params == {"qid": 12, "eid": 6}

    def test_delete_own_question(self, client, use_session):
        use_session(FakeSQLSession(lambda sql, params: FakeSQLResult(rowcount=1)))

        response = client.delete("/api/employers/assessments/12")

        assert response.status_code == 200


class TestApplicants:
    """Test GET /api/employers/applicants."""

    def test_students_who_applied(self, client, monkeypatch):
        seen = []

        def fake_sql(sql, params=None):
            seen.append((" ".join(sql.split()), params))
            return [{
                "student_id": 8, "user_id": 3, "full_name": "Lin Chen",
                "email": "lin@university.edu", "avatar_url": None,
            }]

        monkeypatch.setattr(employer_routes, "execute_raw_sql", fake_sql)

        response = client.get("/api/employers/applicants")

        assert response.status_code == 200
        assert response.json() == [{
            "student_id": 8, "user_id": 3, "full_name": "Lin Chen",
            "email": "lin@university.edu", "avatar_url": None,
        }]
        sql, params = seen[0]
        assert "FROM project_applicants" in sql
        assert "FROM job_applications" in sql
        assert params == {"eid": 6}


class TestProjects:

    def test_delete_project_of_another_employer(self, client, use_session):
        session = use_session(FakeSQLSession(lambda sql, params: FakeSQLResult(rowcount=0)))

        response = client.delete("/api/employers/projects/4")

        assert response.status_code == 404
        (_, params), = session.executed
        assert params == {"pid": 4, "eid": 6}

    def test_update_project_of_another_employer(self, client, use_session):
        session = use_session(FakeSQLSession(lambda sql, params: FakeSQLResult([])))

        response = client.put("/api/employers/projects/4", json={"title": "Renamed project"})

        assert response.status_code == 404
        assert session.statements("UPDATE") == []

    def test_accepting_applicant_starts_project(self, client, use_session):
        def respond(sql, params):
            if sql.startswith("SELECT pa.project_id"):
                return FakeSQLResult([(4,)])

        session = use_session(FakeSQLSession(respond))

        response = client.put("/api/employers/projects/applicants/9/status", json={"status": "accepted"})

        assert response.status_code == 200
        updates = session.statements("UPDATE")
        assert updates[0][1] == {"aid": 9, "status": "accepted"}
        assert updates[1][0].startswith("UPDATE projects SET status = 'in_progress'")
        assert updates[1][1] == {"pid": 4}

    def test_rejecting_applicant_leaves_project_open(self, client, use_session):
        def respond(sql, params):
            if sql.startswith("SELECT pa.project_id"):
                return FakeSQLResult([(4,)])

        session = use_session(FakeSQLSession(respond))

        client.put("/api/employers/projects/applicants/9/status", json={"status": "rejected"})

        assert len(session.statements("UPDATE")) == 1
