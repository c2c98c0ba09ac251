"""
Tests for marketplace listing helpers.
"""

from datetime import datetime

from app.services.marketplace import (
    OPEN_PROJECT_SKILLS_SQL, OPEN_PROJECTS_SQL,
    attach_skills, fetch_open_projects, filter_projects, mark_applied, to_candidates,
)
from app.services.ranking import rank_candidates


def project(pid, title, description="", is_paid=False, created_at=None):
    return {
        "project_id": pid,
        "title": title,
        "description": description,
        "is_paid": is_paid,
        "created_at": created_at or datetime(2025, 1, pid),
    }


SKILL_ROWS = [
    {"project_id": 1, "skill_id": 10, "skill_name": "Python"},
    {"project_id": 1, "skill_id": 11, "skill_name": "SQL"},
    {"project_id": 2, "skill_id": 12, "skill_name": "React"},
    {"project_id": 99, "skill_id": 10, "skill_name": "Python"},
]


def sample_projects():
    return attach_skills(
        [
            project(1, "Inventory API", "Flask service for stock levels", is_paid=True),
            project(2, "Landing Page", "Marketing site"),
            project(3, "Data Cleanup", "One-off spreadsheet work"),
        ],
        SKILL_ROWS,
    )


class TestAttachSkills:

    def test_groups_rows_by_project(self):
        projects = sample_projects()

        assert projects[0]["skill_ids"] == [10, 11]
        assert projects[0]["technologies"] == ["Python", "SQL"]
        assert projects[1]["technologies"] == ["React"]

    def test_project_without_skills(self):
        assert sample_projects()[2]["skill_ids"] == []

    def test_ignores_rows_for_unknown_projects(self):
        projects = sample_projects()
        assert all(99 != p["project_id"] for p in projects)


class TestFilterProjects:

    def test_no_filters(self):
        assert len(filter_projects(sample_projects())) == 3

    def test_search_title_and_description(self):
        assert [p["project_id"] for p in filter_projects(sample_projects(), search="inventory")] == [1]
        assert [p["project_id"] for p in filter_projects(sample_projects(), search="SPREADSHEET")] == [3]

    def test_skill_is_case_insensitive(self):
        assert [p["project_id"] for p in filter_projects(sample_projects(), skill="python")] == [1]

    def test_skill_must_match_whole_name(self):
        assert filter_projects(sample_projects(), skill="Py") == []

    def test_paid(self):
        assert [p["project_id"] for p in filter_projects(sample_projects(), paid=True)] == [1]
        assert [p["project_id"] for p in filter_projects(sample_projects(), paid=False)] == [2, 3]


class TestMarkApplied:

    def test_sets_flag(self):
        flagged = mark_applied(sample_projects(), [2])
        assert [p["applied"] for p in flagged] == [False, True, False]


class TestCandidates:

    def test_wraps_rows(self):
        candidates = to_candidates(sample_projects())

        assert candidates[0].id == 1
        assert candidates[0].tags == frozenset({10, 11})
        assert candidates[0].payload["title"] == "Inventory API"

    def test_ranks_by_student_skills(self):
        """A student knowing React and Python sees the React-only project first."""
        ranked = list(rank_candidates(to_candidates(sample_projects()), {10, 12}))

        assert [s.candidate.id for s in ranked] == [2, 1, 3]
        assert [s.score for s in ranked] == [1.0, 0.5, 0.0]


class TestFetchOpenProjects:

    def test_runs_both_queries(self):
        calls = []

        def run_sql(sql, params):
            calls.append(sql)
            if sql == OPEN_PROJECTS_SQL:
                return [project(1, "Inventory API")]
            return [SKILL_ROWS[0]]

        projects = fetch_open_projects(run_sql)

        assert calls == [OPEN_PROJECTS_SQL, OPEN_PROJECT_SKILLS_SQL]
        assert projects[0]["technologies"] == ["Python"]
