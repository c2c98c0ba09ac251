"""
Marketplace helpers - shape and filter open project rows for listing.

Project rows come from PostgreSQL with their skills already attached
(see attach_skills). Filtering happens in Python because the skill filter
has to look at the whole skill list of each project.
"""

from typing import Callable, Dict, Iterable, List, Optional

from app.db.postgres import execute_raw_sql
from app.services.ranking import Candidate


def attach_skills(projects: List[dict], skill_rows: Iterable[dict]) -> List[dict]:
    """
    Group (project_id, skill_id, skill_name) rows onto their projects.

    Adds `skill_ids` and `technologies` (skill names) to each project dict.
    """
    by_project: Dict[int, dict] = {}
    for project in projects:
        project["skill_ids"] = []
        project["technologies"] = []
        by_project[project["project_id"]] = project

    for row in skill_rows:
        project = by_project.get(row["project_id"])
        if project is None:
            continue
        project["skill_ids"].append(row["skill_id"])
        project["technologies"].append(row["skill_name"])

    return projects


def filter_projects(
    projects: Iterable[dict],
    search: Optional[str] = None,
    skill: Optional[str] = None,
    paid: Optional[bool] = None,
) -> List[dict]:
    """
    Apply marketplace filters.

    - search: case-insensitive substring of title or description
    - skill: case-insensitive exact match on one of the project's skills
    - paid: match is_paid exactly (None = no filter)
    """
    results = list(projects)

    if search:
        needle = search.lower()
        results = [
            p for p in results
            if needle in (p.get("title") or "").lower()
            or needle in (p.get("description") or "").lower()
        ]

    if skill:
        wanted = skill.lower()
        results = [
            p for p in results
            if any(t.lower() == wanted for t in p.get("technologies") or [])
        ]

    if paid is not None:
        results = [p for p in results if bool(p.get("is_paid")) == paid]

    return results


def mark_applied(projects: Iterable[dict], applied_project_ids: Iterable[int]) -> List[dict]:
    """Set `applied` on each project the student already applied to."""
    applied = set(applied_project_ids)
    results = []
    for project in projects:
        project["applied"] = project["project_id"] in applied
        results.append(project)
    return results


def to_candidates(projects: Iterable[dict]) -> List[Candidate]:
    """Wrap project rows as ranking candidates keyed on skill ids."""
    return [
        Candidate(
            id=p["project_id"],
            tags=p.get("skill_ids"),
            created_at=p.get("created_at"),
            payload=p,
        )
        for p in projects
    ]


OPEN_PROJECTS_SQL = """
    SELECT p.project_id, p.employer_id, e.company_name, p.title, p.description,
           p.status, p.is_paid, p.budget, p.deadline, p.created_at
    FROM projects p
    JOIN employers e ON p.employer_id = e.employer_id
    WHERE p.status = 'open'
    ORDER BY p.created_at DESC
"""

OPEN_PROJECT_SKILLS_SQL = """
    SELECT ps.project_id, ps.skill_id, sk.skill_name
    FROM project_skills ps
    JOIN skills sk ON ps.skill_id = sk.skill_id
    JOIN projects p ON ps.project_id = p.project_id
    WHERE p.status = 'open'
    ORDER BY sk.skill_name
"""


def fetch_open_projects(run_sql: Callable[[str, dict], list] = execute_raw_sql) -> List[dict]:
    """All open projects, newest first, with skills attached."""
    projects = run_sql(OPEN_PROJECTS_SQL, {})
    return attach_skills(projects, run_sql(OPEN_PROJECT_SKILLS_SQL, {}))
