"""
Dashboard Service - role-specific counters for the dashboard header cards.

One query per role, each a single row of scalar subqueries keyed on the
caller's role id (student_id, mentor_id or employer_id).
"""

from typing import Callable, Dict

from app.db.postgres import execute_raw_sql


STATS_QUERIES = {
    "student": """
        SELECT
            (SELECT COUNT(*) FROM project_applicants WHERE student_id = :id) AS applied_projects,
            (SELECT COUNT(*) FROM project_applicants
                WHERE student_id = :id AND status = 'accepted') AS accepted_projects,
            (SELECT COUNT(*) FROM job_applications WHERE student_id = :id) AS job_applications,
            (SELECT COUNT(*) FROM mentorship_sessions
                WHERE student_id = :id AND status = 'scheduled'
                AND scheduled_at >= CURRENT_TIMESTAMP) AS upcoming_sessions,
            (SELECT COUNT(*) FROM student_skills WHERE student_id = :id) AS skills
    """,
    "mentor": """
        SELECT
            (SELECT COUNT(DISTINCT student_id) FROM mentorship_sessions WHERE mentor_id = :id) AS mentees,
            (SELECT COUNT(*) FROM mentorship_sessions
                WHERE mentor_id = :id AND status = 'scheduled'
                AND scheduled_at >= CURRENT_TIMESTAMP) AS upcoming_sessions,
            (SELECT COUNT(*) FROM mentorship_sessions
                WHERE mentor_id = :id AND status = 'completed') AS completed_sessions,
            (SELECT COUNT(*) FROM mentor_expertise WHERE mentor_id = :id) AS expertise
    """,
    "employer": """
        SELECT
            (SELECT COUNT(*) FROM projects WHERE employer_id = :id) AS projects,
            (SELECT COUNT(*) FROM projects WHERE employer_id = :id AND status = 'open') AS open_projects,
            (SELECT COUNT(*) FROM jobs WHERE employer_id = :id) AS jobs,
            (SELECT COUNT(*) FROM jobs WHERE employer_id = :id AND status = 'open') AS open_jobs,
            (SELECT COUNT(*) FROM project_applicants pa
                JOIN projects p ON pa.project_id = p.project_id
                WHERE p.employer_id = :id) AS project_applicants,
            (SELECT COUNT(*) FROM job_applications ja
                JOIN jobs j ON ja.job_id = j.job_id
                WHERE j.employer_id = :id) AS job_applicants
    """,
}


def get_dashboard_stats(
    role: str,
    role_id: int,
    run_sql: Callable[[str, dict], list] = execute_raw_sql,
) -> Dict[str, int]:
    """
    Counters for one user.

    Raises:
        ValueError: role has no dashboard
    """
    if role not in STATS_QUERIES:
        raise ValueError(f"No dashboard for role: {role}")

    rows = run_sql(STATS_QUERIES[role], {"id": role_id})
    if not rows:
        return {}
    return {name: int(value or 0) for name, value in rows[0].items()}
