"""
Session Service - mentorship and employer sessions, routed by role.

Students and mentors meet in mentorship_sessions; employers hold
interviews and project discussions in employer_sessions. Each role sees
the sessions where it is the owner column, and the counterpart is the
other party.
"""

from typing import NamedTuple


class SessionRoute(NamedTuple):
    table: str
    owner_column: str
    counterpart_column: str
    counterpart_table: str
    counterpart_key: str


SESSION_ROUTES = {
    "student": SessionRoute(
        table="mentorship_sessions",
        owner_column="student_id",
        counterpart_column="mentor_id",
        counterpart_table="mentors",
        counterpart_key="mentor_id",
    ),
    "mentor": SessionRoute(
        table="mentorship_sessions",
        owner_column="mentor_id",
        counterpart_column="student_id",
        counterpart_table="students",
        counterpart_key="student_id",
    ),
    "employer": SessionRoute(
        table="employer_sessions",
        owner_column="employer_id",
        counterpart_column="applicant_id",
        counterpart_table="students",
        counterpart_key="student_id",
    ),
}

SESSION_STATUSES = ("scheduled", "completed", "cancelled")


def route_for_role(role: str) -> SessionRoute:
    """Return where sessions for `role` live. Raises ValueError for unknown roles."""
    try:
        return SESSION_ROUTES[role]
    except KeyError:
        raise ValueError(f"No sessions for role: {role}") from None


def list_sessions_sql(route: SessionRoute) -> str:
    """SQL listing the caller's sessions with the counterpart's name."""
    return f"""
        SELECT s.session_id, s.title, s.description, s.scheduled_at, s.status,
               s.meeting_link, s.{route.counterpart_column} AS counterpart_id,
               p.full_name AS counterpart_name
        FROM {route.table} s
        JOIN {route.counterpart_table} c ON s.{route.counterpart_column} = c.{route.counterpart_key}
        LEFT JOIN profiles p ON c.user_id = p.user_id
        WHERE s.{route.owner_column} = :owner_id
        ORDER BY s.scheduled_at ASC
    """
