"""
Project Routes

GET /projects/marketplace - Browse open projects with filters
GET /projects/{project_id} - Get project details
"""

from fastapi import APIRouter, HTTPException, Depends, Query
from typing import Optional

from app.db.postgres import execute_raw_sql
from app.core.auth import get_current_user
from app.services.marketplace import attach_skills, fetch_open_projects, filter_projects, mark_applied
from app.schemas.schemas import ProjectResponse, ProjectListResponse

router = APIRouter(prefix="/projects", tags=["Projects"])


@router.get("/marketplace", response_model=ProjectListResponse)
async def marketplace(
    search: Optional[str] = Query(None, description="Search in title and description"),
    skill: Optional[str] = Query(None, description="Filter by skill name"),
    paid: Optional[bool] = Query(None, description="Only paid (true) or unpaid (false) projects"),
    user: dict = Depends(get_current_user)
):
    """
    Open projects, newest first.

    Students also get an `applied` flag on each project.
    """
    projects = filter_projects(fetch_open_projects(), search=search, skill=skill, paid=paid)

    if user["role"] == "student":
        applied = execute_raw_sql("""
            SELECT pa.project_id FROM project_applicants pa
            JOIN students s ON pa.student_id = s.student_id
            WHERE s.user_id = :uid
        """, {"uid": user["user_id"]})
        projects = mark_applied(projects, [r["project_id"] for r in applied])

    return ProjectListResponse(
        projects=[ProjectResponse(**p) for p in projects],
        total=len(projects)
    )


@router.get("/{project_id}", response_model=ProjectResponse)
async def get_project(project_id: int, user: dict = Depends(get_current_user)):
    """Get details of a specific project."""
    results = execute_raw_sql("""
        SELECT p.project_id, p.employer_id, e.company_name, p.title, p.description,
               p.status, p.is_paid, p.budget, p.deadline, p.created_at
        FROM projects p JOIN employers e ON p.employer_id = e.employer_id
        WHERE p.project_id = :pid
    """, {"pid": project_id})

    if not results:
        raise HTTPException(status_code=404, detail="Project not found")

    skills = execute_raw_sql("""
        SELECT ps.project_id, ps.skill_id, sk.skill_name FROM project_skills ps
        JOIN skills sk ON ps.skill_id = sk.skill_id
        WHERE ps.project_id = :pid ORDER BY sk.skill_name
    """, {"pid": project_id})

    return ProjectResponse(**attach_skills(results, skills)[0])
