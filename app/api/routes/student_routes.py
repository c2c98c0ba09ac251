"""
Student Routes

GET /students/profile - Get own profile
PUT /students/profile - Update profile
GET /students/skills - Get skills
POST /students/skills - Add skill
DELETE /students/skills/{skill_id} - Remove skill
GET /students/available-projects - Open projects ranked by skill match
POST /students/projects/{project_id}/apply - Apply to a project
GET /students/projects - Get my project applications
GET /students/job-applications - Get my job applications
GET /students - Student directory (mentors and employers)
"""

from fastapi import APIRouter, HTTPException, Depends, Query
from sqlalchemy import text
from typing import List, Optional

from app.db.postgres import get_db_session, execute_raw_sql
from app.core.auth import get_current_student, get_current_user
from app.services.activity_service import ActivityService, get_activity_service
from app.services.marketplace import fetch_open_projects, to_candidates
from app.services.ranking import rank_candidates
from app.services.skill_service import get_or_create_skill
from app.schemas.schemas import (
    StudentUpdate, StudentResponse, StudentDirectoryEntry, SkillAdd, ProjectResponse, ProjectListResponse,
    ProjectApplicationCreate, ProjectApplicationResponse, JobApplicationResponse,
    MessageResponse
)

router = APIRouter(prefix="/students", tags=["Students"])

PROFILE_FIELDS = ["full_name", "bio"]
STUDENT_FIELDS = ["education", "interests"]


@router.get("/profile", response_model=StudentResponse)
async def get_profile(student: dict = Depends(get_current_student)):
    """Get current student's profile with skills."""
    with get_db_session() as db:
        result = db.execute(
            text("""
                SELECT s.student_id, s.user_id, p.full_name, u.email, p.bio,
                       s.education, s.interests, s.created_at
                FROM students s
                JOIN users u ON s.user_id = u.user_id
                LEFT JOIN profiles p ON p.user_id = s.user_id
                WHERE s.student_id = :id
            """),
            {"id": student["student_id"]}
        )
        row = result.fetchone()

        # Get skills
        skills_result = db.execute(
            text("""
                SELECT sk.skill_name FROM student_skills ss
                JOIN skills sk ON ss.skill_id = sk.skill_id
                WHERE ss.student_id = :id ORDER BY sk.skill_name
            """),
            {"id": student["student_id"]}
        )
        skills = [r[0] for r in skills_result.fetchall()]

    return StudentResponse(
        student_id=row[0], user_id=row[1], full_name=row[2], email=row[3], bio=row[4],
        education=row[5], interests=row[6] or [], skills=skills, created_at=row[7]
    )


@router.put("/profile", response_model=MessageResponse)
async def update_profile(data: StudentUpdate, student: dict = Depends(get_current_student)):
    """Update student profile. Only provided fields are updated."""
    profile_updates, student_updates = [], []
    params = {"id": student["student_id"], "user_id": student["user_id"]}

    for field in PROFILE_FIELDS + STUDENT_FIELDS:
        value = getattr(data, field)
        if value is not None:
            target = profile_updates if field in PROFILE_FIELDS else student_updates
            target.append(f"{field} = :{field}")
            params[field] = value

    if not profile_updates and not student_updates:
        raise HTTPException(status_code=400, detail="No fields to update")

    with get_db_session() as db:
        if profile_updates:
            db.execute(
                text(f"UPDATE profiles SET {', '.join(profile_updates)}, updated_at = CURRENT_TIMESTAMP WHERE user_id = :user_id"),
                params
            )
        if student_updates:
            db.execute(
                text(f"UPDATE students SET {', '.join(student_updates)}, updated_at = CURRENT_TIMESTAMP WHERE student_id = :id"),
                params
            )

    return MessageResponse(message="Profile updated successfully")


@router.get("/skills")
async def get_skills(student: dict = Depends(get_current_student)):
    """Get all skills for current student."""
    results = execute_raw_sql("""
        SELECT sk.skill_id, sk.skill_name, sk.category, ss.proficiency_level
        FROM student_skills ss JOIN skills sk ON ss.skill_id = sk.skill_id
        WHERE ss.student_id = :id ORDER BY sk.skill_name
    """, {"id": student["student_id"]})
    return results


@router.post("/skills", response_model=MessageResponse)
async def add_skill(skill: SkillAdd, student: dict = Depends(get_current_student)):
    """Add a skill to profile. Creates skill if it doesn't exist."""
    with get_db_session() as db:
        skill_id = get_or_create_skill(db, skill.skill_name)

        db.execute(
            text("""
                INSERT INTO student_skills (student_id, skill_id, proficiency_level)
                VALUES (:student_id, :skill_id, :level)
                ON CONFLICT (student_id, skill_id) DO UPDATE SET proficiency_level = EXCLUDED.proficiency_level
            """),
            {"student_id": student["student_id"], "skill_id": skill_id, "level": skill.proficiency_level.value}
        )

    return MessageResponse(message=f"Skill '{skill.skill_name}' added")


@router.delete("/skills/{skill_id}", response_model=MessageResponse)
async def remove_skill(skill_id: int, student: dict = Depends(get_current_student)):
    """Remove a skill from profile."""
    with get_db_session() as db:
        result = db.execute(
            text("DELETE FROM student_skills WHERE student_id = :sid AND skill_id = :skid"),
            {"sid": student["student_id"], "skid": skill_id}
        )
        if result.rowcount == 0:
            raise HTTPException(status_code=404, detail="Skill not found in profile")

    return MessageResponse(message="Skill removed")


@router.get("/available-projects", response_model=ProjectListResponse)
async def available_projects(student: dict = Depends(get_current_student)):
    """
    Open projects ranked for the current student.

    Score = share of the project's skills the student has. Ties (including
    every project when the student has no skills) go newest first.
    """
    skill_rows = execute_raw_sql(
        "SELECT skill_id FROM student_skills WHERE student_id = :id",
        {"id": student["student_id"]}
    )
    student_skill_ids = [r["skill_id"] for r in skill_rows]

    ranked = rank_candidates(to_candidates(fetch_open_projects()), student_skill_ids)
    projects = [
        ProjectResponse(**scored.candidate.payload, relevance_score=round(scored.score, 4))
        for scored in ranked
    ]
    return ProjectListResponse(projects=projects, total=len(projects))


@router.post("/projects/{project_id}/apply", response_model=MessageResponse, status_code=201)
async def apply_to_project(
    project_id: int,
    application: ProjectApplicationCreate,
    student: dict = Depends(get_current_student),
    activities: ActivityService = Depends(get_activity_service)
):
    """Apply to an open project. Cannot apply twice."""
    with get_db_session() as db:
        result = db.execute(
            text("SELECT title, status FROM projects WHERE project_id = :pid"),
            {"pid": project_id}
        )
        project = result.fetchone()
        if not project:
            raise HTTPException(status_code=404, detail="Project not found")
        if project[1] != "open":
            raise HTTPException(status_code=400, detail="Project is not accepting applications")

        result = db.execute(
            text("SELECT application_id FROM project_applicants WHERE student_id = :sid AND project_id = :pid"),
            {"sid": student["student_id"], "pid": project_id}
        )
        if result.fetchone():
            raise HTTPException(status_code=400, detail="Already applied to this project")

        db.execute(
            text("""
                INSERT INTO project_applicants (project_id, student_id, cover_letter, status)
                VALUES (:pid, :sid, :cover, 'pending')
            """),
            {"pid": project_id, "sid": student["student_id"], "cover": application.cover_letter}
        )

    activities.record_quietly(
        student["user_id"], "project_application", f"Applied to {project[0]}",
        metadata={"project_id": project_id}
    )
    return MessageResponse(message="Application submitted successfully")


@router.get("/projects", response_model=List[ProjectApplicationResponse])
async def get_my_project_applications(student: dict = Depends(get_current_student)):
    """Get all project applications for current student."""
    results = execute_raw_sql("""
        SELECT pa.application_id, pa.project_id, p.title AS project_title, pa.student_id,
               pr.full_name AS student_name, pa.cover_letter, pa.status, pa.applied_at
        FROM project_applicants pa
        JOIN projects p ON pa.project_id = p.project_id
        JOIN students s ON pa.student_id = s.student_id
        LEFT JOIN profiles pr ON pr.user_id = s.user_id
        WHERE pa.student_id = :id ORDER BY pa.applied_at DESC
    """, {"id": student["student_id"]})

    return [ProjectApplicationResponse(**r) for r in results]


@router.get("/job-applications", response_model=List[JobApplicationResponse])
async def get_my_job_applications(student: dict = Depends(get_current_student)):
    """Get all job applications for current student."""
    results = execute_raw_sql("""
        SELECT ja.application_id, ja.job_id, j.title AS job_title, e.company_name,
               ja.student_id, pr.full_name AS student_name, ja.status, ja.cover_letter,
               ja.applied_at, ja.updated_at
        FROM job_applications ja
        JOIN jobs j ON ja.job_id = j.job_id
        JOIN employers e ON j.employer_id = e.employer_id
        JOIN students s ON ja.student_id = s.student_id
        LEFT JOIN profiles pr ON pr.user_id = s.user_id
        WHERE ja.student_id = :id ORDER BY ja.applied_at DESC
    """, {"id": student["student_id"]})

    return [JobApplicationResponse(**r) for r in results]


@router.get("", response_model=List[StudentDirectoryEntry])
async def student_directory(
    search: Optional[str] = Query(None, description="Search by name"),
    user: dict = Depends(get_current_user)
):
    """
    Active students, by name.

    Mentors and employers use this to pick the counterpart_id when booking
    a session.
    """
    if user["role"] not in ("mentor", "employer"):
        raise HTTPException(status_code=403, detail="Mentors and employers only")

    sql = """
        SELECT s.student_id, s.user_id, p.full_name, u.email, p.avatar_url
        FROM students s
        JOIN users u ON s.user_id = u.user_id
        LEFT JOIN profiles p ON p.user_id = s.user_id
        WHERE u.is_active = TRUE
    """
    params = {}
    if search:
        sql += " AND p.full_name ILIKE :search"
        params["search"] = f"%{search}%"
    sql += " ORDER BY p.full_name"

    return [StudentDirectoryEntry(**r) for r in execute_raw_sql(sql, params)]
