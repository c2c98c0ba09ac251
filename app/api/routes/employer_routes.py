"""
Employer Routes

GET /employers/profile - Get own profile
PUT /employers/profile - Update profile
POST /employers/projects - Post a project
GET /employers/projects - Get own projects
PUT /employers/projects/{project_id} - Update project
DELETE /employers/projects/{project_id} - Delete project
GET /employers/projects/applicants - Applicants across own projects
PUT /employers/projects/applicants/{application_id}/status - Accept/reject applicant
GET /employers/jobs - Get own job postings
GET /employers/applicants - Students who applied to own projects or jobs
GET /employers/assessments - Own assessment questions
POST /employers/assessments - Add an assessment question
DELETE /employers/assessments/{question_id} - Delete an assessment question
"""

from fastapi import APIRouter, HTTPException, Depends, Query
from sqlalchemy import text
from typing import List, Optional

from app.db.postgres import get_db_session, execute_raw_sql
from app.core.auth import get_current_employer
from app.services.activity_service import ActivityService, get_activity_service
from app.services.marketplace import attach_skills
from app.services.skill_service import get_or_create_skill
from app.api.routes.job_routes import fetch_jobs
from app.schemas.schemas import (
    EmployerUpdate, EmployerResponse, ProjectCreate, ProjectUpdate, ProjectResponse,
    ProjectApplicationResponse, ProjectApplicationStatusUpdate, JobResponse, MessageResponse,
    StudentDirectoryEntry, AssessmentQuestionCreate, AssessmentQuestionResponse
)

router = APIRouter(prefix="/employers", tags=["Employers"])


@router.get("/profile", response_model=EmployerResponse)
async def get_profile(employer: dict = Depends(get_current_employer)):
    """Get current employer's profile."""
    with get_db_session() as db:
        result = db.execute(
            text("""
                SELECT e.employer_id, e.user_id, e.company_name, u.email, e.industry,
                       e.company_size, e.website, e.created_at
                FROM employers e JOIN users u ON e.user_id = u.user_id
                WHERE e.employer_id = :id
            """),
            {"id": employer["employer_id"]}
        )
        row = result.fetchone()

    return EmployerResponse(
        employer_id=row[0], user_id=row[1], company_name=row[2], email=row[3],
        industry=row[4], company_size=row[5], website=row[6], created_at=row[7]
    )


@router.put("/profile", response_model=MessageResponse)
async def update_profile(data: EmployerUpdate, employer: dict = Depends(get_current_employer)):
    """Update employer profile."""
    updates = []
    params = {"id": employer["employer_id"]}

    if data.company_name: updates.append("company_name = :company_name"); params["company_name"] = data.company_name
    if data.industry: updates.append("industry = :industry"); params["industry"] = data.industry
    if data.company_size: updates.append("company_size = :company_size"); params["company_size"] = data.company_size.value
    if data.website: updates.append("website = :website"); params["website"] = data.website

    if not updates:
        raise HTTPException(status_code=400, detail="No fields to update")

    with get_db_session() as db:
        db.execute(
            text(f"UPDATE employers SET {', '.join(updates)}, updated_at = CURRENT_TIMESTAMP WHERE employer_id = :id"),
            params
        )

    return MessageResponse(message="Profile updated successfully")


@router.post("/projects", response_model=ProjectResponse, status_code=201)
async def create_project(
    project: ProjectCreate,
    employer: dict = Depends(get_current_employer),
    activities: ActivityService = Depends(get_activity_service)
):
    """Post a new project. It opens immediately."""
    with get_db_session() as db:
        result = db.execute(
            text("""
                INSERT INTO projects (employer_id, title, description, is_paid, budget, deadline, status)
                VALUES (:employer_id, :title, :description, :is_paid, :budget, :deadline, 'open')
                RETURNING project_id, created_at
            """),
            {
                "employer_id": employer["employer_id"], "title": project.title,
                "description": project.description, "is_paid": project.is_paid,
                "budget": project.budget, "deadline": project.deadline
            }
        )
        project_id, created_at = result.fetchone()

        for skill_name in project.technologies:
            skill_id = get_or_create_skill(db, skill_name)
            db.execute(
                text("INSERT INTO project_skills (project_id, skill_id) VALUES (:pid, :sid) ON CONFLICT DO NOTHING"),
                {"pid": project_id, "sid": skill_id}
            )

        cn_result = db.execute(
            text("SELECT company_name FROM employers WHERE employer_id = :id"),
            {"id": employer["employer_id"]}
        )
        company_name = cn_result.fetchone()[0]

    activities.record_quietly(
        employer["user_id"], "project_created", f"Posted {project.title}",
        metadata={"project_id": project_id}
    )

    return ProjectResponse(
        project_id=project_id, employer_id=employer["employer_id"], company_name=company_name,
        title=project.title, description=project.description, status="open",
        is_paid=project.is_paid, budget=project.budget, deadline=project.deadline,
        technologies=project.technologies, created_at=created_at
    )


@router.get("/projects", response_model=List[ProjectResponse])
async def get_own_projects(
    status: Optional[str] = Query(None),
    employer: dict = Depends(get_current_employer)
):
    """Get all projects posted by this employer, newest first."""
    sql = """
        SELECT p.project_id, p.employer_id, e.company_name, p.title, p.description,
               p.status, p.is_paid, p.budget, p.deadline, p.created_at
        FROM projects p JOIN employers e ON p.employer_id = e.employer_id
        WHERE p.employer_id = :eid
    """
    params = {"eid": employer["employer_id"]}
    if status:
        sql += " AND p.status = :status"
        params["status"] = status
    sql += " ORDER BY p.created_at DESC"

    projects = execute_raw_sql(sql, params)
    skills = execute_raw_sql("""
        SELECT ps.project_id, ps.skill_id, sk.skill_name
        FROM project_skills ps
        JOIN skills sk ON ps.skill_id = sk.skill_id
        JOIN projects p ON ps.project_id = p.project_id
        WHERE p.employer_id = :eid ORDER BY sk.skill_name
    """, {"eid": employer["employer_id"]})

    return [ProjectResponse(**p) for p in attach_skills(projects, skills)]


@router.put("/projects/{project_id}", response_model=MessageResponse)
async def update_project(project_id: int, update: ProjectUpdate, employer: dict = Depends(get_current_employer)):
    """Update a project. Only the owning employer can update."""
    with get_db_session() as db:
        result = db.execute(
            text("SELECT project_id FROM projects WHERE project_id = :pid AND employer_id = :eid"),
            {"pid": project_id, "eid": employer["employer_id"]}
        )
        if not result.fetchone():
            raise HTTPException(status_code=404, detail="Project not found or access denied")

        updates = []
        params = {"pid": project_id}

        for field in ["title", "description", "is_paid", "budget", "deadline"]:
            value = getattr(update, field, None)
            if value is not None:
                updates.append(f"{field} = :{field}")
                params[field] = value

        if update.status:
            updates.append("status = :status")
            params["status"] = update.status.value

        if updates:
            db.execute(
                text(f"UPDATE projects SET {', '.join(updates)}, updated_at = CURRENT_TIMESTAMP WHERE project_id = :pid"),
                params
            )

    return MessageResponse(message="Project updated successfully")


@router.delete("/projects/{project_id}", response_model=MessageResponse)
async def delete_project(project_id: int, employer: dict = Depends(get_current_employer)):
    """Delete a project. Cascades to skills and applicants."""
    with get_db_session() as db:
        result = db.execute(
            text("DELETE FROM projects WHERE project_id = :pid AND employer_id = :eid"),
            {"pid": project_id, "eid": employer["employer_id"]}
        )
        if result.rowcount == 0:
            raise HTTPException(status_code=404, detail="Project not found or access denied")

    return MessageResponse(message="Project deleted successfully")


@router.get("/projects/applicants", response_model=List[ProjectApplicationResponse])
async def get_project_applicants(
    project_id: Optional[int] = Query(None),
    status: Optional[str] = Query(None),
    employer: dict = Depends(get_current_employer)
):
    """Get applicants for this employer's projects."""
    sql = """
        SELECT pa.application_id, pa.project_id, p.title AS project_title, pa.student_id,
               pr.full_name AS student_name, pa.cover_letter, pa.status, pa.applied_at
        FROM project_applicants pa
        JOIN projects p ON pa.project_id = p.project_id
        JOIN students s ON pa.student_id = s.student_id
        LEFT JOIN profiles pr ON pr.user_id = s.user_id
        WHERE p.employer_id = :eid
    """
    params = {"eid": employer["employer_id"]}

    if project_id:
        sql += " AND pa.project_id = :pid"
        params["pid"] = project_id
    if status:
        sql += " AND pa.status = :status"
        params["status"] = status

    sql += " ORDER BY pa.applied_at DESC"
    return [ProjectApplicationResponse(**r) for r in execute_raw_sql(sql, params)]


@router.put("/projects/applicants/{application_id}/status", response_model=MessageResponse)
async def update_applicant_status(
    application_id: int,
    update: ProjectApplicationStatusUpdate,
    employer: dict = Depends(get_current_employer)
):
    """Accept or reject a project applicant. Accepting moves the project in progress."""
    with get_db_session() as db:
        # Verify ownership
        result = db.execute(
            text("""
                SELECT pa.project_id FROM project_applicants pa
                JOIN projects p ON pa.project_id = p.project_id
                WHERE pa.application_id = :aid AND p.employer_id = :eid
            """),
            {"aid": application_id, "eid": employer["employer_id"]}
        )
        row = result.fetchone()
        if not row:
            raise HTTPException(status_code=404, detail="Application not found")

        db.execute(
            text("""
                UPDATE project_applicants SET status = :status, updated_at = CURRENT_TIMESTAMP
                WHERE application_id = :aid
            """),
            {"aid": application_id, "status": update.status.value}
        )

        if update.status.value == "accepted":
            db.execute(
                text("UPDATE projects SET status = 'in_progress', updated_at = CURRENT_TIMESTAMP WHERE project_id = :pid"),
                {"pid": row[0]}
            )

    return MessageResponse(message=f"Status updated to '{update.status.value}'")


@router.get("/jobs", response_model=List[JobResponse])
async def get_own_jobs(
    status: Optional[str] = Query(None),
    employer: dict = Depends(get_current_employer)
):
    """Get all jobs posted by this employer."""
    return fetch_jobs(employer_id=employer["employer_id"], status=status)


@router.get("/applicants", response_model=List[StudentDirectoryEntry])
async def get_applicants(employer: dict = Depends(get_current_employer)):
    """Students who applied to any of this employer's projects or jobs."""
    results = execute_raw_sql("""
        SELECT s.student_id, s.user_id, p.full_name, u.email, p.avatar_url
        FROM students s
        JOIN users u ON s.user_id = u.user_id
        LEFT JOIN profiles p ON p.user_id = s.user_id
        WHERE s.student_id IN (
            SELECT pa.student_id FROM project_applicants pa
            JOIN projects pr ON pa.project_id = pr.project_id
            WHERE pr.employer_id = :eid
            UNION
            SELECT ja.student_id FROM job_applications ja
            JOIN jobs j ON ja.job_id = j.job_id
            WHERE j.employer_id = :eid
        )
        ORDER BY p.full_name
    """, {"eid": employer["employer_id"]})
    return [StudentDirectoryEntry(**r) for r in results]


@router.get("/assessments", response_model=List[AssessmentQuestionResponse])
async def get_assessment_questions(
    job_id: Optional[int] = Query(None),
    employer: dict = Depends(get_current_employer)
):
    """Own assessment questions, newest first."""
    sql = """
        SELECT question_id, employer_id, job_id, question, options, correct_option, created_at
        FROM assessment_questions WHERE employer_id = :eid
    """
    params = {"eid": employer["employer_id"]}
    if job_id:
        sql += " AND job_id = :jid"
        params["jid"] = job_id
    sql += " ORDER BY created_at DESC"

    return [AssessmentQuestionResponse(**r) for r in execute_raw_sql(sql, params)]


@router.post("/assessments", response_model=AssessmentQuestionResponse, status_code=201)
async def create_assessment_question(
    data: AssessmentQuestionCreate,
    employer: dict = Depends(get_current_employer)
):
    """Add a multiple-choice question, optionally tied to one of own jobs."""
    with get_db_session() as db:
        if data.job_id is not None:
            result = db.execute(
                text("SELECT job_id FROM jobs WHERE job_id = :jid AND employer_id = :eid"),
                {"jid": data.job_id, "eid": employer["employer_id"]}
            )
            if not result.fetchone():
                raise HTTPException(status_code=404, detail="Job not found or access denied")

        result = db.execute(
            text("""
                INSERT INTO assessment_questions (employer_id, job_id, question, options, correct_option)
                VALUES (:eid, :jid, :question, :options, :correct)
                RETURNING question_id, created_at
            """),
            {
                "eid": employer["employer_id"], "jid": data.job_id, "question": data.question,
                "options": data.options, "correct": data.correct_option
            }
        )
        question_id, created_at = result.fetchone()

    return AssessmentQuestionResponse(
        question_id=question_id, employer_id=employer["employer_id"], job_id=data.job_id,
        question=data.question, options=data.options, correct_option=data.correct_option,
        created_at=created_at
    )


@router.delete("/assessments/{question_id}", response_model=MessageResponse)
async def delete_assessment_question(question_id: int, employer: dict = Depends(get_current_employer)):
    """Delete one of own assessment questions."""
    with get_db_session() as db:
        result = db.execute(
            text("DELETE FROM assessment_questions WHERE question_id = :qid AND employer_id = :eid"),
            {"qid": question_id, "eid": employer["employer_id"]}
        )
        if result.rowcount == 0:
            raise HTTPException(status_code=404, detail="Question not found or access denied")

    return MessageResponse(message="Question deleted successfully")
