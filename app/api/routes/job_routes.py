"""
Job Routes

POST /jobs - Create job posting (employer only)
GET /jobs - List all open jobs with filters
GET /jobs/applications - Applications to own jobs (employer only)
PUT /jobs/applications/{application_id}/status - Update application status (employer only)
GET /jobs/{job_id} - Get job details
PUT /jobs/{job_id} - Update job (employer only)
DELETE /jobs/{job_id} - Delete job (employer only)
POST /jobs/{job_id}/apply - Apply to job (student only)
"""

from fastapi import APIRouter, HTTPException, Depends, Query
from sqlalchemy import text
from typing import List, Optional

from app.db.postgres import get_db_session, execute_raw_sql
from app.core.auth import get_current_student, get_current_employer
from app.services.activity_service import ActivityService, get_activity_service
from app.services.skill_service import get_or_create_skill
from app.schemas.schemas import (
    JobCreate, JobUpdate, JobResponse, JobListResponse, JobApplicationCreate,
    JobApplicationResponse, JobApplicationStatusUpdate, MessageResponse
)

router = APIRouter(prefix="/jobs", tags=["Jobs"])

JOB_SELECT = """
    SELECT j.job_id, j.employer_id, e.company_name, j.title, j.description, j.job_type,
           j.location, j.is_remote, j.min_salary, j.max_salary, j.currency, j.status, j.created_at
    FROM jobs j JOIN employers e ON j.employer_id = e.employer_id
"""


def _job_skills(job_ids: List[int]) -> dict:
    """job_id -> list of skill names, in one query."""
    if not job_ids:
        return {}
    rows = execute_raw_sql("""
        SELECT js.job_id, sk.skill_name FROM job_skills js
        JOIN skills sk ON js.skill_id = sk.skill_id
        WHERE js.job_id = ANY(:ids) ORDER BY sk.skill_name
    """, {"ids": list(job_ids)})
    skills = {}
    for r in rows:
        skills.setdefault(r["job_id"], []).append(r["skill_name"])
    return skills


def _to_response(r: dict, skills: List[str]) -> JobResponse:
    return JobResponse(
        job_id=r["job_id"], employer_id=r["employer_id"], company_name=r["company_name"],
        title=r["title"], description=r["description"], job_type=r["job_type"],
        location=r["location"], is_remote=r["is_remote"],
        min_salary=float(r["min_salary"]) if r["min_salary"] else None,
        max_salary=float(r["max_salary"]) if r["max_salary"] else None,
        currency=r["currency"], status=r["status"], required_skills=skills,
        created_at=r["created_at"]
    )


def fetch_jobs(employer_id: Optional[int] = None, status: Optional[str] = None) -> List[JobResponse]:
    """Jobs with their skills, newest first, optionally for one employer/status."""
    sql = JOB_SELECT + " WHERE TRUE"
    params = {}
    if employer_id is not None:
        sql += " AND j.employer_id = :eid"
        params["eid"] = employer_id
    if status:
        sql += " AND j.status = :status"
        params["status"] = status
    sql += " ORDER BY j.created_at DESC"

    results = execute_raw_sql(sql, params)
    skills = _job_skills([r["job_id"] for r in results])
    return [_to_response(r, skills.get(r["job_id"], [])) for r in results]


@router.post("", response_model=JobResponse, status_code=201)
async def create_job(
    job: JobCreate,
    employer: dict = Depends(get_current_employer),
    activities: ActivityService = Depends(get_activity_service)
):
    """Create a new job posting. Only employers can create jobs."""
    with get_db_session() as db:
        result = db.execute(
            text("""
                INSERT INTO jobs (employer_id, title, description, job_type, location, is_remote,
                    min_salary, max_salary, currency, status)
                VALUES (:employer_id, :title, :description, :job_type, :location, :is_remote,
                    :min_salary, :max_salary, :currency, 'open')
                RETURNING job_id, created_at
            """),
            {
                "employer_id": employer["employer_id"], "title": job.title, "description": job.description,
                "job_type": job.job_type.value, "location": job.location, "is_remote": job.is_remote,
                "min_salary": job.min_salary, "max_salary": job.max_salary, "currency": job.currency
            }
        )
        job_id, created_at = result.fetchone()

        for skill_name in job.required_skills:
            skill_id = get_or_create_skill(db, skill_name)
            db.execute(
                text("INSERT INTO job_skills (job_id, skill_id) VALUES (:jid, :sid) ON CONFLICT DO NOTHING"),
                {"jid": job_id, "sid": skill_id}
            )

        cn_result = db.execute(
            text("SELECT company_name FROM employers WHERE employer_id = :id"),
            {"id": employer["employer_id"]}
        )
        company_name = cn_result.fetchone()[0]

    activities.record_quietly(
        employer["user_id"], "job_posted", f"Posted {job.title}", metadata={"job_id": job_id}
    )

    return JobResponse(
        job_id=job_id, employer_id=employer["employer_id"], company_name=company_name,
        title=job.title, description=job.description, job_type=job.job_type.value,
        location=job.location, is_remote=job.is_remote, min_salary=job.min_salary,
        max_salary=job.max_salary, currency=job.currency, status="open",
        required_skills=job.required_skills, created_at=created_at
    )


@router.get("", response_model=JobListResponse)
async def list_jobs(
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=50),
    search: Optional[str] = Query(None, description="Search in title"),
    location: Optional[str] = Query(None),
    job_type: Optional[str] = Query(None),
    remote_only: bool = Query(False),
    skill: Optional[str] = Query(None, description="Filter by required skill")
):
    """List all open job postings with filters and pagination."""
    where = " WHERE j.status = 'open'"
    params = {}

    if search:
        where += " AND j.title ILIKE :search"
        params["search"] = f"%{search}%"
    if location:
        where += " AND j.location ILIKE :location"
        params["location"] = f"%{location}%"
    if job_type:
        where += " AND j.job_type = :job_type"
        params["job_type"] = job_type
    if remote_only:
        where += " AND j.is_remote = TRUE"
    if skill:
        where += """ AND EXISTS (
            SELECT 1 FROM job_skills js JOIN skills sk ON js.skill_id = sk.skill_id
            WHERE js.job_id = j.job_id AND LOWER(sk.skill_name) = LOWER(:skill)
        )"""
        params["skill"] = skill

    count = execute_raw_sql(
        "SELECT COUNT(*) AS total FROM jobs j" + where, params
    )
    total = count[0]["total"] if count else 0

    params["limit"] = page_size
    params["offset"] = (page - 1) * page_size
    results = execute_raw_sql(
        JOB_SELECT + where + " ORDER BY j.created_at DESC LIMIT :limit OFFSET :offset", params
    )

    skills = _job_skills([r["job_id"] for r in results])
    jobs = [_to_response(r, skills.get(r["job_id"], [])) for r in results]
    return JobListResponse(jobs=jobs, total=total, page=page, page_size=page_size)


@router.get("/applications", response_model=List[JobApplicationResponse])
async def get_applications(
    job_id: Optional[int] = Query(None),
    status: Optional[str] = Query(None),
    employer: dict = Depends(get_current_employer)
):
    """Get all applications for this employer's job postings."""
    sql = """
        SELECT ja.application_id, ja.job_id, j.title AS job_title, e.company_name,
               ja.student_id, pr.full_name AS student_name, ja.status, ja.cover_letter,
               ja.applied_at, ja.updated_at
        FROM job_applications ja
        JOIN jobs j ON ja.job_id = j.job_id
        JOIN employers e ON j.employer_id = e.employer_id
        JOIN students s ON ja.student_id = s.student_id
        LEFT JOIN profiles pr ON pr.user_id = s.user_id
        WHERE j.employer_id = :eid
    """
    params = {"eid": employer["employer_id"]}

    if job_id:
        sql += " AND ja.job_id = :jid"
        params["jid"] = job_id
    if status:
        sql += " AND ja.status = :status"
        params["status"] = status

    sql += " ORDER BY ja.applied_at DESC"
    return [JobApplicationResponse(**r) for r in execute_raw_sql(sql, params)]


@router.put("/applications/{application_id}/status", response_model=MessageResponse)
async def update_application_status(
    application_id: int,
    update: JobApplicationStatusUpdate,
    employer: dict = Depends(get_current_employer)
):
    """Update status of a job application."""
    with get_db_session() as db:
        # Verify ownership
        result = db.execute(
            text("""
                SELECT ja.application_id FROM job_applications ja
                JOIN jobs j ON ja.job_id = j.job_id
                WHERE ja.application_id = :aid AND j.employer_id = :eid
            """),
            {"aid": application_id, "eid": employer["employer_id"]}
        )
        if not result.fetchone():
            raise HTTPException(status_code=404, detail="Application not found")

        db.execute(
            text("""
                UPDATE job_applications SET status = :status, updated_at = CURRENT_TIMESTAMP
                WHERE application_id = :aid
            """),
            {"aid": application_id, "status": update.status.value}
        )

    return MessageResponse(message=f"Status updated to '{update.status.value}'")


@router.get("/{job_id}", response_model=JobResponse)
async def get_job(job_id: int):
    """Get details of a specific job."""
    results = execute_raw_sql(JOB_SELECT + " WHERE j.job_id = :jid", {"jid": job_id})

    if not results:
        raise HTTPException(status_code=404, detail="Job not found")

    skills = _job_skills([job_id])
    return _to_response(results[0], skills.get(job_id, []))


@router.put("/{job_id}", response_model=MessageResponse)
async def update_job(job_id: int, update: JobUpdate, employer: dict = Depends(get_current_employer)):
    """Update a job posting. Only the owning employer can update."""
    with get_db_session() as db:
        result = db.execute(
            text("SELECT job_id FROM jobs WHERE job_id = :jid AND employer_id = :eid"),
            {"jid": job_id, "eid": employer["employer_id"]}
        )
        if not result.fetchone():
            raise HTTPException(status_code=404, detail="Job not found or access denied")

        updates = []
        params = {"jid": job_id}

        for field in ["title", "description", "location", "is_remote", "min_salary", "max_salary"]:
            value = getattr(update, field, None)
            if value is not None:
                updates.append(f"{field} = :{field}")
                params[field] = value

        if update.job_type:
            updates.append("job_type = :job_type")
            params["job_type"] = update.job_type.value
        if update.status:
            updates.append("status = :status")
            params["status"] = update.status.value

        if updates:
            db.execute(
                text(f"UPDATE jobs SET {', '.join(updates)}, updated_at = CURRENT_TIMESTAMP WHERE job_id = :jid"),
                params
            )

    return MessageResponse(message="Job updated successfully")


@router.delete("/{job_id}", response_model=MessageResponse)
async def delete_job(job_id: int, employer: dict = Depends(get_current_employer)):
    """Delete a job posting. Cascades to applications."""
    with get_db_session() as db:
        result = db.execute(
            text("DELETE FROM jobs WHERE job_id = :jid AND employer_id = :eid"),
            {"jid": job_id, "eid": employer["employer_id"]}
        )
        if result.rowcount == 0:
            raise HTTPException(status_code=404, detail="Job not found or access denied")

    return MessageResponse(message="Job deleted successfully")


@router.post("/{job_id}/apply", response_model=MessageResponse)
async def apply_to_job(
    job_id: int,
    application: JobApplicationCreate,
    student: dict = Depends(get_current_student),
    activities: ActivityService = Depends(get_activity_service)
):
    """Apply to a job. Students only. Cannot apply twice to same job."""
    with get_db_session() as db:
        # Check job exists and is open
        result = db.execute(text("SELECT status, title FROM jobs WHERE job_id = :jid"), {"jid": job_id})
        job = result.fetchone()
        if not job:
            raise HTTPException(status_code=404, detail="Job not found")
        if job[0] != 'open':
            raise HTTPException(status_code=400, detail="Job is not accepting applications")

        # Check not already applied
        result = db.execute(
            text("SELECT application_id FROM job_applications WHERE student_id = :sid AND job_id = :jid"),
            {"sid": student["student_id"], "jid": job_id}
        )
        if result.fetchone():
            raise HTTPException(status_code=400, detail="Already applied to this job")

        db.execute(
            text("INSERT INTO job_applications (student_id, job_id, cover_letter, status) VALUES (:sid, :jid, :cover, 'applied')"),
            {"sid": student["student_id"], "jid": job_id, "cover": application.cover_letter}
        )

    activities.record_quietly(
        student["user_id"], "job_application", f"Applied to {job[1]}", metadata={"job_id": job_id}
    )
    return MessageResponse(message="Application submitted successfully")
